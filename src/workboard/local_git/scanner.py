"""RepositoryScanner - Finds local clones and scans their branches."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from workboard.local_git.exceptions import RepositoryNotFoundError
from workboard.local_git.manager import LocalGitManager
from workboard.local_git.models import BranchStatus, LocalBranchStatus, LocalRepository

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger("workboard.local_git")


def default_scan_roots() -> list[Path]:
    """Directories searched for clones when none are configured."""
    home = Path.home()
    return [home, home / "repos", home / "projects", home / "work", home / "code"]


@dataclass
class BranchStatusRequest:
    """One pull request whose local branch status is wanted."""

    pr_id: str
    repository: str
    branch: str


@dataclass
class BranchStatusResult:
    pr_id: str
    status: BranchStatus | None = None
    error: str | None = None


class RepositoryScanner:
    """Discovers git clones one level below each scan root.

    Branch scans run one worker thread per repository and are joined
    before returning.
    """

    def __init__(self, roots: Iterable[str | Path] | None = None) -> None:
        self.roots = [Path(r).expanduser() for r in roots] if roots else default_scan_roots()

    def find_repositories(self) -> list[Path]:
        """List directories directly under the roots that contain ``.git``."""
        found: list[Path] = []
        seen: set[Path] = set()
        for root in self.roots:
            if not root.is_dir():
                continue
            try:
                children = sorted(root.iterdir())
            except OSError as e:
                logger.warning("Cannot list %s: %s", root, e)
                continue
            for child in children:
                if child in seen or child.name.startswith("."):
                    continue
                if child.is_dir() and (child / ".git").exists():
                    seen.add(child)
                    found.append(child)
        return found

    def find_repository_by_name(self, name: str) -> Path:
        """Find a clone by repository name.

        An ``owner/`` prefix is ignored. An exact case-insensitive match on
        the directory name wins over a partial one.

        Raises:
            RepositoryNotFoundError: If no clone matches.
        """
        wanted = name.rsplit("/", 1)[-1].lower()
        repositories = self.find_repositories()

        for path in repositories:
            if path.name.lower() == wanted:
                return path
        for path in repositories:
            if wanted in path.name.lower():
                return path

        raise RepositoryNotFoundError(f"Repository '{name}' not found locally")

    def list_repositories(self) -> list[LocalRepository]:
        repositories = []
        for path in self.find_repositories():
            try:
                remotes = LocalGitManager(path).list_remotes()
            except subprocess.CalledProcessError as e:
                logger.warning("Cannot list remotes of %s: %s", path, e.stderr)
                remotes = []
            repositories.append(LocalRepository(path=str(path), name=path.name, remotes=remotes))
        return repositories

    @staticmethod
    def _scan_repository(path: Path, keys: list[str] | None) -> list[LocalBranchStatus]:
        manager = LocalGitManager(path)
        try:
            branches = manager.list_branches()
            if keys is not None:
                lowered = [k.lower() for k in keys]
                branches = [b for b in branches if any(k in b.lower() for k in lowered)]
            if not branches:
                return []
            return manager.branch_details(branches)
        except (subprocess.CalledProcessError, OSError) as e:
            logger.warning("Skipping %s: %s", path, e)
            return []

    async def _scan(self, keys: list[str] | None) -> list[LocalBranchStatus]:
        repositories = self.find_repositories()
        results = await asyncio.gather(
            *(asyncio.to_thread(self._scan_repository, path, keys) for path in repositories)
        )

        # Several clones of one repository share branch names; first one wins
        branches: list[LocalBranchStatus] = []
        seen: set[str] = set()
        for repo_branches in results:
            for branch in repo_branches:
                if branch.branch in seen:
                    continue
                seen.add(branch.branch)
                branches.append(branch)

        logger.debug("Found %d branches in %d repositories", len(branches), len(repositories))
        return branches

    async def scan_branches_for_keys(self, keys: Iterable[str]) -> list[LocalBranchStatus]:
        """Find local branches whose names contain any of the ticket keys."""
        key_list = [k for k in keys if k]
        if not key_list:
            return []
        return await self._scan(key_list)

    async def scan_all_branches(self) -> list[LocalBranchStatus]:
        return await self._scan(None)

    def branch_status(self, repository: str, branch: str) -> BranchStatus:
        """Status of one branch in the clone matching ``repository``.

        Raises:
            RepositoryNotFoundError: If no clone matches.
        """
        path = self.find_repository_by_name(repository)
        return LocalGitManager(path).branch_status(branch)

    async def bulk_branch_status(
        self, requests: Iterable[BranchStatusRequest]
    ) -> list[BranchStatusResult]:
        """Look up the local status of many pull request branches concurrently."""

        def lookup(request: BranchStatusRequest) -> BranchStatusResult:
            try:
                status = self.branch_status(request.repository, request.branch)
            except RepositoryNotFoundError as e:
                return BranchStatusResult(pr_id=request.pr_id, error=str(e))
            return BranchStatusResult(pr_id=request.pr_id, status=status)

        return list(
            await asyncio.gather(*(asyncio.to_thread(lookup, r) for r in requests))
        )
