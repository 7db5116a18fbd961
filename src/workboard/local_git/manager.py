"""LocalGitManager - Reads and updates branch state in one local clone."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from workboard.local_git.models import (
    BranchStatus,
    GitOperationResult,
    LocalBranchStatus,
    UpstreamStatus,
)
from workboard.logging import truncate_output
from workboard.timestamps import utcnow

logger = logging.getLogger("workboard.local_git")

_AHEAD = re.compile(r"ahead (\d+)")
_BEHIND = re.compile(r"behind (\d+)")


class LocalGitManager:
    """Runs git commands against a single local repository.

    Read operations that cover many branches are batched into a single
    ``git for-each-ref`` call so scanning stays cheap with many branches.
    """

    def __init__(self, repo_path: str | Path) -> None:
        """Initialize the manager.

        Args:
            repo_path: Path to the local clone.
        """
        self.repo_path = Path(repo_path)

    @property
    def name(self) -> str:
        """Directory name of the clone, used as its local repository name."""
        return self.repo_path.name

    def _run_git(self, *args: str) -> str:
        """Run a git command in the repo directory.

        Args:
            *args: Git command arguments

        Returns:
            Command stdout

        Raises:
            subprocess.CalledProcessError: If command fails
        """
        result = subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def _ref_succeeds(self, ref: str) -> bool:
        try:
            self._run_git("show-ref", "--verify", "--quiet", ref)
        except subprocess.CalledProcessError:
            return False
        return True

    # --- Read operations ---

    def list_branches(self) -> list[str]:
        """List local branch names."""
        output = self._run_git("for-each-ref", "--format=%(refname:short)", "refs/heads/")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def list_remotes(self) -> list[str]:
        """List configured remote names."""
        output = self._run_git("remote")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _for_each_branch(self, fmt: str, branches: list[str] | None) -> list[list[str]]:
        refs = [f"refs/heads/{b}" for b in branches] if branches else ["refs/heads/"]
        output = self._run_git("for-each-ref", f"--format={fmt}", *refs)
        wanted = set(branches) if branches else None
        rows = []
        for line in output.splitlines():
            parts = line.split("\t")
            # Prefix patterns also match deeper refs (refs/heads/a matches a/b)
            if wanted is not None and parts[0] not in wanted:
                continue
            rows.append(parts)
        return rows

    def branch_upstream_status(
        self, branches: list[str] | None = None
    ) -> dict[str, UpstreamStatus]:
        """Get ahead/behind counts for many branches in one git invocation.

        Args:
            branches: Branch names to inspect. None means all local branches.

        Returns:
            Mapping of branch name to its upstream status.
        """
        statuses: dict[str, UpstreamStatus] = {}
        rows = self._for_each_branch(
            "%(refname:short)\t%(upstream:short)\t%(upstream:track)", branches
        )
        for parts in rows:
            name = parts[0]
            upstream = parts[1] if len(parts) > 1 else ""
            track = parts[2] if len(parts) > 2 else ""
            if not upstream or track == "[gone]":
                statuses[name] = UpstreamStatus()
                continue
            ahead = _AHEAD.search(track)
            behind = _BEHIND.search(track)
            statuses[name] = UpstreamStatus(
                ahead=int(ahead.group(1)) if ahead else 0,
                behind=int(behind.group(1)) if behind else 0,
                has_upstream=True,
            )
        return statuses

    def last_commit_subjects(self, branches: list[str] | None = None) -> dict[str, str]:
        """Get the last commit subject of many branches in one git invocation."""
        rows = self._for_each_branch("%(refname:short)\t%(contents:subject)", branches)
        return {parts[0]: parts[1] if len(parts) > 1 else "" for parts in rows}

    def remote_origin_url(self) -> str | None:
        """Get the URL of the ``origin`` remote, if there is one."""
        try:
            return self._run_git("remote", "get-url", "origin") or None
        except subprocess.CalledProcessError:
            return None

    def current_branch(self) -> str:
        """Name of the checked-out branch (``HEAD`` when detached)."""
        return self._run_git("rev-parse", "--abbrev-ref", "HEAD")

    def default_branch(self) -> str:
        """Detect the default branch: origin's HEAD, then master, then main."""
        try:
            ref = self._run_git("symbolic-ref", "refs/remotes/origin/HEAD")
            if ref:
                return ref.removeprefix("refs/remotes/origin/")
        except subprocess.CalledProcessError:
            pass

        if self._ref_succeeds("refs/heads/master"):
            return "master"
        return "main"

    def branch_exists(self, branch: str) -> bool:
        return self._ref_succeeds(f"refs/heads/{branch}")

    def branch_status(self, branch: str) -> BranchStatus:
        """Get the full status of one branch against ``origin``.

        Git failures are logged and reported as a non-existent branch.
        """
        try:
            if not self.branch_exists(branch):
                return BranchStatus(
                    branch=branch, exists=False, repository=self.name, last_checked=utcnow()
                )

            if not self._ref_succeeds(f"refs/remotes/origin/{branch}"):
                return BranchStatus(
                    branch=branch,
                    exists=True,
                    repository=self.name,
                    last_checked=utcnow(),
                )

            counts = self._run_git(
                "rev-list", "--left-right", "--count", f"{branch}...origin/{branch}"
            )
            ahead_str, behind_str = counts.split()
            ahead, behind = int(ahead_str), int(behind_str)
            last_commit = self._run_git("log", "-1", "--format=%h %s", branch)
        except (subprocess.CalledProcessError, ValueError) as e:
            logger.error("Failed to read status of %s in %s: %s", branch, self.repo_path, e)
            return BranchStatus(
                branch=branch, exists=False, repository=self.name, last_checked=utcnow()
            )

        return BranchStatus(
            branch=branch,
            exists=True,
            is_up_to_date=ahead == 0 and behind == 0,
            ahead=ahead,
            behind=behind,
            has_remote=True,
            repository=self.name,
            last_commit=last_commit,
            last_checked=utcnow(),
        )

    def branch_details(self, branches: list[str] | None = None) -> list[LocalBranchStatus]:
        """Describe branches using two batched git invocations.

        Args:
            branches: Branch names to describe. None means all local branches.

        Returns:
            One LocalBranchStatus per branch, in the requested order.
        """
        names = branches if branches is not None else self.list_branches()
        if not names:
            return []

        upstream = self.branch_upstream_status(names)
        subjects = self.last_commit_subjects(names)
        origin = self.remote_origin_url()

        details = []
        for name in names:
            status = upstream.get(name, UpstreamStatus())
            details.append(
                LocalBranchStatus(
                    branch=name,
                    repository=self.name,
                    remote_origin=origin,
                    has_remote=status.has_upstream,
                    ahead=status.ahead,
                    behind=status.behind,
                    last_commit=subjects.get(name, ""),
                )
            )
        return details

    # --- Mutating operations ---

    def push(self, branch: str) -> GitOperationResult:
        """Push a branch to origin, creating its upstream if needed."""
        logger.info("Pushing branch %s in %s", branch, self.repo_path)
        try:
            self._run_git("push", "-u", "origin", branch)
        except subprocess.CalledProcessError as e:
            logger.error("Failed to push branch %s: %s", branch, truncate_output(e.stderr or ""))
            return GitOperationResult(False, f"Failed to push branch: {e.stderr}")
        logger.info("Pushed branch %s", branch)
        return GitOperationResult(True, "Branch pushed successfully")

    def pull(self, branch: str) -> GitOperationResult:
        """Update a branch from origin.

        The checked-out branch is pulled; any other branch is fast-forwarded
        through a fetch refspec so the working tree is left alone.
        """
        logger.info("Updating branch %s in %s", branch, self.repo_path)
        try:
            if self.current_branch() == branch:
                self._run_git("pull", "origin", branch)
            else:
                self._run_git("fetch", "origin", f"{branch}:{branch}")
        except subprocess.CalledProcessError as e:
            logger.error("Failed to update branch %s: %s", branch, truncate_output(e.stderr or ""))
            return GitOperationResult(False, f"Failed to update branch: {e.stderr}")
        return GitOperationResult(True, "Branch updated successfully")

    def delete_local_branch(self, branch: str) -> GitOperationResult:
        """Delete a local branch.

        When the branch is checked out, switch to the default branch first,
        creating it from origin if it does not exist locally. A branch that
        is already gone counts as deleted.
        """
        logger.info("Deleting local branch %s in %s", branch, self.repo_path)
        try:
            if self.current_branch() == branch:
                default = self.default_branch()
                try:
                    self._run_git("checkout", default)
                except subprocess.CalledProcessError as checkout_error:
                    try:
                        self._run_git("checkout", "-b", default, f"origin/{default}")
                    except subprocess.CalledProcessError:
                        return GitOperationResult(
                            False,
                            "Cannot delete branch you are currently on. "
                            f"Failed to switch to {default}: {checkout_error.stderr}",
                        )
                logger.info("Switched to %s before deleting %s", default, branch)

            if not self.branch_exists(branch):
                return GitOperationResult(True, "Branch was already deleted")

            self._run_git("branch", "-D", branch)
        except subprocess.CalledProcessError as e:
            logger.error("Failed to delete branch %s: %s", branch, truncate_output(e.stderr or ""))
            return GitOperationResult(False, f"Failed to delete branch: {e.stderr}")

        logger.info("Deleted local branch %s", branch)
        return GitOperationResult(True, "Branch deleted successfully")
