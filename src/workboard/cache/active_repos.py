"""Discovery of the repositories worth polling for pull requests."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from workboard.cache.models import DiscoveryPolicy
from workboard.github.exceptions import GitHubError
from workboard.timestamps import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from workboard.github.models import PullRequest, Repository

logger = logging.getLogger("workboard.cache")

ACTIVE_REPOSITORIES_TTL = 30 * 60


class RepositorySource(Protocol):
    async def list_repositories(self, limit: int | None = None) -> list[Repository]: ...

    async def list_pull_requests(
        self, repository: str, per_page: int = 100, with_reviews: bool = True
    ) -> list[PullRequest]: ...


class ActiveRepositoryDiscovery:
    """Remembers which repositories have pull requests linked to tickets.

    With the probe policy the most recently updated repositories are
    sampled and a repository is kept when any of its recent pull requests
    has a ticket key in its branch. Re-probing only ever adds repositories;
    the set shrinks only through ``clear()``.
    """

    def __init__(
        self,
        source: RepositorySource,
        policy: DiscoveryPolicy = DiscoveryPolicy.PROBE,
        whitelist: Iterable[str] = (),
        probe_size: int = 30,
        probe_page_size: int = 10,
        ttl_seconds: float = ACTIVE_REPOSITORIES_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.source = source
        self.policy = DiscoveryPolicy(policy)
        self.whitelist = list(whitelist)
        self.probe_size = probe_size
        self.probe_page_size = probe_page_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._active: set[str] = set()
        self._discovered_at: datetime | None = None
        self._lock = asyncio.Lock()

    @property
    def discovered_at(self) -> datetime | None:
        return self._discovered_at

    def _is_fresh(self) -> bool:
        if self._discovered_at is None:
            return False
        return (self._clock() - self._discovered_at).total_seconds() <= self.ttl_seconds

    async def _probe_repository(self, repository: str) -> bool:
        try:
            pull_requests = await self.source.list_pull_requests(
                repository, per_page=self.probe_page_size, with_reviews=False
            )
        except (httpx.HTTPError, GitHubError) as e:
            logger.warning("Probe of %s failed: %s", repository, e)
            return False
        return any(pr.linked_ticket_key for pr in pull_requests)

    async def _probe(self) -> set[str]:
        repositories = await self.source.list_repositories(limit=self.probe_size)
        names = [r.full_name for r in repositories]
        linked = await asyncio.gather(*(self._probe_repository(n) for n in names))
        return {name for name, is_linked in zip(names, linked, strict=True) if is_linked}

    async def get_active_repositories(self) -> list[str]:
        """Return the active repositories, rediscovering when the TTL has passed."""
        async with self._lock:
            if self._is_fresh():
                return sorted(self._active)

            if self.policy == DiscoveryPolicy.WHITELIST:
                found = set(self.whitelist)
            else:
                try:
                    found = await self._probe()
                except (httpx.HTTPError, GitHubError) as e:
                    # Not stamped, so the next call probes again
                    logger.warning("Repository discovery failed, keeping previous set: %s", e)
                    return sorted(self._active)

            added = found - self._active
            self._active |= found
            self._discovered_at = self._clock()
            if added:
                logger.info("Discovered %d new active repositories: %s", len(added), sorted(added))
            return sorted(self._active)

    def clear(self) -> None:
        """Forget every discovered repository."""
        self._active = set()
        self._discovered_at = None
        logger.debug("Cleared active repositories")
