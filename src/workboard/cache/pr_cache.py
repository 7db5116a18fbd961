"""PRCache - Time-bounded cache of pull requests with rate-limit fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from workboard.cache.models import PRFetchResult
from workboard.github.exceptions import GitHubError, RateLimitedError
from workboard.timestamps import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from workboard.cache.active_repos import ActiveRepositoryDiscovery
    from workboard.github.models import PullRequest, RateLimitStatus

logger = logging.getLogger("workboard.cache")

PR_CACHE_TTL = 5 * 60


class PullRequestSource(Protocol):
    async def rate_limit_status(self) -> RateLimitStatus: ...

    async def fetch_pull_requests(self, repositories: Iterable[str]) -> list[PullRequest]: ...


def _normalize_filter(repository_filter: str | None) -> str | None:
    if not repository_filter or repository_filter.lower() == "all":
        return None
    return repository_filter


def _filtered(pull_requests: list[PullRequest], repository_filter: str | None) -> list[PullRequest]:
    if repository_filter is None:
        return list(pull_requests)
    wanted = repository_filter.lower()
    return [pr for pr in pull_requests if pr.repository.lower() == wanted]


class PRCache:
    """Process-wide cache of pull requests.

    Refreshes are serialized by a lock, so overlapping requests wait for the
    in-flight refresh and are then served from its result.
    """

    def __init__(
        self,
        source: PullRequestSource,
        discovery: ActiveRepositoryDiscovery,
        ttl_seconds: float = PR_CACHE_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.source = source
        self.discovery = discovery
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: list[PullRequest] = []
        self._fetched_at: datetime | None = None
        self._lock = asyncio.Lock()

    @property
    def entries(self) -> list[PullRequest]:
        return list(self._entries)

    @property
    def fetched_at(self) -> datetime | None:
        return self._fetched_at

    def needs_refresh(self, repository_filter: str | None = None) -> bool:
        """Whether the cache is empty, stale, or lacks the filtered repository."""
        if not self._entries or self._fetched_at is None:
            return True
        wanted = _normalize_filter(repository_filter)
        if wanted is not None and not _filtered(self._entries, wanted):
            return True
        return (self._clock() - self._fetched_at).total_seconds() > self.ttl_seconds

    async def _fetch(self, repository_filter: str | None) -> list[PullRequest]:
        if repository_filter is not None:
            repositories = [repository_filter]
        else:
            repositories = await self.discovery.get_active_repositories()
        return await self.source.fetch_pull_requests(repositories)

    def _store(self, pull_requests: list[PullRequest]) -> None:
        self._entries = list(pull_requests)
        self._fetched_at = self._clock()

    def _serve(self, repository_filter: str | None, rate_limited: bool) -> PRFetchResult:
        return PRFetchResult(
            pull_requests=_filtered(self._entries, repository_filter),
            rate_limited=rate_limited,
            from_cache=True,
            fetched_at=self._fetched_at,
        )

    async def get(self, repository_filter: str | None = None) -> PRFetchResult:
        """Get pull requests, refreshing from GitHub when needed.

        Args:
            repository_filter: "owner/repo" to scope to, or None / "all".
        """
        wanted = _normalize_filter(repository_filter)

        async with self._lock:
            if not self.needs_refresh(wanted):
                return self._serve(wanted, rate_limited=False)

            rate = await self.source.rate_limit_status()
            if rate.is_rate_limited:
                logger.warning("GitHub rate limit reached, resets at %s", rate.reset_at)
                if self._entries:
                    return self._serve(wanted, rate_limited=True)

                logger.warning("No cached pull requests while rate limited, fetching anyway")
                try:
                    fresh = await self._fetch(wanted)
                except (httpx.HTTPError, GitHubError) as e:
                    logger.error("Fetch while rate limited failed: %s", e)
                    return PRFetchResult(rate_limited=True)
                self._store(fresh)
                return PRFetchResult(
                    pull_requests=_filtered(fresh, wanted),
                    rate_limited=True,
                    fetched_at=self._fetched_at,
                )

            try:
                fresh = await self._fetch(wanted)
            except (httpx.HTTPError, GitHubError) as e:
                logger.error("Failed to refresh pull requests: %s", e)
                return self._serve(wanted, rate_limited=isinstance(e, RateLimitedError))

            self._store(fresh)
            logger.info("Refreshed pull request cache with %d entries", len(fresh))
            return PRFetchResult(
                pull_requests=_filtered(fresh, wanted),
                fetched_at=self._fetched_at,
            )

    def invalidate(self) -> None:
        """Clear the cache together with the active repository set."""
        self._entries = []
        self._fetched_at = None
        self.discovery.clear()
        logger.info("Pull request cache and active repositories cleared")
