"""GitHubClient - Reads pull requests, reviews and repositories from GitHub."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from workboard.github.exceptions import GitHubError, RateLimitedError
from workboard.github.models import (
    PRStatus,
    PullRequest,
    RateLimitStatus,
    Repository,
    Review,
    ReviewPullRequest,
)
from workboard.github.reviews import (
    derive_inbox_status,
    derive_review_state,
    required_reviewer_count,
)
from workboard.linking import DEFAULT_PROJECT_CODE, extract_ticket_key
from workboard.logging import sanitize_for_log
from workboard.timestamps import parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger("workboard.github")

REVIEW_INBOX_QUERY = "is:pr is:open review-requested:@me archived:false"


def _login(user: Any) -> str:
    if isinstance(user, dict) and user.get("login"):
        return str(user["login"])
    return "unknown"


def _reviewer_logins(data: dict[str, Any]) -> list[str]:
    return [_login(u) for u in data.get("requested_reviewers") or []]


def _parse_reviews(payload: Any) -> list[Review]:
    reviews = []
    for item in payload if isinstance(payload, list) else []:
        if not isinstance(item, dict) or not item.get("state"):
            continue
        reviews.append(
            Review(
                reviewer=_login(item.get("user")),
                state=str(item["state"]),
                submitted_at=parse_timestamp(item.get("submitted_at")),
            )
        )
    return reviews


class GitHubClient:
    """Async client for the GitHub REST API.

    Without a token the client is "not configured" and reads return empty
    results. Fan-out over repositories and pull requests runs concurrently.
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api.github.com",
        default_project_code: str = DEFAULT_PROJECT_CODE,
        required_reviewers: Mapping[str, int] | None = None,
        default_required_reviewers: int = 1,
        rate_limit_threshold: int = 0,
    ) -> None:
        """Initialize GitHub client.

        Args:
            token: GitHub token (personal access token or ``gh auth token``)
            base_url: REST API URL (for testing/enterprise)
            default_project_code: Project code for numeric branch keys
            required_reviewers: Approvals required per repository
            default_required_reviewers: Approvals required elsewhere
            rate_limit_threshold: Remaining calls at or below which we count as limited
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.default_project_code = default_project_code
        self.required_reviewers = dict(required_reviewers or {})
        self.default_required_reviewers = default_required_reviewers
        self.rate_limit_threshold = rate_limit_threshold
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.token)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a resource and decode its JSON body.

        Raises:
            RateLimitedError: If the rate limit is exhausted
            GitHubError: On any other error status
        """
        response = await self.client.get(path, params=params)
        if response.status_code in (403, 429) and response.headers.get(
            "x-ratelimit-remaining"
        ) == "0":
            raise RateLimitedError("GitHub API rate limit exceeded", response.status_code)
        if response.status_code >= 400:
            raise GitHubError(
                f"GitHub request failed: {response.status_code} - "
                f"{sanitize_for_log(response.text[:200])}",
                response.status_code,
            )
        return response.json()

    # --- Rate limit ---

    async def rate_limit_status(self) -> RateLimitStatus:
        """Read the core rate limit. Failures report an unknown, unlimited status."""
        if not self.is_configured:
            return RateLimitStatus(threshold=self.rate_limit_threshold)
        try:
            data = await self._get("/rate_limit")
            core = data["resources"]["core"]
            return RateLimitStatus(
                remaining=int(core["remaining"]),
                limit=int(core["limit"]),
                reset_at=datetime.fromtimestamp(int(core["reset"]), UTC),
                threshold=self.rate_limit_threshold,
            )
        except (httpx.HTTPError, GitHubError, KeyError, TypeError, ValueError) as e:
            logger.warning("Could not read GitHub rate limit: %s", e)
            return RateLimitStatus(threshold=self.rate_limit_threshold)

    # --- Repositories ---

    async def list_repositories(self, limit: int | None = None) -> list[Repository]:
        """List repositories the user can access, most recently updated first.

        Args:
            limit: Stop after this many repositories. None fetches every page.
        """
        if not self.is_configured:
            logger.warning("GitHub token not configured, returning no repositories")
            return []

        repositories: list[Repository] = []
        page = 1
        per_page = min(limit, 100) if limit else 100
        while True:
            data = await self._get(
                "/user/repos",
                params={"sort": "updated", "direction": "desc", "per_page": per_page, "page": page},
            )
            if not isinstance(data, list):
                data = []
            for item in data:
                full_name = item.get("full_name") if isinstance(item, dict) else None
                if not full_name:
                    logger.debug("Skipping repository entry without a full name")
                    continue
                owner = _login(item.get("owner"))
                repositories.append(
                    Repository(
                        full_name=full_name,
                        name=item.get("name") or full_name.split("/")[-1],
                        owner=owner,
                        private=bool(item.get("private")),
                        default_branch=item.get("default_branch") or "main",
                        updated_at=parse_timestamp(item.get("updated_at")),
                        url=item.get("html_url") or "",
                    )
                )
            if limit and len(repositories) >= limit:
                return repositories[:limit]
            if len(data) < per_page:
                return repositories
            page += 1

    # --- Pull requests ---

    async def list_reviews(self, repository: str, number: int) -> list[Review]:
        data = await self._get(
            f"/repos/{repository}/pulls/{number}/reviews", params={"per_page": 100}
        )
        return _parse_reviews(data)

    def _parse_pull_request(
        self, data: dict[str, Any], repository: str, reviews: list[Review]
    ) -> PullRequest:
        requested = _reviewer_logins(data)
        required = required_reviewer_count(
            repository, self.required_reviewers, self.default_required_reviewers
        )
        review_state, approved = derive_review_state(reviews, requested, required)
        branch = (data.get("head") or {}).get("ref") or ""
        return PullRequest(
            id=str(data["id"]),
            title=data.get("title") or "",
            number=int(data["number"]),
            status=PRStatus.MERGED if data.get("merged_at") else PRStatus(data.get("state", "open")),
            branch=branch,
            repository=repository,
            author=_login(data.get("user")),
            url=data.get("html_url") or "",
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            linked_ticket_key=extract_ticket_key(branch, self.default_project_code),
            is_draft=bool(data.get("draft")),
            review_state=review_state,
            requested_reviewers=requested,
            approved_reviewers=approved,
            required_reviewer_count=required,
        )

    async def list_pull_requests(
        self, repository: str, per_page: int = 100, with_reviews: bool = True
    ) -> list[PullRequest]:
        """List the most recently updated pull requests of one repository.

        Reviews are fetched only for open pull requests.

        Args:
            repository: Repository in "owner/repo" format
            per_page: Number of pull requests to read
            with_reviews: Whether to fetch reviews of open pull requests
        """
        data = await self._get(
            f"/repos/{repository}/pulls",
            params={"state": "all", "sort": "updated", "direction": "desc", "per_page": per_page},
        )

        async def reviews_for(item: dict[str, Any]) -> list[Review]:
            if not with_reviews or item.get("state") != "open":
                return []
            try:
                return await self.list_reviews(repository, int(item["number"]))
            except (httpx.HTTPError, GitHubError) as e:
                logger.warning("Failed to read reviews of %s#%s: %s", repository, item["number"], e)
                return []

        reviews = await asyncio.gather(*(reviews_for(item) for item in data))
        return [
            self._parse_pull_request(item, repository, item_reviews)
            for item, item_reviews in zip(data, reviews, strict=True)
        ]

    async def fetch_pull_requests(self, repositories: Iterable[str]) -> list[PullRequest]:
        """Fetch pull requests of many repositories concurrently.

        A repository that fails is logged and skipped. Rate limiting is
        raised so callers can fall back to cached data.

        Raises:
            RateLimitedError: If every failure was due to the rate limit
        """
        if not self.is_configured:
            logger.warning("GitHub token not configured, returning no pull requests")
            return []

        repos = list(dict.fromkeys(repositories))
        results = await asyncio.gather(
            *(self.list_pull_requests(repo) for repo in repos), return_exceptions=True
        )

        pull_requests: list[PullRequest] = []
        rate_limited = False
        for repo, result in zip(repos, results, strict=True):
            if isinstance(result, RateLimitedError):
                rate_limited = True
                logger.warning("Rate limited while fetching %s", repo)
            elif isinstance(result, (httpx.HTTPError, GitHubError, KeyError, ValueError)):
                logger.warning("Failed to fetch pull requests of %s: %s", repo, result)
            elif isinstance(result, BaseException):
                raise result
            else:
                pull_requests.extend(result)

        if rate_limited and not pull_requests:
            raise RateLimitedError("GitHub API rate limit exceeded")
        logger.info("Fetched %d pull requests from %d repositories", len(pull_requests), len(repos))
        return pull_requests

    # --- Review inbox ---

    async def search_pull_requests(self, query: str, per_page: int = 100) -> list[dict[str, Any]]:
        data = await self._get("/search/issues", params={"q": query, "per_page": per_page})
        return list(data.get("items") or [])

    async def _review_pull_request(self, item: dict[str, Any]) -> ReviewPullRequest:
        repository = str(item["repository_url"]).split("/repos/", 1)[1]
        number = int(item["number"])
        details, reviews = await asyncio.gather(
            self._get(f"/repos/{repository}/pulls/{number}"),
            self.list_reviews(repository, number),
        )
        requested = _reviewer_logins(details)
        status, approvals, change_requests = derive_inbox_status(reviews, requested)
        reviewers = sorted({r.reviewer for r in reviews} | set(requested))

        return ReviewPullRequest(
            id=str(details["id"]),
            title=details.get("title") or "",
            number=number,
            branch=(details.get("head") or {}).get("ref") or "",
            repository=repository,
            author=_login(details.get("user")),
            url=details.get("html_url") or "",
            created_at=parse_timestamp(details.get("created_at")),
            updated_at=parse_timestamp(details.get("updated_at")),
            is_draft=bool(details.get("draft")),
            approved_reviews=approvals,
            changes_requested_reviews=change_requests,
            pending_reviews=len(requested),
            total_reviews=len(reviews),
            reviewers=reviewers,
            review_status=status,
            body=details.get("body") or "",
            state=details.get("state") or "open",
            base_branch=(details.get("base") or {}).get("ref") or "",
            merged_at=parse_timestamp(details.get("merged_at")),
            closed_at=parse_timestamp(details.get("closed_at")),
            commits=int(details.get("commits") or 0),
            additions=int(details.get("additions") or 0),
            deletions=int(details.get("deletions") or 0),
            changed_files=int(details.get("changed_files") or 0),
        )

    async def fetch_prs_needing_review(self) -> list[ReviewPullRequest]:
        """Open pull requests where the user's review is requested.

        A pull request whose details cannot be read is logged and skipped.
        """
        if not self.is_configured:
            logger.warning("GitHub token not configured, returning empty review inbox")
            return []

        items = await self.search_pull_requests(REVIEW_INBOX_QUERY)
        results = await asyncio.gather(
            *(self._review_pull_request(item) for item in items), return_exceptions=True
        )

        inbox = []
        for item, result in zip(items, results, strict=True):
            if isinstance(result, (httpx.HTTPError, GitHubError, KeyError, IndexError, ValueError)):
                logger.warning("Skipping review inbox item %s: %s", item.get("html_url"), result)
            elif isinstance(result, BaseException):
                raise result
            else:
                inbox.append(result)
        return inbox
