"""Unit tests for GitHubClient."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from workboard.github import GitHubClient, PRStatus, RateLimitedError, ReviewState
from workboard.github.models import InboxReviewStatus


def _mock_response(data: Any, status_code: int = 200, headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = data
    response.text = str(data)
    return response


def _pr(number: int, branch: str, state: str = "open", **extra: Any) -> dict:
    return {
        "id": 1000 + number,
        "number": number,
        "title": f"PR {number}",
        "state": state,
        "head": {"ref": branch},
        "user": {"login": "me"},
        "html_url": f"https://github.com/org/repo/pull/{number}",
        "created_at": "2024-03-01T09:00:00Z",
        "updated_at": "2024-03-02T09:00:00Z",
        "requested_reviewers": [],
        **extra,
    }


def routed(routes: dict[str, Any]) -> Any:
    """side_effect answering GET requests by path."""

    async def get(path: str, params: dict | None = None) -> MagicMock:
        value = routes.get(path)
        if value is None:
            return _mock_response({"message": "Not Found"}, status_code=404)
        if isinstance(value, MagicMock):
            return value
        return _mock_response(value)

    return get


@pytest.fixture
def mock_client() -> AsyncMock:
    """Create a mock HTTP client."""
    return AsyncMock()


@pytest.fixture
def github(mock_client: AsyncMock) -> GitHubClient:
    """Create a GitHubClient instance with mocked client."""
    client = GitHubClient(token="ghp_test", required_reviewers={"org/strict": 2})
    client._client = mock_client
    return client


@pytest.mark.unit
class TestListPullRequests:
    """Tests for per-repository pull request listing."""

    async def test_parses_and_links(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        mock_client.get.side_effect = routed(
            {
                "/repos/org/repo/pulls": [
                    _pr(10, "feature/ABC-1_fix"),
                    _pr(11, "bugfix/42_typo", state="closed", merged_at="2024-03-03T09:00:00Z"),
                    _pr(12, "random-branch", draft=True),
                ],
                "/repos/org/repo/pulls/10/reviews": [
                    {"user": {"login": "ana"}, "state": "APPROVED", "submitted_at": "2024-03-01T10:00:00Z"}
                ],
                "/repos/org/repo/pulls/12/reviews": [],
            }
        )

        prs = await github.list_pull_requests("org/repo")

        by_number = {pr.number: pr for pr in prs}
        assert by_number[10].linked_ticket_key == "ABC-1"
        assert by_number[10].review_state == ReviewState.APPROVED
        assert by_number[10].approved_reviewers == ["ana"]
        assert by_number[10].status == PRStatus.OPEN
        assert by_number[10].id == "1010"
        assert by_number[10].created_at == datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
        assert by_number[11].linked_ticket_key == "PROJ-42"
        assert by_number[11].status == PRStatus.MERGED
        assert by_number[12].linked_ticket_key is None
        assert by_number[12].is_draft

    async def test_reviews_only_for_open(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        mock_client.get.side_effect = routed(
            {"/repos/org/repo/pulls": [_pr(11, "feature/ABC-2_x", state="closed")]}
        )

        prs = await github.list_pull_requests("org/repo")

        assert prs[0].status == PRStatus.CLOSED
        paths = [c.args[0] for c in mock_client.get.call_args_list]
        assert paths == ["/repos/org/repo/pulls"]

    async def test_required_reviewers_per_repository(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        mock_client.get.side_effect = routed(
            {
                "/repos/org/strict/pulls": [_pr(1, "feature/ABC-1_x")],
                "/repos/org/strict/pulls/1/reviews": [
                    {"user": {"login": "ana"}, "state": "APPROVED", "submitted_at": None}
                ],
            }
        )

        prs = await github.list_pull_requests("org/strict")

        assert prs[0].required_reviewer_count == 2
        assert prs[0].review_state == ReviewState.PENDING

    async def test_failed_review_fetch_is_tolerated(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        mock_client.get.side_effect = routed(
            {"/repos/org/repo/pulls": [_pr(10, "feature/ABC-1_fix", requested_reviewers=[{"login": "bo"}])]}
        )

        prs = await github.list_pull_requests("org/repo")

        assert prs[0].review_state == ReviewState.PENDING
        assert prs[0].requested_reviewers == ["bo"]


@pytest.mark.unit
class TestFetchPullRequests:
    """Tests for concurrent fetches across repositories."""

    async def test_failing_repository_skipped(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        mock_client.get.side_effect = routed(
            {
                "/repos/org/a/pulls": [_pr(1, "feature/ABC-1_x", state="closed")],
                "/repos/org/b/pulls": _mock_response({"message": "boom"}, status_code=500),
            }
        )

        prs = await github.fetch_pull_requests(["org/a", "org/b", "org/a"])

        assert [pr.repository for pr in prs] == ["org/a"]

    async def test_rate_limited_with_nothing_fetched_raises(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        limited = _mock_response({}, status_code=403, headers={"x-ratelimit-remaining": "0"})
        mock_client.get.side_effect = routed({"/repos/org/a/pulls": limited})

        with pytest.raises(RateLimitedError):
            await github.fetch_pull_requests(["org/a"])

    async def test_not_configured(self) -> None:
        client = GitHubClient(token=None)
        client._client = AsyncMock()

        assert await client.fetch_pull_requests(["org/a"]) == []
        client._client.get.assert_not_called()


@pytest.mark.unit
class TestRateLimit:
    """Tests for rate_limit_status."""

    async def test_reads_core_limit(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        mock_client.get.side_effect = routed(
            {"/rate_limit": {"resources": {"core": {"remaining": 0, "limit": 5000, "reset": 1709283600}}}}
        )

        status = await github.rate_limit_status()

        assert status.remaining == 0
        assert status.limit == 5000
        assert status.reset_at == datetime.fromtimestamp(1709283600, UTC)
        assert status.is_rate_limited

    async def test_threshold(self, mock_client: AsyncMock) -> None:
        client = GitHubClient(token="t", rate_limit_threshold=50)
        client._client = mock_client
        mock_client.get.side_effect = routed(
            {"/rate_limit": {"resources": {"core": {"remaining": 40, "limit": 5000, "reset": 0}}}}
        )

        assert (await client.rate_limit_status()).is_rate_limited

    async def test_failure_reports_unknown(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        mock_client.get.side_effect = routed({})

        status = await github.rate_limit_status()

        assert status.remaining is None
        assert not status.is_rate_limited


@pytest.mark.unit
class TestListRepositories:
    """Tests for list_repositories."""

    async def test_limit(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        repos = [
            {"full_name": f"org/r{i}", "name": f"r{i}", "owner": {"login": "org"}}
            for i in range(3)
        ]
        mock_client.get.side_effect = routed({"/user/repos": repos})

        result = await github.list_repositories(limit=2)

        assert [r.full_name for r in result] == ["org/r0", "org/r1"]
        assert result[0].owner == "org"
        assert mock_client.get.call_args.kwargs["params"]["per_page"] == 2

    async def test_stops_on_short_page(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        mock_client.get.side_effect = routed(
            {"/user/repos": [{"full_name": "org/only", "owner": {"login": "org"}}]}
        )

        result = await github.list_repositories()

        assert [r.name for r in result] == ["only"]
        assert mock_client.get.call_count == 1

    async def test_skips_malformed_entries(
        self, github: GitHubClient, mock_client: AsyncMock
    ) -> None:
        mock_client.get.side_effect = routed(
            {
                "/user/repos": [
                    {"name": "no-full-name"},
                    "garbage",
                    {"full_name": "org/ok", "owner": {"login": "org"}},
                ]
            }
        )

        result = await github.list_repositories()

        assert [r.full_name for r in result] == ["org/ok"]


@pytest.mark.unit
class TestReviewInbox:
    """Tests for fetch_prs_needing_review."""

    async def test_builds_inbox(self, github: GitHubClient, mock_client: AsyncMock) -> None:
        mock_client.get.side_effect = routed(
            {
                "/search/issues": {
                    "items": [
                        {"number": 5, "repository_url": "https://api.github.com/repos/org/api"},
                        {"number": 6, "repository_url": "https://api.github.com/repos/org/gone"},
                    ]
                },
                "/repos/org/api/pulls/5": _pr(
                    5,
                    "feature/ABC-5_api",
                    requested_reviewers=[{"login": "me"}],
                    base={"ref": "main"},
                    additions=10,
                    deletions=2,
                ),
                "/repos/org/api/pulls/5/reviews": [
                    {"user": {"login": "ana"}, "state": "APPROVED", "submitted_at": "2024-03-01T10:00:00Z"}
                ],
            }
        )

        inbox = await github.fetch_prs_needing_review()

        assert len(inbox) == 1
        pr = inbox[0]
        assert pr.repository == "org/api"
        assert pr.review_status == InboxReviewStatus.APPROVED
        assert pr.approved_reviews == 1
        assert pr.pending_reviews == 1
        assert pr.reviewers == ["ana", "me"]
        assert pr.base_branch == "main"
        assert pr.additions == 10
        search = mock_client.get.call_args_list[0]
        assert "review-requested:@me" in search.kwargs["params"]["q"]
