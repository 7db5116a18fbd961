"""GitHub - Pull request source for the dashboard."""

from workboard.github.client import REVIEW_INBOX_QUERY, GitHubClient
from workboard.github.exceptions import GitHubError, RateLimitedError
from workboard.github.models import (
    InboxReviewStatus,
    PRStatus,
    PullRequest,
    RateLimitStatus,
    Repository,
    Review,
    ReviewPullRequest,
    ReviewState,
)
from workboard.github.reviews import derive_review_state, required_reviewer_count

__all__ = [
    "REVIEW_INBOX_QUERY",
    "GitHubClient",
    "GitHubError",
    "InboxReviewStatus",
    "PRStatus",
    "PullRequest",
    "RateLimitStatus",
    "RateLimitedError",
    "Repository",
    "Review",
    "ReviewPullRequest",
    "ReviewState",
    "derive_review_state",
    "required_reviewer_count",
]
