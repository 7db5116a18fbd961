"""Data models for the GitHub pull request source."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workboard.local_git.models import BranchStatus


class PRStatus(StrEnum):
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class ReviewState(StrEnum):
    """Review state of a pull request linked to a task."""

    NO_REVIEWS = "no_reviews"
    PENDING = "pending"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"


class InboxReviewStatus(StrEnum):
    """Review state of a pull request waiting for the user's review."""

    NO_REVIEWS = "no_reviews"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"


@dataclass
class Review:
    """One submitted review."""

    reviewer: str
    state: str  # APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED, PENDING
    submitted_at: datetime | None = None


@dataclass
class PullRequest:
    """A pull request, with the user's overlay fields defaulted."""

    id: str
    title: str
    number: int
    status: PRStatus
    branch: str
    repository: str  # owner/repo
    author: str
    url: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    linked_ticket_key: str | None = None
    is_draft: bool = False
    review_state: ReviewState = ReviewState.NO_REVIEWS
    requested_reviewers: list[str] = field(default_factory=list)
    approved_reviewers: list[str] = field(default_factory=list)
    required_reviewer_count: int = 1
    hidden: bool = False
    local_git_status: BranchStatus | None = None


@dataclass
class ReviewPullRequest:
    """A pull request in the user's review inbox."""

    id: str
    title: str
    number: int
    branch: str
    repository: str
    author: str
    url: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_draft: bool = False
    approved_reviews: int = 0
    changes_requested_reviews: int = 0
    pending_reviews: int = 0
    total_reviews: int = 0
    reviewers: list[str] = field(default_factory=list)
    review_status: InboxReviewStatus = InboxReviewStatus.NO_REVIEWS
    body: str = ""
    state: str = "open"
    base_branch: str = ""
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


@dataclass
class RateLimitStatus:
    """Core API rate limit. Unknown values mean the status could not be read."""

    remaining: int | None = None
    limit: int | None = None
    reset_at: datetime | None = None
    threshold: int = 0

    @property
    def is_rate_limited(self) -> bool:
        return self.remaining is not None and self.remaining <= self.threshold


@dataclass
class Repository:
    """A repository the user can access."""

    full_name: str
    name: str
    owner: str
    private: bool = False
    default_branch: str = "main"
    updated_at: datetime | None = None
    url: str = ""
