"""Review state derivation from a pull request's submitted reviews."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from workboard.github.models import InboxReviewStatus, ReviewState

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from workboard.github.models import Review

APPROVED = "APPROVED"
CHANGES_REQUESTED = "CHANGES_REQUESTED"
DISMISSED = "DISMISSED"

_EPOCH = datetime.min.replace(tzinfo=UTC)


def latest_decisions(reviews: Iterable[Review]) -> dict[str, str]:
    """Map each reviewer to their latest decisive review state.

    Comments never override an earlier approval or change request. A
    dismissed review withdraws the reviewer's decision.
    """
    decisions: dict[str, str] = {}
    for review in sorted(reviews, key=lambda r: r.submitted_at or _EPOCH):
        state = review.state.upper()
        if state in (APPROVED, CHANGES_REQUESTED):
            decisions[review.reviewer] = state
        elif state == DISMISSED:
            decisions.pop(review.reviewer, None)
    return decisions


def derive_review_state(
    reviews: list[Review], requested_reviewers: list[str], required_count: int
) -> tuple[ReviewState, list[str]]:
    """Compute the review state of a pull request.

    Returns:
        The state and the reviewers whose latest decision is an approval.
    """
    decisions = latest_decisions(reviews)
    approved = sorted(r for r, state in decisions.items() if state == APPROVED)

    if any(state == CHANGES_REQUESTED for state in decisions.values()):
        return ReviewState.CHANGES_REQUESTED, approved
    if len(approved) >= required_count:
        return ReviewState.APPROVED, approved
    if reviews or requested_reviewers:
        return ReviewState.PENDING, approved
    return ReviewState.NO_REVIEWS, approved


def derive_inbox_status(
    reviews: list[Review], requested_reviewers: list[str]
) -> tuple[InboxReviewStatus, int, int]:
    """Compute the inbox status with approval and change request counts."""
    decisions = latest_decisions(reviews)
    approvals = sum(1 for state in decisions.values() if state == APPROVED)
    change_requests = sum(1 for state in decisions.values() if state == CHANGES_REQUESTED)

    if change_requests:
        status = InboxReviewStatus.CHANGES_REQUESTED
    elif approvals:
        status = InboxReviewStatus.APPROVED
    elif reviews or requested_reviewers:
        status = InboxReviewStatus.PENDING_REVIEW
    else:
        status = InboxReviewStatus.NO_REVIEWS
    return status, approvals, change_requests


def required_reviewer_count(
    repository: str, required: Mapping[str, int] | None, default: int = 1
) -> int:
    """Look up the approvals a repository requires.

    Keys may be ``owner/repo`` or a bare repository name; matching is
    case-insensitive and the full name wins.
    """
    if not required:
        return default
    lowered = {k.lower(): v for k, v in required.items()}
    full = repository.lower()
    if full in lowered:
        return lowered[full]
    return lowered.get(full.rsplit("/", 1)[-1], default)
