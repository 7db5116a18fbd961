"""Effective visibility of a task given its overlay."""

from __future__ import annotations

from typing import TYPE_CHECKING

from workboard.overlay.models import HiddenStatus

if TYPE_CHECKING:
    from datetime import datetime

    from workboard.overlay.models import TaskMetadata


def is_task_visible(last_updated: datetime | None, metadata: TaskMetadata | None) -> bool:
    """Decide whether a task is shown.

    A task hidden until updated becomes visible again once the ticket's last
    update is strictly later than the moment it was hidden. Missing
    timestamps and unrecognised statuses keep the task visible.
    """
    if metadata is None:
        return True

    status = metadata.hidden_status
    if status == HiddenStatus.HIDDEN:
        return False
    if status == HiddenStatus.HIDDEN_UNTIL_UPDATED:
        if last_updated is None or metadata.hidden_since is None:
            return True
        return last_updated > metadata.hidden_since
    return True


def effective_hidden_status(
    last_updated: datetime | None, metadata: TaskMetadata | None
) -> HiddenStatus:
    """Stored status, or VISIBLE when the task is currently visible."""
    if metadata is None or is_task_visible(last_updated, metadata):
        return HiddenStatus.VISIBLE
    return metadata.hidden_status
