"""Deterministic ordering of tasks and pull requests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

from workboard.ordering.ranks import RankTables
from workboard.overlay.models import HiddenStatus

if TYPE_CHECKING:
    from collections.abc import Iterable


class SortableTask(Protocol):
    """Fields the task comparator reads.

    ``hidden_status`` must already be the effective status: a task whose
    "hidden until updated" period has expired reports ``visible``.
    """

    hidden_status: str
    in_sprint: bool | None
    status: str
    priority: str
    issue_type: str


class SortablePullRequest(Protocol):
    hidden: bool


T = TypeVar("T", bound=SortableTask)
P = TypeVar("P", bound=SortablePullRequest)

_NOT_VISIBLE = {HiddenStatus.HIDDEN.value, HiddenStatus.HIDDEN_UNTIL_UPDATED.value}


def task_sort_key(task: SortableTask, ranks: RankTables) -> tuple[int, int, int, int, int, int]:
    """Build the six-part ordering key for a task.

    Order: visible first, paused (hidden until updated) before hidden,
    in-sprint first (unknown counts as in sprint), then status, priority
    and issue type ranks.
    """
    visible = task.hidden_status not in _NOT_VISIBLE
    if visible:
        hidden_rank = 0
    elif task.hidden_status == HiddenStatus.HIDDEN_UNTIL_UPDATED.value:
        hidden_rank = 0
    else:
        hidden_rank = 1

    in_sprint = True if task.in_sprint is None else task.in_sprint

    return (
        0 if visible else 1,
        hidden_rank,
        0 if in_sprint else 1,
        ranks.status.rank(task.status),
        ranks.priority.rank(task.priority),
        ranks.issue_type.rank(task.issue_type),
    )


def sort_tasks(tasks: Iterable[T], ranks: RankTables | None = None) -> list[T]:
    """Return tasks in display order.

    Python's sort is stable, so tasks equal on every key keep their input order.
    """
    tables = ranks or RankTables()
    return sorted(tasks, key=lambda task: task_sort_key(task, tables))


def sort_pull_requests(pull_requests: Iterable[P]) -> list[P]:
    """Return pull requests with hidden ones moved to the bottom."""
    return sorted(pull_requests, key=lambda pr: 1 if pr.hidden else 0)
