"""Data models for reconciled tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING

from workboard.overlay.models import HiddenStatus

if TYPE_CHECKING:
    from collections.abc import Iterator

    from workboard.github.models import PullRequest
    from workboard.jira.models import Ticket
    from workboard.local_git.models import LocalBranchStatus
    from workboard.overlay.models import TaskMetadata


@dataclass
class ReconciledTask:
    """A ticket with its pull requests, local branches, children and overlay.

    ``hidden_status`` holds the effective status: a task whose "hidden until
    updated" period has ended reports ``visible``.
    """

    id: str
    key: str
    title: str
    status: str
    issue_type: str
    in_sprint: bool | None
    assignee: str
    priority: str
    description: str
    url: str
    last_updated: datetime | None
    issue_type_icon_url: str | None = None
    priority_icon_url: str | None = None
    pull_requests: list[PullRequest] = field(default_factory=list)
    local_branches: list[LocalBranchStatus] = field(default_factory=list)
    child_tasks: list[ReconciledTask] = field(default_factory=list)
    parent_task_id: str | None = None
    notes: str = ""
    hidden_status: HiddenStatus = HiddenStatus.VISIBLE
    hidden_since: datetime | None = None
    child_tasks_expanded: bool = True
    pull_requests_expanded: bool = True
    local_branches_expanded: bool = True

    @classmethod
    def from_ticket(
        cls,
        ticket: Ticket,
        metadata: TaskMetadata,
        hidden_status: HiddenStatus,
        pull_requests: list[PullRequest],
        local_branches: list[LocalBranchStatus],
        child_tasks: list[ReconciledTask],
    ) -> ReconciledTask:
        return cls(
            id=ticket.id,
            key=ticket.key,
            title=ticket.title,
            status=ticket.status,
            issue_type=ticket.issue_type,
            in_sprint=ticket.in_sprint,
            assignee=ticket.assignee,
            priority=ticket.priority,
            description=ticket.description,
            url=ticket.url,
            last_updated=ticket.last_updated,
            issue_type_icon_url=ticket.issue_type_icon_url,
            priority_icon_url=ticket.priority_icon_url,
            pull_requests=pull_requests,
            local_branches=local_branches,
            child_tasks=child_tasks,
            parent_task_id=metadata.parent_task_id,
            notes=metadata.notes,
            hidden_status=hidden_status,
            hidden_since=metadata.hidden_since,
            child_tasks_expanded=metadata.child_tasks_expanded,
            pull_requests_expanded=metadata.pull_requests_expanded,
            local_branches_expanded=metadata.local_branches_expanded,
        )

    def iter_tree(self) -> Iterator[ReconciledTask]:
        """Yield this task and all of its descendants, depth first."""
        yield self
        for child in self.child_tasks:
            yield from child.iter_tree()
