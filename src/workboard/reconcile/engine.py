"""Reconciliation of tickets, pull requests and local branches.

Everything here is synchronous and free of side effects: the same inputs
always give the same output, whatever order the sources answered in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from workboard.overlay.models import TaskMetadata
from workboard.overlay.visibility import effective_hidden_status
from workboard.reconcile.models import ReconciledTask

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from workboard.github.models import PullRequest
    from workboard.jira.models import Ticket
    from workboard.local_git.models import LocalBranchStatus
    from workboard.overlay.models import PRMetadata

_REMOTE_ORIGIN = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?$")

# Ticket fields whose change means the dashboard should refresh
CHANGE_FIELDS = (
    "key",
    "status",
    "title",
    "description",
    "assignee",
    "priority",
    "issue_type",
    "in_sprint",
)


def parse_remote_origin(url: str | None) -> str | None:
    """Extract "owner/repo" from a GitHub remote URL (https or ssh)."""
    if not url:
        return None
    match = _REMOTE_ORIGIN.search(url.strip())
    if match is None:
        return None
    return f"{match.group(1)}/{match.group(2)}"


def repository_identities_match(pr_repository: str, branch: LocalBranchStatus) -> bool:
    """Whether a local clone is the repository a pull request belongs to.

    The local repository name is a directory name, which may equal the full
    name, equal its last segment, or differ entirely (a second clone); in the
    last case the clone's origin URL decides.
    """
    if pr_repository == branch.repository:
        return True
    if pr_repository.rsplit("/", 1)[-1] == branch.repository:
        return True
    return parse_remote_origin(branch.remote_origin) == pr_repository


def branches_for_ticket(key: str, branches: Iterable[LocalBranchStatus]) -> list[LocalBranchStatus]:
    """Local branches whose name contains the ticket key, ignoring case."""
    wanted = key.lower()
    return [b for b in branches if wanted in b.branch.lower()]


def pull_requests_for_ticket(key: str, pull_requests: Iterable[PullRequest]) -> list[PullRequest]:
    wanted = key.lower()
    return [
        pr
        for pr in pull_requests
        if pr.linked_ticket_key is not None and pr.linked_ticket_key.lower() == wanted
    ]


def _represented_by_pull_request(
    branch: LocalBranchStatus, pull_requests: list[PullRequest]
) -> bool:
    return any(
        pr.branch == branch.branch and repository_identities_match(pr.repository, branch)
        for pr in pull_requests
    )


def _apply_pr_metadata(
    pull_requests: list[PullRequest], pr_metadata: Mapping[str, PRMetadata]
) -> list[PullRequest]:
    applied = []
    for pr in pull_requests:
        meta = pr_metadata.get(pr.id)
        if meta is None:
            applied.append(pr)
        else:
            applied.append(
                replace(
                    pr,
                    hidden=meta.hidden,
                    local_git_status=meta.local_git_status or pr.local_git_status,
                )
            )
    return applied


def reconcile(
    tickets: list[Ticket],
    pull_requests: list[PullRequest],
    local_branches: list[LocalBranchStatus],
    metadata: Mapping[str, TaskMetadata] | None = None,
    pr_metadata: Mapping[str, PRMetadata] | None = None,
) -> list[ReconciledTask]:
    """Link tickets to their pull requests, local branches and child tickets.

    Every ticket is returned, in input order, whether or not it has a parent.
    A local branch already represented by one of the ticket's pull requests
    (same branch name in the same repository) is left out.

    Args:
        tickets: Tickets from Jira.
        pull_requests: Pull requests from GitHub.
        local_branches: Branches found in local clones.
        metadata: Task overlay keyed by ticket id.
        pr_metadata: Pull request overlay keyed by pull request id.
    """
    metadata = metadata or {}
    pr_metadata = pr_metadata or {}

    def meta_for(ticket: Ticket) -> TaskMetadata:
        return metadata.get(ticket.id) or TaskMetadata(task_id=ticket.id)

    children_of: dict[str, list[Ticket]] = {}
    for ticket in tickets:
        parent = meta_for(ticket).parent_task_id
        if parent:
            children_of.setdefault(parent, []).append(ticket)

    def build(ticket: Ticket, ancestors: frozenset[str]) -> ReconciledTask:
        task_meta = meta_for(ticket)
        linked = _apply_pr_metadata(pull_requests_for_ticket(ticket.key, pull_requests), pr_metadata)
        branches = [
            b
            for b in branches_for_ticket(ticket.key, local_branches)
            if not _represented_by_pull_request(b, linked)
        ]
        lineage = ancestors | {ticket.id}
        # Corrupt stored data may contain a cycle; never descend into an ancestor
        children = [
            build(child, lineage)
            for child in children_of.get(ticket.id, [])
            if child.id not in lineage
        ]
        return ReconciledTask.from_ticket(
            ticket,
            task_meta,
            effective_hidden_status(ticket.last_updated, task_meta),
            linked,
            branches,
            children,
        )

    return [build(ticket, frozenset()) for ticket in tickets]


def attach_local_branches(
    tasks: list[ReconciledTask], local_branches: list[LocalBranchStatus]
) -> list[ReconciledTask]:
    """Attach local branches to already reconciled tasks and their children.

    Gives the same branches ``reconcile`` would have attached had the
    branches been available at the time.
    """

    def attach(task: ReconciledTask) -> ReconciledTask:
        branches = [
            b
            for b in branches_for_ticket(task.key, local_branches)
            if not _represented_by_pull_request(b, task.pull_requests)
        ]
        return replace(
            task,
            local_branches=branches,
            child_tasks=[attach(child) for child in task.child_tasks],
        )

    return [attach(task) for task in tasks]


def root_tasks(tasks: list[ReconciledTask]) -> list[ReconciledTask]:
    """Tasks not shown under a parent.

    A task whose parent is not among the fetched tickets is a root, so it
    does not disappear when its parent is closed.
    """
    ids = {t.id for t in tasks}
    return [t for t in tasks if not t.parent_task_id or t.parent_task_id not in ids]


def merge_refreshed_tasks(
    previous: list[ReconciledTask], fresh: list[ReconciledTask]
) -> list[ReconciledTask]:
    """Carry local branches of previously seen tasks over to a fresh fetch.

    A poll fetches tickets and pull requests only, so a fresh task has no
    local branches; a task with the same key keeps the ones found earlier.
    """
    known = {t.key: t.local_branches for root in previous for t in root.iter_tree()}

    def merge(task: ReconciledTask) -> ReconciledTask:
        branches = task.local_branches or known.get(task.key) or []
        return replace(
            task,
            local_branches=list(branches),
            child_tasks=[merge(child) for child in task.child_tasks],
        )

    return [merge(task) for task in fresh]


@dataclass
class TaskChanges:
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


def detect_task_changes(
    previous: list[ReconciledTask], fresh: list[ReconciledTask]
) -> TaskChanges:
    """Compare two task trees by key on the ticket fields users see.

    Child tasks count as much as roots; a ticket that moves under another
    parent is neither added nor removed.
    """
    before = {t.key: t for root in previous for t in root.iter_tree()}
    after = {t.key: t for root in fresh for t in root.iter_tree()}

    modified = [
        key
        for key, task in after.items()
        if key in before
        and any(getattr(task, name) != getattr(before[key], name) for name in CHANGE_FIELDS)
    ]
    return TaskChanges(
        added=[key for key in after if key not in before],
        removed=[key for key in before if key not in after],
        modified=modified,
    )
