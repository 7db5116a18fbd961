"""Reconcile - Link tickets, pull requests and local branches into tasks."""

from workboard.reconcile.engine import (
    TaskChanges,
    attach_local_branches,
    branches_for_ticket,
    detect_task_changes,
    merge_refreshed_tasks,
    parse_remote_origin,
    reconcile,
    repository_identities_match,
    root_tasks,
)
from workboard.reconcile.models import ReconciledTask

__all__ = [
    "ReconciledTask",
    "TaskChanges",
    "attach_local_branches",
    "branches_for_ticket",
    "detect_task_changes",
    "merge_refreshed_tasks",
    "parse_remote_origin",
    "reconcile",
    "repository_identities_match",
    "root_tasks",
]
