"""Ordering - Sort tasks by visibility, sprint, status, priority and issue type."""

from workboard.ordering.ranks import RankTable, RankTables
from workboard.ordering.sorting import sort_pull_requests, sort_tasks, task_sort_key

__all__ = [
    "RankTable",
    "RankTables",
    "sort_pull_requests",
    "sort_tasks",
    "task_sort_key",
]
