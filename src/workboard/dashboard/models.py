"""Data models for the dashboard service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workboard.reconcile.models import ReconciledTask


@dataclass
class DashboardSnapshot:
    """Root tasks in display order, with how their pull requests were obtained."""

    tasks: list[ReconciledTask] = field(default_factory=list)
    rate_limited: bool = False
    from_cache: bool = False
    pull_request_count: int = 0
    fetched_at: datetime | None = None
