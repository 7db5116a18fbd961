"""Dashboard - Request-cycle orchestration and background polling."""

from workboard.dashboard.models import DashboardSnapshot
from workboard.dashboard.poller import DashboardPoller
from workboard.dashboard.service import DashboardService

__all__ = [
    "DashboardPoller",
    "DashboardService",
    "DashboardSnapshot",
]
