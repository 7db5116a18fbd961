"""REST API for Workboard."""

from workboard.api.app import app, create_app
from workboard.api.models import (
    APIResponse,
    DashboardResponse,
    TaskMetadataResponse,
    TaskResponse,
)

__all__ = [
    "APIResponse",
    "DashboardResponse",
    "TaskMetadataResponse",
    "TaskResponse",
    "app",
    "create_app",
]
