"""Data models for the Jira ticket source."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003


@dataclass
class Ticket:
    """A Jira issue assigned to the current user."""

    id: str
    key: str
    title: str
    status: str
    issue_type: str = "Unknown"
    in_sprint: bool | None = None
    assignee: str = "Unassigned"
    priority: str = "Medium"
    description: str = ""
    url: str = ""
    last_updated: datetime | None = None
    issue_type_icon_url: str | None = None
    priority_icon_url: str | None = None


@dataclass
class WebLink:
    """A remote ("web") link attached to an issue."""

    id: str
    title: str
    url: str
    icon_url: str | None = None


@dataclass
class WebLinkResult:
    success: bool
    error: str | None = None
    link_id: str | None = None
