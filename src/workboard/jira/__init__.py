"""Jira - Ticket source for the dashboard."""

from workboard.jira.client import DEFAULT_JQL_VARIANTS, JiraClient
from workboard.jira.exceptions import JiraError, JiraRequestError
from workboard.jira.models import Ticket, WebLink, WebLinkResult
from workboard.jira.parsing import derive_in_sprint, flatten_description, parse_ticket

__all__ = [
    "DEFAULT_JQL_VARIANTS",
    "JiraClient",
    "JiraError",
    "JiraRequestError",
    "Ticket",
    "WebLink",
    "WebLinkResult",
    "derive_in_sprint",
    "flatten_description",
    "parse_ticket",
]
