"""Tolerant parsing of Jira issue payloads.

Jira payload shapes vary between instances and API versions, so every
field access here expects missing or oddly typed values.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from workboard.jira.models import Ticket
from workboard.timestamps import parse_timestamp

DEFAULT_SPRINT_FIELD = "customfield_10020"

SprintExtractor = Callable[[dict[str, Any], str], bool]


def _active_sprint_in_field(fields: dict[str, Any], sprint_field: str) -> bool:
    sprints = fields.get(sprint_field)
    if not isinstance(sprints, list):
        return False
    return any(isinstance(s, dict) and s.get("state") == "active" for s in sprints)


def _non_empty_sprint_list(fields: dict[str, Any], _sprint_field: str) -> bool:
    sprint = fields.get("sprint")
    return isinstance(sprint, list) and len(sprint) > 0


def _sprint_object(fields: dict[str, Any], _sprint_field: str) -> bool:
    return isinstance(fields.get("sprint"), dict)


def _custom_field_mentions_sprint(fields: dict[str, Any], _sprint_field: str) -> bool:
    return any(
        name.startswith("customfield_") and isinstance(value, str) and "sprint" in value.lower()
        for name, value in fields.items()
    )


def _any_sprint_value(fields: dict[str, Any], _sprint_field: str) -> bool:
    return fields.get("sprint") is not None


# Tried in order; the first extractor that reports membership wins
SPRINT_EXTRACTORS: list[SprintExtractor] = [
    _active_sprint_in_field,
    _non_empty_sprint_list,
    _sprint_object,
    _custom_field_mentions_sprint,
    _any_sprint_value,
]


def derive_in_sprint(fields: dict[str, Any], sprint_field: str = DEFAULT_SPRINT_FIELD) -> bool:
    """Decide whether an issue belongs to a sprint."""
    return any(extract(fields, sprint_field) for extract in SPRINT_EXTRACTORS)


def flatten_description(description: Any) -> str:
    """Concatenate the text nodes of an Atlassian Document Format tree.

    Plain string descriptions are returned stripped.
    """
    if isinstance(description, str):
        return description.strip()
    if not isinstance(description, dict):
        return ""

    parts: list[str] = []

    def collect(content: Any) -> None:
        if not isinstance(content, list):
            return
        for node in content:
            if not isinstance(node, dict):
                continue
            if node.get("type") == "text" and isinstance(node.get("text"), str):
                parts.append(node["text"])
            elif isinstance(node.get("content"), list):
                collect(node["content"])

    collect(description.get("content"))
    return "".join(parts).strip()


def _name(value: Any, default: str) -> str:
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str) and name:
            return name
    return default


def _icon(value: Any) -> str | None:
    if isinstance(value, dict):
        url = value.get("iconUrl")
        if isinstance(url, str) and url:
            return url
    return None


def is_subtask(fields: dict[str, Any]) -> bool:
    """Sub-tasks have a parent, or a sub-task issue type."""
    if fields.get("parent"):
        return True
    issue_type = fields.get("issuetype")
    if isinstance(issue_type, dict):
        if issue_type.get("subtask") is True:
            return True
        name = issue_type.get("name")
        if isinstance(name, str) and name.lower() == "subtask":
            return True
    return False


def parse_ticket(
    issue: dict[str, Any], domain: str, sprint_field: str = DEFAULT_SPRINT_FIELD
) -> Ticket | None:
    """Build a Ticket from one entry of a search response.

    Returns:
        The ticket, or None when the issue lacks an id or key.
    """
    key = issue.get("key")
    issue_id = issue.get("id")
    if not key or issue_id is None:
        return None
    fields = issue.get("fields")
    if not isinstance(fields, dict):
        fields = {}

    assignee = fields.get("assignee")
    display_name = assignee.get("displayName") if isinstance(assignee, dict) else None

    return Ticket(
        id=str(issue_id),
        key=str(key),
        title=str(fields.get("summary") or ""),
        status=_name(fields.get("status"), "Unknown"),
        issue_type=_name(fields.get("issuetype"), "Unknown"),
        in_sprint=derive_in_sprint(fields, sprint_field),
        assignee=display_name or "Unassigned",
        priority=_name(fields.get("priority"), "Medium"),
        description=flatten_description(fields.get("description")),
        url=f"https://{domain}/browse/{key}",
        last_updated=parse_timestamp(fields.get("updated")),
        issue_type_icon_url=_icon(fields.get("issuetype")),
        priority_icon_url=_icon(fields.get("priority")),
    )
