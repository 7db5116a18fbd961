"""Branch naming conventions linking git branches to Jira ticket keys."""

from __future__ import annotations

import re

DEFAULT_PROJECT_CODE = "PROJ"

# Tried in order, first match wins. A key must be followed by "_" or end of name.
_PREFIXED_KEY = re.compile(r"(feature|bugfix|hotfix|release)/([A-Za-z]+-\d+)(?=_|$)")
_BARE_KEY = re.compile(r"([A-Za-z]+-\d+)(?=_|$)")
_LEGACY_NUMERIC = re.compile(r"(feature|bugfix|hotfix|release)/(\d+)(?=_|$)")

_BUG_TYPES = {"bug", "devbug"}


def _normalize_key(raw: str, default_project_code: str) -> str:
    if raw.isdigit():
        return f"{default_project_code}-{raw}".upper()
    return raw.upper()


def extract_ticket_key(
    branch_name: str | None, default_project_code: str = DEFAULT_PROJECT_CODE
) -> str | None:
    """Extract a ticket key from a branch name.

    Patterns are applied in a fixed priority order and ambiguous names are
    resolved by that order alone:

    1. ``feature/ABC-123_...`` style prefixed keys
    2. ``ABC-123`` anywhere in the name
    3. legacy ``bugfix/42_...`` numeric references, prefixed with the
       default project code

    Args:
        branch_name: Source branch name of a PR or local branch.
        default_project_code: Project code used for purely numeric keys.

    Returns:
        Upper-cased ticket key, or None when no convention matches.
    """
    if not branch_name:
        return None

    match = _PREFIXED_KEY.search(branch_name)
    if match:
        return _normalize_key(match.group(2), default_project_code)

    match = _BARE_KEY.search(branch_name)
    if match:
        return _normalize_key(match.group(1), default_project_code)

    match = _LEGACY_NUMERIC.search(branch_name)
    if match:
        return _normalize_key(match.group(2), default_project_code)

    return None


def generate_branch_name(ticket_key: str, title: str, issue_type: str) -> str:
    """Generate a branch name for a ticket.

    Bugs get a ``bugfix/`` prefix, everything else ``feature/``. The title is
    reduced to lower-case alphanumerics joined by underscores.
    """
    prefix = "bugfix" if issue_type.lower() in _BUG_TYPES else "feature"
    sanitized = re.sub(r"[^a-zA-Z0-9\s]", "", title)
    sanitized = re.sub(r"\s+", "_", sanitized.strip()).lower()
    return f"{prefix}/{ticket_key}_{sanitized}"


def generate_checkout_command(ticket_key: str, title: str, issue_type: str) -> str:
    """Generate the ``git checkout -b`` command for a ticket's branch."""
    return f"git checkout -b {generate_branch_name(ticket_key, title, issue_type)}"
