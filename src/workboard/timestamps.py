"""Timestamp helpers shared by the upstream parsers and the overlay."""

from __future__ import annotations

import re
from datetime import UTC, datetime

# Jira emits offsets without a colon ("+0100")
_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the shapes GitHub ("2024-01-15T10:30:00Z") and Jira
    ("2024-01-15T10:30:00.000+0100") produce. Naive values are assumed UTC.
    Anything unparseable yields None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _BASIC_OFFSET.sub(r"\1:\2", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
