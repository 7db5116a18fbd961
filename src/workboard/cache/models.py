"""Data models for the pull request cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workboard.github.models import PullRequest


class DiscoveryPolicy(StrEnum):
    """How the set of repositories worth polling is chosen."""

    WHITELIST = "whitelist"
    PROBE = "probe"


@dataclass
class PRFetchResult:
    """Pull requests served by the cache, with how they were obtained."""

    pull_requests: list[PullRequest] = field(default_factory=list)
    rate_limited: bool = False
    from_cache: bool = False
    fetched_at: datetime | None = None
