"""Data models for the local git source."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime  # noqa: TC003
from typing import Any


@dataclass
class UpstreamStatus:
    """Tracking information for one local branch."""

    ahead: int = 0
    behind: int = 0
    has_upstream: bool = False


@dataclass
class LocalBranchStatus:
    """A branch present in a local clone."""

    branch: str
    repository: str  # local directory name of the clone
    remote_origin: str | None = None
    has_remote: bool = False
    ahead: int = 0
    behind: int = 0
    last_commit: str = ""

    @property
    def is_ahead(self) -> bool:
        return self.ahead > 0


@dataclass
class BranchStatus:
    """Status of a single named branch, as cached on PR metadata."""

    branch: str
    exists: bool
    is_up_to_date: bool = False
    ahead: int = 0
    behind: int = 0
    has_remote: bool = False
    repository: str | None = None
    last_commit: str | None = None
    last_checked: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_checked"] = self.last_checked.isoformat() if self.last_checked else None
        return data


@dataclass
class GitOperationResult:
    """Outcome of a mutating git operation."""

    success: bool
    message: str


@dataclass
class LocalRepository:
    """A git clone found under one of the scan roots."""

    path: str
    name: str
    remotes: list[str] = field(default_factory=list)
