"""SQLAlchemy models and value objects for the metadata overlay."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    from workboard.local_git.models import BranchStatus


class HiddenStatus(StrEnum):
    """How a task is hidden from the dashboard."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    HIDDEN_UNTIL_UPDATED = "hidden_until_updated"

    @classmethod
    def parse(cls, value: object) -> HiddenStatus:
        """Read a stored value, failing open to VISIBLE on anything unknown."""
        if isinstance(value, str):
            normalized = value.strip().replace("-", "_")
            if normalized == "hiddenUntilUpdated":
                return cls.HIDDEN_UNTIL_UPDATED
            try:
                return cls(normalized.lower())
            except ValueError:
                pass
        return cls.VISIBLE


class Section(StrEnum):
    """Collapsible sections of a task card."""

    CHILD_TASKS = "child_tasks"
    PULL_REQUESTS = "pull_requests"
    LOCAL_BRANCHES = "local_branches"

    @property
    def field_name(self) -> str:
        return f"{self.value}_expanded"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TaskMetadataRecord(Base):
    """Row holding the user's overlay for one task."""

    __tablename__ = "task_metadata"

    task_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    parent_task_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hidden_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=HiddenStatus.VISIBLE.value
    )
    # ISO-8601 text so that offsets survive the round trip through SQLite
    hidden_since: Mapped[str | None] = mapped_column(String(64), nullable=True)
    child_tasks_expanded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pull_requests_expanded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    local_branches_expanded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<TaskMetadataRecord(task_id={self.task_id!r}, "
            f"hidden_status={self.hidden_status!r}, parent={self.parent_task_id!r})>"
        )


class PRMetadataRecord(Base):
    """Row holding the user's overlay for one pull request."""

    __tablename__ = "pr_metadata"

    pr_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    local_git_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<PRMetadataRecord(pr_id={self.pr_id!r}, hidden={self.hidden!r})>"


@dataclass
class TaskMetadata:
    """User overlay for a task, detached from the database session."""

    task_id: str
    parent_task_id: str | None = None
    notes: str = ""
    hidden_status: HiddenStatus = HiddenStatus.VISIBLE
    hidden_since: datetime | None = None
    child_tasks_expanded: bool = True
    pull_requests_expanded: bool = True
    local_branches_expanded: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "parent_task_id": self.parent_task_id,
            "notes": self.notes,
            "hidden_status": self.hidden_status.value,
            "hidden_since": self.hidden_since.isoformat() if self.hidden_since else None,
            "child_tasks_expanded": self.child_tasks_expanded,
            "pull_requests_expanded": self.pull_requests_expanded,
            "local_branches_expanded": self.local_branches_expanded,
        }


@dataclass
class PRMetadata:
    """User overlay for a pull request."""

    pr_id: str
    hidden: bool = False
    local_git_status: BranchStatus | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pr_id": self.pr_id,
            "hidden": self.hidden,
            "local_git_status": (
                self.local_git_status.to_dict() if self.local_git_status else None
            ),
        }
