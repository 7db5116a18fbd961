"""MetadataStore - Durable user overlay for tasks and pull requests."""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select

from workboard.local_git.models import BranchStatus
from workboard.overlay.database import Database
from workboard.overlay.exceptions import MetadataError, UnknownSectionError
from workboard.overlay.models import (
    HiddenStatus,
    PRMetadata,
    PRMetadataRecord,
    Section,
    TaskMetadata,
    TaskMetadataRecord,
)
from workboard.timestamps import parse_timestamp, utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from sqlalchemy.orm import Session

logger = logging.getLogger("workboard.overlay")

_TASK_FIELDS = {f.name for f in fields(TaskMetadata)} - {"task_id"}

# camelCase keys written by the browser dashboard's local storage
_LEGACY_TASK_KEYS = {
    "parentTaskId": "parent_task_id",
    "notes": "notes",
    "hiddenStatus": "hidden_status",
    "hiddenUntilUpdatedDate": "hidden_since",
    "childTasksExpanded": "child_tasks_expanded",
    "pullRequestsExpanded": "pull_requests_expanded",
    "localBranchesExpanded": "local_branches_expanded",
}


def _to_task_metadata(record: TaskMetadataRecord) -> TaskMetadata:
    return TaskMetadata(
        task_id=record.task_id,
        parent_task_id=record.parent_task_id or None,
        notes=record.notes or "",
        hidden_status=HiddenStatus.parse(record.hidden_status),
        hidden_since=parse_timestamp(record.hidden_since),
        child_tasks_expanded=_as_bool(record.child_tasks_expanded, True),
        pull_requests_expanded=_as_bool(record.pull_requests_expanded, True),
        local_branches_expanded=_as_bool(record.local_branches_expanded, True),
    )


def _as_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _parse_git_status(raw: str | None) -> BranchStatus | None:
    """Decode a cached branch status, treating anything malformed as absent."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
        return BranchStatus(
            branch=str(data["branch"]),
            exists=bool(data["exists"]),
            is_up_to_date=bool(data.get("is_up_to_date", False)),
            ahead=int(data.get("ahead", 0)),
            behind=int(data.get("behind", 0)),
            has_remote=bool(data.get("has_remote", False)),
            repository=data.get("repository"),
            last_commit=data.get("last_commit"),
            last_checked=parse_timestamp(data.get("last_checked")),
        )
    except (ValueError, TypeError, KeyError) as e:
        logger.warning("Ignoring malformed cached git status: %s", e)
        return None


def _to_pr_metadata(record: PRMetadataRecord) -> PRMetadata:
    return PRMetadata(
        pr_id=record.pr_id,
        hidden=_as_bool(record.hidden, False),
        local_git_status=_parse_git_status(record.local_git_status),
    )


class MetadataStore:
    """Main API for the metadata overlay.

    Task metadata is created on first interaction and never deleted
    automatically. Reads of an unknown id return defaults without writing.
    """

    def __init__(self, db_path: str = "workboard.db") -> None:
        """Initialize the store, creating tables if they don't exist.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self._db = Database(db_path)
        self._db.create_tables()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- Task metadata ---

    def get_task_metadata(self, task_id: str) -> TaskMetadata:
        """Get a task's metadata, or defaults when none is stored."""
        session = self._db.get_session()
        try:
            record = session.get(TaskMetadataRecord, task_id)
            return _to_task_metadata(record) if record else TaskMetadata(task_id=task_id)
        finally:
            session.close()

    def list_task_metadata(self) -> dict[str, TaskMetadata]:
        """Get all stored task metadata keyed by task id."""
        session = self._db.get_session()
        try:
            records = session.execute(select(TaskMetadataRecord)).scalars().all()
            return {r.task_id: _to_task_metadata(r) for r in records}
        finally:
            session.close()

    def _get_or_create(self, session: Session, task_id: str) -> TaskMetadataRecord:
        record = session.get(TaskMetadataRecord, task_id)
        if record is None:
            record = TaskMetadataRecord(
                task_id=task_id,
                notes="",
                hidden_status=HiddenStatus.VISIBLE.value,
                child_tasks_expanded=True,
                pull_requests_expanded=True,
                local_branches_expanded=True,
            )
            session.add(record)
        return record

    def upsert_task_metadata(self, task_id: str, **updates: Any) -> TaskMetadata:
        """Merge updates into a task's metadata; unspecified fields are preserved.

        Args:
            task_id: Ticket id the metadata belongs to.
            **updates: Any TaskMetadata field except ``task_id``.

        Returns:
            The stored metadata after the update.

        Raises:
            MetadataError: If an unknown field is given.
        """
        unknown = set(updates) - _TASK_FIELDS
        if unknown:
            raise MetadataError(f"Unknown task metadata fields: {sorted(unknown)}")

        session = self._db.get_session()
        try:
            record = self._get_or_create(session, task_id)
            for name, value in updates.items():
                if name == "hidden_status":
                    value = HiddenStatus.parse(value).value
                elif name == "hidden_since":
                    parsed = parse_timestamp(value)
                    value = parsed.isoformat() if parsed else None
                elif name == "parent_task_id":
                    value = value or None
                elif name == "notes":
                    value = value or ""
                setattr(record, name, value)
            session.commit()
            return _to_task_metadata(record)
        finally:
            session.close()

    def hide_task(self, task_id: str) -> TaskMetadata:
        """Hide a task permanently."""
        return self.upsert_task_metadata(
            task_id, hidden_status=HiddenStatus.HIDDEN, hidden_since=None
        )

    def hide_task_until_updated(self, task_id: str, now: datetime | None = None) -> TaskMetadata:
        """Hide a task until its ticket is updated after ``now``."""
        return self.upsert_task_metadata(
            task_id,
            hidden_status=HiddenStatus.HIDDEN_UNTIL_UPDATED,
            hidden_since=now or utcnow(),
        )

    def show_task(self, task_id: str) -> TaskMetadata:
        return self.upsert_task_metadata(
            task_id, hidden_status=HiddenStatus.VISIBLE, hidden_since=None
        )

    def toggle_task_hidden(self, task_id: str) -> TaskMetadata:
        """Flip between visible and permanently hidden."""
        current = self.get_task_metadata(task_id)
        if current.hidden_status == HiddenStatus.VISIBLE:
            return self.hide_task(task_id)
        return self.show_task(task_id)

    def set_notes(self, task_id: str, notes: str) -> TaskMetadata:
        return self.upsert_task_metadata(task_id, notes=notes)

    def toggle_section(self, task_id: str, section: str | Section) -> TaskMetadata:
        """Flip one section's expanded flag, leaving the others untouched.

        Raises:
            UnknownSectionError: If ``section`` is not a known section name.
        """
        try:
            field_name = Section(section).field_name
        except ValueError as e:
            raise UnknownSectionError(f"Unknown section '{section}'") from e
        current = self.get_task_metadata(task_id)
        return self.upsert_task_metadata(task_id, **{field_name: not getattr(current, field_name)})

    def remove_task_metadata(self, task_id: str) -> None:
        """Delete a task's metadata. Only ever called on explicit user request."""
        session = self._db.get_session()
        try:
            session.execute(delete(TaskMetadataRecord).where(TaskMetadataRecord.task_id == task_id))
            session.commit()
        finally:
            session.close()

    def clear_all(self) -> None:
        """Delete all task and pull request metadata."""
        session = self._db.get_session()
        try:
            session.execute(delete(TaskMetadataRecord))
            session.execute(delete(PRMetadataRecord))
            session.commit()
        finally:
            session.close()
        logger.info("Cleared all metadata")

    # --- Parent/child graph ---

    def would_create_loop(self, task_id: str, parent_id: str) -> bool:
        """Check whether making ``parent_id`` the parent of ``task_id`` forms a cycle.

        Walks the ancestor chain of ``parent_id``. The walk also stops on a
        cycle already present in stored data so it always terminates.
        """
        if task_id == parent_id:
            return True

        parents = {
            tid: meta.parent_task_id
            for tid, meta in self.list_task_metadata().items()
            if meta.parent_task_id
        }
        seen: set[str] = set()
        current: str | None = parent_id
        while current is not None:
            if current == task_id:
                return True
            if current in seen:
                logger.warning("Existing parent chain of %s already contains a cycle", parent_id)
                return True
            seen.add(current)
            current = parents.get(current)
        return False

    def set_parent(self, task_id: str, parent_id: str) -> bool:
        """Make ``parent_id`` the parent of ``task_id``.

        Returns:
            True if stored, False if the assignment was rejected because it
            would create a cycle. A rejected assignment changes nothing.
        """
        if self.would_create_loop(task_id, parent_id):
            logger.warning("Rejected parent %s for task %s: would create a loop", parent_id, task_id)
            return False
        self.upsert_task_metadata(task_id, parent_task_id=parent_id)
        return True

    def remove_parent(self, task_id: str) -> TaskMetadata:
        return self.upsert_task_metadata(task_id, parent_task_id=None)

    def child_ids(self, parent_id: str) -> list[str]:
        """Ids of tasks whose parent is ``parent_id``."""
        session = self._db.get_session()
        try:
            stmt = (
                select(TaskMetadataRecord.task_id)
                .where(TaskMetadataRecord.parent_task_id == parent_id)
                .order_by(TaskMetadataRecord.task_id)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Pull request metadata ---

    def get_pr_metadata(self, pr_id: str) -> PRMetadata:
        session = self._db.get_session()
        try:
            record = session.get(PRMetadataRecord, pr_id)
            return _to_pr_metadata(record) if record else PRMetadata(pr_id=pr_id)
        finally:
            session.close()

    def list_pr_metadata(self) -> dict[str, PRMetadata]:
        session = self._db.get_session()
        try:
            records = session.execute(select(PRMetadataRecord)).scalars().all()
            return {r.pr_id: _to_pr_metadata(r) for r in records}
        finally:
            session.close()

    def upsert_pr_metadata(
        self,
        pr_id: str,
        hidden: bool | None = None,
        local_git_status: BranchStatus | None = None,
    ) -> PRMetadata:
        """Merge updates into a pull request's metadata.

        None arguments leave the stored value unchanged.
        """
        session = self._db.get_session()
        try:
            record = session.get(PRMetadataRecord, pr_id)
            if record is None:
                record = PRMetadataRecord(pr_id=pr_id, hidden=False)
                session.add(record)
            if hidden is not None:
                record.hidden = hidden
            if local_git_status is not None:
                record.local_git_status = json.dumps(local_git_status.to_dict())
            session.commit()
            return _to_pr_metadata(record)
        finally:
            session.close()

    def toggle_pr_hidden(self, pr_id: str) -> PRMetadata:
        current = self.get_pr_metadata(pr_id)
        return self.upsert_pr_metadata(pr_id, hidden=not current.hidden)

    def update_pr_git_status(self, pr_id: str, status: BranchStatus) -> PRMetadata:
        """Cache the latest local git status of a pull request's branch."""
        return self.upsert_pr_metadata(pr_id, local_git_status=status)

    def clear_pr_git_status(self, pr_id: str) -> PRMetadata:
        session = self._db.get_session()
        try:
            record = session.get(PRMetadataRecord, pr_id)
            if record is None:
                return PRMetadata(pr_id=pr_id)
            record.local_git_status = None
            session.commit()
            return _to_pr_metadata(record)
        finally:
            session.close()

    # --- Import ---

    def import_legacy_snapshot(
        self,
        tasks: Mapping[str, Mapping[str, Any]],
        pull_requests: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> int:
        """Import metadata exported from the browser dashboard's local storage.

        Entries that are not objects are skipped. Unknown keys are ignored.

        Returns:
            Number of task and pull request entries imported.
        """
        imported = 0
        for task_id, raw in tasks.items():
            if not isinstance(raw, dict):
                logger.warning("Skipping malformed task metadata for %s", task_id)
                continue
            updates = {ours: raw[theirs] for theirs, ours in _LEGACY_TASK_KEYS.items() if theirs in raw}
            for flag in ("child_tasks_expanded", "pull_requests_expanded", "local_branches_expanded"):
                if flag in updates and not isinstance(updates[flag], bool):
                    del updates[flag]
            self.upsert_task_metadata(str(task_id), **updates)
            imported += 1

        for pr_id, raw in (pull_requests or {}).items():
            if not isinstance(raw, dict):
                logger.warning("Skipping malformed pull request metadata for %s", pr_id)
                continue
            self.upsert_pr_metadata(str(pr_id), hidden=bool(raw.get("hidden", False)))
            imported += 1

        logger.info("Imported %d legacy metadata entries", imported)
        return imported
