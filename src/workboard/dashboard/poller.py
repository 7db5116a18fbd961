"""DashboardPoller - Background polling of tickets and the review inbox."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from workboard.dashboard.models import DashboardSnapshot
from workboard.reconcile import (
    attach_local_branches,
    detect_task_changes,
    merge_refreshed_tasks,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from workboard.api.events import EventManager
    from workboard.dashboard.service import DashboardService
    from workboard.reconcile import ReconciledTask, TaskChanges

logger = logging.getLogger("workboard.dashboard")


class DashboardPoller:
    """Re-fetches tickets and the review inbox on fixed intervals.

    Each poll compares the fresh data with the previous poll and emits an
    event when something changed. The first poll of each loop only records
    a baseline; for tickets that baseline includes a local branch scan, and
    later polls carry those branches over. Requests made by the user never
    reset the timers.
    """

    def __init__(
        self,
        service: DashboardService,
        events: EventManager,
        ticket_interval: float = 30,
        review_interval: float = 30,
    ) -> None:
        self.service = service
        self.events = events
        self.ticket_interval = ticket_interval
        self.review_interval = review_interval
        self._snapshot: DashboardSnapshot | None = None
        self._inbox_ids: set[str] | None = None
        self._runners: list[asyncio.Task[None]] = []

    @property
    def tasks(self) -> list[ReconciledTask]:
        """Tasks from the latest poll, local branches carried over."""
        return list(self._snapshot.tasks) if self._snapshot else []

    @property
    def is_running(self) -> bool:
        return any(not r.done() for r in self._runners)

    def record_full_dashboard(self, snapshot: DashboardSnapshot) -> None:
        """Adopt the local branches of a freshly built full dashboard.

        Ticket changes are still measured against the previous poll, so a
        full load never swallows a pending ``tasks_changed`` event.
        """
        if self._snapshot is None:
            self._snapshot = snapshot
            return
        branches = [
            b for root in snapshot.tasks for task in root.iter_tree() for b in task.local_branches
        ]
        self._snapshot = replace(
            self._snapshot, tasks=attach_local_branches(self._snapshot.tasks, branches)
        )

    async def latest(self) -> DashboardSnapshot:
        """The latest polled dashboard, polling once if there is none yet."""
        if self._snapshot is None:
            await self.poll_tasks_once()
        return self._snapshot or DashboardSnapshot()

    async def poll_tasks_once(self) -> TaskChanges | None:
        """Fetch tickets once, merge them, and emit ``tasks_changed`` on change.

        Returns:
            The detected changes, or None for the baseline poll.
        """
        snapshot = await self.service.get_tasks()
        previous = self._snapshot
        if previous is None:
            tasks = await self.service.attach_local_branches(snapshot.tasks)
            self._snapshot = replace(snapshot, tasks=tasks)
            return None

        self._snapshot = replace(
            snapshot, tasks=merge_refreshed_tasks(previous.tasks, snapshot.tasks)
        )
        changes = detect_task_changes(previous.tasks, snapshot.tasks)
        if changes.has_changes:
            logger.info(
                "Tasks changed: %d added, %d removed, %d modified",
                len(changes.added),
                len(changes.removed),
                len(changes.modified),
            )
            self.events.emit_tasks_changed(changes.added, changes.removed, changes.modified)
        return changes

    async def poll_review_inbox_once(self) -> bool | None:
        """Fetch the review inbox once and emit ``review_inbox_changed`` on change.

        Returns:
            Whether the inbox changed, or None for the baseline poll.
        """
        inbox = await self.service.get_review_inbox()
        ids = {pr.id for pr in inbox}
        previous = self._inbox_ids
        self._inbox_ids = ids
        if previous is None:
            return None

        changed = ids != previous
        if changed:
            logger.info("Review inbox changed: %d pull requests", len(ids))
            self.events.emit_review_inbox_changed(len(ids))
        return changed

    async def _run(self, name: str, interval: float, poll: Callable[[], Awaitable[object]]) -> None:
        while True:
            try:
                await poll()
            except asyncio.CancelledError:
                raise
            except Exception:
                # A failed poll must not end the loop; the next tick retries
                logger.exception("Background %s poll failed", name)
            await asyncio.sleep(interval)

    def start(self) -> None:
        """Start both polling loops on the running event loop."""
        if self.is_running:
            return
        self._runners = [
            asyncio.create_task(self._run("ticket", self.ticket_interval, self.poll_tasks_once)),
            asyncio.create_task(
                self._run("review inbox", self.review_interval, self.poll_review_inbox_once)
            ),
        ]
        logger.info(
            "Started polling (tickets every %ss, review inbox every %ss)",
            self.ticket_interval,
            self.review_interval,
        )

    async def stop(self) -> None:
        """Cancel both loops and wait for them to finish."""
        for runner in self._runners:
            runner.cancel()
        for runner in self._runners:
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        self._runners = []
        logger.info("Stopped polling")
