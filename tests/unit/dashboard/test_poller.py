"""Unit tests for DashboardPoller."""

import asyncio
from collections.abc import Generator

import pytest

from workboard.api.events import EventManager, EventType
from workboard.cache import PRFetchResult
from workboard.dashboard import DashboardPoller, DashboardService, DashboardSnapshot
from workboard.github import ReviewPullRequest
from workboard.jira import Ticket
from workboard.local_git import LocalBranchStatus
from workboard.overlay import MetadataStore
from workboard.reconcile import ReconciledTask, reconcile


def tasks_for(*tickets: Ticket):
    return reconcile(list(tickets), [], [])


def ticket(number: int, status: str = "Open") -> Ticket:
    return Ticket(id=str(number), key=f"ABC-{number}", title=f"T{number}", status=status)


def inbox_pr(pr_id: str) -> ReviewPullRequest:
    return ReviewPullRequest(
        id=pr_id, title="t", number=1, branch="b", repository="org/repo", author="a", url=""
    )


class FakeService:
    """Returns queued snapshots and inboxes in order."""

    def __init__(self) -> None:
        self.snapshots: list[DashboardSnapshot] = []
        self.inboxes: list[list[ReviewPullRequest]] = []
        self.task_calls = 0
        self.fail = False

    async def get_tasks(self) -> DashboardSnapshot:
        self.task_calls += 1
        if self.fail:
            raise RuntimeError("upstream down")
        return self.snapshots.pop(0)

    async def attach_local_branches(self, tasks: list[ReconciledTask]) -> list[ReconciledTask]:
        return tasks

    async def get_review_inbox(self) -> list[ReviewPullRequest]:
        return self.inboxes.pop(0)


class FakeJira:
    """Serves whatever tickets are currently set."""

    def __init__(self, tickets: list[Ticket]) -> None:
        self.tickets = tickets

    async def fetch_tickets(self) -> list[Ticket]:
        return list(self.tickets)


class FakePRCache:
    async def get(self, repository_filter: str | None = None) -> PRFetchResult:
        return PRFetchResult()

    def invalidate(self) -> None:
        pass


class FakeScanner:
    """Local clones holding a fixed set of branches, counting scans."""

    def __init__(self, branches: list[LocalBranchStatus]) -> None:
        self.branches = branches
        self.scans = 0

    async def scan_branches_for_keys(self, keys: list[str]) -> list[LocalBranchStatus]:
        self.scans += 1
        return list(self.branches)


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def events() -> EventManager:
    return EventManager()


@pytest.fixture
def store() -> Generator[MetadataStore, None, None]:
    metadata_store = MetadataStore(":memory:")
    yield metadata_store
    metadata_store.close()


@pytest.mark.unit
class TestPollTasks:
    """Tests for ticket polling."""

    async def test_first_poll_is_baseline(self, service: FakeService, events: EventManager) -> None:
        subscriber = events.subscribe()
        service.snapshots.append(DashboardSnapshot(tasks=tasks_for(ticket(1))))
        poller = DashboardPoller(service, events)

        assert await poller.poll_tasks_once() is None
        assert subscriber.queue.empty()
        assert [t.key for t in poller.tasks] == ["ABC-1"]

    async def test_change_emits_event(self, service: FakeService, events: EventManager) -> None:
        subscriber = events.subscribe()
        service.snapshots += [
            DashboardSnapshot(tasks=tasks_for(ticket(1), ticket(2))),
            DashboardSnapshot(tasks=tasks_for(ticket(1, "Done"), ticket(3))),
        ]
        poller = DashboardPoller(service, events)

        await poller.poll_tasks_once()
        changes = await poller.poll_tasks_once()

        assert changes is not None
        assert changes.added == ["ABC-3"]
        event = subscriber.queue.get_nowait()
        assert event.event_type == EventType.TASKS_CHANGED
        assert event.data["added"] == ["ABC-3"]
        assert event.data["removed"] == ["ABC-2"]
        assert event.data["modified"] == ["ABC-1"]

    async def test_no_change_no_event(self, service: FakeService, events: EventManager) -> None:
        subscriber = events.subscribe()
        service.snapshots += [
            DashboardSnapshot(tasks=tasks_for(ticket(1))),
            DashboardSnapshot(tasks=tasks_for(ticket(1))),
        ]
        poller = DashboardPoller(service, events)

        await poller.poll_tasks_once()
        changes = await poller.poll_tasks_once()

        assert changes is not None
        assert not changes.has_changes
        assert subscriber.queue.empty()


@pytest.mark.unit
class TestPollWithDashboardService:
    """Polling through a real DashboardService and overlay store."""

    def make_poller(
        self,
        store: MetadataStore,
        events: EventManager,
        jira: FakeJira,
        scanner: FakeScanner | None = None,
    ) -> DashboardPoller:
        service = DashboardService(
            jira=jira,
            github=None,
            pr_cache=FakePRCache(),
            scanner=scanner or FakeScanner([]),
            store=store,
        )
        return DashboardPoller(service, events)

    async def test_local_branches_carried_over(
        self, store: MetadataStore, events: EventManager
    ) -> None:
        branch = LocalBranchStatus(branch="feature/ABC-1_x", repository="repo")
        scanner = FakeScanner([branch])
        poller = self.make_poller(store, events, FakeJira([ticket(1)]), scanner)

        await poller.poll_tasks_once()
        await poller.poll_tasks_once()

        assert poller.tasks[0].local_branches == [branch]
        assert scanner.scans == 1

    async def test_child_change_emits_event(
        self, store: MetadataStore, events: EventManager
    ) -> None:
        store.set_parent("2", "1")
        jira = FakeJira([ticket(1), ticket(2)])
        subscriber = events.subscribe()
        poller = self.make_poller(store, events, jira)

        await poller.poll_tasks_once()
        jira.tickets = [ticket(1), ticket(2, "Done")]
        changes = await poller.poll_tasks_once()

        assert [t.key for t in poller.tasks] == ["ABC-1"]
        assert changes is not None
        assert changes.modified == ["ABC-2"]
        assert subscriber.queue.get_nowait().data["modified"] == ["ABC-2"]

    async def test_full_dashboard_branches_adopted(
        self, store: MetadataStore, events: EventManager
    ) -> None:
        scanner = FakeScanner([])
        poller = self.make_poller(store, events, FakeJira([ticket(1)]), scanner)
        await poller.poll_tasks_once()

        branch = LocalBranchStatus(branch="feature/ABC-1_new", repository="repo")
        scanner.branches = [branch]
        poller.record_full_dashboard(await poller.service.get_full_dashboard())
        await poller.poll_tasks_once()

        assert poller.tasks[0].local_branches == [branch]

    async def test_latest_polls_once_when_empty(
        self, store: MetadataStore, events: EventManager
    ) -> None:
        subscriber = events.subscribe()
        poller = self.make_poller(store, events, FakeJira([ticket(1)]))

        snapshot = await poller.latest()

        assert [t.key for t in snapshot.tasks] == ["ABC-1"]
        assert await poller.latest() is snapshot
        assert subscriber.queue.empty()


@pytest.mark.unit
class TestPollReviewInbox:
    """Tests for review inbox polling."""

    async def test_emits_on_change_only(self, service: FakeService, events: EventManager) -> None:
        subscriber = events.subscribe()
        service.inboxes += [[inbox_pr("1")], [inbox_pr("1")], [inbox_pr("1"), inbox_pr("2")]]
        poller = DashboardPoller(service, events)

        assert await poller.poll_review_inbox_once() is None
        assert await poller.poll_review_inbox_once() is False
        assert await poller.poll_review_inbox_once() is True

        event = subscriber.queue.get_nowait()
        assert event.event_type == EventType.REVIEW_INBOX_CHANGED
        assert event.data["count"] == 2
        assert subscriber.queue.empty()


@pytest.mark.unit
class TestLifecycle:
    """Tests for starting and stopping the loops."""

    async def test_failed_poll_keeps_loop_alive(
        self, service: FakeService, events: EventManager
    ) -> None:
        service.fail = True
        service.inboxes += [[] for _ in range(100)]
        poller = DashboardPoller(service, events, ticket_interval=0.01, review_interval=10)

        poller.start()
        await asyncio.sleep(0.05)

        assert poller.is_running
        assert service.task_calls >= 2
        await poller.stop()
        assert not poller.is_running

    async def test_start_twice_is_noop(self, service: FakeService, events: EventManager) -> None:
        service.fail = True
        service.inboxes += [[] for _ in range(10)]
        poller = DashboardPoller(service, events, ticket_interval=10, review_interval=10)

        poller.start()
        runners = list(poller._runners)
        poller.start()

        assert poller._runners == runners
        await poller.stop()
