"""DashboardService - Builds the dashboard from its sources."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import httpx

from workboard.dashboard.models import DashboardSnapshot
from workboard.github.exceptions import GitHubError
from workboard.ordering import RankTables, sort_pull_requests, sort_tasks
from workboard.reconcile import (
    ReconciledTask,
    attach_local_branches,
    reconcile,
    root_tasks,
)

if TYPE_CHECKING:
    from workboard.cache import PRCache
    from workboard.github import GitHubClient, Repository, ReviewPullRequest
    from workboard.jira import JiraClient
    from workboard.local_git import RepositoryScanner
    from workboard.overlay import MetadataStore

logger = logging.getLogger("workboard.dashboard")


class DashboardService:
    """Orchestrates one dashboard request cycle.

    Loading happens in two phases. Phase one fetches tickets and pull
    requests concurrently and reconciles them; it involves no git work and
    returns quickly. Phase two scans local clones for the tasks' keys and
    attaches the branches it finds.
    """

    def __init__(
        self,
        jira: JiraClient,
        github: GitHubClient,
        pr_cache: PRCache,
        scanner: RepositoryScanner,
        store: MetadataStore,
        ranks: RankTables | None = None,
    ) -> None:
        self.jira = jira
        self.github = github
        self.pr_cache = pr_cache
        self.scanner = scanner
        self.store = store
        self.ranks = ranks or RankTables()

    def _ordered(self, tasks: list[ReconciledTask]) -> list[ReconciledTask]:
        """Sort tasks, their children and their pull requests for display."""
        return [
            replace(
                task,
                pull_requests=sort_pull_requests(task.pull_requests),
                child_tasks=self._ordered(task.child_tasks),
            )
            for task in sort_tasks(tasks, self.ranks)
        ]

    async def get_tasks(
        self, repository_filter: str | None = None, refresh: bool = False
    ) -> DashboardSnapshot:
        """Phase one: tickets and pull requests, reconciled and ordered.

        Args:
            repository_filter: "owner/repo" to scope pull requests to, or "all".
            refresh: Drop cached pull requests and active repositories first.
        """
        if refresh:
            self.invalidate()

        tickets, pr_result = await asyncio.gather(
            self.jira.fetch_tickets(), self.pr_cache.get(repository_filter)
        )

        tasks = reconcile(
            tickets,
            pr_result.pull_requests,
            [],
            metadata=self.store.list_task_metadata(),
            pr_metadata=self.store.list_pr_metadata(),
        )
        roots = self._ordered(root_tasks(tasks))
        logger.info(
            "Built dashboard with %d tasks and %d pull requests",
            len(roots),
            len(pr_result.pull_requests),
        )
        return DashboardSnapshot(
            tasks=roots,
            rate_limited=pr_result.rate_limited,
            from_cache=pr_result.from_cache,
            pull_request_count=len(pr_result.pull_requests),
            fetched_at=pr_result.fetched_at,
        )

    async def attach_local_branches(self, tasks: list[ReconciledTask]) -> list[ReconciledTask]:
        """Phase two: attach local branches for every task and child task."""
        keys = sorted({t.key for root in tasks for t in root.iter_tree()})
        branches = await self.scanner.scan_branches_for_keys(keys)
        logger.info("Found %d local branches for %d task keys", len(branches), len(keys))
        return attach_local_branches(tasks, branches)

    async def get_full_dashboard(
        self, repository_filter: str | None = None, refresh: bool = False
    ) -> DashboardSnapshot:
        """Both phases in one call."""
        snapshot = await self.get_tasks(repository_filter, refresh=refresh)
        return replace(snapshot, tasks=await self.attach_local_branches(snapshot.tasks))

    async def get_review_inbox(self) -> list[ReviewPullRequest]:
        """Pull requests waiting for the user's review. Failures yield an empty inbox."""
        try:
            return await self.github.fetch_prs_needing_review()
        except (httpx.HTTPError, GitHubError) as e:
            logger.error("Failed to fetch review inbox: %s", e)
            return []

    async def list_repositories(self) -> list[Repository]:
        try:
            return await self.github.list_repositories()
        except (httpx.HTTPError, GitHubError) as e:
            logger.error("Failed to list repositories: %s", e)
            return []

    def invalidate(self) -> None:
        self.pr_cache.invalidate()
