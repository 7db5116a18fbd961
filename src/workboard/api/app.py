"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workboard import __version__
from workboard.api.dependencies import (
    close_dashboard_poller,
    close_dashboard_service,
    close_event_manager,
    close_metadata_store,
    init_dashboard_poller,
    init_dashboard_service,
    init_event_manager,
    init_metadata_store,
)
from workboard.api.models import APIResponse
from workboard.api.routes import (
    branch_name,
    dashboard,
    events,
    local_git,
    metadata,
    web_links,
)
from workboard.cache import ActiveRepositoryDiscovery, PRCache
from workboard.config import Settings, get_settings, resolve_github_token
from workboard.dashboard import DashboardPoller, DashboardService
from workboard.github import GitHubClient, GitHubError
from workboard.jira import JiraClient, JiraError
from workboard.local_git import LocalGitError, RepositoryNotFoundError, RepositoryScanner
from workboard.overlay import (
    MetadataError,
    MetadataStore,
    ParentCycleError,
    UnknownSectionError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger("workboard.api")


def build_dashboard_service(settings: Settings, store: MetadataStore) -> DashboardService:
    """Wire the upstream clients, caches and scanner described by ``settings``."""
    jira = JiraClient(
        domain=settings.jira_domain,
        email=settings.jira_email,
        api_token=settings.jira_api_token,
        sprint_field=settings.jira_sprint_field,
        jql_variants=settings.jira_jql_variants,
    )
    github = GitHubClient(
        token=resolve_github_token(settings),
        base_url=settings.github_api_url,
        default_project_code=settings.default_project_code,
        required_reviewers=settings.required_reviewers,
        default_required_reviewers=settings.default_required_reviewers,
        rate_limit_threshold=settings.rate_limit_threshold,
    )
    discovery = ActiveRepositoryDiscovery(
        github,
        policy=settings.active_repo_policy,
        whitelist=settings.active_repo_whitelist,
        probe_size=settings.active_repo_probe_size,
        probe_page_size=settings.active_repo_probe_page_size,
        ttl_seconds=settings.active_repo_ttl_seconds,
    )
    pr_cache = PRCache(github, discovery, ttl_seconds=settings.pr_cache_ttl_seconds)
    scanner = RepositoryScanner(settings.scan_roots or None)
    return DashboardService(
        jira=jira,
        github=github,
        pr_cache=pr_cache,
        scanner=scanner,
        store=store,
        ranks=settings.rank_tables(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    # Startup
    store = init_metadata_store(settings.database_path)
    event_manager = init_event_manager(settings.heartbeat_seconds)
    service = build_dashboard_service(settings, store)
    init_dashboard_service(service)

    poller = DashboardPoller(
        service,
        event_manager,
        ticket_interval=settings.ticket_poll_seconds,
        review_interval=settings.review_inbox_poll_seconds,
    )
    init_dashboard_poller(poller)
    if app.state.start_poller:
        poller.start()
    logger.info("Workboard started (jira configured: %s)", settings.jira_configured)

    yield
    # Shutdown
    if poller.is_running:
        await poller.stop()
    close_dashboard_poller()
    await service.jira.close()
    await service.github.close()
    close_dashboard_service()
    close_event_manager()
    close_metadata_store()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors onto the standard error envelope."""

    @app.exception_handler(RepositoryNotFoundError)
    async def repository_not_found_handler(
        _request: Request, exc: RepositoryNotFoundError
    ) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(LocalGitError)
    async def local_git_error_handler(_request: Request, exc: LocalGitError) -> JSONResponse:
        logger.error("Local git error: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(ParentCycleError)
    async def parent_cycle_handler(_request: Request, exc: ParentCycleError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(UnknownSectionError)
    async def unknown_section_handler(
        _request: Request, exc: UnknownSectionError
    ) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(MetadataError)
    async def metadata_error_handler(_request: Request, exc: MetadataError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(JiraError)
    async def jira_error_handler(_request: Request, exc: JiraError) -> JSONResponse:
        logger.error("Jira error: %s", exc)
        return _error_response(status.HTTP_502_BAD_GATEWAY, "Jira request failed")

    @app.exception_handler(GitHubError)
    async def github_error_handler(_request: Request, exc: GitHubError) -> JSONResponse:
        logger.error("GitHub error: %s", exc)
        return _error_response(status.HTTP_502_BAD_GATEWAY, "GitHub request failed")


def create_app(settings: Settings | None = None, start_poller: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Workboard API",
        description="Jira tickets, GitHub pull requests and local branches on one board",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings or get_settings()
    app.state.start_poller = start_poller

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(dashboard.router, prefix="/api/v1")
    app.include_router(metadata.router, prefix="/api/v1")
    app.include_router(local_git.router, prefix="/api/v1")
    app.include_router(web_links.router, prefix="/api/v1")
    app.include_router(branch_name.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
