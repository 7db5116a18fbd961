"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from workboard.api.events import EventManager
from workboard.dashboard import DashboardPoller, DashboardService
from workboard.jira import JiraClient
from workboard.local_git import RepositoryScanner
from workboard.overlay import MetadataStore

# Global MetadataStore instance (initialized on app startup)
_metadata_store: MetadataStore | None = None


def init_metadata_store(db_path: str = "workboard.db") -> MetadataStore:
    """Initialize the global MetadataStore instance."""
    global _metadata_store  # noqa: PLW0603
    _metadata_store = MetadataStore(db_path)
    return _metadata_store


def close_metadata_store() -> None:
    """Close the global MetadataStore instance."""
    global _metadata_store  # noqa: PLW0603
    if _metadata_store is not None:
        _metadata_store.close()
        _metadata_store = None


def get_metadata_store() -> Generator[MetadataStore, None, None]:
    """Dependency that provides the MetadataStore instance."""
    if _metadata_store is None:
        raise RuntimeError("MetadataStore not initialized. Call init_metadata_store() first.")
    yield _metadata_store


MetadataStoreDep = Annotated[MetadataStore, Depends(get_metadata_store)]

# Global EventManager instance
_event_manager: EventManager | None = None


def init_event_manager(heartbeat_interval: float = 15) -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager(heartbeat_interval=heartbeat_interval)
    return _event_manager


def close_event_manager() -> None:
    global _event_manager  # noqa: PLW0603
    _event_manager = None


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]

# Global DashboardService instance (holds the Jira client and repository scanner)
_dashboard_service: DashboardService | None = None


def init_dashboard_service(service: DashboardService) -> None:
    """Initialize the global DashboardService instance."""
    global _dashboard_service  # noqa: PLW0603
    _dashboard_service = service


def close_dashboard_service() -> None:
    global _dashboard_service  # noqa: PLW0603
    _dashboard_service = None


def get_dashboard_service() -> Generator[DashboardService, None, None]:
    """Dependency that provides the DashboardService instance."""
    if _dashboard_service is None:
        raise RuntimeError("DashboardService not initialized. Call init_dashboard_service() first.")
    yield _dashboard_service


DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]

# Global DashboardPoller instance (its loops run only when polling is enabled)
_dashboard_poller: DashboardPoller | None = None


def init_dashboard_poller(poller: DashboardPoller) -> None:
    """Initialize the global DashboardPoller instance."""
    global _dashboard_poller  # noqa: PLW0603
    _dashboard_poller = poller


def close_dashboard_poller() -> None:
    global _dashboard_poller  # noqa: PLW0603
    _dashboard_poller = None


def get_dashboard_poller() -> Generator[DashboardPoller, None, None]:
    """Dependency that provides the DashboardPoller instance."""
    if _dashboard_poller is None:
        raise RuntimeError("DashboardPoller not initialized. Call init_dashboard_poller() first.")
    yield _dashboard_poller


DashboardPollerDep = Annotated[DashboardPoller, Depends(get_dashboard_poller)]


def get_jira_client(service: DashboardServiceDep) -> JiraClient:
    """Dependency that provides the Jira client of the dashboard service."""
    return service.jira


JiraClientDep = Annotated[JiraClient, Depends(get_jira_client)]


def get_repository_scanner(service: DashboardServiceDep) -> RepositoryScanner:
    """Dependency that provides the repository scanner of the dashboard service."""
    return service.scanner


RepositoryScannerDep = Annotated[RepositoryScanner, Depends(get_repository_scanner)]
