"""Dashboard endpoints."""

from fastapi import APIRouter, Query

from workboard.api.dependencies import DashboardPollerDep, DashboardServiceDep
from workboard.api.models import (
    APIResponse,
    DashboardResponse,
    RepositoryResponse,
    ReviewPullRequestResponse,
)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=APIResponse[DashboardResponse])
async def get_dashboard(
    service: DashboardServiceDep,
    repo: str | None = Query(default=None, description='"owner/repo" or "all"'),
    refresh: bool = Query(default=False, description="Drop cached pull requests first"),
) -> APIResponse[DashboardResponse]:
    """Tasks with their pull requests, without local branches."""
    snapshot = await service.get_tasks(repo, refresh=refresh)
    return APIResponse(data=DashboardResponse.model_validate(snapshot))


@router.get("/dashboard/full", response_model=APIResponse[DashboardResponse])
async def get_full_dashboard(
    service: DashboardServiceDep,
    poller: DashboardPollerDep,
    repo: str | None = Query(default=None, description='"owner/repo" or "all"'),
    refresh: bool = Query(default=False),
) -> APIResponse[DashboardResponse]:
    """Tasks with their pull requests and local branches."""
    snapshot = await service.get_full_dashboard(repo, refresh=refresh)
    poller.record_full_dashboard(snapshot)
    return APIResponse(data=DashboardResponse.model_validate(snapshot))


@router.get("/dashboard/latest", response_model=APIResponse[DashboardResponse])
async def get_latest_dashboard(poller: DashboardPollerDep) -> APIResponse[DashboardResponse]:
    """The background poll's view: fresh tickets with local branches carried over.

    Cheap to call after a ``tasks_changed`` event since no local clone is scanned.
    """
    snapshot = await poller.latest()
    return APIResponse(data=DashboardResponse.model_validate(snapshot))


@router.post("/dashboard/invalidate", response_model=APIResponse[dict[str, bool]])
def invalidate_dashboard(service: DashboardServiceDep) -> APIResponse[dict[str, bool]]:
    """Clear cached pull requests and active repositories."""
    service.invalidate()
    return APIResponse(data={"invalidated": True})


@router.get("/review-inbox", response_model=APIResponse[list[ReviewPullRequestResponse]])
async def get_review_inbox(
    service: DashboardServiceDep,
) -> APIResponse[list[ReviewPullRequestResponse]]:
    """Open pull requests waiting for the user's review."""
    inbox = await service.get_review_inbox()
    return APIResponse(data=[ReviewPullRequestResponse.model_validate(pr) for pr in inbox])


@router.get("/repositories", response_model=APIResponse[list[RepositoryResponse]])
async def list_repositories(service: DashboardServiceDep) -> APIResponse[list[RepositoryResponse]]:
    """Repositories the user can access on GitHub."""
    repositories = await service.list_repositories()
    return APIResponse(data=[RepositoryResponse.model_validate(r) for r in repositories])
