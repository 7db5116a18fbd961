"""Local git endpoints."""

import logging

from fastapi import APIRouter, Query

from workboard.api.dependencies import MetadataStoreDep, RepositoryScannerDep
from workboard.api.models import (
    APIResponse,
    BranchOperationRequest,
    BranchStatusResponse,
    BulkStatusRequest,
    BulkStatusResultResponse,
    GitOperationResponse,
    LocalBranchResponse,
    LocalRepositoryResponse,
)
from workboard.local_git import (
    BranchStatusRequest,
    GitOperationResult,
    LocalGitManager,
    RepositoryScanner,
)
from workboard.overlay import MetadataStore

logger = logging.getLogger("workboard.api.local_git")

router = APIRouter(prefix="/local-git", tags=["local-git"])


def _manager(scanner: RepositoryScanner, repository: str) -> LocalGitManager:
    return LocalGitManager(scanner.find_repository_by_name(repository))


def _refresh_pr_status(
    scanner: RepositoryScanner,
    store: MetadataStore,
    request: BranchOperationRequest,
    result: GitOperationResult,
) -> None:
    """Keep the PR's cached branch status in line with what the operation did."""
    if request.pr_id is None or not result.success:
        return
    status = scanner.branch_status(request.repository, request.branch)
    if status.exists:
        store.update_pr_git_status(request.pr_id, status)
    else:
        store.clear_pr_git_status(request.pr_id)


@router.get("/repositories", response_model=APIResponse[list[LocalRepositoryResponse]])
def list_local_repositories(
    scanner: RepositoryScannerDep,
) -> APIResponse[list[LocalRepositoryResponse]]:
    """List git clones found under the scan roots."""
    repositories = scanner.list_repositories()
    return APIResponse(data=[LocalRepositoryResponse.model_validate(r) for r in repositories])


@router.get("/branches", response_model=APIResponse[list[LocalBranchResponse]])
async def list_local_branches(
    scanner: RepositoryScannerDep,
    keys: str | None = Query(default=None, description="Comma-separated ticket keys"),
) -> APIResponse[list[LocalBranchResponse]]:
    """Local branches matching the given ticket keys, or every local branch."""
    if keys is None:
        branches = await scanner.scan_all_branches()
    else:
        branches = await scanner.scan_branches_for_keys(k.strip() for k in keys.split(","))
    return APIResponse(data=[LocalBranchResponse.model_validate(b) for b in branches])


@router.get("/status", response_model=APIResponse[BranchStatusResponse])
def get_branch_status(
    scanner: RepositoryScannerDep,
    repository: str = Query(..., alias="repo", min_length=1),
    branch: str = Query(..., min_length=1),
) -> APIResponse[BranchStatusResponse]:
    """Status of one branch in a local clone."""
    status = scanner.branch_status(repository, branch)
    return APIResponse(data=BranchStatusResponse.model_validate(status))


@router.post("/bulk-status", response_model=APIResponse[list[BulkStatusResultResponse]])
async def bulk_branch_status(
    payload: BulkStatusRequest,
    scanner: RepositoryScannerDep,
    store: MetadataStoreDep,
) -> APIResponse[list[BulkStatusResultResponse]]:
    """Look up many PR branches at once and cache each result on the PR's metadata."""
    results = await scanner.bulk_branch_status(
        BranchStatusRequest(pr_id=item.pr_id, repository=item.repository, branch=item.branch)
        for item in payload.pull_requests
    )
    for result in results:
        if result.status is not None:
            store.update_pr_git_status(result.pr_id, result.status)
    return APIResponse(data=[BulkStatusResultResponse.model_validate(r) for r in results])


@router.post("/push", response_model=APIResponse[GitOperationResponse])
def push_branch(
    request: BranchOperationRequest,
    scanner: RepositoryScannerDep,
    store: MetadataStoreDep,
) -> APIResponse[GitOperationResponse]:
    """Push a local branch to origin."""
    result = _manager(scanner, request.repository).push(request.branch)
    logger.info("Push %s in %s: %s", request.branch, request.repository, result.message)
    _refresh_pr_status(scanner, store, request, result)
    return APIResponse(data=GitOperationResponse.model_validate(result))


@router.post("/pull", response_model=APIResponse[GitOperationResponse])
def pull_branch(
    request: BranchOperationRequest,
    scanner: RepositoryScannerDep,
    store: MetadataStoreDep,
) -> APIResponse[GitOperationResponse]:
    """Bring a local branch up to date with origin."""
    result = _manager(scanner, request.repository).pull(request.branch)
    logger.info("Pull %s in %s: %s", request.branch, request.repository, result.message)
    _refresh_pr_status(scanner, store, request, result)
    return APIResponse(data=GitOperationResponse.model_validate(result))


@router.post("/delete", response_model=APIResponse[GitOperationResponse])
def delete_branch(
    request: BranchOperationRequest,
    scanner: RepositoryScannerDep,
    store: MetadataStoreDep,
) -> APIResponse[GitOperationResponse]:
    """Delete a local branch, stepping off it first if it is checked out."""
    result = _manager(scanner, request.repository).delete_local_branch(request.branch)
    logger.info("Delete %s in %s: %s", request.branch, request.repository, result.message)
    if request.pr_id is not None and result.success:
        store.clear_pr_git_status(request.pr_id)
    return APIResponse(data=GitOperationResponse.model_validate(result))
