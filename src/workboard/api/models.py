"""Pydantic models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from workboard.github.models import InboxReviewStatus, PRStatus, ReviewState
from workboard.overlay.models import HiddenStatus

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Git models


class BranchStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    branch: str
    exists: bool
    is_up_to_date: bool
    ahead: int
    behind: int
    has_remote: bool
    repository: str | None
    last_commit: str | None
    last_checked: datetime | None


class LocalBranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    branch: str
    repository: str
    remote_origin: str | None
    has_remote: bool
    ahead: int
    behind: int
    last_commit: str
    is_ahead: bool


class LocalRepositoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    path: str
    name: str
    remotes: list[str]


class BranchOperationRequest(BaseModel):
    """Request model for push, pull and delete of a local branch."""

    repository: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=1)
    pr_id: str | None = Field(default=None, description="Refresh this PR's cached git status")


class GitOperationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    message: str


class BulkStatusItem(BaseModel):
    pr_id: str
    repository: str
    branch: str


class BulkStatusRequest(BaseModel):
    pull_requests: list[BulkStatusItem] = Field(default_factory=list)


class BulkStatusResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pr_id: str
    status: BranchStatusResponse | None
    error: str | None


# Dashboard models


class PullRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    number: int
    status: PRStatus
    branch: str
    repository: str
    author: str
    url: str
    created_at: datetime | None
    updated_at: datetime | None
    linked_ticket_key: str | None
    is_draft: bool
    review_state: ReviewState
    requested_reviewers: list[str]
    approved_reviewers: list[str]
    required_reviewer_count: int
    hidden: bool
    local_git_status: BranchStatusResponse | None


class TaskResponse(BaseModel):
    """A reconciled task. ``hidden_status`` is the effective status."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    title: str
    status: str
    issue_type: str
    in_sprint: bool | None
    assignee: str
    priority: str
    description: str
    url: str
    last_updated: datetime | None
    issue_type_icon_url: str | None
    priority_icon_url: str | None
    pull_requests: list[PullRequestResponse]
    local_branches: list[LocalBranchResponse]
    child_tasks: list[TaskResponse]
    parent_task_id: str | None
    notes: str
    hidden_status: HiddenStatus
    hidden_since: datetime | None
    child_tasks_expanded: bool
    pull_requests_expanded: bool
    local_branches_expanded: bool


class DashboardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tasks: list[TaskResponse]
    rate_limited: bool
    from_cache: bool
    pull_request_count: int
    fetched_at: datetime | None


class ReviewPullRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    number: int
    branch: str
    repository: str
    author: str
    url: str
    created_at: datetime | None
    updated_at: datetime | None
    is_draft: bool
    approved_reviews: int
    changes_requested_reviews: int
    pending_reviews: int
    total_reviews: int
    reviewers: list[str]
    review_status: InboxReviewStatus
    body: str
    state: str
    base_branch: str
    merged_at: datetime | None
    closed_at: datetime | None
    commits: int
    additions: int
    deletions: int
    changed_files: int


class RepositoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    full_name: str
    name: str
    owner: str
    private: bool
    default_branch: str
    updated_at: datetime | None
    url: str


# Metadata models


class TaskMetadataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    parent_task_id: str | None
    notes: str
    hidden_status: HiddenStatus
    hidden_since: datetime | None
    child_tasks_expanded: bool
    pull_requests_expanded: bool
    local_branches_expanded: bool


class TaskMetadataUpdate(BaseModel):
    """Request model for updating task metadata (partial update)."""

    notes: str | None = None
    hidden_status: HiddenStatus | None = None
    child_tasks_expanded: bool | None = None
    pull_requests_expanded: bool | None = None
    local_branches_expanded: bool | None = None


class ParentUpdate(BaseModel):
    parent_task_id: str = Field(..., min_length=1)


class PRMetadataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pr_id: str
    hidden: bool
    local_git_status: BranchStatusResponse | None


class PRMetadataUpdate(BaseModel):
    hidden: bool | None = None


class LegacyImportRequest(BaseModel):
    """Metadata exported from the browser dashboard's local storage."""

    tasks: dict[str, Any] = Field(default_factory=dict)
    pull_requests: dict[str, Any] = Field(default_factory=dict)


class ImportResponse(BaseModel):
    imported: int


# Jira models


class WebLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    url: str
    icon_url: str | None


class WebLinkCreate(BaseModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1, pattern=r"^https?://")


class WebLinkResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    error: str | None
    link_id: str | None


class BranchNameResponse(BaseModel):
    branch_name: str
    checkout_command: str
