"""Task and pull request metadata endpoints."""

from fastapi import APIRouter, status

from workboard.api.dependencies import EventManagerDep, MetadataStoreDep
from workboard.api.models import (
    APIResponse,
    ImportResponse,
    LegacyImportRequest,
    ParentUpdate,
    PRMetadataResponse,
    PRMetadataUpdate,
    TaskMetadataResponse,
    TaskMetadataUpdate,
)
from workboard.overlay import ParentCycleError

router = APIRouter(prefix="/metadata", tags=["metadata"])


def _task(metadata: object) -> APIResponse[TaskMetadataResponse]:
    return APIResponse(data=TaskMetadataResponse.model_validate(metadata))


@router.get("/tasks", response_model=APIResponse[list[TaskMetadataResponse]])
def list_task_metadata(store: MetadataStoreDep) -> APIResponse[list[TaskMetadataResponse]]:
    """List all stored task metadata."""
    metadata = store.list_task_metadata()
    return APIResponse(
        data=[TaskMetadataResponse.model_validate(m) for _, m in sorted(metadata.items())]
    )


@router.get("/tasks/{task_id}", response_model=APIResponse[TaskMetadataResponse])
def get_task_metadata(task_id: str, store: MetadataStoreDep) -> APIResponse[TaskMetadataResponse]:
    """Get a task's metadata. Unknown tasks get defaults."""
    return _task(store.get_task_metadata(task_id))


@router.patch("/tasks/{task_id}", response_model=APIResponse[TaskMetadataResponse])
def update_task_metadata(
    task_id: str,
    update: TaskMetadataUpdate,
    store: MetadataStoreDep,
    events: EventManagerDep,
) -> APIResponse[TaskMetadataResponse]:
    """Update a task's metadata (partial update)."""
    changes = update.model_dump(exclude_none=True)
    if "hidden_status" in changes:
        status_value = changes.pop("hidden_status")
        {
            "visible": store.show_task,
            "hidden": store.hide_task,
            "hidden_until_updated": store.hide_task_until_updated,
        }[status_value](task_id)
    metadata = store.upsert_task_metadata(task_id, **changes)
    events.emit_metadata_changed("task", task_id)
    return _task(metadata)


@router.get("/tasks/{task_id}/children", response_model=APIResponse[list[str]])
def list_child_tasks(task_id: str, store: MetadataStoreDep) -> APIResponse[list[str]]:
    """Ids of tasks whose parent is this task."""
    return APIResponse(data=store.child_ids(task_id))


@router.put("/tasks/{task_id}/parent", response_model=APIResponse[TaskMetadataResponse])
def set_parent(
    task_id: str, update: ParentUpdate, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[TaskMetadataResponse]:
    """Make another task the parent of this one. Cycles are rejected with 409."""
    if not store.set_parent(task_id, update.parent_task_id):
        raise ParentCycleError(
            f"Making {update.parent_task_id} the parent of {task_id} would create a loop"
        )
    events.emit_metadata_changed("task", task_id)
    return _task(store.get_task_metadata(task_id))


@router.delete("/tasks/{task_id}/parent", response_model=APIResponse[TaskMetadataResponse])
def remove_parent(
    task_id: str, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[TaskMetadataResponse]:
    metadata = store.remove_parent(task_id)
    events.emit_metadata_changed("task", task_id)
    return _task(metadata)


@router.post("/tasks/{task_id}/hide", response_model=APIResponse[TaskMetadataResponse])
def hide_task(
    task_id: str, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[TaskMetadataResponse]:
    metadata = store.hide_task(task_id)
    events.emit_metadata_changed("task", task_id)
    return _task(metadata)


@router.post(
    "/tasks/{task_id}/hide-until-updated", response_model=APIResponse[TaskMetadataResponse]
)
def hide_task_until_updated(
    task_id: str, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[TaskMetadataResponse]:
    """Hide a task until its ticket is next updated."""
    metadata = store.hide_task_until_updated(task_id)
    events.emit_metadata_changed("task", task_id)
    return _task(metadata)


@router.post("/tasks/{task_id}/show", response_model=APIResponse[TaskMetadataResponse])
def show_task(
    task_id: str, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[TaskMetadataResponse]:
    metadata = store.show_task(task_id)
    events.emit_metadata_changed("task", task_id)
    return _task(metadata)


@router.post(
    "/tasks/{task_id}/sections/{section}/toggle",
    response_model=APIResponse[TaskMetadataResponse],
)
def toggle_section(
    task_id: str, section: str, store: MetadataStoreDep
) -> APIResponse[TaskMetadataResponse]:
    """Expand or collapse one section of a task card."""
    return _task(store.toggle_section(task_id, section))


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task_metadata(task_id: str, store: MetadataStoreDep, events: EventManagerDep) -> None:
    """Forget a task's metadata."""
    store.remove_task_metadata(task_id)
    events.emit_metadata_changed("task", task_id)


@router.get("/pull-requests/{pr_id}", response_model=APIResponse[PRMetadataResponse])
def get_pr_metadata(pr_id: str, store: MetadataStoreDep) -> APIResponse[PRMetadataResponse]:
    return APIResponse(data=PRMetadataResponse.model_validate(store.get_pr_metadata(pr_id)))


@router.patch("/pull-requests/{pr_id}", response_model=APIResponse[PRMetadataResponse])
def update_pr_metadata(
    pr_id: str, update: PRMetadataUpdate, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[PRMetadataResponse]:
    metadata = store.upsert_pr_metadata(pr_id, hidden=update.hidden)
    events.emit_metadata_changed("pull_request", pr_id)
    return APIResponse(data=PRMetadataResponse.model_validate(metadata))


@router.post("/pull-requests/{pr_id}/toggle-hidden", response_model=APIResponse[PRMetadataResponse])
def toggle_pr_hidden(
    pr_id: str, store: MetadataStoreDep, events: EventManagerDep
) -> APIResponse[PRMetadataResponse]:
    metadata = store.toggle_pr_hidden(pr_id)
    events.emit_metadata_changed("pull_request", pr_id)
    return APIResponse(data=PRMetadataResponse.model_validate(metadata))


@router.post("/import", response_model=APIResponse[ImportResponse])
def import_legacy_metadata(
    payload: LegacyImportRequest, store: MetadataStoreDep
) -> APIResponse[ImportResponse]:
    """Import metadata exported from the browser dashboard's local storage."""
    imported = store.import_legacy_snapshot(payload.tasks, payload.pull_requests)
    return APIResponse(data=ImportResponse(imported=imported))
