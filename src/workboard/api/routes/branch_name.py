"""Branch name suggestion endpoint."""

from fastapi import APIRouter, Query

from workboard.api.models import APIResponse, BranchNameResponse
from workboard.linking import generate_branch_name, generate_checkout_command

router = APIRouter(tags=["branch-name"])


@router.get("/branch-name", response_model=APIResponse[BranchNameResponse])
def suggest_branch_name(
    key: str = Query(..., min_length=1),
    title: str = Query(default=""),
    issue_type: str = Query(default="Task"),
) -> APIResponse[BranchNameResponse]:
    """Suggest a branch name for a ticket and the command that creates it."""
    return APIResponse(
        data=BranchNameResponse(
            branch_name=generate_branch_name(key, title, issue_type),
            checkout_command=generate_checkout_command(key, title, issue_type),
        )
    )
