"""Jira web link endpoints."""

from fastapi import APIRouter, status

from workboard.api.dependencies import JiraClientDep
from workboard.api.models import (
    APIResponse,
    WebLinkCreate,
    WebLinkResponse,
    WebLinkResultResponse,
)

router = APIRouter(prefix="/tasks/{key}/web-links", tags=["web-links"])


@router.get("", response_model=APIResponse[list[WebLinkResponse]])
async def list_web_links(key: str, jira: JiraClientDep) -> APIResponse[list[WebLinkResponse]]:
    """Remote links attached to a ticket."""
    links = await jira.list_web_links(key)
    return APIResponse(data=[WebLinkResponse.model_validate(link) for link in links])


@router.post(
    "",
    response_model=APIResponse[WebLinkResultResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_web_link(
    key: str, link: WebLinkCreate, jira: JiraClientDep
) -> APIResponse[WebLinkResultResponse]:
    result = await jira.add_web_link(key, link.title, link.url)
    return APIResponse(data=WebLinkResultResponse.model_validate(result), error=result.error)


@router.delete("/{link_id}", response_model=APIResponse[WebLinkResultResponse])
async def delete_web_link(
    key: str, link_id: str, jira: JiraClientDep
) -> APIResponse[WebLinkResultResponse]:
    result = await jira.delete_web_link(key, link_id)
    return APIResponse(data=WebLinkResultResponse.model_validate(result), error=result.error)
