"""JiraClient - Fetches the current user's tickets from Jira Cloud."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from workboard.jira.exceptions import JiraError, JiraRequestError
from workboard.jira.models import Ticket, WebLink, WebLinkResult
from workboard.jira.parsing import DEFAULT_SPRINT_FIELD, is_subtask, parse_ticket
from workboard.logging import sanitize_for_log

logger = logging.getLogger("workboard.jira")

# Most to least specific; later variants are fallbacks for instances that
# reject parts of the first query (e.g. no DevBug issue type)
DEFAULT_JQL_VARIANTS = [
    "assignee=currentUser() AND status NOT IN ('Done', 'Rejected') "
    "AND NOT (issuetype = 'DevBug' AND status = 'Ready for PROD') ORDER BY priority DESC",
    "assignee=currentUser() AND status NOT IN ('Done', 'Rejected') ORDER BY priority DESC",
    "assignee=currentUser() ORDER BY priority DESC",
]

PAGE_SIZE = 100


class JiraClient:
    """Client for the Jira Cloud REST API (v3).

    Without a domain, email and API token the client is "not configured":
    every read returns empty results and logs a warning instead of raising.
    """

    def __init__(
        self,
        domain: str | None,
        email: str | None,
        api_token: str | None,
        sprint_field: str = DEFAULT_SPRINT_FIELD,
        jql_variants: list[str] | None = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        """Initialize Jira client.

        Args:
            domain: Jira site host, e.g. "acme.atlassian.net"
            email: Account email used for basic auth
            api_token: Atlassian API token
            sprint_field: Custom field id that holds sprint data
            jql_variants: Queries tried in order until one succeeds
            page_size: Issues requested per search page
        """
        self.domain = domain
        self.email = email
        self.api_token = api_token
        self.sprint_field = sprint_field
        self.jql_variants = jql_variants or list(DEFAULT_JQL_VARIANTS)
        self.page_size = page_size
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.domain and self.email and self.api_token)

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.email or "", self.api_token or ""),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and raise on a non-success status.

        Raises:
            JiraRequestError: If Jira answers with an error status
        """
        response = await self.client.request(method, path, **kwargs)
        if response.status_code >= 400:
            raise JiraRequestError(
                f"Jira request failed: {response.status_code} - "
                f"{sanitize_for_log(response.text[:200])}",
                status_code=response.status_code,
            )
        return response

    async def _search(self, jql: str) -> list[dict[str, Any]]:
        """Collect every page of a JQL search."""
        issues: list[dict[str, Any]] = []
        start_at = 0
        while True:
            response = await self._request(
                "GET",
                "/rest/api/3/search",
                params={
                    "jql": jql,
                    "expand": "sprint",
                    "startAt": start_at,
                    "maxResults": self.page_size,
                },
            )
            data = response.json()
            page = data.get("issues") or []
            issues.extend(page)

            total = data.get("total", 0)
            if len(page) < self.page_size or start_at + self.page_size >= total:
                return issues
            start_at += self.page_size

    async def fetch_tickets(self) -> list[Ticket]:
        """Fetch the current user's open tickets, sub-tasks excluded.

        Each JQL variant is tried in order until one succeeds. When all of
        them fail, or the client is not configured, the result is empty.
        """
        if not self.is_configured:
            logger.warning("Jira credentials not configured, returning no tickets")
            return []

        for jql in self.jql_variants:
            try:
                issues = await self._search(jql)
            except (httpx.HTTPError, JiraError, ValueError) as e:
                logger.warning("Jira search failed for query %r: %s", jql, e)
                continue

            tickets = []
            for issue in issues:
                fields = issue.get("fields") if isinstance(issue, dict) else None
                if isinstance(fields, dict) and is_subtask(fields):
                    continue
                ticket = parse_ticket(issue, self.domain or "", self.sprint_field)
                if ticket is not None:
                    tickets.append(ticket)
            logger.info("Fetched %d tickets from Jira", len(tickets))
            return tickets

        logger.error("All Jira queries failed, returning no tickets")
        return []

    # --- Web links ---

    async def list_web_links(self, key: str) -> list[WebLink]:
        """List the remote links of an issue. Failures yield an empty list."""
        if not self.is_configured:
            return []
        try:
            response = await self._request("GET", f"/rest/api/3/issue/{key}/remotelink")
            payload = response.json()
        except (httpx.HTTPError, JiraError, ValueError) as e:
            logger.warning("Failed to list web links of %s: %s", key, e)
            return []

        links = []
        for item in payload if isinstance(payload, list) else []:
            obj = item.get("object") if isinstance(item, dict) else None
            if not isinstance(obj, dict) or not obj.get("url"):
                continue
            icon = obj.get("icon") if isinstance(obj.get("icon"), dict) else {}
            links.append(
                WebLink(
                    id=str(item.get("id")),
                    title=str(obj.get("title") or obj["url"]),
                    url=str(obj["url"]),
                    icon_url=icon.get("url16x16"),
                )
            )
        return links

    async def add_web_link(self, key: str, title: str, url: str) -> WebLinkResult:
        """Attach a remote link to an issue."""
        if not self.is_configured:
            return WebLinkResult(success=False, error="Jira is not configured")
        try:
            response = await self._request(
                "POST",
                f"/rest/api/3/issue/{key}/remotelink",
                json={"object": {"url": url, "title": title}},
            )
            data = response.json()
        except (httpx.HTTPError, JiraError, ValueError) as e:
            logger.error("Failed to add web link to %s: %s", key, e)
            return WebLinkResult(success=False, error=str(e))

        logger.info("Added web link to %s", key)
        link_id = data.get("id") if isinstance(data, dict) else None
        return WebLinkResult(success=True, link_id=str(link_id) if link_id is not None else None)

    async def delete_web_link(self, key: str, link_id: str) -> WebLinkResult:
        """Remove a remote link from an issue."""
        if not self.is_configured:
            return WebLinkResult(success=False, error="Jira is not configured")
        try:
            await self._request("DELETE", f"/rest/api/3/issue/{key}/remotelink/{link_id}")
        except (httpx.HTTPError, JiraError) as e:
            logger.error("Failed to delete web link %s of %s: %s", link_id, key, e)
            return WebLinkResult(success=False, error=str(e))
        logger.info("Deleted web link %s of %s", link_id, key)
        return WebLinkResult(success=True, link_id=link_id)
