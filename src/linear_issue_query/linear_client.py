"""
Async Linear GraphQL client.

Thin wrapper around ``httpx.AsyncClient`` exposing the handful of reads the
query service needs. Errors are normalized into ``LinearApiError`` so callers
can tell a transport failure from a GraphQL error.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from .models import Issue, Team, WorkflowState, WorkflowStatePage

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LINEAR_API_URL = "https://api.linear.app/graphql"
DEFAULT_TIMEOUT_SECONDS = 30.0
PAGE_SIZE = 100

TEAMS_QUERY = """
query Teams($first: Int!, $after: String) {
    teams(first: $first, after: $after) {
        nodes {
            id
            key
            name
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

WORKFLOW_STATES_QUERY = """
query WorkflowStates($first: Int!, $after: String) {
    workflowStates(first: $first, after: $after) {
        nodes {
            id
            name
            type
            team {
                id
                name
            }
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

ISSUE_FIELDS = """
    id
    identifier
    title
    description
    url
    dueDate
    priority
    createdAt
    updatedAt
    state {
        id
        name
        type
    }
    team {
        id
        name
    }
    assignee {
        id
        name
        email
    }
"""

ISSUES_QUERY = f"""
query Issues($first: Int, $filter: IssueFilter) {{
    issues(first: $first, filter: $filter) {{
        nodes {{{ISSUE_FIELDS}}}
    }}
}}
"""

ISSUE_QUERY = f"""
query Issue($id: String!) {{
    issue(id: $id) {{{ISSUE_FIELDS}}}
}}
"""


class LinearApiError(RuntimeError):
    """Raised when a Linear API call fails."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def remove_none_values(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class LinearApiClient:
    """Linear GraphQL reads for one API key."""

    def __init__(
        self,
        api_key: str | None,
        url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._url = url or os.getenv("LINEAR_API_URL", DEFAULT_LINEAR_API_URL)
        self._timeout_seconds = timeout_seconds or float(
            os.getenv("LINEAR_API_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        )
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

        self._request_count = 0
        self._failure_count = 0
        self._last_error: str | None = None
        self._last_failure_at: float | None = None

    def _ensure_http(self) -> httpx.AsyncClient:
        if not self._api_key:
            raise LinearApiError("not_configured", "Linear API key not configured")
        if self._http is None:
            self._http = httpx.AsyncClient(
                headers={"Authorization": self._api_key, "Content-Type": "application/json"},
                timeout=self._timeout_seconds,
                transport=self._transport,
            )
            logger.debug("Created Linear HTTP client for %s", self._url)
        return self._http

    def _record_failure(self, exc: Exception) -> None:
        self._failure_count += 1
        self._last_failure_at = time.time()
        self._last_error = f"{exc.__class__.__name__}: {exc}"
        logger.warning("Linear API call failed (%s): %s", exc.__class__.__name__, exc)

    def _bad_response(self, message: str) -> LinearApiError:
        exc = LinearApiError("bad_response", message)
        self._record_failure(exc)
        return exc

    def _parse_nodes(self, nodes: Any, parse: Callable[[Any], T], what: str) -> list[T]:
        try:
            return [parse(node) for node in nodes]
        except (KeyError, TypeError, AttributeError) as exc:
            raise self._bad_response(f"Malformed {what} in Linear API response: {exc!r}") from exc

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one GraphQL request and return its ``data`` object."""
        http = self._ensure_http()
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = remove_none_values(variables)

        self._request_count += 1
        try:
            response = await http.post(self._url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._record_failure(exc)
            raise LinearApiError("api_unavailable", f"Linear API request failed: {exc}") from exc

        if not isinstance(body, dict):
            body = {}
        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            message = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
            )
            exc = LinearApiError("api_error", message or "Linear API returned an error")
            self._record_failure(exc)
            raise exc

        data = body.get("data")
        if not isinstance(data, dict):
            raise self._bad_response("Linear API response has no data")
        return data

    async def list_teams(self) -> list[Team]:
        teams: list[Team] = []
        cursor: str | None = None
        while True:
            data = await self.execute(TEAMS_QUERY, {"first": PAGE_SIZE, "after": cursor})
            connection = data.get("teams") or {}
            if not isinstance(connection, dict):
                raise self._bad_response("Malformed teams in Linear API response")
            teams.extend(self._parse_nodes(connection.get("nodes") or [], Team.from_node, "teams"))
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
            if not cursor:
                raise self._bad_response("Teams page has hasNextPage without endCursor")
        logger.debug("Fetched %d teams", len(teams))
        return teams

    async def list_workflow_states_page(self, cursor: str | None = None) -> WorkflowStatePage:
        data = await self.execute(WORKFLOW_STATES_QUERY, {"first": PAGE_SIZE, "after": cursor})
        connection = data.get("workflowStates")
        if not isinstance(connection, dict) or connection.get("nodes") is None:
            raise self._bad_response("No workflow states returned from query")
        page_info = connection.get("pageInfo") or {}
        return WorkflowStatePage(
            nodes=self._parse_nodes(connection["nodes"], WorkflowState.from_node, "workflow states"),
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        )

    async def list_issues(
        self, filter: dict[str, Any] | None = None, limit: int | None = None
    ) -> list[Issue]:
        data = await self.execute(ISSUES_QUERY, {"first": limit, "filter": filter or None})
        connection = data.get("issues") or {}
        if not isinstance(connection, dict):
            raise self._bad_response("Malformed issues in Linear API response")
        return self._parse_nodes(connection.get("nodes") or [], Issue.from_node, "issues")

    async def get_issue_by_id(self, issue_id: str) -> Issue | None:
        data = await self.execute(ISSUE_QUERY, {"id": issue_id})
        node = data.get("issue")
        if not node:
            return None
        return self._parse_nodes([node], Issue.from_node, "issue")[0]

    def get_health(self) -> dict[str, Any]:
        return {
            "url": self._url,
            "hasApiKey": bool(self._api_key),
            "connected": self._http is not None,
            "requestCount": self._request_count,
            "failureCount": self._failure_count,
            "lastError": self._last_error,
            "lastFailureAt": self._last_failure_at,
        }

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
