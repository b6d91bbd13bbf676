"""
MCP server exposing Linear issue queries by team, status, assignee and due date.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import Settings, load_settings
from .errors import LinearQueryError
from .formatting import empty_result_message, issue_to_dict
from .linear_client import LinearApiClient
from .options import parse_options
from .service import IssueQueryService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Close every per-integration HTTP client on shutdown."""
    try:
        yield
    finally:
        await close_services()


mcp = FastMCP(
    "Linear Issue Query",
    instructions=(
        "Query Linear issues by team name, status name, assignee email and due "
        "date (today, tomorrow, yesterday, YYYY-MM-DD or natural language). "
        "Team and status names are resolved to IDs and cached per integration."
    ),
    lifespan=_lifespan,
)

_settings: Settings | None = None
_services: dict[str, IssueQueryService] = {}


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_service(integration: str | None = None) -> tuple[IssueQueryService | None, str | None]:
    """Return the service for an integration, or a diagnostic explaining why there is none."""
    settings = get_settings()
    name, configured = settings.integration_for(integration)
    if configured is None:
        return None, f'Integration "{name}" not found.'
    if not configured.api_key:
        return None, f'API key for integration "{name}" is not configured.'

    service = _services.get(name)
    if service is None:
        client = LinearApiClient(
            configured.api_key,
            url=settings.api_url,
            timeout_seconds=settings.timeout_seconds,
        )
        service = IssueQueryService(client)
        _services[name] = service
        logger.debug("Created issue query service for integration %s", name)
    return service, None


async def close_services() -> None:
    while _services:
        name, service = _services.popitem()
        try:
            await service.aclose()
        except Exception as exc:
            logger.warning("Closing integration %s failed: %s", name, exc)


@mcp.tool()
async def query_issues(
    team: str | None = None,
    status: str | None = None,
    assignee: str | None = None,
    dueAfter: str | None = None,
    dueBefore: str | None = None,
    sorting: str | None = None,
    limit: int | None = None,
    hideDescription: bool = False,
    id: str | None = None,
    ids: list[str] | None = None,
    integration: str | None = None,
) -> dict[str, Any]:
    """Query issues with name-based filters, or fetch specific issues by ID.

    Args:
        team: Team name (case-insensitive exact match).
        status: Workflow state name. Case, spaces and punctuation are ignored,
            so "In Progress", "in-progress" and "INPROGRESS" are equivalent.
        assignee: Assignee email.
        dueAfter: Due on or after this day.
        dueBefore: Due before this day (the day itself is excluded).
        sorting: "dateascending" or "datedescending". Issues without a due date go last.
        limit: Max issues to request.
        hideDescription: Omit issue descriptions from the output.
        id: Single issue ID or identifier; bypasses filtering.
        ids: Issue IDs or identifiers; bypasses filtering, order preserved.
        integration: Named integration (API key) to use. Defaults to the configured default.

    Returns:
        dict with "issues", "totalCount", and optionally "diagnostic" and "message".
    """
    options = parse_options(
        {
            "team": team,
            "status": status,
            "assignee": assignee,
            "dueAfter": dueAfter,
            "dueBefore": dueBefore,
            "sorting": sorting,
            "limit": limit,
            "hideDescription": hideDescription,
            "id": id,
            "ids": ids,
            "integration": integration,
        }
    )
    service, problem = get_service(options.integration)
    if service is None:
        return {"issues": [], "totalCount": 0, "diagnostic": problem}

    today = date.today()
    if options.ids:
        pairs = await service.resolve_issues_by_ids(options.ids)
        found = [issue for _, issue in pairs if issue is not None]
        result: dict[str, Any] = {
            "issues": [issue_to_dict(i, options.hide_description, today) for i in found],
            "totalCount": len(found),
        }
        missing = [issue_id for issue_id, issue in pairs if issue is None]
        if missing:
            result["diagnostic"] = f"No Linear issue found for ID: {', '.join(missing)}"
        return result

    outcome = await service.run(options)
    result = {
        "issues": [issue_to_dict(i, options.hide_description, today) for i in outcome.issues],
        "totalCount": len(outcome.issues),
    }
    if outcome.diagnostic:
        result["diagnostic"] = outcome.diagnostic
    if not outcome.issues:
        result["message"] = empty_result_message(options)
    return result


@mcp.tool()
async def get_issue(id: str, integration: str | None = None) -> dict[str, Any] | None:
    """Retrieve one issue by ID or identifier (e.g., "ENG-123").

    Returns:
        Issue dict or None if not found.
    """
    service, problem = get_service(integration)
    if service is None:
        logger.warning("get_issue unavailable: %s", problem)
        return None
    issue = await service.resolve_issue_by_id(id)
    return issue_to_dict(issue) if issue else None


@mcp.tool()
async def get_issues(ids: list[str], integration: str | None = None) -> list[dict[str, Any]]:
    """Retrieve several issues by ID, preserving input order.

    Returns:
        List of {id, issue} where issue is None when not found.
    """
    service, problem = get_service(integration)
    if service is None:
        logger.warning("get_issues unavailable: %s", problem)
        return [{"id": issue_id, "issue": None} for issue_id in ids]
    today = date.today()
    pairs = await service.resolve_issues_by_ids(ids)
    return [
        {"id": issue_id, "issue": issue_to_dict(issue, today=today) if issue else None}
        for issue_id, issue in pairs
    ]


@mcp.tool()
async def refresh_workflow_states(integration: str | None = None) -> dict[str, Any]:
    """Force a reload of the workflow-state cache and return its health."""
    service, problem = get_service(integration)
    if service is None:
        return {"error": problem}
    try:
        return await service.refresh_workflow_states()
    except LinearQueryError as exc:
        return {"error": exc.message, **service.workflow_states.get_health()}


@mcp.tool()
async def get_cache_health(integration: str | None = None) -> dict[str, Any]:
    """Return team index, workflow-state cache and API client health."""
    service, problem = get_service(integration)
    if service is None:
        return {"error": problem}
    return service.get_health()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=logging.INFO)
    if settings.debug:
        logging.getLogger("linear_issue_query").setLevel(logging.DEBUG)
    mcp.run()
