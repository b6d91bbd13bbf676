"""
Issue query service: resolves options, queries Linear, sorts the result.

One service per API key. Its team index and workflow-state cache live as long
as the service does and are never shared with another key.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from .dates import resolve_date_window
from .errors import DateParseFailure, LinearQueryError, QueryError
from .filters import ResolvedQuery, compose_filter, status_not_found, team_not_found
from .linear_client import LinearApiError
from .models import Issue, IssueQueryOptions, QueryResult, Team, WorkflowStatePage
from .sorting import sort_issues
from .teams import TeamResolver
from .workflow_states import StatusResolver, WorkflowStateCache

logger = logging.getLogger(__name__)


class LinearReadClient(Protocol):
    async def list_teams(self) -> list[Team]: ...

    async def list_workflow_states_page(self, cursor: str | None = None) -> WorkflowStatePage: ...

    async def list_issues(
        self, filter: dict[str, Any] | None = None, limit: int | None = None
    ) -> list[Issue]: ...

    async def get_issue_by_id(self, issue_id: str) -> Issue | None: ...


class IssueQueryService:
    """Facade over team/status/date resolution, filtering and sorting."""

    def __init__(
        self,
        client: LinearReadClient,
        teams: TeamResolver | None = None,
        workflow_states: WorkflowStateCache | None = None,
    ):
        self._client = client
        self._teams = teams or TeamResolver(client)
        self._workflow_states = workflow_states or WorkflowStateCache(client)
        self._statuses = StatusResolver(self._workflow_states)

    @property
    def workflow_states(self) -> WorkflowStateCache:
        return self._workflow_states

    async def _resolve(self, options: IssueQueryOptions) -> ResolvedQuery:
        resolved = ResolvedQuery(
            team_name=options.team_name,
            status_name=options.status,
            assignee_email=options.assignee_email,
        )

        if options.team_name:
            resolved.team_id = await self._teams.resolve(options.team_name)
            if resolved.team_id is None:
                raise team_not_found(options.team_name)
            logger.debug("Added team filter for %s", resolved.team_id)

        if options.status:
            state = await self._statuses.resolve(options.status, resolved.team_id)
            if state is None:
                raise status_not_found(options.status, options.team_name)
            resolved.state_id = state.id
            logger.debug("Added status filter for %s", resolved.state_id)

        due = options.due_date_filter
        if due is not None:
            if due.after:
                resolved.due_after = resolve_date_window(due.after)
                if resolved.due_after is None:
                    resolved.date_failures.append(DateParseFailure("dueAfter", due.after))
            if due.before:
                resolved.due_before = resolve_date_window(due.before)
                if resolved.due_before is None:
                    resolved.date_failures.append(DateParseFailure("dueBefore", due.before))

        return resolved

    async def run(self, options: IssueQueryOptions) -> QueryResult:
        """Never raises; failures come back as an empty result with a diagnostic."""
        logger.debug("Getting issues with options: %s", options)
        try:
            resolved = await self._resolve(options)
            issue_filter = compose_filter(resolved)
            logger.debug("Fetching issues with filter: %s", issue_filter)
            try:
                issues = await self._client.list_issues(issue_filter or None, options.limit)
            except LinearApiError as exc:
                raise QueryError("Failed to fetch Linear issues") from exc
        except LinearQueryError as exc:
            logger.info("Issue query aborted (%s): %s", exc.code, exc.message)
            return QueryResult(issues=[], diagnostic=exc.message)
        except Exception:
            logger.exception("Unexpected error while querying issues")
            return QueryResult(issues=[], diagnostic="Failed to fetch Linear issues")

        if options.sorting is not None and options.sorting.field == "date":
            issues = sort_issues(issues, options.sorting.direction)
            logger.debug("Sorted %d issues by due date (%s)", len(issues), options.sorting.direction)

        diagnostic = None
        if resolved.date_failures:
            diagnostic = "; ".join(failure.message for failure in resolved.date_failures)
        logger.debug("Found %d issues", len(issues))
        return QueryResult(issues=list(issues), diagnostic=diagnostic)

    async def resolve_issue_by_id(self, issue_id: str) -> Issue | None:
        logger.debug("Fetching issue by ID: %s", issue_id)
        try:
            issue = await self._client.get_issue_by_id(issue_id)
        except LinearApiError as exc:
            logger.warning("Failed to fetch Linear issue %s: %s", issue_id, exc)
            return None
        if issue is None:
            logger.debug("No issue found for ID: %s", issue_id)
        return issue

    async def resolve_issues_by_ids(self, ids: Iterable[str]) -> list[tuple[str, Issue | None]]:
        results: list[tuple[str, Issue | None]] = []
        for issue_id in ids:
            results.append((issue_id, await self.resolve_issue_by_id(issue_id)))
        return results

    async def refresh_workflow_states(self) -> dict[str, Any]:
        await self._workflow_states.refresh()
        return self._workflow_states.get_health()

    def get_health(self) -> dict[str, Any]:
        health: dict[str, Any] = {
            "teams": self._teams.get_health(),
            "workflowStates": self._workflow_states.get_health(),
        }
        client_health = getattr(self._client, "get_health", None)
        if callable(client_health):
            health["api"] = client_health()
        return health

    async def aclose(self) -> None:
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()
