"""
Composition of the Linear ``IssueFilter`` from resolved query pieces.

Each dimension has its own clause builder. A builder returns a
``(key, clause)`` pair, returns None when the dimension was not requested, or
raises ``ResolutionNotFound`` to abort the whole query. Adding a dimension is
adding a builder to ``CLAUSE_BUILDERS``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import reduce
from typing import Any

from .errors import DateParseFailure, ResolutionNotFound
from .models import DateWindow

Clause = tuple[str, dict[str, Any]]
ClauseBuilder = Callable[["ResolvedQuery"], "Clause | None"]


@dataclass
class ResolvedQuery:
    """What was asked for, next to what it resolved to."""

    team_name: str | None = None
    team_id: str | None = None
    status_name: str | None = None
    state_id: str | None = None
    assignee_email: str | None = None
    due_after: DateWindow | None = None
    due_before: DateWindow | None = None
    date_failures: list[DateParseFailure] = field(default_factory=list)


def team_not_found(team_name: str) -> ResolutionNotFound:
    return ResolutionNotFound(f'Team "{team_name}" not found', code="team_not_found")


def status_not_found(status_name: str, team_name: str | None) -> ResolutionNotFound:
    scope = f' for team "{team_name}"' if team_name else ""
    return ResolutionNotFound(f'Status "{status_name}" not found{scope}', code="status_not_found")


def team_clause(resolved: ResolvedQuery) -> Clause | None:
    if not resolved.team_name:
        return None
    if resolved.team_id is None:
        raise team_not_found(resolved.team_name)
    return "team", {"id": {"eq": resolved.team_id}}


def status_clause(resolved: ResolvedQuery) -> Clause | None:
    if not resolved.status_name:
        return None
    if resolved.state_id is None:
        raise status_not_found(resolved.status_name, resolved.team_name)
    return "state", {"id": {"eq": resolved.state_id}}


def assignee_clause(resolved: ResolvedQuery) -> Clause | None:
    if not resolved.assignee_email:
        return None
    return "assignee", {"email": {"eq": resolved.assignee_email}}


def due_date_clause(resolved: ResolvedQuery) -> Clause | None:
    # "before" bounds at the start of that day, not the end.
    bounds: dict[str, Any] = {}
    if resolved.due_after is not None:
        bounds["gte"] = resolved.due_after.start
    if resolved.due_before is not None:
        bounds["lt"] = resolved.due_before.start
    if not bounds:
        return None
    return "dueDate", bounds


CLAUSE_BUILDERS: tuple[ClauseBuilder, ...] = (
    team_clause,
    status_clause,
    assignee_clause,
    due_date_clause,
)


def compose_filter(
    resolved: ResolvedQuery,
    builders: tuple[ClauseBuilder, ...] = CLAUSE_BUILDERS,
) -> dict[str, Any]:
    """Fold the clause builders into one filter dict; empty when nothing was requested."""

    def _apply(acc: dict[str, Any], builder: ClauseBuilder) -> dict[str, Any]:
        clause = builder(resolved)
        if clause is None:
            return acc
        key, value = clause
        return {**acc, key: value}

    return reduce(_apply, builders, {})
