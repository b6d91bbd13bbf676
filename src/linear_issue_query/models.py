"""
Data model for Linear issue queries.

Remote nodes arrive as GraphQL dicts; the ``from_node`` constructors tolerate
missing optional fields the same way the API omits them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class TeamRef:
    id: str
    name: str

    @classmethod
    def from_node(cls, node: dict[str, Any] | None) -> TeamRef | None:
        if not node:
            return None
        return cls(id=str(node["id"]), name=str(node.get("name") or ""))


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    key: str | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Team:
        return cls(id=str(node["id"]), name=str(node.get("name") or ""), key=node.get("key"))


@dataclass(frozen=True)
class WorkflowState:
    """A named status value, global when ``team`` is None."""

    id: str
    name: str
    type: str
    team: TeamRef | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> WorkflowState:
        return cls(
            id=str(node["id"]),
            name=str(node.get("name") or ""),
            type=str(node.get("type") or ""),
            team=TeamRef.from_node(node.get("team")),
        )


@dataclass(frozen=True)
class WorkflowStatePage:
    nodes: list[WorkflowState]
    has_next_page: bool
    end_cursor: str | None


@dataclass(frozen=True)
class StateRef:
    id: str
    name: str
    type: str | None = None


@dataclass(frozen=True)
class UserRef:
    id: str
    name: str
    email: str | None = None


@dataclass(frozen=True)
class Issue:
    id: str
    identifier: str
    title: str
    description: str | None = None
    url: str | None = None
    due_date: str | None = None
    priority: int | None = None
    state: StateRef | None = None
    team: TeamRef | None = None
    assignee: UserRef | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Issue:
        state = node.get("state")
        assignee = node.get("assignee")
        return cls(
            id=str(node["id"]),
            identifier=str(node.get("identifier") or ""),
            title=str(node.get("title") or ""),
            description=node.get("description"),
            url=node.get("url"),
            due_date=node.get("dueDate"),
            priority=node.get("priority"),
            state=(
                StateRef(id=str(state["id"]), name=str(state.get("name") or ""), type=state.get("type"))
                if state
                else None
            ),
            team=TeamRef.from_node(node.get("team")),
            assignee=(
                UserRef(id=str(assignee["id"]), name=str(assignee.get("name") or ""), email=assignee.get("email"))
                if assignee
                else None
            ),
            created_at=node.get("createdAt"),
            updated_at=node.get("updatedAt"),
        )


@dataclass(frozen=True)
class DateFilter:
    """Raw due-date tokens; resolved into windows per query."""

    before: str | None = None
    after: str | None = None


@dataclass(frozen=True)
class SortSpec:
    field: Literal["date"] = "date"
    direction: SortDirection = "desc"


@dataclass
class IssueQueryOptions:
    limit: int | None = None
    team_name: str | None = None
    status: str | None = None
    assignee_email: str | None = None
    due_date_filter: DateFilter | None = None
    sorting: SortSpec | None = None
    hide_description: bool = False
    integration: str | None = None
    ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DateWindow:
    """Half-open ``[start, end)`` interval of one local calendar day, as UTC ISO instants."""

    start: str
    end: str


@dataclass
class QueryResult:
    issues: list[Issue] = field(default_factory=list)
    diagnostic: str | None = None
