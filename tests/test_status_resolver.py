from __future__ import annotations

import asyncio

import pytest

from linear_issue_query.errors import ResolutionError
from linear_issue_query.linear_client import LinearApiError
from linear_issue_query.models import TeamRef, WorkflowState, WorkflowStatePage
from linear_issue_query.workflow_states import (
    StatusResolver,
    WorkflowStateCache,
    normalize_state_name,
)

T1 = TeamRef(id="T1", name="Engineering")
T2 = TeamRef(id="T2", name="Design")


class FakeStateClient:
    def __init__(self, states: list[WorkflowState]):
        self.states = states
        self.calls = 0
        self.exception: Exception | None = None

    async def list_workflow_states_page(self, cursor: str | None = None) -> WorkflowStatePage:
        self.calls += 1
        if self.exception is not None:
            raise self.exception
        return WorkflowStatePage(nodes=self.states, has_next_page=False, end_cursor=None)


def _resolver(states: list[WorkflowState]) -> tuple[StatusResolver, FakeStateClient]:
    client = FakeStateClient(states)
    return StatusResolver(WorkflowStateCache(client)), client


def test_normalization_strips_case_and_punctuation():
    assert normalize_state_name("In Progress") == "inprogress"
    assert normalize_state_name("in-progress") == "inprogress"
    assert normalize_state_name("INPROGRESS") == "inprogress"
    assert normalize_state_name("Won't Fix!") == "wontfix"


def test_team_scoped_match_ignores_other_teams():
    other = WorkflowState(id="S2", name="In Progress", type="started", team=T2)
    mine = WorkflowState(id="S1", name="In Progress", type="started", team=T1)
    resolver, _ = _resolver([other, mine])

    state = asyncio.run(resolver.resolve("in-progress", team_id="T1"))

    assert state is mine


def test_team_scoped_query_accepts_global_state():
    other = WorkflowState(id="S2", name="Triage", type="triage", team=T2)
    global_state = WorkflowState(id="G1", name="Triage", type="triage", team=None)
    resolver, _ = _resolver([other, global_state])

    state = asyncio.run(resolver.resolve("triage", team_id="T1"))

    assert state is global_state


def test_team_scoped_query_misses_when_only_other_team_has_it():
    resolver, _ = _resolver([WorkflowState(id="S2", name="In Progress", type="started", team=T2)])

    assert asyncio.run(resolver.resolve("In Progress", team_id="T1")) is None


def test_unscoped_query_takes_first_in_fetch_order():
    first = WorkflowState(id="S2", name="Done", type="completed", team=T2)
    second = WorkflowState(id="S1", name="Done", type="completed", team=T1)
    resolver, _ = _resolver([first, second])

    assert asyncio.run(resolver.resolve("done")) is first


def test_duplicate_names_in_same_scope_resolve_to_first_listed():
    first = WorkflowState(id="S1", name="Done", type="completed", team=T1)
    second = WorkflowState(id="S9", name="DONE", type="completed", team=T1)
    resolver, _ = _resolver([first, second])

    assert asyncio.run(resolver.resolve("Done", team_id="T1")).id == "S1"


def test_unknown_status_returns_none():
    resolver, _ = _resolver([WorkflowState(id="S1", name="Done", type="completed", team=T1)])

    assert asyncio.run(resolver.resolve("Shipped")) is None


def test_lookups_share_the_cache():
    resolver, client = _resolver([WorkflowState(id="S1", name="Done", type="completed", team=T1)])

    asyncio.run(resolver.resolve("Done"))
    asyncio.run(resolver.resolve("Todo"))

    assert client.calls == 1


def test_fetch_failure_propagates():
    resolver, client = _resolver([])
    client.exception = LinearApiError("api_unavailable", "offline")

    with pytest.raises(ResolutionError):
        asyncio.run(resolver.resolve("Done"))
