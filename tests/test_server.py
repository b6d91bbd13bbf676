from __future__ import annotations

import asyncio
from typing import Any

import pytest

import linear_issue_query
from linear_issue_query import server
from linear_issue_query.config import Integration, Settings
from linear_issue_query.models import Issue, IssueQueryOptions, QueryResult


class FakeService:
    def __init__(self, result: QueryResult | None = None):
        self.result = result or QueryResult()
        self.runs: list[IssueQueryOptions] = []
        self.issues: dict[str, Issue] = {}
        self.closed = False

    async def run(self, options: IssueQueryOptions) -> QueryResult:
        self.runs.append(options)
        return self.result

    async def resolve_issues_by_ids(self, ids):
        return [(issue_id, self.issues.get(issue_id)) for issue_id in ids]

    async def resolve_issue_by_id(self, issue_id: str) -> Issue | None:
        return self.issues.get(issue_id)

    def get_health(self) -> dict[str, Any]:
        return {"ok": True}

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_service(monkeypatch: pytest.MonkeyPatch) -> FakeService:
    service = FakeService()
    settings = Settings(
        integrations={
            "default": Integration(name="default", api_key="key"),
            "nokey": Integration(name="nokey", api_key=""),
        }
    )
    monkeypatch.setattr(server, "_settings", settings)
    monkeypatch.setattr(server, "_services", {"default": service})
    return service


def test_query_issues_passes_parsed_options(fake_service: FakeService):
    result = asyncio.run(server.query_issues(team="Engineering", sorting="dateascending", limit=5))

    options = fake_service.runs[0]
    assert options.team_name == "Engineering"
    assert options.sorting.direction == "asc"
    assert options.limit == 5
    assert result["totalCount"] == 0
    assert result["message"] == 'No issues found for team "Engineering" and sorted by date asc'


def test_query_issues_surfaces_diagnostic(fake_service: FakeService):
    fake_service.result = QueryResult(issues=[], diagnostic='Team "Ghost Team" not found')

    result = asyncio.run(server.query_issues(team="Ghost Team"))

    assert result["issues"] == []
    assert "Ghost Team" in result["diagnostic"]


def test_query_issues_by_ids_bypasses_filtering(fake_service: FakeService):
    fake_service.issues["ENG-1"] = Issue(id="i1", identifier="ENG-1", title="One", description="d")

    result = asyncio.run(server.query_issues(ids=["ENG-1", "ENG-2"], hideDescription=True))

    assert fake_service.runs == []
    assert [i["identifier"] for i in result["issues"]] == ["ENG-1"]
    assert "description" not in result["issues"][0]
    assert result["diagnostic"] == "No Linear issue found for ID: ENG-2"


def test_unknown_integration_is_reported(fake_service: FakeService):
    result = asyncio.run(server.query_issues(team="Engineering", integration="other"))

    assert result["diagnostic"] == 'Integration "other" not found.'
    assert fake_service.runs == []


def test_integration_without_key_is_reported(fake_service: FakeService):
    result = asyncio.run(server.query_issues(integration="nokey"))

    assert result["diagnostic"] == 'API key for integration "nokey" is not configured.'


def test_get_issues_preserves_order(fake_service: FakeService):
    fake_service.issues["ENG-2"] = Issue(id="i2", identifier="ENG-2", title="Two")

    result = asyncio.run(server.get_issues(["ENG-1", "ENG-2"]))

    assert [entry["id"] for entry in result] == ["ENG-1", "ENG-2"]
    assert result[0]["issue"] is None
    assert result[1]["issue"]["title"] == "Two"


def test_close_services_closes_and_clears(fake_service: FakeService):
    asyncio.run(server.close_services())

    assert fake_service.closed is True
    assert server._services == {}


def test_get_service_creates_one_service_per_integration(monkeypatch: pytest.MonkeyPatch):
    settings = Settings(integrations={"work": Integration(name="work", api_key="key-w")})
    monkeypatch.setattr(server, "_settings", settings)
    monkeypatch.setattr(server, "_services", {})

    first, problem = server.get_service("work")
    second, _ = server.get_service("work")

    assert problem is None
    assert first is second


def test_package_does_not_reexport_server_entry_point():
    assert not hasattr(linear_issue_query, "main")
    assert callable(server.main)
