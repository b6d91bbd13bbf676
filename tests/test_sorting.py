from __future__ import annotations

from linear_issue_query.models import Issue
from linear_issue_query.sorting import due_instant, sort_issues


def _issue(identifier: str, due: str | None) -> Issue:
    return Issue(id=identifier.lower(), identifier=identifier, title=identifier, due_date=due)


def _dues(issues: list[Issue]) -> list[str | None]:
    return [issue.due_date for issue in issues]


def test_ascending_puts_missing_due_dates_last():
    issues = [_issue("A", None), _issue("B", "2025-01-01"), _issue("C", None), _issue("D", "2024-12-31")]

    result = sort_issues(issues, "asc")

    assert _dues(result) == ["2024-12-31", "2025-01-01", None, None]


def test_descending_puts_missing_due_dates_last():
    issues = [_issue("A", None), _issue("B", "2025-01-01"), _issue("C", None), _issue("D", "2024-12-31")]

    result = sort_issues(issues, "desc")

    assert _dues(result) == ["2025-01-01", "2024-12-31", None, None]


def test_sort_is_stable_for_equal_keys():
    issues = [
        _issue("A", "2025-01-01"),
        _issue("B", None),
        _issue("C", "2025-01-01"),
        _issue("D", None),
        _issue("E", "2025-01-01"),
    ]

    asc = sort_issues(issues, "asc")
    desc = sort_issues(issues, "desc")

    assert [i.identifier for i in asc] == ["A", "C", "E", "B", "D"]
    assert [i.identifier for i in desc] == ["A", "C", "E", "B", "D"]


def test_sort_does_not_change_membership():
    issues = [_issue("A", "2025-02-01"), _issue("B", None), _issue("C", "2025-01-01")]

    result = sort_issues(issues, "asc")

    assert sorted(i.identifier for i in result) == ["A", "B", "C"]
    assert [i.identifier for i in issues] == ["A", "B", "C"]


def test_due_instant_accepts_dates_and_instants():
    assert due_instant("2025-01-01") is not None
    assert due_instant("2025-01-01T10:00:00.000Z") > due_instant("2025-01-01")
    assert due_instant(None) is None
    assert due_instant("not-a-date") is None
