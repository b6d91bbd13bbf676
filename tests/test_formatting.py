from __future__ import annotations

from datetime import date

from linear_issue_query.formatting import due_label, empty_result_message, issue_to_dict
from linear_issue_query.models import Issue, IssueQueryOptions, SortSpec, StateRef, UserRef

TODAY = date(2025, 3, 10)


def test_due_labels():
    assert due_label("2025-03-10", TODAY) == "Due Today"
    assert due_label("2025-03-11", TODAY) == "Due Tomorrow"
    assert due_label("2025-03-01", TODAY) == "Overdue: 2025-03-01"
    assert due_label("2025-04-01", TODAY) == "Due: 2025-04-01"
    assert due_label(None, TODAY) == "No due date"


def test_issue_to_dict_hides_description():
    issue = Issue(
        id="i1",
        identifier="ENG-1",
        title="Fix it",
        description="Details",
        state=StateRef(id="S1", name="Done", type="completed"),
        assignee=UserRef(id="U1", name="Dev", email="dev@example.com"),
        due_date="2025-03-11",
    )

    shown = issue_to_dict(issue, today=TODAY)
    hidden = issue_to_dict(issue, hide_description=True, today=TODAY)

    assert shown["description"] == "Details"
    assert "description" not in hidden
    assert shown["state"] == "Done"
    assert shown["assigneeEmail"] == "dev@example.com"
    assert shown["dueLabel"] == "Due Tomorrow"


def test_empty_result_message_lists_filters():
    options = IssueQueryOptions(
        team_name="Engineering",
        status="Done",
        assignee_email="dev@example.com",
        sorting=SortSpec(direction="asc"),
    )

    assert empty_result_message(options) == (
        'No issues found for team "Engineering" and status "Done" and '
        'assignee "dev@example.com" and sorted by date asc'
    )
    assert empty_result_message(IssueQueryOptions()) == "No issues found"
