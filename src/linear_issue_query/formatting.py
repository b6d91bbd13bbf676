"""
Plain-dict projection of query results for tool output.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from .models import Issue, IssueQueryOptions
from .sorting import due_instant


def due_label(due_date: str | None, today: date | None = None) -> str:
    instant = due_instant(due_date)
    if instant is None:
        return "No due date"
    # Linear due dates are calendar days; compare the day as written.
    due_day = instant.date()
    today = today or date.today()
    if due_day == today:
        return "Due Today"
    if due_day == today + timedelta(days=1):
        return "Due Tomorrow"
    if due_day < today:
        return f"Overdue: {due_day.isoformat()}"
    return f"Due: {due_day.isoformat()}"


def issue_to_dict(
    issue: Issue, hide_description: bool = False, today: date | None = None
) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "url": issue.url,
        "state": issue.state.name if issue.state else None,
        "stateType": issue.state.type if issue.state else None,
        "team": issue.team.name if issue.team else None,
        "assignee": issue.assignee.name if issue.assignee else None,
        "assigneeEmail": issue.assignee.email if issue.assignee else None,
        "priority": issue.priority,
        "dueDate": issue.due_date,
        "dueLabel": due_label(issue.due_date, today),
    }
    if not hide_description and issue.description:
        result["description"] = issue.description
    return result


def empty_result_message(options: IssueQueryOptions) -> str:
    parts: list[str] = []
    if options.team_name:
        parts.append(f'team "{options.team_name}"')
    if options.status:
        parts.append(f'status "{options.status}"')
    if options.assignee_email:
        parts.append(f'assignee "{options.assignee_email}"')
    if options.sorting:
        parts.append(f"sorted by {options.sorting.field} {options.sorting.direction}")
    if not parts:
        return "No issues found"
    return f"No issues found for {' and '.join(parts)}"
