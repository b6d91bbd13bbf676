"""
Due-date ordering of fetched issues.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from .models import Issue, SortDirection

logger = logging.getLogger(__name__)


def due_instant(value: str | None) -> datetime | None:
    """Parse a due date (``YYYY-MM-DD`` or full ISO instant) into an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable due date %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_issues(issues: Iterable[Issue], direction: SortDirection = "desc") -> list[Issue]:
    """
    Stable sort by due date; issues without one always go last.

    Equal dates keep their fetch order in both directions.
    """
    dated: list[tuple[datetime, Issue]] = []
    undated: list[Issue] = []
    for issue in issues:
        instant = due_instant(issue.due_date)
        if instant is None:
            undated.append(issue)
        else:
            dated.append((instant, issue))

    # sorted() stays stable with reverse=True.
    dated.sort(key=lambda pair: pair[0], reverse=direction == "desc")
    return [issue for _, issue in dated] + undated
