"""
Structured query options to ``IssueQueryOptions``.

Input is the already-parsed option mapping of a query block or tool call.
Invalid values are dropped rather than rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .models import DateFilter, IssueQueryOptions, SortSpec

logger = logging.getLogger(__name__)

SORTING_VALUES: dict[str, SortSpec] = {
    "date": SortSpec(direction="desc"),
    "datedescending": SortSpec(direction="desc"),
    "dateascending": SortSpec(direction="asc"),
}


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _collect_ids(raw: Mapping[str, Any]) -> list[str]:
    ids: list[str] = []
    single = _non_empty_str(raw.get("id"))
    if single:
        ids.append(single)
    many = raw.get("ids")
    if isinstance(many, str):
        many = many.split(",")
    if isinstance(many, (list, tuple)):
        for item in many:
            value = _non_empty_str(item)
            if value and value not in ids:
                ids.append(value)
    return ids


def parse_options(raw: Mapping[str, Any] | None) -> IssueQueryOptions:
    options = IssueQueryOptions()
    if not raw:
        return options

    options.limit = _positive_int(raw.get("limit"))
    options.team_name = _non_empty_str(raw.get("team"))
    options.status = _non_empty_str(raw.get("status"))
    options.assignee_email = _non_empty_str(raw.get("assignee"))
    options.integration = _non_empty_str(raw.get("integration"))

    after = _non_empty_str(raw.get("dueAfter"))
    before = _non_empty_str(raw.get("dueBefore"))
    if after or before:
        options.due_date_filter = DateFilter(before=before, after=after)

    sorting = raw.get("sorting")
    if isinstance(sorting, str):
        options.sorting = SORTING_VALUES.get(sorting.strip().lower())
        if options.sorting is None:
            logger.debug("Ignoring unknown sorting value %r", sorting)

    options.hide_description = raw.get("hideDescription") is True
    options.ids = _collect_ids(raw)

    logger.debug("Final parsed options: %s", options)
    return options
