"""
Due-date token resolution into one-day UTC windows.

A token names a local calendar day; the window spans local midnight to the
next local midnight, expressed as UTC instants.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone

import dateparser

from .models import DateWindow

logger = logging.getLogger(__name__)

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def _to_utc_iso(day: date) -> str:
    # Naive combine + astimezone() uses the system zone, DST included.
    local_midnight = datetime.combine(day, time.min).astimezone()
    return local_midnight.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def day_window(day: date) -> DateWindow:
    return DateWindow(start=_to_utc_iso(day), end=_to_utc_iso(day + timedelta(days=1)))


def _parse_natural(token: str) -> date | None:
    try:
        parsed = dateparser.parse(token)
    except (ValueError, OverflowError, TypeError) as exc:
        logger.debug("dateparser rejected %r: %s", token, exc)
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def parse_day(token: str, today: date | None = None) -> date | None:
    """Resolve a token to the local calendar day it names, or None."""
    cleaned = token.strip()
    if not cleaned:
        return None

    lowered = cleaned.lower()
    if lowered in _RELATIVE_DAYS:
        base = today or date.today()
        return base + timedelta(days=_RELATIVE_DAYS[lowered])

    if _ISO_DAY.match(cleaned):
        try:
            return date.fromisoformat(cleaned)
        except ValueError:
            return None

    return _parse_natural(cleaned)


def resolve_date_window(token: str, today: date | None = None) -> DateWindow | None:
    """Map ``today``/``tomorrow``/``yesterday``, ``YYYY-MM-DD`` or free text to a day window.

    Returns None when the token is unparseable.
    """
    day = parse_day(token, today=today)
    if day is None:
        logger.debug("Unparseable date token %r", token)
        return None
    window = day_window(day)
    logger.debug("Resolved date token %r to %s", token, window)
    return window
