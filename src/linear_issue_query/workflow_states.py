"""
Workflow state cache with TTL-based expiry, and status name resolution.

The full workflow-state set is fetched page by page and cached in memory for
5 minutes. Concurrent readers during a fetch share the same in-flight task.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from .errors import ResolutionError
from .linear_client import LinearApiError
from .models import WorkflowState, WorkflowStatePage

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 300  # 5 minutes

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class WorkflowStateSource(Protocol):
    async def list_workflow_states_page(self, cursor: str | None = None) -> WorkflowStatePage: ...


@dataclass
class WorkflowStateCacheEntry:
    """One complete fetch of workflow states."""

    fetched_at: float
    states: list[WorkflowState] = field(default_factory=list)

    def is_expired(self, now: float) -> bool:
        return now - self.fetched_at >= CACHE_TTL_SECONDS


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks the failure as seen when every waiter was cancelled; it is logged in _fetch_all.
    if not task.cancelled():
        task.exception()


class WorkflowStateCache:
    """
    TTL cache of every workflow state visible to one API key.

    Entries are replaced wholesale; a failed fetch leaves the previous entry
    in place but still raises, so callers never silently get stale data.
    """

    def __init__(self, client: WorkflowStateSource, clock: Callable[[], float] = time.time):
        self._client = client
        self._clock = clock
        self._entry: WorkflowStateCacheEntry | None = None
        self._inflight: asyncio.Task[list[WorkflowState]] | None = None
        self._fetch_count = 0
        self._last_error: str | None = None
        self._last_error_at: float | None = None

    def is_fresh(self) -> bool:
        return self._entry is not None and not self._entry.is_expired(self._clock())

    async def get_all(self) -> list[WorkflowState]:
        entry = self._entry
        if entry is not None and not entry.is_expired(self._clock()):
            logger.debug("Using cached workflow states")
            return list(entry.states)
        return list(await self._join_fetch())

    async def refresh(self) -> list[WorkflowState]:
        """Fetch now regardless of freshness."""
        return list(await self._join_fetch())

    async def _join_fetch(self) -> list[WorkflowState]:
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._fetch_all())
            self._inflight.add_done_callback(_retrieve_exception)
        # Shielded so one cancelled waiter does not cancel the shared fetch.
        return await asyncio.shield(self._inflight)

    async def _fetch_all(self) -> list[WorkflowState]:
        try:
            logger.debug("Fetching workflow states...")
            states: list[WorkflowState] = []
            cursor: str | None = None
            while True:
                page = await self._client.list_workflow_states_page(cursor)
                states.extend(page.nodes)
                logger.debug(
                    "Fetched %d workflow states%s",
                    len(page.nodes),
                    ", fetching more..." if page.has_next_page else "",
                )
                if not page.has_next_page:
                    break
                if not page.end_cursor:
                    raise LinearApiError(
                        "bad_response", "Workflow states page has hasNextPage without endCursor"
                    )
                cursor = page.end_cursor

            self._entry = WorkflowStateCacheEntry(fetched_at=self._clock(), states=states)
            self._fetch_count += 1
            self._last_error = None
            logger.info("Workflow state cache refreshed with %d states", len(states))
            return states
        except LinearApiError as exc:
            self._last_error = f"{exc.code}: {exc.message}"
            self._last_error_at = self._clock()
            logger.warning("Error fetching workflow states: %s", exc)
            raise ResolutionError("Failed to fetch workflow states") from exc
        finally:
            self._inflight = None

    def get_health(self) -> dict[str, Any]:
        entry = self._entry
        return {
            "fresh": self.is_fresh(),
            "fetching": self._inflight is not None,
            "loadedAt": entry.fetched_at if entry else None,
            "stateCount": len(entry.states) if entry else 0,
            "ttlSeconds": CACHE_TTL_SECONDS,
            "fetchCount": self._fetch_count,
            "lastError": self._last_error,
            "lastErrorAt": self._last_error_at,
        }


def normalize_state_name(name: str) -> str:
    """``"In Progress"``, ``"in-progress"`` and ``"INPROGRESS"`` all become ``"inprogress"``."""
    return _NON_ALNUM.sub("", name.lower())


class StatusResolver:
    """Matches a status name against cached workflow states."""

    def __init__(self, cache: WorkflowStateCache):
        self._cache = cache

    async def resolve(self, status_name: str, team_id: str | None = None) -> WorkflowState | None:
        """
        Return the first state, in fetch order, whose normalized name matches.

        When ``team_id`` is given, a state matches only if it belongs to that
        team or to no team at all. Duplicate names in the same scope resolve
        to whichever the API listed first.
        """
        scope = f" in team ID: {team_id}" if team_id else ""
        logger.debug('Looking for status: "%s"%s', status_name, scope)

        wanted = normalize_state_name(status_name)
        for state in await self._cache.get_all():
            if normalize_state_name(state.name) != wanted:
                continue
            if team_id and state.team is not None and state.team.id != team_id:
                continue
            logger.debug('Found matching state: "%s" (%s)', state.name, state.id)
            return state

        logger.debug('No matching state found for "%s"', status_name)
        return None
