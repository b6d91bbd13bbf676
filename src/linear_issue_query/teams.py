"""
Team name to team ID resolution.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .errors import ResolutionError
from .linear_client import LinearApiError
from .models import Team

logger = logging.getLogger(__name__)


class TeamSource(Protocol):
    async def list_teams(self) -> list[Team]: ...


def normalize_team_name(name: str) -> str:
    return name.lower()


class TeamResolver:
    """
    Resolves team names through a lowercased name -> ID index.

    The index only grows: a miss triggers one full listing and every team in
    it is indexed, so later lookups for other teams are free.
    """

    def __init__(self, client: TeamSource):
        self._client = client
        self._index: dict[str, str] = {}
        self._fetch_count = 0

    def _index_teams(self, teams: list[Team]) -> None:
        for team in teams:
            # First team listed under a name keeps it.
            self._index.setdefault(normalize_team_name(team.name), team.id)

    async def resolve(self, name: str) -> str | None:
        key = normalize_team_name(name)
        cached = self._index.get(key)
        if cached is not None:
            logger.debug('Found team "%s" in cache with ID: %s', name, cached)
            return cached

        logger.debug('Team "%s" not cached, fetching teams', name)
        try:
            teams = await self._client.list_teams()
        except LinearApiError as exc:
            raise ResolutionError("Failed to fetch teams") from exc
        self._fetch_count += 1
        self._index_teams(teams)

        team_id = self._index.get(key)
        if team_id is None:
            logger.debug('Team "%s" not found', name)
        else:
            logger.debug('Found team "%s" with ID: %s', name, team_id)
        return team_id

    def get_health(self) -> dict[str, Any]:
        return {"indexedTeams": len(self._index), "fetchCount": self._fetch_count}
