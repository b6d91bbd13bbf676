"""
Environment-driven settings.

``LINEAR_API_KEY`` configures the ``default`` integration; ``LINEAR_INTEGRATIONS``
adds named ones as a JSON object of ``{name: api_key}``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field

from .linear_client import DEFAULT_LINEAR_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_INTEGRATION_NAME = "default"


@dataclass(frozen=True)
class Integration:
    name: str
    api_key: str


@dataclass
class Settings:
    integrations: dict[str, Integration] = field(default_factory=dict)
    default_integration: str = DEFAULT_INTEGRATION_NAME
    api_url: str = DEFAULT_LINEAR_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    debug: bool = False

    def integration_for(self, name: str | None) -> tuple[str, Integration | None]:
        chosen = name or self.default_integration
        return chosen, self.integrations.get(chosen)


def _parse_integrations_from_env() -> dict[str, Integration]:
    raw = os.getenv("LINEAR_INTEGRATIONS")
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring invalid LINEAR_INTEGRATIONS value")
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Ignoring LINEAR_INTEGRATIONS: expected a JSON object")
        return {}
    return {
        str(name).strip(): Integration(name=str(name).strip(), api_key=str(key or ""))
        for name, key in parsed.items()
        if str(name).strip()
    }


def _parse_timeout_from_env() -> float:
    raw = os.getenv("LINEAR_API_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid LINEAR_API_TIMEOUT_SECONDS value")
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_settings() -> Settings:
    integrations = _parse_integrations_from_env()
    api_key = os.getenv("LINEAR_API_KEY")
    if api_key is not None:
        integrations.setdefault(
            DEFAULT_INTEGRATION_NAME,
            Integration(name=DEFAULT_INTEGRATION_NAME, api_key=api_key.strip()),
        )

    return Settings(
        integrations=integrations,
        default_integration=os.getenv("LINEAR_DEFAULT_INTEGRATION", DEFAULT_INTEGRATION_NAME).strip()
        or DEFAULT_INTEGRATION_NAME,
        api_url=os.getenv("LINEAR_API_URL", DEFAULT_LINEAR_API_URL),
        timeout_seconds=_parse_timeout_from_env(),
        debug=os.getenv("LINEAR_QUERY_DEBUG", "0") == "1",
    )
