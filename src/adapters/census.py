"""Supervisor census reader.

The census (`GET http://localhost:9631/census` on a Habitat supervisor)
exposes every service group's runtime config, including secrets such as the
Vault root token. The endpoint must be reachable without authentication;
that is a precondition of the test environment.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_client
from core.config import SmokeSettings
from core.errors import CensusError
from core.logging import get_logger

logger = get_logger("census")

# census_groups[<group>].service_config.value.config.token
TOKEN_PATH = ("service_config", "value", "config", "token")


def fetch_census(url: str, *, transport: httpx.BaseTransport | None = None) -> dict[str, Any]:
    """One unauthenticated GET, no timeout, no retries."""

    try:
        with build_client(transport=transport) as client:
            response = client.get(url)
    except httpx.RequestError as exc:
        raise CensusError(f"Could not reach census at {url}: {exc}") from exc

    if response.status_code != 200:
        raise CensusError(f"Census at {url} answered HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise CensusError(f"Census at {url} did not return JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise CensusError(f"Census at {url} did not return a JSON object")
    return payload


def extract_service_token(census: dict[str, Any], service_group: str) -> str:
    path = ("census_groups", service_group, *TOKEN_PATH)

    node: Any = census
    for depth, key in enumerate(path):
        if not isinstance(node, dict) or key not in node:
            walked = ".".join(path[: depth + 1])
            raise CensusError(f"Census has no '{walked}'")
        node = node[key]

    if not isinstance(node, str) or not node:
        raise CensusError(f"Census token for '{service_group}' is empty or not a string")
    return node


def fetch_census_token(
    settings: SmokeSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> str:
    settings = settings or SmokeSettings()
    census = fetch_census(settings.census_url, transport=transport)
    token = extract_service_token(census, settings.service_group)
    logger.debug("Read token for service group %s from %s", settings.service_group, settings.census_url)
    return token
