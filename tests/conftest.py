"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Generator

# Settings classes resolve the per-user .env path at import time; point it
# somewhere empty before any project module is imported.
os.environ["XDG_CONFIG_HOME"] = tempfile.mkdtemp(prefix="vault-helper-tests-")

import httpx
import pytest

from core.config import AppSettings
from core.logging import ROOT_LOGGER_NAME

ROOT_TOKEN = "dead-c0de"
ROLE_ID = "dead-beef"
SECRET_ID = "ea7-beef"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """No Vault variables or project .env leak into tests."""

    for key in list(os.environ):
        if key.startswith("VAULT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to streams captured by a previous test."""

    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


@pytest.fixture
def fast_settings() -> AppSettings:
    """Default settings without waits between retries."""

    return AppSettings(retry_wait_seconds=0, retry_max_wait_seconds=0)


class FakeVault:
    """In-memory stand-in for the Vault HTTP API.

    Serves the endpoints the helper uses under `/v1/` and records every
    request it receives.
    """

    def __init__(self) -> None:
        self.health: dict[str, bool] = {"initialized": True, "sealed": False, "standby": False}
        self.health_status = 200
        self.secrets: dict[str, dict[str, object]] = {
            "vault-helper/credentials": {"username": "kevin", "password": "bacon"},
        }
        self.approles = {(ROLE_ID, SECRET_ID)}
        self.tokens = {ROOT_TOKEN}
        self.revoked: list[str] = []
        self.requests: list[httpx.Request] = []
        self.fail_next: list[int] = []
        self._issued = 0

    def locations(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def _issue(self) -> str:
        self._issued += 1
        token = f"s.issued-{self._issued}"
        self.tokens.add(token)
        return token

    @staticmethod
    def _auth(token: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "auth": {
                    "client_token": token,
                    "accessor": "accessor-1",
                    "policies": ["default"],
                    "token_policies": ["default"],
                    "metadata": {"role_name": "vault-helper"},
                    "lease_duration": 3600,
                    "renewable": True,
                    "entity_id": "entity-1",
                }
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_next:
            return httpx.Response(self.fail_next.pop(0), json={"errors": ["temporarily unavailable"]})

        location = request.url.path.removeprefix("/v1/")

        if location == "sys/health":
            return httpx.Response(self.health_status, json=self.health)

        if location == "auth/approle/login" and request.method == "POST":
            body = json.loads(request.content)
            if (body.get("role_id"), body.get("secret_id")) not in self.approles:
                return httpx.Response(403, json={"errors": ["invalid role or secret ID"]})
            return self._auth(self._issue())

        token = request.headers.get("X-Vault-Token")
        if token not in self.tokens:
            return httpx.Response(403, json={"errors": ["permission denied"]})

        if location == "auth/token/renew-self" and request.method == "POST":
            return self._auth(token)

        if location == "auth/token/revoke-self" and request.method == "POST":
            self.tokens.discard(token)
            self.revoked.append(token)
            return httpx.Response(204)

        if request.method == "GET" and location in self.secrets:
            return httpx.Response(
                200,
                json={
                    "data": self.secrets[location],
                    "lease_duration": 2764800,
                    "lease_id": "",
                    "renewable": False,
                },
            )

        return httpx.Response(404, json={"errors": []})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_vault() -> FakeVault:
    return FakeVault()
