"""Vault HTTP API client.

Responsibility:
- Talk to the handful of Vault endpoints the helper needs (health, AppRole
  login, token renew/revoke, secret read).
- Retry transient statuses, then check every response against the statuses
  the endpoint is expected to return.
- Normalise payloads into the domain models.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import (
    ApproleLoginInput,
    AuthInfo,
    AuthResponse,
    SecretResponse,
    SystemHealth,
    VaultErrors,
)
from core.errors import (
    ValidationError,
    VaultConnectionError,
    VaultHelperError,
    VaultNotReadyError,
    VaultResponseError,
)
from core.logging import get_logger

logger = get_logger("vault")

SYS_HEALTH_LOCATION = "/sys/health"
AUTH_APPROLE_LOGIN_LOCATION = "/auth/approle/login"
AUTH_TOKEN_RENEW_SELF_LOCATION = "/auth/token/renew-self"
AUTH_TOKEN_REVOKE_SELF_LOCATION = "/auth/token/revoke-self"

TOKEN_HEADER = "X-Vault-Token"

# Statuses Vault returns while overloaded or mid-failover.
RETRY_STATUS_CODES = frozenset({400, 500, 502, 503, 504})

# /sys/health encodes its state in the status code: 429 standby,
# 472/473 DR/performance standby, 501 uninitialized, 503 sealed.
HEALTH_STATUS_CODES = (200, 429, 472, 473, 501, 503)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_address(address: str) -> None:
    """Accept absolute http(s) URLs with a host, like `https://vault:8200`."""

    if not address:
        raise ValidationError("Vault address cannot be empty")
    try:
        parts = urlsplit(address)
    except ValueError as exc:
        raise ValidationError(f'parse "{address}": {exc}') from exc
    if parts.scheme not in ("http", "https") or not parts.netloc or not parts.hostname:
        raise ValidationError(f'parse "{address}": invalid URI for request')


class VaultClient:
    """Async client bound to one Vault address.

    Use as an async context manager; the address is validated on entry.
    """

    def __init__(
        self,
        address: str,
        *,
        skip_verify: bool = False,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.address = address
        self.skip_verify = skip_verify
        self._settings = settings or AppSettings()
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return f"{self.address.rstrip('/')}/v1"

    async def __aenter__(self) -> "VaultClient":
        validate_address(self.address)
        self._client = build_async_client(
            self._settings,
            base_url=self.base_url,
            verify=not self.skip_verify,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _retry_wait(self, attempt: int) -> float:
        wait = self._settings.retry_wait_seconds * (2**attempt)
        return min(wait, self._settings.retry_max_wait_seconds)

    async def _request(
        self,
        method: str,
        location: str,
        *,
        expected: tuple[int, ...],
        token: str | None = None,
        body: BaseModel | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        if self._client is None:
            raise VaultHelperError("VaultClient used outside of its context manager")

        headers = {TOKEN_HEADER: token} if token else None
        payload = body.model_dump() if body is not None else None
        retries = self._settings.retry_count if retry else 0

        attempt = 0
        while True:
            try:
                response = await self._client.request(method, location, headers=headers, json=payload)
            except httpx.RequestError as exc:
                raise VaultConnectionError(f"Got low-level HTTP error: {exc}") from exc

            logger.debug("Response Body: %s", response.text)

            if response.status_code in RETRY_STATUS_CODES and attempt < retries:
                wait = self._retry_wait(attempt)
                attempt += 1
                logger.info(
                    "%s %s returned %s, retrying in %.1fs (%d/%d)",
                    method,
                    location,
                    response.status_code,
                    wait,
                    attempt,
                    retries,
                )
                await self._sleep(wait)
                continue
            break

        self._check_response(response, expected)
        return response

    @staticmethod
    def _check_response(response: httpx.Response, expected: tuple[int, ...]) -> None:
        if response.status_code in expected:
            return

        errors: list[str] = []
        try:
            errors = VaultErrors.model_validate(response.json()).errors
        except ValueError:
            if response.text.strip():
                errors = [response.text.strip()]
        raise VaultResponseError(response.status_code, expected, errors)

    @staticmethod
    def _parse(model: type[ModelT], response: httpx.Response) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise VaultHelperError(
                f"Could not decode {model.__name__} from {response.request.url.path}: {exc}"
            ) from exc

    async def health(self) -> SystemHealth:
        response = await self._request(
            "GET",
            SYS_HEALTH_LOCATION,
            expected=HEALTH_STATUS_CODES,
            retry=False,
        )
        return self._parse(SystemHealth, response)

    async def ensure_ready(self) -> SystemHealth:
        """Require an initialized, unsealed, active node."""

        health = await self.health()
        if health.ready():
            return health

        if not health.initialized:
            raise VaultNotReadyError("Expected vault to be initialized")
        if health.sealed:
            raise VaultNotReadyError("Expected vault to be unsealed")
        if health.standby:
            raise VaultNotReadyError("Expected vault to be active node")
        raise VaultNotReadyError()

    async def approle_login(self, role_id: str, secret_id: str) -> AuthInfo:
        response = await self._request(
            "POST",
            AUTH_APPROLE_LOGIN_LOCATION,
            expected=(200,),
            body=ApproleLoginInput(role_id=role_id, secret_id=secret_id),
        )
        return self._parse(AuthResponse, response).auth

    async def renew_self(self, token: str) -> AuthInfo:
        response = await self._request(
            "POST",
            AUTH_TOKEN_RENEW_SELF_LOCATION,
            expected=(200,),
            token=token,
        )
        return self._parse(AuthResponse, response).auth

    async def revoke_self(self, token: str) -> None:
        await self._request(
            "POST",
            AUTH_TOKEN_REVOKE_SELF_LOCATION,
            expected=(204,),
            token=token,
        )

    async def read_secret(self, token: str, path: str) -> SecretResponse:
        response = await self._request("GET", path, expected=(200,), token=token)
        return self._parse(SecretResponse, response)
