"""httpx wrapper.

Why a wrapper:
- Standardises timeouts, headers and TLS verification for every Vault call.
- Eases testing: callers pass a mock transport instead of patching httpx.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_timeout(settings: AppSettings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.http_connect_timeout_seconds,
        read=settings.http_read_timeout_seconds,
        write=settings.http_write_timeout_seconds,
        pool=settings.http_pool_timeout_seconds,
    )


def build_async_client(
    settings: AppSettings | None = None,
    *,
    base_url: str = "",
    verify: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` for the Vault API.

    Keep-alive connections are pooled by httpx; the caller owns the client
    and must close it (`async with`).
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=build_timeout(settings),
        verify=verify,
        headers=headers,
        transport=transport,
    )


def build_client(
    *,
    timeout: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Plain synchronous client, used where a single blocking GET is enough.

    `timeout=None` disables timeouts entirely.
    """

    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"Accept": "application/json"},
        transport=transport,
    )
