"""Helper operations: token lifecycle, secret fetch and template parsing.

Each operation validates its inputs before touching the network, then opens
a `VaultClient`, checks that Vault is ready and performs the calls. The CLI
only maps arguments in and results out.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator

import httpx

from adapters.vault_client import VaultClient
from core.config import AppSettings
from core.errors import ValidationError
from core.logging import get_logger
from core.template import render_file, render_selector, validate_selector

logger = get_logger("helper")


def validate_create_token(role_id: str, secret_id: str) -> None:
    if not role_id:
        raise ValidationError("Role ID cannot be empty")
    if not secret_id:
        raise ValidationError("Secret ID cannot be empty")


def validate_token(token: str) -> None:
    if not token:
        raise ValidationError("Token cannot be empty")


# Renew and revoke share the same requirement.
validate_renew_token = validate_token
validate_revoke_token = validate_token


def validate_fetch_secret(token: str, path: str, selector: str) -> None:
    validate_token(token)
    if not path:
        raise ValidationError("Path cannot be empty")
    if not selector:
        raise ValidationError("Selector cannot be empty")
    validate_selector(selector)


def validate_parse_file(role_id: str, secret_id: str, path: str, file: str) -> None:
    validate_create_token(role_id, secret_id)
    if not path:
        raise ValidationError("Path cannot be empty")
    if not file or not Path(file).is_file():
        raise ValidationError(
            f"The file to parse {file} either does not exist or cannot be accessed"
        )


@dataclass
class HelperService:
    """Entry point for the helper operations against one Vault address."""

    address: str
    skip_verify: bool = False
    settings: AppSettings | None = None
    transport: httpx.AsyncBaseTransport | None = None

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[VaultClient]:
        async with VaultClient(
            self.address,
            skip_verify=self.skip_verify,
            settings=self.settings,
            transport=self.transport,
        ) as client:
            await client.ensure_ready()
            yield client

    async def create_token(self, role_id: str, secret_id: str) -> str:
        """AppRole login; the new token is returned and must be revoked by the caller."""

        validate_create_token(role_id, secret_id)
        async with self.connect() as client:
            auth = await client.approle_login(role_id, secret_id)
        return auth.client_token

    async def renew_token(self, token: str) -> str:
        validate_renew_token(token)
        async with self.connect() as client:
            auth = await client.renew_self(token)
        return auth.client_token

    async def revoke_token(self, token: str) -> None:
        validate_revoke_token(token)
        async with self.connect() as client:
            await client.revoke_self(token)
        logger.info("Token revoked successfully!")

    async def fetch_secret(self, token: str, path: str, selector: str) -> str:
        validate_fetch_secret(token, path, selector)
        async with self.connect() as client:
            secret = await client.read_secret(token, path)
        return render_selector(selector, secret.data)

    async def parse_file(self, role_id: str, secret_id: str, path: str, file: str) -> Path:
        """Render `file` in place with the secret at `path`.

        The token created for the read is always revoked, even when
        rendering fails.
        """

        validate_parse_file(role_id, secret_id, path, file)
        target = Path(file)

        async with self.connect() as client:
            auth = await client.approle_login(role_id, secret_id)
            try:
                secret = await client.read_secret(auth.client_token, path)
                render_file(target, secret.data)
            finally:
                await client.revoke_self(auth.client_token)

        logger.info(
            "Successfully parsed secrets from %s to file %s and auto-revoked token!",
            path,
            target,
        )
        return target
