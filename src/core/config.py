"""Core configuration.

Why here:
- Centralises environment variables (pydantic-settings) without leaking them
  into the CLI layer.
- Lets adapters (Vault HTTP, census, subprocess) read config consistently.

The Vault connection variables keep the names the `vault` CLI itself uses
(`VAULT_ADDR`, `VAULT_TOKEN`, ...), so they are read without a prefix.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TypeVar

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError


ENV_VAULT_ADDR = "VAULT_ADDR"
ENV_VAULT_SKIP_VERIFY = "VAULT_SKIP_VERIFY"
ENV_VAULT_ROLE_ID = "VAULT_ROLE_ID"
ENV_VAULT_SECRET_ID = "VAULT_SECRET_ID"
ENV_VAULT_TOKEN = "VAULT_TOKEN"

SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "vault-helper"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "vault-helper"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "vault-helper"
    return Path.home() / ".config" / "vault-helper"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Central configuration for the helper CLI.

    Values from the environment take precedence over command-line options,
    see `resolve_option`.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULT_HELPER_",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        # Order: project first (dev), then the per-user config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    addr: str | None = Field(
        default=None,
        validation_alias=ENV_VAULT_ADDR,
        description="Vault address, like https://somewhere:8200.",
    )
    skip_verify: bool | None = Field(
        default=None,
        validation_alias=ENV_VAULT_SKIP_VERIFY,
        description="Skip TLS certificate verification.",
    )
    role_id: str | None = Field(
        default=None,
        validation_alias=ENV_VAULT_ROLE_ID,
        description="AppRole role id.",
    )
    secret_id: str | None = Field(
        default=None,
        validation_alias=ENV_VAULT_SECRET_ID,
        description="AppRole secret id.",
    )
    token: str | None = Field(
        default=None,
        validation_alias=ENV_VAULT_TOKEN,
        description="Vault token used for renew/revoke/secret.",
    )

    http_connect_timeout_seconds: float = Field(default=10.0, gt=0)
    http_read_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Time to wait for the response headers/body (seconds).",
    )
    http_write_timeout_seconds: float = Field(default=10.0, gt=0)
    http_pool_timeout_seconds: float = Field(default=10.0, gt=0)

    retry_count: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Retries on transient Vault statuses (400, 5xx).",
    )
    retry_wait_seconds: float = Field(
        default=3.0,
        ge=0,
        description="First wait between retries; doubles on each attempt.",
    )
    retry_max_wait_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound of a single wait between retries.",
    )

    build_timestamp: str = Field(
        default="unknown",
        description="Stamped by the package build, shown by `version`.",
    )


class SmokeSettings(BaseSettings):
    """Parameters of the compliance controls run by `vault-helper smoke`.

    Defaults describe the Habitat test environment: the supervisor HTTP
    gateway on localhost:9631 (without authentication) and a Vault service
    reachable as `vault`.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULT_HELPER_SMOKE_",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    title: str = Field(default="Vault Helper")
    impact: float = Field(default=0.7, ge=0.0, le=1.0)

    packages_root: Path = Field(
        default=Path("/hab/pkgs"),
        description="Where the package supervisor lays out installed packages.",
    )
    package_name: str = Field(default="vault-helper", min_length=1)

    census_url: str = Field(
        default="http://localhost:9631/census",
        min_length=8,
        description="Supervisor census endpoint (must be unauthenticated).",
    )
    service_group: str = Field(
        default="vault.default",
        min_length=1,
        description="Census group whose service config carries the token.",
    )

    vault_addr: str = Field(default="http://vault:8200", min_length=8)
    secret_path: str = Field(default="vault-helper/credentials", min_length=1)
    selector: str = Field(default="((.username)) ((.password))", min_length=1)
    expected_output: str = Field(default="kevin bacon")
    helper_command: str = Field(default="vault-helper", min_length=1)


def resolve_option(env_value: str | None, option_value: str | None) -> str:
    """Environment value wins over the command-line option when non-empty."""

    if env_value:
        return env_value
    return option_value or ""


def resolve_flag(env_value: bool | None, option_value: bool) -> bool:
    if env_value is not None:
        return env_value
    return option_value


def load_settings(settings_cls: type[SettingsT]) -> SettingsT:
    """Instantiate a settings class, turning env parse errors into `ConfigurationError`."""

    try:
        return settings_cls()
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}={error.get('input')!r}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(f"Could not parse environment: {problems}") from exc
