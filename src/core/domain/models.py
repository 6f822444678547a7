"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation of the Vault and census payloads at the edge, with the
  field documentation living next to the data.
- Easy serialisation of smoke reports for `--json`.

These models describe *what* the information is, not *how* it is fetched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field
from pydantic.config import ConfigDict


class SystemHealth(BaseModel):
    """`GET /sys/health` payload (only the fields the helper checks)."""

    model_config = ConfigDict(extra="ignore")

    initialized: bool = Field(default=False)
    sealed: bool = Field(default=True)
    standby: bool = Field(default=False)

    def ready(self) -> bool:
        """Initialized, unsealed and the active node."""

        return self.initialized and not self.sealed and not self.standby


class ApproleLoginInput(BaseModel):
    role_id: str = Field(..., min_length=1)
    secret_id: str = Field(..., min_length=1)


class AuthInfo(BaseModel):
    """The `auth` block returned by login and renew endpoints."""

    model_config = ConfigDict(extra="ignore")

    client_token: str = Field(..., min_length=1)
    accessor: str = Field(default="")
    policies: list[str] = Field(default_factory=list)
    token_policies: list[str] = Field(default_factory=list)
    identity_policies: list[str] = Field(default_factory=list)
    metadata: dict[str, str] | None = Field(default=None)
    lease_duration: int = Field(default=0, ge=0)
    renewable: bool = Field(default=False)
    entity_id: str = Field(default="")


class AuthResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    auth: AuthInfo


class SecretResponse(BaseModel):
    """A secret read from Vault.

    For a KV v2 mount `data` holds `{"data": {...}, "metadata": {...}}`, so
    selectors address `((.data.username))`.
    """

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any] = Field(default_factory=dict)
    lease_duration: int = Field(default=0)
    lease_id: str = Field(default="")
    renewable: bool = Field(default=False)


class VaultErrors(BaseModel):
    """Error payload Vault emits alongside non-2xx statuses."""

    model_config = ConfigDict(extra="ignore")

    errors: list[str] = Field(default_factory=list)


class CommandResult(BaseModel):
    """Exit status and captured streams of one external process."""

    command: str = Field(..., description="Command line as it was run (secrets excluded).")
    exit_status: int
    stdout: str = Field(default="")
    stderr: str = Field(default="")


class Expectation(BaseModel):
    """Assertions applied to a `CommandResult`."""

    exit_status: int = Field(default=0)
    stderr_empty: bool = Field(default=True)
    stdout_pattern: str = Field(
        ...,
        description="Regex matched line-by-line (`^` and `$` anchor lines).",
    )


class ControlResult(BaseModel):
    name: str
    title: str
    passed: bool
    failures: list[str] = Field(default_factory=list)
    result: CommandResult | None = Field(default=None)


class SmokeReport(BaseModel):
    """Outcome of one run of the compliance controls."""

    title: str
    impact: float = Field(default=0.7, ge=0.0, le=1.0)
    controls: list[ControlResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return bool(self.controls) and all(c.passed for c in self.controls)
