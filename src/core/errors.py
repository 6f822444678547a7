"""Helper exceptions.

Adapters and services raise these; only the CLI turns them into a logged
message and a non-zero exit status.
"""

from __future__ import annotations

from typing import Any


class VaultHelperError(Exception):
    """Base exception with a human readable message."""

    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class ConfigurationError(VaultHelperError):
    """Environment or command-line configuration could not be used."""

    message = "Invalid configuration"


class ValidationError(VaultHelperError):
    """Operation inputs failed validation before any request was made."""

    message = "Validation failed"


class VaultConnectionError(VaultHelperError):
    """Low-level HTTP failure (timeout, EOF, connection refused)."""

    message = "Could not reach Vault"


class VaultResponseError(VaultHelperError):
    """Vault answered with a status outside the accepted set."""

    message = "Unexpected response from Vault"

    def __init__(
        self,
        status_code: int,
        expected: tuple[int, ...],
        errors: list[str] | None = None,
    ):
        self.status_code = status_code
        self.expected = expected
        self.errors = errors or []
        super().__init__(
            f"Response {status_code} was not one of {list(expected)}: {', '.join(self.errors)}",
            details={"status_code": status_code, "errors": self.errors},
        )


class VaultNotReadyError(VaultHelperError):
    """Vault is uninitialized, sealed or a standby node."""

    message = "Vault does not appear to be ready to receive requests."


class TemplateRenderError(VaultHelperError):
    """A selector or template file could not be parsed or rendered."""

    message = "Could not render template"


class CensusError(VaultHelperError):
    """The census endpoint did not yield the expected service token."""

    message = "Could not read the service token from the census"
