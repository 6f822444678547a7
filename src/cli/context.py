"""State shared between the root command and its sub-apps.

Kept apart from `cli.main` so sub-apps (`smoke`) can read the global options
without importing the root app.
"""

from __future__ import annotations

from dataclasses import dataclass

import typer

from core.errors import ConfigurationError
from core.logging import setup_logging

PROGRAM = "vault-helper"


@dataclass
class GlobalOptions:
    """Options given before the sub-command (`vault-helper --addr ... secret`)."""

    addr: str = ""
    skip_verify: bool = False
    log_level: str = "error"


def get_options(ctx: typer.Context) -> GlobalOptions:
    if isinstance(ctx.obj, GlobalOptions):
        return ctx.obj
    return GlobalOptions()


def configure_logging(options: GlobalOptions) -> None:
    """Install the stderr log handler, or exit 1 on an unknown level."""

    try:
        setup_logging(options.log_level)
    except ConfigurationError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1) from None
