"""`smoke` command: compliance controls for an installed helper."""

from __future__ import annotations

import json

import typer
from rich.console import Console

from cli.context import configure_logging, get_options
from cli.ui_components import build_controls_table, build_summary_panel
from core.config import SmokeSettings, load_settings
from core.errors import VaultHelperError
from core.logging import get_logger
from core.services.smoke import run_controls

app = typer.Typer(no_args_is_help=True, help="Verify an installed vault-helper against a live Vault.")

_console = Console()

logger = get_logger("cli.smoke")


@app.command()
def run(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON instead of a table."),
) -> None:
    """Run the package-presence and helper-invocation controls.

    Requires the supervisor HTTP gateway to serve the census without
    authentication. Exits 1 when any control fails.
    """

    configure_logging(get_options(ctx))

    try:
        settings = load_settings(SmokeSettings)
        report = run_controls(settings)
    except VaultHelperError as exc:
        logger.error("%s", exc.message)
        if json_output:
            typer.echo(json.dumps(exc.to_dict(), indent=2))
        raise typer.Exit(code=1) from None

    if json_output:
        typer.echo(report.model_dump_json(indent=2))
    else:
        _console.print(build_controls_table(report))
        _console.print(build_summary_panel(report))

    if not report.passed:
        raise typer.Exit(code=1)
