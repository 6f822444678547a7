"""Root CLI (Typer).

Maps command-line arguments and the Vault environment variables onto the
helper operations in `core.services.helper`, prints results on stdout and
turns helper errors into a logged message plus exit status 1.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer

from cli import smoke
from cli.context import PROGRAM, GlobalOptions, configure_logging, get_options
from core import __version__
from core.config import AppSettings, load_settings, resolve_flag, resolve_option
from core.errors import VaultHelperError
from core.logging import get_logger
from core.services.helper import HelperService

T = TypeVar("T")

HELP = f"""A command-line Vault secrets fetcher and template parser.

When invoking with 'parse', a token is generated, used, and automatically
revoked. If a token is created or renewed, it must be revoked manually with
'token revoke'.

Vault environment variables VAULT_ADDR, VAULT_SKIP_VERIFY, VAULT_ROLE_ID,
VAULT_SECRET_ID and VAULT_TOKEN override command line options.

\b
Examples:
  {PROGRAM} --addr=http://somewhere:8200 token create --role-id=dead-beef --secret-id=ea7-beef
  {PROGRAM} --addr=http://somewhere:8200 token renew --token=dead-c0de
  {PROGRAM} --addr=http://somewhere:8200 token revoke --token=dead-c0de
  {PROGRAM} --addr=http://somewhere:8200 secret --token=dead-c0de --path=secret/data/jenkins/admin --selector='((.data.username))'
  {PROGRAM} --addr=http://somewhere:8200 parse --role-id=dead-beef --secret-id=ea7-beef --path=secret/data/jenkins/admin --file=init.groovy
"""

app = typer.Typer(no_args_is_help=True, add_completion=False, help=HELP)
token_app = typer.Typer(no_args_is_help=True, help="Perform operations on a token.")

app.add_typer(token_app, name="token")
app.add_typer(smoke.app, name="smoke")

logger = get_logger("cli")


@app.callback()
def main(
    ctx: typer.Context,
    addr: str = typer.Option("", "--addr", help="Vault address, like https://somewhere:8200 (VAULT_ADDR)."),
    skip_verify: bool = typer.Option(
        False,
        "--skip-verify",
        help="Skip SSL certificate verification (VAULT_SKIP_VERIFY).",
    ),
    log_level: str = typer.Option(
        "error",
        "--log-level",
        help="Logging level, one of: panic, fatal, error, warn, info, debug.",
    ),
) -> None:
    ctx.obj = GlobalOptions(addr=addr, skip_verify=skip_verify, log_level=log_level)


def _invoke(
    ctx: typer.Context,
    message: str,
    operation: Callable[[HelperService, AppSettings], Awaitable[T]],
) -> T:
    """Configure logging and settings, then run one async helper operation."""

    options = get_options(ctx)
    configure_logging(options)
    logger.info(message)

    try:
        settings = load_settings(AppSettings)
        service = HelperService(
            address=resolve_option(settings.addr, options.addr),
            skip_verify=resolve_flag(settings.skip_verify, options.skip_verify),
            settings=settings,
        )
        return asyncio.run(operation(service, settings))
    except VaultHelperError as exc:
        logger.error("%s", exc.message)
        raise typer.Exit(code=1) from None


@token_app.command("create")
def token_create(
    ctx: typer.Context,
    role_id: str = typer.Option("", "--role-id", help="The Vault AppRole Role Id (VAULT_ROLE_ID)."),
    secret_id: str = typer.Option("", "--secret-id", help="The Vault AppRole Secret Id (VAULT_SECRET_ID)."),
) -> None:
    """Create a new token using the specified role_id and secret_id, printed to STDOUT."""

    token = _invoke(
        ctx,
        "Create token ...",
        lambda service, settings: service.create_token(
            resolve_option(settings.role_id, role_id),
            resolve_option(settings.secret_id, secret_id),
        ),
    )
    typer.echo(token)


@token_app.command("renew")
def token_renew(
    ctx: typer.Context,
    token: str = typer.Option("", "--token", help="The token to be renewed (VAULT_TOKEN)."),
) -> None:
    """Renew an existing token. If it cannot be renewed, exits with a non-zero status."""

    renewed = _invoke(
        ctx,
        "Renew token ...",
        lambda service, settings: service.renew_token(resolve_option(settings.token, token)),
    )
    typer.echo(renewed)


@token_app.command("revoke")
def token_revoke(
    ctx: typer.Context,
    token: str = typer.Option("", "--token", help="The token to be revoked (VAULT_TOKEN)."),
) -> None:
    """Revoke an existing token. If it cannot be revoked, exits with a non-zero status."""

    _invoke(
        ctx,
        "Revoke token ...",
        lambda service, settings: service.revoke_token(resolve_option(settings.token, token)),
    )


@app.command("secret")
def secret(
    ctx: typer.Context,
    path: str = typer.Option(..., "--path", help="The vault path for the secret, like 'secret/data/jenkins/admin'."),
    selector: str = typer.Option(..., "--selector", help="The template selector, like '((.username))'."),
    token: str = typer.Option("", "--token", help="The token used to fetch the secret (VAULT_TOKEN)."),
) -> None:
    """Fetch a given secret from Vault using the specified token, printing to STDOUT."""

    rendered = _invoke(
        ctx,
        f"Fetch secrets from {path} ...",
        lambda service, settings: service.fetch_secret(resolve_option(settings.token, token), path, selector),
    )
    typer.echo(rendered)


@app.command("parse")
def parse(
    ctx: typer.Context,
    path: str = typer.Option(..., "--path", help="The vault path for the secret, like 'secret/data/jenkins/admin'."),
    file: str = typer.Option(..., "--file", help="The file to perform parsing on."),
    role_id: str = typer.Option("", "--role-id", help="The Vault AppRole Role Id (VAULT_ROLE_ID)."),
    secret_id: str = typer.Option("", "--secret-id", help="The Vault AppRole Secret Id (VAULT_SECRET_ID)."),
) -> None:
    """Replace all '((.key))' placeholders in a file with their secret value from Vault."""

    _invoke(
        ctx,
        f"Parse file {file} using secrets from {path} ...",
        lambda service, settings: service.parse_file(
            resolve_option(settings.role_id, role_id),
            resolve_option(settings.secret_id, secret_id),
            path,
            file,
        ),
    )


@app.command("version")
def version(ctx: typer.Context) -> None:
    """Display version and build information."""

    configure_logging(get_options(ctx))
    try:
        settings = load_settings(AppSettings)
    except VaultHelperError as exc:
        logger.error("%s", exc.message)
        raise typer.Exit(code=1) from None
    typer.echo(f"{PROGRAM} v{__version__} built on {settings.build_timestamp}")


def run() -> None:
    app(prog_name=PROGRAM)
