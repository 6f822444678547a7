"""Compliance controls for an installed vault-helper.

Two checks, run strictly in order, each a single blocking command whose exit
status, stderr and stdout are asserted:

1. package presence: exactly one `vault-helper` directory under the
   packages root (`find ... | wc -l` prints `1`).
2. helper invocation: with the Vault token read from the supervisor census,
   `vault-helper secret` prints the expected credentials.

There are no retries and no timeouts; any deviation fails the control.
"""

from __future__ import annotations

import re
import shlex

import httpx

from adapters.census import fetch_census_token
from adapters.command_runner import SubprocessRunner
from core.config import ENV_VAULT_ADDR, ENV_VAULT_TOKEN, SmokeSettings
from core.domain.models import CommandResult, ControlResult, Expectation, SmokeReport
from core.errors import CensusError
from core.interfaces.runner import CommandRunner
from core.logging import get_logger

logger = get_logger("smoke")

PACKAGE_PRESENCE = "package-presence"
HELPER_INVOCATION = "helper-invocation"


def literal_line(text: str) -> str:
    """Pattern matching a whole line equal to `text`."""

    return rf"^{re.escape(text)}$"


def evaluate(result: CommandResult, expectation: Expectation) -> list[str]:
    """Return one message per failed assertion; empty means the control passed."""

    failures: list[str] = []
    if result.exit_status != expectation.exit_status:
        failures.append(f"exit_status: expected {expectation.exit_status}, got {result.exit_status}")
    if expectation.stderr_empty and result.stderr:
        failures.append(f"stderr: expected empty, got {result.stderr.strip()!r}")
    if not re.search(expectation.stdout_pattern, result.stdout.strip(), re.MULTILINE):
        failures.append(
            f"stdout: expected to match /{expectation.stdout_pattern}/, got {result.stdout.strip()!r}"
        )
    return failures


def package_presence_command(settings: SmokeSettings) -> str:
    return (
        f"find {shlex.quote(str(settings.packages_root))} -type d "
        f"-name {shlex.quote(settings.package_name)} | wc -l"
    )


def check_package_presence(runner: CommandRunner, settings: SmokeSettings) -> ControlResult:
    """Verify the package was installed (under any origin) exactly once."""

    result = runner.run(package_presence_command(settings), shell=True)
    failures = evaluate(result, Expectation(stdout_pattern=literal_line("1")))
    return ControlResult(
        name=PACKAGE_PRESENCE,
        title=f"{settings.package_name} is installed under {settings.packages_root}",
        passed=not failures,
        failures=failures,
        result=result,
    )


def helper_invocation_command(settings: SmokeSettings) -> list[str]:
    return [
        settings.helper_command,
        "secret",
        f"--path={settings.secret_path}",
        f"--selector={settings.selector}",
    ]


def check_helper_invocation(runner: CommandRunner, settings: SmokeSettings, token: str) -> ControlResult:
    """Fetch the test credentials through the helper with the census token."""

    command = helper_invocation_command(settings)
    display = " ".join(
        [
            f"{ENV_VAULT_TOKEN}=[REDACTED]",
            f"{ENV_VAULT_ADDR}={shlex.quote(settings.vault_addr)}",
            shlex.join(command),
        ]
    )
    result = runner.run(
        command,
        env={ENV_VAULT_TOKEN: token, ENV_VAULT_ADDR: settings.vault_addr},
        display=display,
    )
    failures = evaluate(result, Expectation(stdout_pattern=literal_line(settings.expected_output)))
    return ControlResult(
        name=HELPER_INVOCATION,
        title=f"{settings.helper_command} reads {settings.secret_path}",
        passed=not failures,
        failures=failures,
        result=result,
    )


def run_controls(
    settings: SmokeSettings | None = None,
    *,
    runner: CommandRunner | None = None,
    transport: httpx.BaseTransport | None = None,
) -> SmokeReport:
    """Run both controls sequentially and collect the report."""

    settings = settings or SmokeSettings()
    runner = runner or SubprocessRunner()
    report = SmokeReport(title=settings.title, impact=settings.impact)

    logger.info("Checking %s is installed under %s", settings.package_name, settings.packages_root)
    report.controls.append(check_package_presence(runner, settings))

    logger.info("Invoking %s against %s", settings.helper_command, settings.vault_addr)
    try:
        token = fetch_census_token(settings, transport=transport)
    except CensusError as exc:
        report.controls.append(
            ControlResult(
                name=HELPER_INVOCATION,
                title=f"{settings.helper_command} reads {settings.secret_path}",
                passed=False,
                failures=[exc.message],
            )
        )
    else:
        report.controls.append(check_helper_invocation(runner, settings, token))

    for control in report.controls:
        if control.passed:
            logger.info("Control %s passed", control.name)
        else:
            logger.error("Control %s failed: %s", control.name, "; ".join(control.failures))
    return report
