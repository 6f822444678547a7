"""Tests for `vault-helper smoke run`."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

import cli.smoke as cli_smoke
from cli.main import app
from core.domain.models import CommandResult, ControlResult, SmokeReport
from core.services.smoke import HELPER_INVOCATION, PACKAGE_PRESENCE

runner = CliRunner()


def make_report(*passed: bool) -> SmokeReport:
    names = [PACKAGE_PRESENCE, HELPER_INVOCATION]
    return SmokeReport(
        title="Vault Helper",
        controls=[
            ControlResult(
                name=name,
                title=name,
                passed=ok,
                failures=[] if ok else ["stdout: expected to match /^1$/, got '0'"],
                result=CommandResult(command="VAULT_TOKEN=[REDACTED] vault-helper secret", exit_status=0),
            )
            for name, ok in zip(names, passed)
        ],
    )


@pytest.fixture
def stub_controls(monkeypatch: pytest.MonkeyPatch):
    def install(report: SmokeReport) -> list:
        calls: list = []

        def fake_run_controls(settings):
            calls.append(settings)
            return report

        monkeypatch.setattr(cli_smoke, "run_controls", fake_run_controls)
        return calls

    return install


def test_json_report(stub_controls):
    calls = stub_controls(make_report(True, True))

    result = runner.invoke(app, ["smoke", "run", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["passed"] is True
    assert [control["name"] for control in payload["controls"]] == [PACKAGE_PRESENCE, HELPER_INVOCATION]
    assert calls[0].vault_addr == "http://vault:8200"


def test_failed_control_exits_non_zero(stub_controls):
    stub_controls(make_report(False, True))

    result = runner.invoke(app, ["smoke", "run"])

    assert result.exit_code == 1
    assert "FAIL" in result.stdout
    assert "1/2 controls passed" in result.stdout


def test_table_output(stub_controls):
    stub_controls(make_report(True, True))

    result = runner.invoke(app, ["smoke", "run"])

    assert result.exit_code == 0, result.output
    assert "PASS" in result.stdout
    assert "2/2 controls passed" in result.stdout


def test_settings_from_environment(stub_controls, monkeypatch: pytest.MonkeyPatch):
    calls = stub_controls(make_report(True, True))
    monkeypatch.setenv("VAULT_HELPER_SMOKE_VAULT_ADDR", "http://vault.internal:8200")

    result = runner.invoke(app, ["smoke", "run", "--json"])

    assert result.exit_code == 0, result.output
    assert calls[0].vault_addr == "http://vault.internal:8200"


def test_invalid_settings_exit_non_zero(stub_controls, monkeypatch: pytest.MonkeyPatch):
    stub_controls(make_report(True, True))
    monkeypatch.setenv("VAULT_HELPER_SMOKE_IMPACT", "severe")

    result = runner.invoke(app, ["smoke", "run"])

    assert result.exit_code == 1


def test_invalid_settings_as_json(stub_controls, monkeypatch: pytest.MonkeyPatch):
    stub_controls(make_report(True, True))
    monkeypatch.setenv("VAULT_HELPER_SMOKE_IMPACT", "severe")

    result = runner.invoke(app, ["smoke", "run", "--json"])

    assert result.exit_code == 1
    assert '"error": "ConfigurationError"' in result.stdout
