"""Tests for settings loading and option precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import (
    AppSettings,
    SmokeSettings,
    load_settings,
    resolve_flag,
    resolve_option,
)
from core.errors import ConfigurationError


class TestResolveOption:
    """Environment values override command-line options when set."""

    def test_env_wins_over_option(self):
        assert resolve_option("http://env:8200", "http://flag:8200") == "http://env:8200"

    def test_option_used_when_env_missing(self):
        assert resolve_option(None, "http://flag:8200") == "http://flag:8200"

    def test_empty_env_falls_back_to_option(self):
        assert resolve_option("", "dead-c0de") == "dead-c0de"

    def test_both_missing_is_empty(self):
        assert resolve_option(None, None) == ""

    @pytest.mark.parametrize(
        ("env_value", "option_value", "expected"),
        [(None, True, True), (None, False, False), (False, True, False), (True, False, True)],
    )
    def test_resolve_flag(self, env_value, option_value, expected):
        assert resolve_flag(env_value, option_value) is expected


class TestAppSettings:
    def test_reads_vault_variables_without_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VAULT_ADDR", "http://vault:8200")
        monkeypatch.setenv("VAULT_TOKEN", "dead-c0de")
        monkeypatch.setenv("VAULT_ROLE_ID", "dead-beef")
        monkeypatch.setenv("VAULT_SECRET_ID", "ea7-beef")
        monkeypatch.setenv("VAULT_SKIP_VERIFY", "true")

        settings = AppSettings()

        assert settings.addr == "http://vault:8200"
        assert settings.token == "dead-c0de"
        assert settings.role_id == "dead-beef"
        assert settings.secret_id == "ea7-beef"
        assert settings.skip_verify is True

    def test_defaults(self):
        settings = AppSettings()

        assert settings.addr is None
        assert settings.skip_verify is None
        assert settings.retry_count == 5
        assert settings.retry_wait_seconds == 3.0
        assert settings.retry_max_wait_seconds == 30.0

    def test_empty_skip_verify_is_unset(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VAULT_SKIP_VERIFY", "")

        assert AppSettings().skip_verify is None

    def test_helper_tuning_uses_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VAULT_HELPER_RETRY_COUNT", "2")
        monkeypatch.setenv("VAULT_HELPER_BUILD_TIMESTAMP", "2018-10-31 15:50:13 +0000 UTC")

        settings = AppSettings()

        assert settings.retry_count == 2
        assert settings.build_timestamp == "2018-10-31 15:50:13 +0000 UTC"

    def test_dotenv_in_working_directory(self, tmp_path: Path):
        (tmp_path / ".env").write_text("VAULT_ADDR=https://from-dotenv:8200\n", encoding="utf-8")

        assert AppSettings().addr == "https://from-dotenv:8200"

    def test_unparseable_skip_verify_is_configuration_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VAULT_SKIP_VERIFY", "sometimes")

        with pytest.raises(ConfigurationError) as excinfo:
            load_settings(AppSettings)

        assert "VAULT_SKIP_VERIFY" in excinfo.value.message


class TestSmokeSettings:
    def test_defaults_describe_habitat_environment(self):
        settings = SmokeSettings()

        assert settings.packages_root == Path("/hab/pkgs")
        assert settings.package_name == "vault-helper"
        assert settings.census_url == "http://localhost:9631/census"
        assert settings.service_group == "vault.default"
        assert settings.vault_addr == "http://vault:8200"
        assert settings.secret_path == "vault-helper/credentials"
        assert settings.selector == "((.username)) ((.password))"
        assert settings.expected_output == "kevin bacon"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VAULT_HELPER_SMOKE_PACKAGES_ROOT", "/opt/pkgs")
        monkeypatch.setenv("VAULT_HELPER_SMOKE_EXPECTED_OUTPUT", "jane doe")

        settings = SmokeSettings()

        assert settings.packages_root == Path("/opt/pkgs")
        assert settings.expected_output == "jane doe"
