"""Tests for the CLI commands."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from spanline import __version__
from spanline.cli import app
from spanline.client import SpanlineClient

runner = CliRunner()


@pytest.fixture
def local_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("SPANLINE_API_KEY", "SPANLINE_WORKSPACE", "SPANLINE_URL_OVERRIDE", "SPANLINE_BATCH_COUNT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVersion:
    def test_version_flag(self) -> None:
        """--version only takes effect alongside a subcommand."""
        result = runner.invoke(app, ["--version", "info"])
        assert result.exit_code == 0
        assert f"spanline {__version__}" in result.output

    def test_no_subcommand_exits_with_error(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Missing command" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "info" in result.output
        assert "ping" in result.output


class TestInfo:
    def test_shows_resolved_configuration(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setenv("SPANLINE_PROJECT_NAME", "cli-project")
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "cli-project" in result.output
        assert "localhost" in result.output

    def test_masks_api_key(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setenv("SPANLINE_API_KEY", "supersecret")
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "supersecret" not in result.output
        assert "supe****" in result.output

    def test_invalid_configuration(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setenv("SPANLINE_BATCH_COUNT", "many")
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestPing:
    def test_success(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setattr(SpanlineClient, "auth_check", lambda self: True)
        result = runner.invoke(app, ["ping"])

        assert result.exit_code == 0
        assert "Connected to" in result.output

    def test_failure(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setattr(SpanlineClient, "auth_check", lambda self: False)
        result = runner.invoke(app, ["ping", "--project", "p"])

        assert result.exit_code == 1
        assert "Authentication failed" in result.output

    def test_missing_cloud_credentials(self, local_env: pytest.MonkeyPatch) -> None:
        local_env.setenv("SPANLINE_API_KEY", "key")
        result = runner.invoke(app, ["ping"])

        assert result.exit_code == 1
        assert "Workspace is required" in result.output
