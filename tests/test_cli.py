"""Tests for albumctl CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from albumctl.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


# =============================================================================
# Basic CLI Tests
# =============================================================================


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_cli_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "albumctl" in result.output
        assert "auth" in result.output
        assert "media" in result.output

    def test_cli_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "albumctl" in result.output
        assert "0.1.0" in result.output

    def test_config_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["config", "--help"])
        assert result.exit_code == 0
        assert "init" in result.output
        assert "show" in result.output

    def test_auth_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["auth", "--help"])
        assert result.exit_code == 0
        for command in ("login", "logout", "status", "refresh"):
            assert command in result.output

    def test_media_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["media", "--help"])
        assert result.exit_code == 0
        for command in ("validate", "upload", "upload-public", "cancel"):
            assert command in result.output

    def test_upload_rejects_missing_file(self, runner: CliRunner):
        result = runner.invoke(cli, ["media", "upload", "/nonexistent/IMG_0001.jpg"])
        assert result.exit_code == 2
        assert "does not exist" in result.output
