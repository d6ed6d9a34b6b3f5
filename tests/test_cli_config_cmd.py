"""Tests for albumctl CLI config commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from albumctl.cli.main import cli
from albumctl.core.config import ENV_PROFILE, ENV_URL


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(temp_dir: Path, monkeypatch) -> Path:
    monkeypatch.delenv(ENV_URL, raising=False)
    monkeypatch.delenv(ENV_PROFILE, raising=False)
    path = temp_dir / "config.yaml"
    with patch("albumctl.cli.config_cmd.CONFIG_FILE", path):
        yield path


class TestConfigInit:
    def test_creates_profile(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["config", "init", "--url", "https://photos.example.org/api/v1/", "--album", "a1", "--no-videos"],
        )

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(config_file.read_text())
        profile = data["profiles"]["default"]
        assert profile["url"] == "https://photos.example.org/api/v1"
        assert profile["default_album"] == "a1"
        assert profile["allow_videos"] is False
        assert data["default_profile"] == "default"

    def test_rejects_bad_url(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["config", "init", "--url", "photos.example.org"])

        assert result.exit_code == 1
        assert "Invalid URL" in result.output
        assert not config_file.exists()

    def test_refuses_to_overwrite(self, runner: CliRunner, config_file: Path) -> None:
        runner.invoke(cli, ["config", "init", "--url", "https://a.example.org/api/v1"])
        result = runner.invoke(cli, ["config", "init", "--url", "https://b.example.org/api/v1"])

        assert result.exit_code == 1
        assert "already exists" in result.output

        forced = runner.invoke(cli, ["config", "init", "--url", "https://b.example.org/api/v1", "--force"])
        assert forced.exit_code == 0
        data = yaml.safe_load(config_file.read_text())
        assert data["profiles"]["default"]["url"] == "https://b.example.org/api/v1"

    def test_second_profile(self, runner: CliRunner, config_file: Path) -> None:
        runner.invoke(cli, ["config", "init", "--url", "https://a.example.org/api/v1"])
        result = runner.invoke(
            cli, ["config", "init", "--url", "https://b.example.org/api/v1", "--profile", "staging"]
        )

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(config_file.read_text())
        assert set(data["profiles"]) == {"default", "staging"}
        assert data["default_profile"] == "default"


class TestConfigShow:
    def test_show_json(self, runner: CliRunner, config_file: Path) -> None:
        runner.invoke(cli, ["config", "init", "--url", "https://a.example.org/api/v1"])

        result = runner.invoke(cli, ["config", "show", "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["profiles"] == ["default"]
        assert data["profile_details"]["default"]["url"] == "https://a.example.org/api/v1"

    def test_show_table(self, runner: CliRunner, config_file: Path) -> None:
        runner.invoke(cli, ["config", "init", "--url", "https://a.example.org/api/v1"])

        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "Profile: default (default)" in result.output
