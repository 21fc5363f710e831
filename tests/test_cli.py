"""Tests for the command line interface."""

import hashlib
import hmac
import json
from typing import ClassVar

import pytest
from click.testing import CliRunner

from octogram import main
from octogram.github.events import EVENTS, GitHubEvent
from octogram.main import cli


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.delenv("OCTOGRAM_CONFIG", raising=False)
    monkeypatch.delenv("OCTOGRAM_GITHUB__WEBHOOK_SECRET", raising=False)
    monkeypatch.setenv("OCTOGRAM_CONFIG_DIR", str(tmp_path / "config-dir"))


@pytest.fixture
def star_file(tmp_path):
    path = tmp_path / "star.json"
    path.write_text(json.dumps({
        "action": "created",
        "repository": {"full_name": "org/repo"},
        "sender": {"login": "alice"},
    }))
    return path


class TestRender:
    def test_prints_message(self, star_file):
        result = CliRunner().invoke(cli, ["render", "star", str(star_file)])
        assert result.exit_code == 0
        assert "⭐ alice starred org/repo" in result.output

    def test_unsupported_event(self, star_file):
        result = CliRunner().invoke(cli, ["render", "sponsorship", str(star_file)])
        assert result.exit_code == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        result = CliRunner().invoke(cli, ["render", "star", str(path)])
        assert result.exit_code == 1

    def test_suppressed_payload(self, tmp_path):
        path = tmp_path / "edited.json"
        path.write_text(json.dumps({"action": "edited"}))
        result = CliRunner().invoke(cli, ["render", "star", str(path)])
        assert result.exit_code == 0
        assert "⭐" not in result.output


class TestSign:
    def test_with_secret_option(self, star_file):
        expected = "sha256=" + hmac.new(b"s3cret", star_file.read_bytes(), hashlib.sha256).hexdigest()
        result = CliRunner().invoke(cli, ["sign", str(star_file), "--secret", "s3cret"])
        assert result.exit_code == 0
        assert result.output.strip() == expected

    def test_uses_configured_secret(self, star_file, monkeypatch):
        monkeypatch.setenv("OCTOGRAM_GITHUB__WEBHOOK_SECRET", "from-env")
        expected = "sha256=" + hmac.new(b"from-env", star_file.read_bytes(), hashlib.sha256).hexdigest()
        result = CliRunner().invoke(cli, ["sign", str(star_file)])
        assert result.exit_code == 0
        assert result.output.strip() == expected

    def test_without_secret(self, star_file):
        result = CliRunner().invoke(cli, ["sign", str(star_file)])
        assert result.exit_code == 2


class ExplodingEvent(GitHubEvent):
    event_type: ClassVar[str] = "explode"

    def render(self) -> str:
        raise RuntimeError("renderer bug")


class TestRenderFailure:
    def test_prints_fallback_and_error(self, star_file, monkeypatch):
        monkeypatch.setitem(EVENTS, "explode", ExplodingEvent)
        result = CliRunner().invoke(cli, ["render", "explode", str(star_file)])
        assert result.exit_code == 1
        assert "Error processing `explode` event for repo `org/repo`" in result.output
        assert "RuntimeError: renderer bug" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


class TestSettingsOverrides:
    def test_log_level_option_overrides_config(self, star_file, tmp_path, monkeypatch):
        levels = []
        monkeypatch.setattr(main, "setup_logging", lambda level, json_output: levels.append(level))
        config = tmp_path / "config.yaml"
        config.write_text("log_level: WARNING\n")
        result = CliRunner().invoke(
            cli, ["--config", str(config), "--log-level", "ERROR", "render", "star", str(star_file)]
        )
        assert result.exit_code == 0
        assert levels == ["ERROR"]

    def test_config_log_level_used_without_option(self, star_file, tmp_path, monkeypatch):
        levels = []
        monkeypatch.setattr(main, "setup_logging", lambda level, json_output: levels.append(level))
        config = tmp_path / "config.yaml"
        config.write_text("log_level: WARNING\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "render", "star", str(star_file)])
        assert result.exit_code == 0
        assert levels == ["WARNING"]

    def test_serve_port_merged_over_config(self, tmp_path, monkeypatch):
        served = []

        async def fake_run(settings):
            served.append(settings)

        monkeypatch.setattr(main, "run", fake_run)
        config = tmp_path / "config.yaml"
        config.write_text("server:\n  bind: 127.0.0.1\n  port: 8000\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "serve", "--port", "9100"])
        assert result.exit_code == 0
        assert served[0].server.port == 9100
        assert served[0].server.bind == "127.0.0.1"

    def test_serve_without_port_uses_config(self, tmp_path, monkeypatch):
        served = []

        async def fake_run(settings):
            served.append(settings)

        monkeypatch.setattr(main, "run", fake_run)
        config = tmp_path / "config.yaml"
        config.write_text("server:\n  port: 8000\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "serve"])
        assert result.exit_code == 0
        assert served[0].server.port == 8000
