"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelegramConfig(BaseModel):
    bot_token: str = ""
    chat_id: str = ""
    message_thread_id: int | None = None  # forum topic; None posts to the main chat
    api_base: str = "https://api.telegram.org"
    timeout: float = 10.0
    disable_link_preview: bool = True

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class GitHubConfig(BaseModel):
    """Empty webhook_secret disables signature verification."""
    webhook_secret: str = ""
    ignored_events: list[str] = Field(default_factory=list)


class ServerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 8420
    path: str = "/webhooks/github"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OCTOGRAM_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"
    log_json: bool = False


APP_NAME = "octogram"
CONFIG_FILE = "config.yaml"


def get_config_dir() -> Path:
    """Directory holding ``config.yaml``; ``OCTOGRAM_CONFIG_DIR`` wins."""
    env = os.environ.get("OCTOGRAM_CONFIG_DIR")
    if env:
        return Path(env)
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(xdg) / APP_NAME


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config.

    Keyword overrides (e.g. from the command line) are merged over the YAML.
    """
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("OCTOGRAM_CONFIG")
    if config_path is None:
        default = get_config_dir() / CONFIG_FILE
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Init values (YAML, then overrides) take precedence over env vars
    return Settings(**_deep_merge(yaml_data, overrides))
