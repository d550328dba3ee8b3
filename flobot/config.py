"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MattermostConfig(BaseModel):
    name: str = "flobot"
    api_url: str = ""
    ws_url: str = ""
    token: str = ""
    debug_channel: str = ""
    timeout: float = 10.0


class TriggerConfig(BaseModel):
    repeat_delay: float = 120.0
    channel_rate_limit: float = 3.0


class InstanceConfig(BaseModel):
    poll_timeout: float = 5.0


class DatabaseConfig(BaseModel):
    path: str = "flobot.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLOBOT_",
        env_nested_delimiter="__",
        env_file="flobot.env",
        extra="ignore",
        case_sensitive=False,
    )

    mattermost: MattermostConfig = Field(default_factory=MattermostConfig)
    trigger: TriggerConfig = Field(default_factory=TriggerConfig)
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("FLOBOT_CONFIG")

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # YAML values are passed as init kwargs, which take priority over env vars.
    return Settings(**yaml_data)
