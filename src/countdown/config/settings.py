"""Configuration system for the countdown timer.

Settings are layered with the following priority (high -> low):
1) CLI overrides (explicit flags)
2) Settings file passed with ``--config``
3) Built-in defaults

No environment variables or implicit user files are consulted.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from countdown.config.defaults import DEFAULT_CONFIG
from countdown.core.errors import ConfigError


class GeneralSettings(BaseModel):
    verbosity: Literal["critical", "error", "warning", "info", "debug"] = Field(default="warning")
    output_format: Literal["text", "json"] = Field(default="text")
    color_enabled: bool = Field(default=True)
    log_file: str = Field(default="")


class TimerSettings(BaseModel):
    tick_interval_seconds: float = Field(default=1.0, gt=0)
    quit_keys: list[str] = Field(default_factory=lambda: ["q", "Q", "\x1b"])
    interrupt_keys: list[str] = Field(default_factory=lambda: ["\x03"])
    handle_sigint: bool = Field(default=True)

    @field_validator("quit_keys", "interrupt_keys")
    @classmethod
    def _single_characters(cls, keys: list[str]) -> list[str]:
        for key in keys:
            if len(key) != 1:
                raise ValueError(f"key bindings must be single characters, got {key!r}")
        return keys


class DisplaySettings(BaseModel):
    label: str = Field(default="Remaining time")
    style: Literal["clock", "units"] = Field(default="clock")
    alternate_screen: bool = Field(default=False)
    hide_cursor: bool = Field(default=True)


class Settings(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    timer: TimerSettings = Field(default_factory=TimerSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        return cls.model_validate(data)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base, returning a new dict."""

    result = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}", path=str(path), cause=exc) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML settings at {path}", path=str(path), cause=exc) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping", path=str(path))
    return data


class ConfigService:
    """Loads and merges countdown settings."""

    def load(
        self,
        config_path: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Settings:
        data = copy.deepcopy(DEFAULT_CONFIG)

        if config_path is not None:
            data = _deep_merge(data, _load_yaml(config_path))
        if cli_overrides:
            data = _deep_merge(data, cli_overrides)

        try:
            return Settings.from_dict(data)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid configuration: {exc.error_count()} error(s)",
                path=str(config_path) if config_path else None,
                cause=exc,
            ) from exc


config_service = ConfigService()
