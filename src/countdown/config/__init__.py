"""
Configuration module for the countdown timer.

Built-in defaults, an optional YAML settings file and command-line
overrides are merged and validated with pydantic.
"""

from countdown.config.defaults import DEFAULT_CONFIG
from countdown.config.settings import (
    ConfigService,
    DisplaySettings,
    GeneralSettings,
    Settings,
    TimerSettings,
    config_service,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigService",
    "DisplaySettings",
    "GeneralSettings",
    "Settings",
    "TimerSettings",
    "config_service",
]
