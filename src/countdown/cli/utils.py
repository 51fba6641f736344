"""CLI utility functions for configuration overrides and verbosity handling."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from countdown.config.settings import Settings, config_service

_LEVELS = ["critical", "error", "warning", "info", "debug"]


def compute_verbosity(base_level: str, verbose: int, quiet: int) -> str:
    idx = (
        _LEVELS.index(base_level.lower())
        if base_level.lower() in _LEVELS
        else _LEVELS.index("warning")
    )
    idx = max(0, min(len(_LEVELS) - 1, idx + verbose - quiet))
    return _LEVELS[idx]


def build_cli_overrides(
    *,
    tick: float | None = None,
    style: str | None = None,
    alt_screen: bool | None = None,
    color: bool | None = None,
    log_file: Path | None = None,
) -> dict[str, Any]:
    """Translate explicit command-line flags into a settings override tree."""
    overrides: dict[str, Any] = {"general": {}, "timer": {}, "display": {}}
    if tick is not None:
        overrides["timer"]["tick_interval_seconds"] = tick
    if style is not None:
        overrides["display"]["style"] = style
    if alt_screen is not None:
        overrides["display"]["alternate_screen"] = alt_screen
    if color is not None:
        overrides["general"]["color_enabled"] = color
    if log_file is not None:
        overrides["general"]["log_file"] = str(log_file)
    return overrides


def load_settings_with_cli_overrides(
    *,
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> Settings:
    """Load settings, then apply CLI overrides and the -v/-q verbosity shift."""

    settings = config_service.load(config_path=config_path, cli_overrides=cli_overrides)
    if verbose or quiet:
        level = compute_verbosity(settings.general.verbosity, verbose, quiet)
        settings = settings.model_copy(
            update={"general": settings.general.model_copy(update={"verbosity": level})}
        )
    return settings
