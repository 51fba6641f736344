"""Default configuration values."""

from __future__ import annotations

from typing import Any

# Default configuration tree used when no settings file is given.
DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "verbosity": "warning",
        "output_format": "text",
        "color_enabled": True,
        "log_file": "",
    },
    "timer": {
        "tick_interval_seconds": 1.0,
        # q, Q and Esc
        "quit_keys": ["q", "Q", "\x1b"],
        # Ctrl-C arriving as a key byte rather than as SIGINT
        "interrupt_keys": ["\x03"],
        "handle_sigint": True,
    },
    "display": {
        "label": "Remaining time",
        "style": "clock",
        "alternate_screen": False,
        "hide_cursor": True,
    },
}
