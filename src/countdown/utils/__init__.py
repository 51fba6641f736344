"""
Shared utilities module.
"""

from countdown.utils.logging import (
    clear_run_context,
    configure_from_settings,
    configure_logging,
    generate_run_id,
    get_logger,
    get_run_context,
    set_run_context,
    timed_operation,
)

__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "set_run_context",
    "get_run_context",
    "clear_run_context",
    "generate_run_id",
    "timed_operation",
]
