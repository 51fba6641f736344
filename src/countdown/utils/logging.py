"""Structured logging for the timer.

Log records are built by structlog and written through stdlib ``logging``
to stderr (and optionally a file), so they never mix with the countdown
line on stdout. Per-run fields such as ``run_id`` are bound with
:func:`set_run_context` and merged into every record until
:func:`clear_run_context`.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from countdown.config.settings import Settings

_LEVEL_MAP = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Loggers of libraries that are chatty below WARNING
_QUIET_LIBRARIES = ("transitions", "asyncio")


def _json_default(obj: Any) -> Any:
    """Fallback for values ``json.dumps`` cannot encode (paths, enums, datetimes)."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


# Fields merged into every record of the current run
_run_fields: ContextVar[dict[str, Any]] = ContextVar("run_fields", default={})


def set_run_context(run_id: str | None = None, **extra: Any) -> None:
    """Bind fields that every log record of the current run should carry."""
    if run_id:
        extra["run_id"] = run_id
    _run_fields.set({**_run_fields.get(), **extra})


def get_run_context() -> dict[str, Any]:
    return dict(_run_fields.get())


def clear_run_context() -> None:
    _run_fields.set({})


def _merge_run_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in _run_fields.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def generate_run_id() -> str:
    """Generate a short unique run ID."""
    return uuid.uuid4().hex[:8]


def _build_renderer(output_format: str, color: bool) -> Any:
    if output_format.lower() == "json":
        return structlog.processors.JSONRenderer(sort_keys=True, default=_json_default)
    return structlog.dev.ConsoleRenderer(colors=color)


def configure_logging(
    *,
    level: str = "warning",
    output_format: str = "text",
    color: bool = True,
    log_file: Path | None = None,
) -> None:
    """Configure structlog + stdlib logging.

    Parameters
    ----------
    level: str
            Minimum level (debug, info, warning, error, critical). Unknown
            names fall back to warning.
    output_format: str
            "text" for console-friendly rendering, "json" for one JSON
            object per line.
    color: bool
            Enable colored output in text mode.
    log_file: Optional[Path]
            Also append records to this file. Parent directories are created.
    """

    log_level = _LEVEL_MAP.get(level.lower(), logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _merge_run_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _build_renderer(output_format, color),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(log_level)
    formatter = logging.Formatter("%(message)s")
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: Settings) -> None:
    general = settings.general
    configure_logging(
        level=general.verbosity,
        output_format=general.output_format,
        color=general.color_enabled,
        log_file=Path(general.log_file) if general.log_file else None,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a configured structlog logger."""
    return structlog.get_logger(name) if name else structlog.get_logger()


class timed_operation:
    """Context manager that logs how long a block took and whether it raised.

    Usage:
        with timed_operation("countdown.run", logger=log, total=90):
            ...
        # Logs: {"event": "countdown.run", "duration_ms": 90012.4, "status": "completed", "total": 90}
    """

    def __init__(
        self,
        operation_name: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        log_level: str = "info",
        **extra_context: Any,
    ) -> None:
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.log_level = log_level
        self.extra_context = extra_context
        self._started = 0.0

    def __enter__(self) -> timed_operation:
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        duration_ms = round((time.perf_counter() - self._started) * 1000, 2)
        getattr(self.logger, self.log_level)(
            self.operation_name,
            duration_ms=duration_ms,
            status="failed" if exc_type else "completed",
            **self.extra_context,
        )
