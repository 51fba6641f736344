"""Core countdown logic: duration parsing, the engine and orchestration."""

from .cancellation import CancellationSignal
from .duration import (
    MAX_DURATION_SECONDS,
    DurationParts,
    decompose,
    format_duration,
    format_duration_units,
    parse_duration,
)
from .engine import CountdownEngine, Snapshot
from .errors import (
    ConfigError,
    CountdownError,
    ErrorKind,
    ExitCode,
    FormatError,
    FormatErrorReason,
    TerminalError,
)
from .state import TRANSITIONS, CountdownStateMachine, CountdownStatus

__all__ = [
    # Duration
    "MAX_DURATION_SECONDS",
    "DurationParts",
    "decompose",
    "format_duration",
    "format_duration_units",
    "parse_duration",
    # Engine
    "CancellationSignal",
    "CountdownEngine",
    "Snapshot",
    # State
    "CountdownStatus",
    "CountdownStateMachine",
    "TRANSITIONS",
    # Errors
    "ConfigError",
    "CountdownError",
    "ErrorKind",
    "ExitCode",
    "FormatError",
    "FormatErrorReason",
    "TerminalError",
]
