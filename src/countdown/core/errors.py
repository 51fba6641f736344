"""Countdown exceptions and process exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes returned by the ``timer`` command."""

    OK = 0
    USAGE = 2  # raised by click for bad flags
    FORMAT = 65  # EX_DATAERR
    SOFTWARE = 70  # EX_SOFTWARE
    TERMINAL = 74  # EX_IOERR
    CONFIG = 78  # EX_CONFIG


class ErrorKind(str, Enum):
    """Who is expected to act on an error."""

    USER = "user"
    SYSTEM = "system"


class FormatErrorReason(str, Enum):
    """Why a duration string was rejected."""

    EMPTY = "empty"
    TOO_MANY_FIELDS = "too_many_fields"
    INVALID_FIELD = "invalid_field"
    OVERFLOW = "overflow"


@dataclass(eq=False)
class CountdownError(Exception):
    """Base exception for all countdown errors.

    Carries a short message, a piece of advice for whoever has to fix the
    problem, and the exit code the command should finish with.
    """

    message: str
    advice: str = ""
    kind: ErrorKind = ErrorKind.USER
    exit_code: ExitCode = ExitCode.SOFTWARE
    details: dict[str, Any] = field(default_factory=dict)
    cause: BaseException | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Message, cause and advice as a multi-line report."""
        lines = [self.message]
        if self.cause is not None:
            lines.append(f"caused by: {self.cause}")
        if self.advice:
            lines.append(self.advice)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to serializable dictionary."""
        return {
            "type": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "advice": self.advice,
            "exit_code": int(self.exit_code),
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class FormatError(CountdownError):
    """Raised when a duration string cannot be parsed."""

    def __init__(
        self,
        reason: FormatErrorReason,
        message: str,
        *,
        field_name: str | None = None,
        value: str | None = None,
        advice: str = 'Provide the duration in the format "[[[d:]h:]m:]s", e.g. "1:30"',
        cause: BaseException | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason.value}
        if field_name is not None:
            details["field"] = field_name
        if value is not None:
            details["value"] = value
        super().__init__(
            message=message,
            advice=advice,
            kind=ErrorKind.USER,
            exit_code=ExitCode.FORMAT,
            details=details,
            cause=cause,
        )
        self.reason = reason
        self.field_name = field_name


class TerminalError(CountdownError):
    """Raised when the terminal cannot be switched, restored or written to."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message=message,
            advice="Run the timer from an interactive terminal, or report the problem",
            kind=ErrorKind.SYSTEM,
            exit_code=ExitCode.TERMINAL,
            details={"operation": operation},
            cause=cause,
        )
        self.operation = operation


class ConfigError(CountdownError):
    """Raised when a settings file is unreadable or invalid."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message=message,
            advice="Check the settings file against the documented keys",
            kind=ErrorKind.USER,
            exit_code=ExitCode.CONFIG,
            details={"path": path} if path else {},
            cause=cause,
        )
        self.path = path
