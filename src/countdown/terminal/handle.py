"""Exclusive control of the terminal's input mode.

On POSIX terminals the handle switches stdin to cbreak mode (unbuffered,
no echo, signals still delivered) and restores the saved attributes on
release. When the stream is not a terminal, or on Windows where console
input is already delivered key by key through ``msvcrt``, acquire and
release only track ownership.
"""

from __future__ import annotations

import io
import os
import sys
from typing import Any, TextIO

from countdown.core.errors import TerminalError
from countdown.utils.logging import get_logger

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import termios
    import tty


def terminal_fd(stream: Any) -> int | None:
    """Return the file descriptor behind ``stream`` if it is a terminal."""
    try:
        if not stream.isatty():
            return None
        return stream.fileno()
    except (AttributeError, ValueError, io.UnsupportedOperation):
        return None


class TerminalHandle:
    """Acquired at most once, released exactly once."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._fd: int | None = None
        self._saved: list[Any] | None = None
        self._acquired = False
        self._released = False
        self.logger = get_logger("terminal")

    @property
    def is_active(self) -> bool:
        """True between a successful acquire and release."""
        return self._acquired and not self._released

    @property
    def is_interactive(self) -> bool:
        """True when the handle actually changed the terminal mode."""
        return self._saved is not None

    def acquire(self) -> None:
        if self._acquired:
            raise TerminalError("acquire", "The terminal has already been acquired for this run")
        self._acquired = True

        fd = None if _IS_WINDOWS else terminal_fd(self._stream)
        if fd is None:
            self.logger.debug("terminal.acquire", interactive=False)
            return

        try:
            saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError) as exc:
            self._released = True
            raise TerminalError("acquire", "Failed to switch the terminal to cbreak mode", cause=exc) from exc
        self._fd = fd
        self._saved = saved
        self.logger.debug("terminal.acquire", interactive=True, fd=fd)

    def release(self) -> None:
        if not self._acquired or self._released:
            return
        self._released = True
        if self._fd is None or self._saved is None:
            self.logger.debug("terminal.release", interactive=False)
            return

        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        except (termios.error, OSError) as exc:
            raise TerminalError("release", "Failed to restore the terminal mode", cause=exc) from exc
        self.logger.debug("terminal.release", interactive=True, fd=self._fd)

    def __enter__(self) -> TerminalHandle:
        self.acquire()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.release()
