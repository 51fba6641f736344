"""Terminal renderer.

The renderer is the only writer to the terminal during a run. Entering it
acquires the :class:`TerminalHandle` and prepares the screen; leaving it
restores the screen and releases the handle on every exit path, including
errors raised while drawing.
"""

from __future__ import annotations

import asyncio
from typing import Any

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from countdown.core.duration import FORMATTERS
from countdown.core.engine import Snapshot
from countdown.core.errors import CountdownError, TerminalError
from countdown.core.state import CountdownStatus
from countdown.terminal.handle import TerminalHandle
from countdown.utils.logging import get_logger

_ERASE_LINE = Control.move_to_column(0), Control((ControlType.ERASE_IN_LINE, 2))


class TerminalRenderer:
    """Draws countdown snapshots on a single, continuously overwritten line.

    Parameters
    ----------
    console : Console
        Rich console to draw on.
    handle : TerminalHandle
        Terminal mode owned for the duration of the run.
    label : str
        Text shown before the remaining time.
    style : str
        ``"clock"`` (``1:02:03:04``) or ``"units"`` (``1d 02h 03m 04s``).
    alternate_screen : bool
        Draw on the terminal's alternate screen.
    hide_cursor : bool
        Hide the cursor while the countdown is displayed.
    """

    def __init__(
        self,
        console: Console,
        handle: TerminalHandle,
        *,
        label: str = "Remaining time",
        style: str = "clock",
        alternate_screen: bool = False,
        hide_cursor: bool = True,
    ) -> None:
        if style not in FORMATTERS:
            raise ValueError(f"unknown display style {style!r}")
        self.console = console
        self.handle = handle
        self.label = label
        self.format_remaining = FORMATTERS[style]
        self.alternate_screen = alternate_screen
        self.hide_cursor = hide_cursor
        self.frames = 0
        self.last_snapshot: Snapshot | None = None
        self._outcome: str | None = None
        self._screen_prepared = False
        self.logger = get_logger("renderer")

    # -- scope ---------------------------------------------------------------

    async def __aenter__(self) -> TerminalRenderer:
        self.handle.acquire()
        try:
            self._prepare_screen()
        except TerminalError:
            self.logger.warning("renderer.prepare_failed")
            self._restore(outcome=None, suppress=True)
            raise
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        # An error already in flight wins over one raised while restoring.
        self._restore(
            outcome=self._outcome if exc_type is None else None,
            suppress=exc_type is not None,
        )

    def _prepare_screen(self) -> None:
        self._screen_prepared = True
        try:
            if self.alternate_screen:
                self.console.set_alt_screen(True)
            if self.hide_cursor:
                self.console.show_cursor(False)
        except (OSError, ValueError) as exc:
            raise TerminalError("prepare", "Failed to prepare the terminal screen", cause=exc) from exc

    def _restore_screen(self) -> None:
        if not self._screen_prepared:
            return
        self._screen_prepared = False
        try:
            if self.frames and self.console.is_terminal:
                self.console.control(*_ERASE_LINE)
            if self.hide_cursor:
                self.console.show_cursor(True)
            if self.alternate_screen:
                self.console.set_alt_screen(False)
        except (OSError, ValueError) as exc:
            raise TerminalError("restore", "Failed to restore the terminal screen", cause=exc) from exc

    def _restore(self, *, outcome: str | None, suppress: bool) -> None:
        error: TerminalError | None = None
        try:
            self._restore_screen()
            if outcome:
                self._write(Text(outcome), end="\n")
        except TerminalError as exc:
            error = exc
        finally:
            try:
                self.handle.release()
            except TerminalError as exc:
                error = error or exc
        self.logger.debug("renderer.release", frames=self.frames, failed=error is not None)

        if error is not None:
            if suppress:
                self.logger.warning("renderer.restore_failed", error=str(error))
            else:
                raise error

    # -- drawing -------------------------------------------------------------

    def format_line(self, snapshot: Snapshot) -> Text:
        return Text.assemble(
            (f"{self.label}: ", "bold"),
            (self.format_remaining(snapshot.remaining), "bold cyan"),
        )

    def render(self, snapshot: Snapshot) -> None:
        """Draw one snapshot over the previous one."""
        if not self.handle.is_active:
            raise RuntimeError("render() called outside the renderer scope")
        if self.console.is_terminal:
            self._write(self.format_line(snapshot), end="", erase=True)
        else:
            self._write(self.format_line(snapshot), end="\n")
        self.frames += 1
        self.last_snapshot = snapshot

    def _write(self, text: Text, *, end: str, erase: bool = False) -> None:
        try:
            if erase:
                self.console.control(*_ERASE_LINE)
            self.console.print(text, end=end, soft_wrap=True, highlight=False)
        except (OSError, ValueError) as exc:
            raise TerminalError("write", "Failed to write to the terminal", cause=exc) from exc

    async def consume(self, channel: asyncio.Queue[Snapshot | None]) -> int:
        """Render snapshots from ``channel`` until the ``None`` sentinel."""
        while True:
            snapshot = await channel.get()
            if snapshot is None:
                return self.frames
            self.render(snapshot)

    def finish(self, status: CountdownStatus, remaining: int | None = None) -> None:
        """Record the outcome line printed when the renderer scope closes."""
        if status is CountdownStatus.COMPLETED:
            self._outcome = "Timer finished!"
        elif status is CountdownStatus.CANCELLED:
            if remaining is None:
                remaining = self.last_snapshot.remaining if self.last_snapshot else 0
            self._outcome = f"Timer stopped by user at {self.format_remaining(remaining)}."
        else:
            self._outcome = None


def report_error(error: CountdownError, console: Console) -> None:
    """Print a countdown error with its cause and advice."""
    console.print(Text.assemble(("error: ", "bold red"), error.message), highlight=False)
    if error.cause is not None:
        console.print(Text(f"  caused by: {error.cause}"), style="dim", highlight=False)
    if error.advice:
        console.print(Text(f"  {error.advice}"), style="yellow", highlight=False)
