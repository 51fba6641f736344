"""Keyboard input and the cancellation listener.

A key source turns terminal input into a stream of single characters.
:class:`InputListener` watches that stream (and ``SIGINT``) for the
configured quit and interrupt keys and sets the cancellation signal on the
first match. Everything else is ignored.
"""

from __future__ import annotations

import asyncio
import codecs
import os
import signal
import sys
from collections.abc import Iterable
from typing import Any, Protocol, TextIO

from countdown.core.cancellation import CancellationSignal
from countdown.terminal.handle import terminal_fd
from countdown.utils.logging import get_logger

_IS_WINDOWS = os.name == "nt"

_ESCAPE = "\x1b"

# msvcrt.kbhit() polling period on Windows
_CONSOLE_POLL_SECONDS = 0.05


class KeySource(Protocol):
    """Asynchronous stream of key presses. ``read_key`` returns ``None`` at end of input."""

    async def __aenter__(self) -> KeySource: ...

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None: ...

    async def read_key(self) -> str | None: ...


class StdinKeySource:
    """Key presses read from stdin without blocking the event loop.

    POSIX terminals are watched with ``loop.add_reader``; the Windows
    console is polled with ``msvcrt``. When stdin is not a terminal no keys
    are ever delivered.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        encoding = getattr(self._stream, "encoding", None) or "utf-8"
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._loop: asyncio.AbstractEventLoop | None = None
        self._fd: int | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self.logger = get_logger("input")

    async def __aenter__(self) -> StdinKeySource:
        self._loop = asyncio.get_running_loop()
        fd = terminal_fd(self._stream)
        if fd is None:
            self.logger.debug("input.attach", interactive=False)
            return self

        if _IS_WINDOWS:
            self._poll_task = asyncio.ensure_future(self._poll_console())
        else:
            self._loop.add_reader(fd, self._on_readable)
            self._fd = fd
        self.logger.debug("input.attach", interactive=True)
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self._detach()
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None

    def _detach(self) -> None:
        if self._fd is not None and self._loop is not None:
            self._loop.remove_reader(self._fd)
            self._fd = None

    def _on_readable(self) -> None:
        assert self._fd is not None
        try:
            data = os.read(self._fd, 64)
        except OSError as exc:
            self.logger.warning("input.read_failed", error=str(exc))
            data = b""
        if not data:
            self._detach()
            self._queue.put_nowait(None)
            return
        text = self._decoder.decode(data)
        # Arrow and function keys arrive as ESC followed by more bytes in one
        # read. Only a lone ESC is the Escape key.
        keys, escape, sequence = text.partition(_ESCAPE)
        for char in keys:
            self._queue.put_nowait(char)
        if escape and not sequence:
            self._queue.put_nowait(escape)
        elif sequence:
            self.logger.debug("input.escape_sequence", sequence=repr(escape + sequence))

    async def _poll_console(self) -> None:
        import msvcrt

        while True:
            if msvcrt.kbhit():  # type: ignore[attr-defined]
                self._queue.put_nowait(msvcrt.getwch())  # type: ignore[attr-defined]
            else:
                await asyncio.sleep(_CONSOLE_POLL_SECONDS)

    async def read_key(self) -> str | None:
        return await self._queue.get()


class InputListener:
    """Sets the cancellation signal on the first quit or interrupt key.

    Parameters
    ----------
    source : KeySource
        Where key presses come from.
    cancellation : CancellationSignal
        Flag to set. The listener is its only writer.
    quit_keys : Iterable[str]
        Keys that stop the countdown (reason ``"quit-key"``).
    interrupt_keys : Iterable[str]
        Keys treated like Ctrl-C (reason ``"interrupt"``).
    handle_sigint : bool
        Also treat ``SIGINT`` as an interrupt while listening.
    """

    def __init__(
        self,
        source: KeySource,
        cancellation: CancellationSignal,
        *,
        quit_keys: Iterable[str] = ("q", "Q", "\x1b"),
        interrupt_keys: Iterable[str] = ("\x03",),
        handle_sigint: bool = True,
    ) -> None:
        self.source = source
        self.cancellation = cancellation
        self.quit_keys = frozenset(quit_keys)
        self.interrupt_keys = frozenset(interrupt_keys)
        self.handle_sigint = handle_sigint
        self.logger = get_logger("input")

    def classify(self, key: str) -> str | None:
        """Return the cancellation reason for ``key``, or ``None`` to ignore it."""
        if key in self.interrupt_keys:
            return "interrupt"
        if key in self.quit_keys:
            return "quit-key"
        return None

    def _trigger(self, reason: str) -> None:
        if self.cancellation.cancel(reason):
            self.logger.info("input.cancel", reason=reason)

    def _install_sigint(self, loop: asyncio.AbstractEventLoop) -> bool:
        if not self.handle_sigint:
            return False
        try:
            loop.add_signal_handler(signal.SIGINT, self._trigger, "interrupt")
        except (NotImplementedError, RuntimeError, ValueError):
            # Not the main thread, or a loop without signal support (Windows).
            return False
        return True

    async def listen(self) -> str | None:
        """Listen until a cancellation key arrives or input ends.

        Returns the cancellation reason, or ``None`` if input ended first.
        """
        loop = asyncio.get_running_loop()
        installed = self._install_sigint(loop)
        try:
            while not self.cancellation.is_cancelled:
                key = await self.source.read_key()
                if key is None:
                    self.logger.debug("input.closed")
                    return None
                reason = self.classify(key)
                if reason is None:
                    self.logger.debug("input.ignored", key=repr(key))
                    continue
                self._trigger(reason)
                break
            return self.cancellation.reason
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)
