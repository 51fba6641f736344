"""Set-once cancellation flag shared between the listener and the engine."""

from __future__ import annotations

import asyncio


class CancellationSignal:
    """A monotonic cancellation flag.

    Written once by the input listener, read by the engine and the
    orchestrator. Once set it stays set; later calls to :meth:`cancel` are
    no-ops and keep the first reason.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "user") -> bool:
        """Set the flag. Returns ``True`` only for the call that set it."""
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self.is_cancelled}, reason={self._reason!r})"
