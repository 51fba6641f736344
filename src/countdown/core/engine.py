"""Countdown engine.

The engine owns the countdown state and produces a lazy sequence of
remaining-time snapshots, one per tick. It performs no I/O.

Every snapshot is computed from the absolute deadline (``deadline - now``)
rather than by decrementing a counter, so a late wake-up shows up as one
late snapshot and never as accumulated drift. Tick boundaries are aligned
to the start time; a wake-up that misses one or more boundaries moves on to
the next one instead of replaying the missed ticks.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from countdown.core.cancellation import CancellationSignal
from countdown.core.duration import DurationParts, decompose
from countdown.core.state import CountdownStateMachine, CountdownStatus
from countdown.utils.logging import get_logger

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

# Clock readings this close to a boundary count as being on it.
_EPSILON = 1e-3


@dataclass(frozen=True)
class Snapshot:
    """Remaining time at one tick."""

    tick: int
    remaining: int
    elapsed: float

    @property
    def parts(self) -> DurationParts:
        return decompose(self.remaining)


class CountdownEngine:
    """Drives one countdown from start to completion or cancellation.

    Parameters
    ----------
    total : int
        Duration to count down, in seconds.
    signal : CancellationSignal
        Shared flag; once set the engine stops producing snapshots.
    tick_interval : float
        Seconds between snapshots.
    clock : Callable[[], float]
        Monotonic time source.
    sleep : Callable[[float], Awaitable[None]]
        Coroutine used to wait for the next tick.
    run_id : str | None
        Identifier bound into log events.
    """

    DEFAULT_TICK_INTERVAL = 1.0

    def __init__(
        self,
        total: int,
        signal: CancellationSignal,
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        run_id: str | None = None,
    ) -> None:
        if total < 0:
            raise ValueError(f"duration must be non-negative, got {total}")
        if tick_interval <= 0:
            raise ValueError(f"tick interval must be positive, got {tick_interval}")
        self.total = total
        self.tick_interval = tick_interval
        self._signal = signal
        self._clock = clock
        self._sleep = sleep
        self._machine = CountdownStateMachine(run_id=run_id)
        self.logger = get_logger("engine").bind(run_id=run_id)

        self.started_at: float | None = None
        self.deadline: float | None = None
        self.finished_at: float | None = None

    @property
    def status(self) -> CountdownStatus:
        return self._machine.status

    @property
    def history(self) -> list[str]:
        return list(self._machine.history)

    @property
    def remaining(self) -> int:
        """Whole seconds left, measured when the countdown finished or now."""
        if self.deadline is None:
            return self.total
        now = self.finished_at if self.finished_at is not None else self._clock()
        return max(0, math.ceil(self.deadline - now - _EPSILON))

    async def snapshots(self) -> AsyncIterator[Snapshot]:
        """Yield snapshots until the countdown completes or is cancelled."""
        if self.status is not CountdownStatus.IDLE:
            raise RuntimeError("a countdown engine can only be started once")

        start = self._clock()
        self.started_at = start
        self.deadline = start + self.total
        self._machine.start()
        self.logger.debug("engine.started", total=self.total, tick_interval=self.tick_interval)

        tick = 0
        while True:
            if self._signal.is_cancelled:
                self._finish(cancelled=True)
                return

            now = self._clock()
            remaining = self.deadline - now
            if remaining <= _EPSILON:
                self._finish(cancelled=False)
                yield Snapshot(tick=tick, remaining=0, elapsed=now - start)
                return

            snapshot = Snapshot(
                tick=tick,
                remaining=math.ceil(remaining - _EPSILON),
                elapsed=now - start,
            )
            self.logger.debug("engine.tick", tick=tick, remaining=snapshot.remaining)
            yield snapshot
            tick += 1
            await self._wait_for_tick()

    def _finish(self, *, cancelled: bool) -> None:
        self.finished_at = self._clock()
        if cancelled:
            self._machine.cancel()
        else:
            self._machine.complete()
        self.logger.info(
            "engine.finished",
            status=self.status.value,
            elapsed=round(self.finished_at - (self.started_at or self.finished_at), 3),
            reason=self._signal.reason,
        )

    def _next_wakeup(self, now: float) -> float:
        assert self.started_at is not None and self.deadline is not None
        elapsed = now - self.started_at
        ticks_done = math.floor((elapsed + _EPSILON) / self.tick_interval)
        boundary = self.started_at + (ticks_done + 1) * self.tick_interval
        return min(boundary, self.deadline)

    async def _wait_for_tick(self) -> None:
        """Sleep until the next tick boundary, waking early on cancellation."""
        now = self._clock()
        delay = max(0.0, self._next_wakeup(now) - now)

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(self._signal.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
