"""Countdown orchestration.

``run_timer`` is the whole program behind the CLI: parse the duration once,
then run the engine, the renderer and the input listener concurrently until
the countdown completes or is cancelled, and map the outcome to an exit
code. A malformed duration is reported before the terminal is touched.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass
from typing import TextIO

from rich.console import Console

from countdown.config.settings import Settings
from countdown.core.cancellation import CancellationSignal
from countdown.core.duration import parse_duration
from countdown.core.engine import Clock, CountdownEngine, Sleep, Snapshot
from countdown.core.errors import CountdownError, ExitCode, FormatError, TerminalError
from countdown.core.state import CountdownStatus
from countdown.terminal.handle import TerminalHandle
from countdown.terminal.input import InputListener, KeySource, StdinKeySource
from countdown.terminal.renderer import TerminalRenderer, report_error
from countdown.utils.logging import (
    clear_run_context,
    generate_run_id,
    get_logger,
    set_run_context,
    timed_operation,
)

logger = get_logger("runner")


@dataclass(frozen=True)
class CountdownResult:
    """Outcome of one countdown run."""

    status: CountdownStatus
    total: int
    remaining: int
    frames: int
    reason: str | None = None


async def _produce(engine: CountdownEngine, channel: asyncio.Queue[Snapshot | None]) -> None:
    """Pump engine snapshots into the channel, closing it with ``None``."""
    try:
        async with aclosing(engine.snapshots()) as snapshots:
            async for snapshot in snapshots:
                await channel.put(snapshot)
    finally:
        channel.put_nowait(None)


async def _cancel_tasks(*tasks: asyncio.Task) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for task, result in zip(tasks, results):
        if isinstance(result, Exception):
            logger.warning("runner.task_failed", task=task.get_name(), error=str(result))


async def run_countdown(
    total: int,
    settings: Settings,
    *,
    renderer: TerminalRenderer,
    key_source: KeySource,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
    run_id: str | None = None,
) -> CountdownResult:
    """Run one countdown of ``total`` seconds.

    The renderer's terminal scope is closed, and the terminal restored,
    before this coroutine returns or raises.

    Raises
    ------
    TerminalError
        If the terminal cannot be prepared, drawn on or restored.
    """
    cancellation = CancellationSignal()
    engine = CountdownEngine(
        total,
        cancellation,
        tick_interval=settings.timer.tick_interval_seconds,
        clock=clock,
        sleep=sleep,
        run_id=run_id,
    )
    listener = InputListener(
        key_source,
        cancellation,
        quit_keys=settings.timer.quit_keys,
        interrupt_keys=settings.timer.interrupt_keys,
        handle_sigint=settings.timer.handle_sigint,
    )
    channel: asyncio.Queue[Snapshot | None] = asyncio.Queue()

    async with renderer:
        async with key_source:
            listen_task = asyncio.create_task(listener.listen(), name="countdown-listener")
            produce_task = asyncio.create_task(_produce(engine, channel), name="countdown-ticker")
            try:
                await renderer.consume(channel)
                await produce_task
            finally:
                await _cancel_tasks(listen_task, produce_task)
        renderer.finish(engine.status, engine.remaining)

    return CountdownResult(
        status=engine.status,
        total=total,
        remaining=engine.remaining,
        frames=renderer.frames,
        reason=cancellation.reason,
    )


def build_renderer(
    settings: Settings,
    *,
    console: Console | None = None,
    stdin: TextIO | None = None,
) -> TerminalRenderer:
    """Create the renderer described by ``settings``."""
    display = settings.display
    return TerminalRenderer(
        console or Console(no_color=not settings.general.color_enabled),
        TerminalHandle(stdin),
        label=display.label,
        style=display.style,
        alternate_screen=display.alternate_screen,
        hide_cursor=display.hide_cursor,
    )


def run_timer(
    text: str,
    settings: Settings,
    *,
    console: Console | None = None,
    error_console: Console | None = None,
    stdin: TextIO | None = None,
    key_source_factory: Callable[[], KeySource] | None = None,
) -> int:
    """Parse ``text`` and run the countdown. Returns the process exit code."""
    error_console = error_console or Console(stderr=True, no_color=not settings.general.color_enabled)
    run_id = generate_run_id()
    set_run_context(run_id=run_id)
    try:
        try:
            total = parse_duration(text)
        except FormatError as exc:
            logger.info("runner.invalid_duration", **exc.details)
            report_error(exc, error_console)
            return exc.exit_code

        renderer = build_renderer(settings, console=console, stdin=stdin)
        key_source = key_source_factory() if key_source_factory else StdinKeySource(stdin)
        try:
            with timed_operation("countdown.run", logger=logger, total=total):
                result = asyncio.run(
                    run_countdown(
                        total,
                        settings,
                        renderer=renderer,
                        key_source=key_source,
                        run_id=run_id,
                    )
                )
        except TerminalError as exc:
            logger.info("runner.terminal_error", **exc.to_dict())
            report_error(exc, error_console)
            return exc.exit_code
        except CountdownError as exc:
            logger.error("runner.failed", **exc.to_dict())
            report_error(exc, error_console)
            return exc.exit_code
        except KeyboardInterrupt:
            # SIGINT without a loop handler still ends the run as a user cancel.
            logger.info("runner.interrupted")
            return ExitCode.OK

        logger.info(
            "runner.finished",
            status=result.status.value,
            remaining=result.remaining,
            reason=result.reason,
        )
        return ExitCode.OK
    finally:
        clear_run_context()
