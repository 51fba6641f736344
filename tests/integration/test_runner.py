"""
Integration tests for the countdown runner.

Runs the engine, renderer and listener together against fake time, an
in-memory console and a queued key source.
"""

from __future__ import annotations

import asyncio
import io
import time

import pytest

from countdown.core import runner as runner_module
from countdown.core.errors import CountdownError, ExitCode, TerminalError
from countdown.core.runner import build_renderer, run_countdown, run_timer
from countdown.core.state import CountdownStatus
from countdown.terminal.renderer import TerminalRenderer
from tests.fixtures import BrokenStream, QueueKeySource, RecordingHandle, make_console


@pytest.fixture
def renderer(console, handle):
    return TerminalRenderer(console, handle)


# =============================================================================
# run_countdown
# =============================================================================


class TestRunCountdown:
    """Concurrent engine, renderer and listener."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_runs_to_completion(self, settings, renderer, handle, clock):
        source = QueueKeySource()
        result = await run_countdown(3, settings, renderer=renderer, key_source=source, clock=clock, sleep=clock.sleep)

        assert result.status is CountdownStatus.COMPLETED
        assert result.remaining == 0
        assert result.frames == 4
        assert result.reason is None
        output = renderer.console.file.getvalue()
        for value in ("03", "02", "01", "00"):
            assert f"Remaining time: {value}" in output
        assert "Timer finished!" in output
        assert handle.release_calls == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_quit_key_before_first_tick(self, settings, renderer, handle, clock):
        source = QueueKeySource(["q"])
        result = await run_countdown(5, settings, renderer=renderer, key_source=source, clock=clock, sleep=clock.sleep)

        assert result.status is CountdownStatus.CANCELLED
        assert result.reason == "quit-key"
        assert result.remaining == 5
        assert "Timer stopped by user at 05." in renderer.console.file.getvalue()
        assert handle.release_calls == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_quit_key_mid_run(self, settings, renderer, handle, clock):
        source = QueueKeySource()

        def press_after_two_ticks(fake):
            if len(fake.sleeps) == 2:
                source.press("x")
                source.press("\x1b")

        clock.hooks.append(press_after_two_ticks)
        result = await run_countdown(10, settings, renderer=renderer, key_source=source, clock=clock, sleep=clock.sleep)

        assert result.status is CountdownStatus.CANCELLED
        assert result.reason == "quit-key"
        assert 0 < result.remaining < 10
        assert result.frames <= 3
        last = renderer.last_snapshot
        assert last is not None and last.remaining >= result.remaining
        assert "Timer stopped by user at" in renderer.console.file.getvalue()
        assert handle.release_calls == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_end_of_input_keeps_counting(self, settings, renderer, clock):
        source = QueueKeySource()
        source.close()
        result = await run_countdown(2, settings, renderer=renderer, key_source=source, clock=clock, sleep=clock.sleep)

        assert result.status is CountdownStatus.COMPLETED

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_write_failure_restores_terminal(self, settings, handle, clock):
        stream = BrokenStream()
        renderer = TerminalRenderer(make_console(stream), handle)

        def break_terminal(fake):
            stream.broken = True

        clock.hooks.append(break_terminal)
        with pytest.raises(TerminalError) as exc_info:
            await run_countdown(5, settings, renderer=renderer, key_source=QueueKeySource(), clock=clock, sleep=clock.sleep)

        assert exc_info.value.operation == "write"
        assert handle.release_calls == 1
        assert not handle.is_active

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_units_style(self, settings, handle, clock, console):
        settings = settings.model_copy(
            update={"display": settings.display.model_copy(update={"style": "units"})}
        )
        renderer = build_renderer(settings, console=console)
        renderer.handle = handle
        await run_countdown(61, settings, renderer=renderer, key_source=QueueKeySource(["q"]), clock=clock, sleep=clock.sleep)

        assert "Timer stopped by user at 01m 01s." in console.file.getvalue()

    @pytest.mark.slow
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_wall_clock_duration(self, settings, renderer):
        settings = settings.model_copy(
            update={"timer": settings.timer.model_copy(update={"tick_interval_seconds": 0.25})}
        )
        started = time.monotonic()
        result = await run_countdown(1, settings, renderer=renderer, key_source=QueueKeySource())
        elapsed = time.monotonic() - started

        assert result.status is CountdownStatus.COMPLETED
        assert 1.0 <= elapsed < 1.0 + 0.25 + 0.2
        assert result.frames == 5


# =============================================================================
# run_timer
# =============================================================================


class TestRunTimer:
    """Exit codes of the synchronous entry point."""

    @pytest.mark.integration
    def test_zero_duration(self, settings, console):
        error_console = make_console(terminal=False)
        code = run_timer(
            "0",
            settings,
            console=console,
            stdin=io.StringIO(),
            error_console=error_console,
            key_source_factory=QueueKeySource,
        )
        assert code == ExitCode.OK
        assert "Timer finished!" in console.file.getvalue()
        assert error_console.file.getvalue() == ""

    @pytest.mark.integration
    def test_user_cancel_exits_zero(self, settings, console):
        code = run_timer(
            "1:00",
            settings,
            console=console,
            error_console=make_console(terminal=False),
            stdin=io.StringIO(),
            key_source_factory=lambda: QueueKeySource(["q"]),
        )
        assert code == ExitCode.OK
        assert "Timer stopped by user at 01:00." in console.file.getvalue()

    @pytest.mark.integration
    @pytest.mark.parametrize("text", ["", "abc", "1:2:3:4:5", "1::2", "-1"])
    def test_malformed_duration_never_touches_terminal(self, settings, monkeypatch, text):
        def unexpected(*args, **kwargs):
            raise AssertionError("terminal touched for a malformed duration")

        monkeypatch.setattr(runner_module, "build_renderer", unexpected)
        error_console = make_console(terminal=False)
        code = run_timer(text, settings, error_console=error_console)

        assert code == ExitCode.FORMAT
        assert "error:" in error_console.file.getvalue()

    @pytest.mark.integration
    def test_terminal_error_exit_code(self, settings, monkeypatch):
        handle = RecordingHandle()
        stream = BrokenStream(broken=True)

        def broken_renderer(settings, **kwargs):
            return TerminalRenderer(make_console(stream, terminal=False), handle)

        monkeypatch.setattr(runner_module, "build_renderer", broken_renderer)
        error_console = make_console(terminal=False)
        code = run_timer(
            "3",
            settings,
            error_console=error_console,
            key_source_factory=QueueKeySource,
        )

        assert code == ExitCode.TERMINAL
        assert "Failed to write to the terminal" in error_console.file.getvalue()
        assert handle.release_calls == 1

    @pytest.mark.integration
    def test_unexpected_error_exit_code(self, settings, console, monkeypatch):
        async def failing_run(*args, **kwargs):
            raise CountdownError("engine stopped unexpectedly")

        monkeypatch.setattr(runner_module, "run_countdown", failing_run)
        error_console = make_console(terminal=False)
        code = run_timer(
            "3",
            settings,
            console=console,
            error_console=error_console,
            stdin=io.StringIO(),
            key_source_factory=QueueKeySource,
        )

        assert code == ExitCode.SOFTWARE
        assert "engine stopped unexpectedly" in error_console.file.getvalue()

    @pytest.mark.integration
    def test_run_context_is_cleared(self, settings, console):
        from countdown.utils.logging import get_run_context

        run_timer("0", settings, console=console, stdin=io.StringIO(), key_source_factory=QueueKeySource)
        assert get_run_context() == {}


@pytest.mark.integration
def test_producer_closes_channel_on_cancel():
    """The snapshot channel is always closed, even when the ticker is cancelled."""

    async def scenario():
        from countdown.core.cancellation import CancellationSignal
        from countdown.core.engine import CountdownEngine

        engine = CountdownEngine(100, CancellationSignal(), tick_interval=10.0)
        channel: asyncio.Queue = asyncio.Queue()
        task = asyncio.ensure_future(runner_module._produce(engine, channel))
        first = await asyncio.wait_for(channel.get(), timeout=1.0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return first, channel.get_nowait()

    first, sentinel = asyncio.run(scenario())
    assert first.remaining == 100
    assert sentinel is None
