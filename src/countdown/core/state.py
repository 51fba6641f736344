"""Countdown lifecycle state machine.

IDLE -> RUNNING -> {COMPLETED, CANCELLED}

Both end states are terminal: triggers fired after the countdown has ended
are ignored, so the final status never changes once reached.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from transitions import Machine

from countdown.utils.logging import get_logger


class CountdownStatus(str, Enum):
    """Countdown lifecycle states."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = frozenset({CountdownStatus.COMPLETED, CountdownStatus.CANCELLED})

TRANSITIONS: list[dict[str, Any]] = [
    {"trigger": "start", "source": CountdownStatus.IDLE.value, "dest": CountdownStatus.RUNNING.value},
    {
        "trigger": "complete",
        "source": CountdownStatus.RUNNING.value,
        "dest": CountdownStatus.COMPLETED.value,
    },
    {
        "trigger": "cancel",
        "source": CountdownStatus.RUNNING.value,
        "dest": CountdownStatus.CANCELLED.value,
    },
]


class CountdownStateMachine:
    """Finite state machine for one countdown run.

    Parameters
    ----------
    run_id : str | None
        Identifier to bind into logs for traceability.
    """

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id
        self.logger = get_logger("state").bind(run_id=run_id)
        self.history: list[str] = []
        self.state: str = CountdownStatus.IDLE.value

        self._machine = Machine(
            model=self,
            states=[state.value for state in CountdownStatus],
            transitions=TRANSITIONS,
            initial=CountdownStatus.IDLE.value,
            auto_transitions=False,
            ignore_invalid_triggers=True,
            after_state_change=self._record_transition,
            send_event=False,
        )

    def _record_transition(self) -> None:
        self.history.append(self.state)
        self.logger.info("state.transition", state=self.state)

    @property
    def status(self) -> CountdownStatus:
        return CountdownStatus(self.state)

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATES
