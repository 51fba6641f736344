"""Terminal ownership, rendering and keyboard input."""

from countdown.terminal.handle import TerminalHandle
from countdown.terminal.input import InputListener, KeySource, StdinKeySource
from countdown.terminal.renderer import TerminalRenderer, report_error

__all__ = [
    "TerminalHandle",
    "TerminalRenderer",
    "report_error",
    "InputListener",
    "KeySource",
    "StdinKeySource",
]
