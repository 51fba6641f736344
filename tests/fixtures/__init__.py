"""Test fixtures package.

Provides reusable test doubles for the engine, renderer and listener.
"""

from .mock_terminal import (
    BrokenStream,
    FakeClock,
    QueueKeySource,
    RecordingHandle,
    make_console,
)

__all__ = [
    "BrokenStream",
    "FakeClock",
    "QueueKeySource",
    "RecordingHandle",
    "make_console",
]
