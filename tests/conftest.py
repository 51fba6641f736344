"""Pytest configuration and shared fixtures.

Test Categories:
| Category    | Focus                   | Tools                     |
| Unit        | Individual components   | pytest, mock              |
| Integration | Engine + renderer + io  | pytest-asyncio, fixtures  |
| E2E         | The ``timer`` command   | typer CliRunner           |
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from rich.console import Console

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from countdown.config.settings import Settings, config_service  # noqa: E402
from countdown.utils.logging import configure_logging  # noqa: E402
from tests.fixtures import FakeClock, RecordingHandle, make_console  # noqa: E402

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and quiet logging."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (component interaction)")
    config.addinivalue_line("markers", "e2e: End-to-end tests (full command)")
    config.addinivalue_line("markers", "slow: Slow tests (real time, may take > 1s)")
    configure_logging(level="warning", color=False)


def pytest_addoption(parser):
    parser.addoption("--run-slow", action="store_true", default=False, help="Run slow tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="Skipping slow tests (use --run-slow)")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def handle() -> RecordingHandle:
    return RecordingHandle()


@pytest.fixture
def console() -> Console:
    return make_console()


@pytest.fixture
def settings() -> Settings:
    """Default settings with the SIGINT handler disabled."""
    return config_service.load(cli_overrides={"timer": {"handle_sigint": False}})
