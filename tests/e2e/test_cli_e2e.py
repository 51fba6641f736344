"""End-to-end tests for the ``timer`` command.

These drive the real typer application through ``CliRunner``. The runner's
stdin is not a terminal, so the countdown prints one line per tick and no
terminal mode is changed.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from countdown import __version__
from countdown.cli.main import app
from countdown.utils.logging import configure_logging


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """The command points logging at the runner's stderr; undo that afterwards."""
    yield
    configure_logging(level="warning", color=False)


class TestHelpAndVersion:
    @pytest.mark.e2e
    @pytest.mark.parametrize("flag", ["--help", "-h"])
    def test_help(self, cli_runner, flag):
        result = cli_runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert "DURATION" in result.output
        assert "EXIT CODES" in result.output

    @pytest.mark.e2e
    @pytest.mark.parametrize("flag", ["--version", "-V"])
    def test_version(self, cli_runner, flag):
        result = cli_runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert result.output.strip() == f"timer {__version__}"

    @pytest.mark.e2e
    def test_missing_duration_is_usage_error(self, cli_runner):
        result = cli_runner.invoke(app, [])
        assert result.exit_code == 2

    @pytest.mark.e2e
    def test_unknown_flag_is_usage_error(self, cli_runner):
        result = cli_runner.invoke(app, ["--bogus", "5"])
        assert result.exit_code == 2


class TestCountdownCommand:
    @pytest.mark.e2e
    def test_zero_finishes_immediately(self, cli_runner):
        result = cli_runner.invoke(app, ["0"])
        assert result.exit_code == 0
        assert "Remaining time: 00" in result.output
        assert "Timer finished!" in result.output

    @pytest.mark.e2e
    def test_zero_with_units_style(self, cli_runner):
        result = cli_runner.invoke(app, ["--style", "units", "0:0"])
        assert result.exit_code == 0
        assert "Remaining time: 00s" in result.output

    @pytest.mark.e2e
    @pytest.mark.parametrize("duration", ["abc", "1:2:3:4:5", "1::2", "5s"])
    def test_malformed_duration(self, cli_runner, duration):
        result = cli_runner.invoke(app, [duration])
        assert result.exit_code == 65
        assert "error:" in result.output
        assert "Remaining time" not in result.output

    @pytest.mark.e2e
    def test_overflow(self, cli_runner):
        result = cli_runner.invoke(app, [str(2**64)])
        assert result.exit_code == 65
        assert "overflow" in result.output

    @pytest.mark.slow
    @pytest.mark.e2e
    def test_two_seconds(self, cli_runner):
        result = cli_runner.invoke(app, ["--tick", "0.5", "2"])
        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line.startswith("Remaining time")]
        assert lines[0] == "Remaining time: 02"
        assert lines[-1] == "Remaining time: 00"


class TestSettings:
    @pytest.mark.e2e
    def test_invalid_tick(self, cli_runner):
        result = cli_runner.invoke(app, ["--tick", "0", "5"])
        assert result.exit_code == 78
        assert "Invalid configuration" in result.output

    @pytest.mark.e2e
    def test_invalid_style(self, cli_runner):
        result = cli_runner.invoke(app, ["--style", "fancy", "5"])
        assert result.exit_code == 78

    @pytest.mark.e2e
    def test_missing_config_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "5"])
        assert result.exit_code == 78
        assert "Cannot read settings file" in result.output

    @pytest.mark.e2e
    def test_config_file_label(self, cli_runner, tmp_path):
        path = tmp_path / "timer.yaml"
        path.write_text("display:\n  label: Tea\n", encoding="utf-8")
        result = cli_runner.invoke(app, ["-c", str(path), "0"])
        assert result.exit_code == 0
        assert "Tea: 00" in result.output

    @pytest.mark.e2e
    def test_log_file(self, cli_runner, tmp_path):
        log_file = tmp_path / "timer.log"
        result = cli_runner.invoke(app, ["-vv", "--log-file", str(log_file), "0"])
        assert result.exit_code == 0
        assert "runner.finished" in log_file.read_text(encoding="utf-8")

    @pytest.mark.e2e
    def test_json_logging_reports_malformed_duration(self, cli_runner, tmp_path):
        path = tmp_path / "timer.yaml"
        path.write_text("general:\n  output_format: json\n", encoding="utf-8")
        result = cli_runner.invoke(app, ["-c", str(path), "-v", "x"])
        assert result.exit_code == 65
        assert "error:" in result.output

    @pytest.mark.e2e
    def test_json_log_file(self, cli_runner, tmp_path):
        path = tmp_path / "timer.yaml"
        path.write_text("general:\n  output_format: json\n", encoding="utf-8")
        log_file = tmp_path / "timer.log"
        result = cli_runner.invoke(app, ["-c", str(path), "-vv", "--log-file", str(log_file), "0"])
        assert result.exit_code == 0
        lines = log_file.read_text(encoding="utf-8").splitlines()
        records = [json.loads(line) for line in lines if line.startswith("{")]
        finished = [record for record in records if record["event"] == "runner.finished"]
        assert finished[0]["status"] == "COMPLETED"
        assert len(finished[0]["run_id"]) == 8
