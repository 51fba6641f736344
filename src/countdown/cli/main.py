"""
Main CLI application definition.

    timer [OPTIONS] [[[d:]h:]m:]s

Counts down the given duration in the terminal. Press q or Esc to stop
early; Ctrl-C works too.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from countdown import __version__
from countdown.cli import utils as cli_utils
from countdown.core.errors import ConfigError
from countdown.core.runner import run_timer
from countdown.terminal.renderer import report_error
from countdown.utils.logging import configure_from_settings


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"timer {__version__}")
        raise typer.Exit()


_HELP = """Terminal countdown timer.

    \b
    DURATION is [[[d:]h:]m:]s, read right to left:
      5          5 seconds
      2:30       2 minutes 30 seconds
      1:00:00    1 hour
      1:2:3:4    1 day 2 hours 3 minutes 4 seconds

    \b
    Press q or Esc to stop early (Ctrl-C works too).

    \b
    EXIT CODES:
      0   finished, or stopped by the user
      2   invalid command-line usage
      65  malformed duration
      70  internal error
      74  terminal error
      78  invalid settings file
    """

app = typer.Typer(
    name="timer",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="markdown",
)


@app.command(help=_HELP, context_settings={"help_option_names": ["-h", "--help"]})
def main(
    duration: str = typer.Argument(
        ..., metavar="[[[d:]h:]m:]s", help="Duration to count down"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a settings YAML file"
    ),
    tick: Optional[float] = typer.Option(
        None, "--tick", "-t", help="Seconds between display updates"
    ),
    style: Optional[str] = typer.Option(
        None, "--style", help="Display style (clock|units)"
    ),
    alt_screen: Optional[bool] = typer.Option(
        None, "--alt-screen/--no-alt-screen", help="Draw on the alternate screen"
    ),
    color: Optional[bool] = typer.Option(
        None, "--color/--no-color", help="Enable or disable color output"
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase log verbosity (stackable)"
    ),
    quiet: int = typer.Option(
        0, "--quiet", "-q", count=True, help="Decrease log verbosity (stackable)"
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write logs to this file"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version information and exit",
    ),
):
    """Count down DURATION in the terminal."""
    cli_overrides = cli_utils.build_cli_overrides(
        tick=tick,
        style=style,
        alt_screen=alt_screen,
        color=color,
        log_file=log_file,
    )
    try:
        settings = cli_utils.load_settings_with_cli_overrides(
            config_path=config,
            cli_overrides=cli_overrides,
            verbose=verbose,
            quiet=quiet,
        )
    except ConfigError as exc:
        report_error(exc, Console(stderr=True))
        raise typer.Exit(int(exc.exit_code))

    configure_from_settings(settings)
    raise typer.Exit(int(run_timer(duration, settings)))


def run() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    app()
