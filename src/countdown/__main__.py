"""Allow ``python -m countdown``."""

from countdown.cli.main import run

if __name__ == "__main__":
    run()
