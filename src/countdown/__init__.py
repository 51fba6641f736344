"""Terminal countdown timer."""

__version__ = "0.1.2"

__all__ = ["__version__"]
