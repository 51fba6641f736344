"""Duration parsing and formatting.

A duration is a whole, non-negative number of seconds. On the command line
it is written as up to four colon-separated fields read right to left as
seconds, minutes, hours and days::

    "5"        ->      5
    "2:3"      ->    123
    "1:2:3:4"  ->  93784

Days, hours, minutes and seconds are only ever derived from the total for
display; they are never stored next to it.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from countdown.core.errors import FormatError, FormatErrorReason

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

# Largest total accepted: the unsigned 64-bit range.
MAX_DURATION_SECONDS = 2**64 - 1

# Field names and weights, rightmost field first.
_FIELDS: tuple[tuple[str, int], ...] = (
    ("seconds", 1),
    ("minutes", SECONDS_PER_MINUTE),
    ("hours", SECONDS_PER_HOUR),
    ("days", SECONDS_PER_DAY),
)

_DIGITS = re.compile(r"[0-9]+")


class DurationParts(NamedTuple):
    """Display fields of a duration."""

    days: int
    hours: int
    minutes: int
    seconds: int


def parse_duration(text: str) -> int:
    """Parse ``[[[d:]h:]m:]s`` into a total number of seconds.

    Raises
    ------
    FormatError
        If the string is empty, has more than four fields, contains a field
        that is not a plain unsigned decimal number, or the total exceeds
        ``MAX_DURATION_SECONDS``.
    """
    if not text:
        raise FormatError(
            FormatErrorReason.EMPTY,
            "Failed to parse the duration: missing parts",
            advice="Provide at least the seconds part of the duration",
        )

    parts = text.split(":")
    if len(parts) > len(_FIELDS):
        raise FormatError(
            FormatErrorReason.TOO_MANY_FIELDS,
            f"Failed to parse the duration: too many parts ({len(parts)})",
            value=text,
            advice="Provide at most 4 parts for days, hours, minutes and seconds",
        )

    total = 0
    for raw, (name, weight) in zip(reversed(parts), _FIELDS):
        if not _DIGITS.fullmatch(raw):
            raise FormatError(
                FormatErrorReason.INVALID_FIELD,
                f"Failed to parse the {name} part: {raw!r} is not an unsigned number",
                field_name=name,
                value=raw,
                advice=f"Make sure to provide a valid number for the {name} part",
            )
        total += int(raw) * weight
        if total > MAX_DURATION_SECONDS:
            raise FormatError(
                FormatErrorReason.OVERFLOW,
                f"Duration overflow in the {name} part",
                field_name=name,
                value=raw,
                advice="The provided duration is too large to be represented",
            )
    return total


def decompose(total: int) -> DurationParts:
    """Split a total number of seconds into days, hours, minutes and seconds."""
    if total < 0:
        raise ValueError(f"duration must be non-negative, got {total}")
    days, rest = divmod(total, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)
    return DurationParts(days, hours, minutes, seconds)


def format_duration(total: int) -> str:
    """Format seconds as ``d:hh:mm:ss`` with leading zero fields omitted.

    The output is the canonical spelling accepted by :func:`parse_duration`:
    ``5 -> "05"``, ``123 -> "02:03"``, ``93784 -> "1:02:03:04"``.
    """
    parts = decompose(total)
    if parts.days:
        return f"{parts.days}:{parts.hours:02}:{parts.minutes:02}:{parts.seconds:02}"
    if parts.hours:
        return f"{parts.hours:02}:{parts.minutes:02}:{parts.seconds:02}"
    if parts.minutes:
        return f"{parts.minutes:02}:{parts.seconds:02}"
    return f"{parts.seconds:02}"


def format_duration_units(total: int) -> str:
    """Format seconds as ``1d 02h 03m 04s`` with leading zero units omitted."""
    parts = decompose(total)
    chunks: list[str] = []
    if parts.days:
        chunks.append(f"{parts.days}d")
    if parts.hours or chunks:
        chunks.append(f"{parts.hours:02}h")
    if parts.minutes or chunks:
        chunks.append(f"{parts.minutes:02}m")
    chunks.append(f"{parts.seconds:02}s")
    return " ".join(chunks)


FORMATTERS = {
    "clock": format_duration,
    "units": format_duration_units,
}
