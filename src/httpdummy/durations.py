# src/httpdummy/durations.py
"""Human-readable durations.

Durations are signed integer nanoseconds. The text form is a sequence of
decimal numbers, each with an optional fraction and a unit suffix, such as
"300ms", "-1.5h" or "2h45m". Valid units are "ns", "us" (or "µs"), "ms",
"s", "m" and "h".

Usage:
    from httpdummy.durations import format_duration, parse_duration

    interval = parse_duration("1m30s")   # 90_000_000_000
    format_duration(interval)            # "1m30s"
"""

from __future__ import annotations

import re

from httpdummy.errors import DurationError

NANOSECOND = 1
MICROSECOND = 1_000 * NANOSECOND
MILLISECOND = 1_000 * MICROSECOND
SECOND = 1_000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5 micro sign
    "μs": MICROSECOND,  # U+03BC Greek letter mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

# Largest magnitude representable as a signed 64-bit nanosecond count.
_MAX_NS = (1 << 63) - 1
_MAX_DIGITS = len(str(_MAX_NS))

_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_duration(text: str) -> int:
    """Parse a duration string into nanoseconds.

    Args:
        text: Duration such as "100ms", "1m30s", "-2h" or "0"

    Returns:
        Signed duration in nanoseconds.

    Raises:
        DurationError: If the string is empty, a component lacks a unit,
            a unit is unknown, or the value overflows 64 bits.
    """
    invalid = DurationError(f"time: invalid duration {_quote(text)}")

    s = text
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]
    # Special case: a bare zero needs no unit
    if s == "0":
        return 0
    if not s:
        raise invalid

    # A negative duration may reach one past the positive maximum
    limit = _MAX_NS + 1 if negative else _MAX_NS
    total = 0
    while s:
        if s[0] not in ".0123456789":
            raise invalid

        number = _NUMBER.match(s)
        # match() cannot fail: both groups are optional
        assert number is not None
        whole, frac = number.group(1), number.group(2)
        if not whole and not frac:
            raise invalid
        s = s[number.end() :]

        unit_match = _UNIT.match(s)
        assert unit_match is not None
        unit_text = unit_match.group(0)
        if not unit_text:
            raise DurationError(f"time: missing unit in duration {_quote(text)}")
        s = s[unit_match.end() :]
        try:
            unit = _UNITS[unit_text]
        except KeyError:
            raise DurationError(f"time: unknown unit {_quote(unit_text)} in duration {_quote(text)}") from None

        whole = whole.lstrip("0")
        if len(whole) > _MAX_DIGITS:
            raise invalid
        value = int(whole) if whole else 0
        if value > limit // unit:
            raise invalid
        value *= unit
        # Further fraction digits are below nanosecond resolution
        frac = frac[:_MAX_DIGITS] if frac else ""
        if frac:
            value += int(frac) * unit // 10 ** len(frac)

        total += value
        if total > limit:
            raise invalid

    return -total if negative else total


def _format_fraction(value: int, scale: int) -> str:
    """Render value/scale as a decimal with trailing zeros removed."""
    whole, frac = divmod(value, scale)
    if not frac:
        return str(whole)
    width = len(str(scale)) - 1
    digits = str(frac).rjust(width, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(nanoseconds: int) -> str:
    """Format nanoseconds in the shortest conventional form.

    Examples: 0 -> "0s", 100ms -> "100ms", 1.5s -> "1.5s",
    90s -> "1m30s", 1h -> "1h0m0s". Sub-second values use the largest
    unit that keeps the integer part non-zero.
    """
    if nanoseconds == 0:
        return "0s"

    sign = "-" if nanoseconds < 0 else ""
    magnitude = abs(nanoseconds)

    if magnitude < SECOND:
        if magnitude < MICROSECOND:
            return f"{sign}{magnitude}ns"
        if magnitude < MILLISECOND:
            return f"{sign}{_format_fraction(magnitude, MICROSECOND)}µs"
        return f"{sign}{_format_fraction(magnitude, MILLISECOND)}ms"

    hours, remainder = divmod(magnitude, HOUR)
    minutes, remainder = divmod(remainder, MINUTE)
    seconds = f"{_format_fraction(remainder, SECOND)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


def to_seconds(nanoseconds: int) -> float:
    """Convert nanoseconds to float seconds for asyncio.sleep()."""
    return nanoseconds / SECOND
