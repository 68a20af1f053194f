# tests/property/test_duration_properties.py
"""Property-based tests for duration parsing and formatting.

DURATION INVARIANTS:
1. Every formatted duration parses back to the same nanoseconds
2. Parsing either returns an int or raises DurationError, nothing else
3. Sign prefixes negate without changing magnitude
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from httpdummy.durations import HOUR, MICROSECOND, MILLISECOND, MINUTE, SECOND, format_duration, parse_duration
from httpdummy.errors import DurationError

_MIN_NS = -(1 << 63)
_MAX_NS = (1 << 63) - 1

nanoseconds = st.integers(min_value=_MIN_NS, max_value=_MAX_NS)
units = st.sampled_from([("ns", 1), ("us", MICROSECOND), ("ms", MILLISECOND), ("s", SECOND), ("m", MINUTE), ("h", HOUR)])


@given(ns=nanoseconds)
def test_format_parse_roundtrip(ns: int) -> None:
    assert parse_duration(format_duration(ns)) == ns


@given(text=st.text(max_size=20))
def test_parse_total(text: str) -> None:
    """Arbitrary input never escapes as anything but DurationError."""
    try:
        result = parse_duration(text)
    except DurationError:
        return
    assert isinstance(result, int)
    assert _MIN_NS <= result <= _MAX_NS


@given(value=st.integers(min_value=0, max_value=1000), unit=units)
def test_single_unit(value: int, unit: tuple[str, int]) -> None:
    suffix, scale = unit
    assert parse_duration(f"{value}{suffix}") == value * scale


@given(value=st.integers(min_value=0, max_value=10**6), unit=units)
def test_sign_negates(value: int, unit: tuple[str, int]) -> None:
    suffix, _ = unit
    text = f"{value}{suffix}"
    assert parse_duration(f"-{text}") == -parse_duration(text)
    assert parse_duration(f"+{text}") == parse_duration(text)


@given(ns=nanoseconds)
def test_format_has_no_spaces(ns: int) -> None:
    rendered = format_duration(ns)
    assert rendered
    assert " " not in rendered
