# tests/property/test_metrics_properties.py
"""Property-based tests for metrics instruments.

METRICS INVARIANTS:
1. Relative gauges equal the sum of their deltas
2. A burst of N events integrates to about N over time
3. Scrape output is one line per instrument, sorted by name
"""

from __future__ import annotations

import math

from hypothesis import given
from hypothesis import strategies as st

from httpdummy.clock import MockClock
from httpdummy.metrics import Counter, EWMARate, MetricsRegistry, RelativeGauge

metric_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz._", min_size=1, max_size=12)


@given(deltas=st.lists(st.integers(min_value=-1000, max_value=1000), max_size=50))
def test_gauge_sums_deltas(deltas: list[int]) -> None:
    gauge = RelativeGauge()
    for delta in deltas:
        gauge.update(delta)
    assert gauge.value() == sum(deltas)


@given(events=st.integers(min_value=1, max_value=10_000), window=st.floats(min_value=0.5, max_value=60.0))
def test_burst_integrates_to_event_count(events: int, window: float) -> None:
    """Sampling the decaying rate after a burst sums back to the burst size."""
    clock = MockClock()
    rate = EWMARate(window=window, clock=clock)
    rate.update(events)

    step = window / 100
    area = 0.0
    for _ in range(2000):
        area += rate.value() * step
        clock.advance(step)
    # Left Riemann sum of an exponential over 20 windows
    assert math.isclose(area, events, rel_tol=0.01)


@given(names=st.sets(metric_names, min_size=1, max_size=20))
def test_scrape_sorted(names: set[str]) -> None:
    registry = MetricsRegistry()
    for name in names:
        registry.register(name, Counter())

    lines = registry.scrape().splitlines()
    assert [line.rsplit(" ", 1)[0] for line in lines] == sorted(names)
    assert all(line.endswith(" 0") for line in lines)
