# src/httpdummy/metrics.py
"""Live metrics instruments and the process-wide registry.

Instruments:
- RelativeGauge: signed integer moved by deltas (in-flight requests)
- Counter: monotonic integer (errors)
- EWMARate: exponentially weighted events-per-second over a window
- CallbackGauge: value read from a function at scrape time (runtime stats)

All instruments are thread-safe. The registry serializes to a line-oriented
text dump of "<name> <value>" pairs sorted by name.

Usage:
    from httpdummy import metrics

    inflight = metrics.register("conn.inflight", metrics.RelativeGauge())
    with inflight.held():
        ...
    text = metrics.get_registry().scrape()
"""

from __future__ import annotations

import gc
import math
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import StrEnum
from typing import Protocol

from httpdummy.clock import DEFAULT_CLOCK, Clock
from httpdummy.errors import DuplicateMetricError


class Instrument(Protocol):
    """Anything the registry can serialize."""

    def value(self) -> int | float: ...


class RelativeGauge:
    """Signed integer gauge updated by relative deltas."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def update(self, delta: int) -> None:
        with self._lock:
            self._value += delta

    def value(self) -> int:
        with self._lock:
            return self._value

    @contextmanager
    def held(self, amount: int = 1) -> Iterator[None]:
        """Raise the gauge for the duration of the block.

        The matching decrement runs on every exit path, including
        exceptions and task cancellation.
        """
        self.update(amount)
        try:
            yield
        finally:
            self.update(-amount)


class Counter:
    """Monotonically increasing integer counter."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def update(self, increment: int = 1) -> None:
        if increment < 0:
            raise ValueError(f"Counter increment must be non-negative, got {increment}")
        with self._lock:
            self._value += increment

    def value(self) -> int:
        with self._lock:
            return self._value


class EWMARate:
    """Exponentially weighted moving average of an event rate.

    Each update of n events adds n/window to the rate after decaying the
    previous rate by exp(-elapsed/window). Reads apply the same decay, so a
    quiescent rate trends to zero. The time-integral of the rate equals the
    number of events recorded, and a steady stream of events converges on
    its true events-per-second.
    """

    def __init__(self, window: float = 10.0, *, clock: Clock | None = None) -> None:
        """Initialize the rate.

        Args:
            window: Decay time constant in seconds (must be positive)
            clock: Clock for timestamps (default: system monotonic clock)
        """
        if window <= 0:
            raise ValueError(f"EWMA window must be positive, got {window}")
        self._window = window
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._rate = 0.0
        self._last = self._clock.monotonic()
        self._lock = threading.Lock()

    @property
    def window(self) -> float:
        return self._window

    def _decayed(self, now: float) -> float:
        elapsed = max(0.0, now - self._last)
        return self._rate * math.exp(-elapsed / self._window)

    def update(self, events: int = 1) -> None:
        with self._lock:
            now = self._clock.monotonic()
            self._rate = self._decayed(now) + events / self._window
            self._last = now

    def value(self) -> float:
        with self._lock:
            return self._decayed(self._clock.monotonic())


class CallbackGauge:
    """Gauge whose value is computed on read."""

    def __init__(self, read: Callable[[], int | float]) -> None:
        self._read = read

    def value(self) -> int | float:
        return self._read()


def _format_value(value: int | float) -> str:
    if isinstance(value, float):
        return f"{value:.6f}"
    return str(value)


class MetricsRegistry:
    """Named instruments with unique names.

    Thread-safe: registration and scraping take the registry lock; each
    instrument guards its own value.
    """

    def __init__(self) -> None:
        self._instruments: dict[str, Instrument] = {}
        self._lock = threading.Lock()

    def register[InstrumentT: Instrument](self, name: str, instrument: InstrumentT) -> InstrumentT:
        """Register an instrument under a unique name.

        Raises:
            DuplicateMetricError: If the name is already taken.
        """
        with self._lock:
            if name in self._instruments:
                raise DuplicateMetricError(name)
            self._instruments[name] = instrument
        return instrument

    def get(self, name: str) -> Instrument:
        with self._lock:
            return self._instruments[name]

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._instruments)

    def snapshot(self) -> dict[str, int | float]:
        """Read every instrument.

        Each value is consistent per instrument; values are not read
        atomically across instruments.
        """
        with self._lock:
            items = sorted(self._instruments.items())
        return {name: instrument.value() for name, instrument in items}

    def scrape(self) -> str:
        """Serialize all instruments as sorted "<name> <value>" lines."""
        return "".join(f"{name} {_format_value(value)}\n" for name, value in self.snapshot().items())


_registry: MetricsRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> MetricsRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = MetricsRegistry()
        return _registry


def register[InstrumentT: Instrument](name: str, instrument: InstrumentT) -> InstrumentT:
    """Register an instrument in the process-wide registry."""
    return get_registry().register(name, instrument)


def register_runtime_stats(registry: MetricsRegistry | None = None) -> None:
    """Register interpreter statistics as callback gauges.

    Adds runtime.gc.collections (total collections across generations),
    runtime.gc.objects (objects tracked by the collector) and
    runtime.threads (live Python threads).
    """
    target = registry if registry is not None else get_registry()
    target.register(
        "runtime.gc.collections",
        CallbackGauge(lambda: sum(generation["collections"] for generation in gc.get_stats())),
    )
    target.register("runtime.gc.objects", CallbackGauge(lambda: len(gc.get_objects())))
    target.register("runtime.threads", CallbackGauge(threading.active_count))


# === Health status ===


class HealthState(StrEnum):
    """Coarse service state reported by the health endpoint."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UNKNOWN = "UNKNOWN"


class GlobalStatus:
    """Process-wide service state plus a human-readable message."""

    def __init__(self) -> None:
        self._state = HealthState.OK
        self._message = ""
        self._lock = threading.Lock()

    def update(self, state: HealthState, message: str) -> None:
        with self._lock:
            self._state = state
            self._message = message

    def read(self) -> tuple[HealthState, str]:
        with self._lock:
            return self._state, self._message


global_status = GlobalStatus()
