# tests/property/test_http_properties.py
"""Property-based tests against the full application.

HTTP INVARIANTS:
1. Any duration the parser rejects gives 400 "bad time:" on both handlers
2. Any POST body is answered with its exact length
3. Rejected requests leave the in-flight gauge untouched
4. A slow response lasts between its duration and one pacing step more
"""

from __future__ import annotations

import time
from functools import cache

from hypothesis import assume, given, settings
from hypothesis import strategies as st
from starlette.testclient import TestClient

from httpdummy.config import WebConfig
from httpdummy.durations import MILLISECOND, parse_duration, to_seconds
from httpdummy.errors import DurationError
from httpdummy.logging import get_logger
from httpdummy.web.instruments import inflight_requests
from httpdummy.web.server import WebBackend
from httpdummy.web.slow import pacing_interval

# Path-safe characters that exercise digits, units, signs and fractions
duration_text = st.text(alphabet="0123456789.+-nsumhdxy", min_size=1, max_size=12)


@cache
def _client() -> TestClient:
    return TestClient(WebBackend(WebConfig(), get_logger("tests")).app)


def _rejected(text: str) -> bool:
    try:
        parse_duration(text)
    except DurationError:
        return True
    return False


@given(text=duration_text)
def test_rejected_durations_are_bad_requests(text: str) -> None:
    assume(text not in (".", "..") and _rejected(text))
    client = _client()
    before = inflight_requests.value()

    slow = client.get(f"/slow/{text}")
    post = client.post(f"/post/{text}", content=b"x")

    assert slow.status_code == 400
    assert "bad time:" in slow.text
    assert post.status_code == 400
    assert "bad time:" in post.text
    assert inflight_requests.value() == before


@given(body=st.binary(max_size=20_000))
def test_post_reports_body_length(body: bytes) -> None:
    response = _client().post("/post", content=body)
    assert response.status_code == 200
    assert response.text == f"received {len(body)} bytes\n"


@settings(max_examples=10)
@given(milliseconds=st.integers(min_value=0, max_value=200))
def test_slow_finishes_within_one_pacing_interval(milliseconds: int) -> None:
    """A slow response lasts at least its duration and at most one extra pacing step."""
    interval = milliseconds * MILLISECOND
    start = time.monotonic()
    response = _client().get(f"/slow/{milliseconds}ms")
    elapsed = time.monotonic() - start

    assert response.status_code == 200
    assert to_seconds(interval) <= elapsed < to_seconds(interval + pacing_interval(interval)) + 0.5
