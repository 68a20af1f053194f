# tests/property/test_sink_properties.py
"""Property-based tests for the POST body sink.

SINK INVARIANTS:
1. The summary always reports exactly the number of bytes sent
2. A paced sink writes one progress line per progress_divisor() reads
3. Progress counts never decrease and never exceed the bytes sent
"""

from __future__ import annotations

import asyncio
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from httpdummy.durations import NANOSECOND
from httpdummy.web.sink import READ_BUFFER_SIZE, PostSinkResponse, progress_divisor

SCOPE: dict[str, Any] = {"type": "http", "method": "POST", "path": "/post", "headers": []}

chunk_sizes = st.lists(st.integers(min_value=0, max_value=5000), min_size=1, max_size=12)


def _drive(interval: int, size: int, sizes: list[int]) -> str:
    """Run the sink over messages of the given sizes, returning the response body."""
    messages = [
        {"type": "http.request", "body": b"x" * n, "more_body": i < len(sizes) - 1} for i, n in enumerate(sizes)
    ]
    queue = iter(messages)
    body: list[bytes] = []

    async def receive() -> dict[str, Any]:
        return next(queue)

    async def send(message: dict[str, Any]) -> None:
        if message["type"] == "http.response.body":
            body.append(message["body"])

    asyncio.run(PostSinkResponse(interval, size)(SCOPE, receive, send))
    return b"".join(body).decode()


@given(sizes=chunk_sizes)
def test_summary_counts_every_byte(sizes: list[int]) -> None:
    text = _drive(0, sum(sizes), sizes)
    assert text == f"received {sum(sizes)} bytes\n"


@given(sizes=chunk_sizes)
def test_paced_progress_cadence(sizes: list[int]) -> None:
    total = sum(sizes)
    lines = _drive(NANOSECOND, total, sizes).splitlines()

    assert lines[-1] == f"received {total} bytes"
    progress = [int(line.split(" ")[1].split("/")[0]) for line in lines[:-1]]
    assert all(line.startswith("progress ") and line.endswith(f"/{total}") for line in lines[:-1])
    assert progress == sorted(progress)
    assert all(0 < count <= total for count in progress)
    reads = sum(-(-n // READ_BUFFER_SIZE) for n in sizes)
    assert len(progress) == reads // progress_divisor(total)
