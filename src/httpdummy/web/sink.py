# src/httpdummy/web/sink.py
"""POST body sink.

Drains a request body of any size in 1 KiB reads and reports how many bytes
arrived. With a pacing interval the sink sleeps after every read to act as a
slow consumer, and streams about ten progress lines while it reads.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from starlette.datastructures import Headers
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from httpdummy.durations import to_seconds
from httpdummy.logging import get_logger

logger = get_logger(__name__)

READ_BUFFER_SIZE = 1024
PLAIN_CONTENT_TYPE = "text/plain; charset=utf-8"


def expected_size(headers: Headers) -> int:
    """Content-Length as a non-negative integer, 0 when missing or invalid."""
    value = headers.get("content-length", "").strip()
    if not value.isascii() or not value.isdigit():
        return 0
    return int(value)


def progress_divisor(size: int, buffer_size: int = READ_BUFFER_SIZE) -> int:
    """Number of reads between progress lines, for at most ~10 lines per body."""
    return max(1, size // (10 * buffer_size))


async def read_body(receive: Receive, buffer_size: int = READ_BUFFER_SIZE) -> AsyncIterator[bytes]:
    """Yield the request body in reads of at most buffer_size bytes.

    Stops quietly at the end of the body or when the client disconnects.
    """
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            return
        body: bytes = message.get("body", b"")
        more_body = message.get("more_body", False)
        for start in range(0, len(body), buffer_size):
            yield body[start : start + buffer_size]


class _ChunkWriter:
    """Sends a 200 text/plain response piecewise, starting it on first write.

    Write failures are not reported to the caller: after the first failure
    every further write is skipped.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self._started = False
        self._failed = False

    async def _start(self, content_length: int | None) -> None:
        headers = [(b"content-type", PLAIN_CONTENT_TYPE.encode("latin-1"))]
        if content_length is not None:
            headers.append((b"content-length", str(content_length).encode("latin-1")))
        await self._send({"type": "http.response.start", "status": 200, "headers": headers})
        self._started = True

    async def write(self, data: bytes) -> None:
        if self._failed:
            return
        try:
            if not self._started:
                await self._start(content_length=None)
            await self._send({"type": "http.response.body", "body": data, "more_body": True})
        except OSError as e:
            logger.debug("progress write failed", error=str(e))
            self._failed = True

    async def close(self, data: bytes) -> None:
        if self._failed:
            return
        try:
            if not self._started:
                await self._start(content_length=len(data))
            await self._send({"type": "http.response.body", "body": data, "more_body": False})
        except OSError as e:
            logger.debug("summary write failed", error=str(e))
            self._failed = True


class PostSinkResponse(Response):
    """Reads the request body to completion and answers with its size.

    Args:
        interval: Pause after each read in nanoseconds; 0 reads unpaced
        size: Expected body size from Content-Length (0 if unknown)
    """

    media_type = "text/plain"

    def __init__(self, interval: int, size: int) -> None:
        self.status_code = 200
        self.background = None
        self.interval = interval
        self.size = size
        self.init_headers({"content-type": PLAIN_CONTENT_TYPE})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        writer = _ChunkWriter(send)
        paced = self.interval > 0
        divisor = progress_divisor(self.size)

        received = 0
        reads = 0
        async for chunk in read_body(receive):
            reads += 1
            received += len(chunk)
            if paced:
                if reads % divisor == 0:
                    await writer.write(f"progress {received}/{self.size}\n".encode())
                await asyncio.sleep(to_seconds(self.interval))

        await writer.close(f"received {received} bytes\n".encode())
