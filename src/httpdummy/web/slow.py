# src/httpdummy/web/slow.py
"""Slow response streaming.

Keeps a response open for a requested wall-clock duration, sending "!\\n"
periodically so proxies and clients see the connection is alive. The
newline makes line-buffered tools such as curl surface each byte at once.

Pacing: one chunk every 10 seconds for long requests. Requests shorter than
1000 seconds send a chunk every tenth of their duration instead, so a short
response carries about ten chunks.
"""

from __future__ import annotations

import asyncio

from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from httpdummy.durations import SECOND, format_duration, to_seconds
from httpdummy.metrics import Counter, RelativeGauge
from httpdummy.web.instruments import failed_requests, inflight_requests
from httpdummy.web.templating import HTML_CONTENT_TYPE, TemplateRenderer

MAX_PACING = 10 * SECOND
KEEPALIVE_CHUNK = b"!\n"


def pacing_interval(interval: int) -> int:
    """Return the wait between keep-alive chunks for a total interval.

    Both values are nanoseconds. Division truncates toward zero.
    """
    if interval < MAX_PACING * 10:
        return interval // 10 if interval >= 0 else -(-interval // 10)
    return MAX_PACING


async def _watch_disconnect(receive: Receive, client_gone: asyncio.Event) -> None:
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            client_gone.set()
            return


class SlowResponse(Response):
    """Streamed HTML response that takes `interval` nanoseconds to finish.

    Sequence on the wire: slow_pre template, then ("!\\n" after each pacing
    wait) until the deadline, then slow_post template. The in-flight gauge
    is raised for the whole stream. A client disconnect counts as an error
    and ends the stream without further writes.
    """

    media_type = "text/html"

    def __init__(
        self,
        renderer: TemplateRenderer,
        interval: int,
        *,
        inflight: RelativeGauge = inflight_requests,
        errors: Counter = failed_requests,
    ) -> None:
        self.status_code = 200
        self.background = None
        self.interval = interval
        self.wait = pacing_interval(interval)
        self._renderer = renderer
        self._inflight = inflight
        self._errors = errors
        self.init_headers({"content-type": HTML_CONTENT_TYPE})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        with self._inflight.held():
            client_gone = asyncio.Event()
            watcher = asyncio.create_task(_watch_disconnect(receive, client_gone))
            try:
                await self._stream(send, client_gone)
            finally:
                watcher.cancel()

    async def _write(self, send: Send, chunk: bytes, *, more_body: bool = True) -> bool:
        try:
            await send({"type": "http.response.body", "body": chunk, "more_body": more_body})
        except OSError:
            return False
        return True

    async def _stream(self, send: Send, client_gone: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        pre = self._renderer.render(
            "slow_pre.tmpl",
            duration=format_duration(self.interval),
            interval=format_duration(self.wait),
        )

        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": self.status_code,
                    "headers": self.raw_headers,
                }
            )
        except OSError:
            self._errors.update(1)
            return
        if not await self._write(send, pre.encode("utf-8")):
            self._errors.update(1)
            return

        deadline = loop.time() + to_seconds(self.interval)
        while loop.time() < deadline:
            await asyncio.sleep(to_seconds(self.wait))
            if client_gone.is_set() or not await self._write(send, KEEPALIVE_CHUNK):
                self._errors.update(1)
                return

        post = self._renderer.render("slow_post.tmpl")
        if not await self._write(send, post.encode("utf-8"), more_body=False):
            self._errors.update(1)
