# src/httpdummy/web/middleware.py
"""ASGI middleware for the web backend.

Applied outermost to innermost:
1. RateTickMiddleware - counts every accepted request
2. RequestLogMiddleware - one structured record per request (optional)
3. RecoveryMiddleware - turns handler exceptions into empty 500 responses
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from httpdummy.durations import format_duration
from httpdummy.metrics import EWMARate


def client_ip(scope: Scope) -> str:
    """Best-effort originating client address.

    Prefers the first X-Forwarded-For hop, then X-Real-IP, then the peer.
    """
    headers = Headers(scope=scope)
    forwarded = headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    client = scope.get("client")
    return client[0] if client else ""


class RateTickMiddleware:
    """Tick the request rate once per HTTP request, before routing."""

    def __init__(self, app: ASGIApp, rate: EWMARate) -> None:
        self.app = app
        self._rate = rate

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            self._rate.update(1)
        await self.app(scope, receive, send)


class RequestLogMiddleware:
    """Log method, path, status, latency and client IP of each request.

    The record is emitted when the handler returns, so streamed responses
    are logged with their full duration.
    """

    def __init__(self, app: ASGIApp, logger: structlog.stdlib.BoundLogger) -> None:
        self.app = app
        self._logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter_ns()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            path = scope["path"]
            self._logger.info(
                path,
                status=status_code,
                method=scope["method"],
                path=path,
                query=scope.get("query_string", b"").decode("latin-1"),
                ip=client_ip(scope),
                user_agent=Headers(scope=scope).get("user-agent", ""),
                latency=format_duration(time.perf_counter_ns() - start),
                time=datetime.now(UTC).isoformat(timespec="seconds"),
            )


class RecoveryMiddleware:
    """Catch handler exceptions so one bad request cannot take the server down.

    If the response has not started, the client gets a 500 with an empty
    body. If it has, the exception is re-raised so the server aborts the
    connection.
    """

    def __init__(self, app: ASGIApp, logger: structlog.stdlib.BoundLogger) -> None:
        self.app = app
        self._logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            self._logger.exception(
                "handler failed",
                method=scope["method"],
                path=scope["path"],
                response_started=response_started,
            )
            if response_started:
                raise
            await send(
                {
                    "type": "http.response.start",
                    "status": 500,
                    "headers": [(b"content-length", b"0")],
                }
            )
            await send({"type": "http.response.body", "body": b""})
