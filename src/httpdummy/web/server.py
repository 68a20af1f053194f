# src/httpdummy/web/server.py
"""Starlette ASGI application for the httpdummy web backend.

Serves a fixed set of diagnostic routes: health and metrics, packaged static
files, an index page, slow streamed responses and a POST body sink.

Usage:
    from httpdummy.config import WebConfig
    from httpdummy.logging import get_logger
    from httpdummy.web.server import WebBackend

    backend = WebBackend(WebConfig(listen_addr="127.0.0.1:3001"), get_logger("httpdummy"))
    backend.run()  # blocks
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Any

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from httpdummy.config import WebConfig, parse_listen_addr
from httpdummy.durations import parse_duration
from httpdummy.errors import BindError, ConfigError, DurationError
from httpdummy.metrics import HealthState, get_registry, global_status
from httpdummy.web.instruments import request_rate
from httpdummy.web.middleware import RateTickMiddleware, RecoveryMiddleware, RequestLogMiddleware, client_ip
from httpdummy.web.sink import PostSinkResponse, expected_size
from httpdummy.web.slow import SlowResponse
from httpdummy.web.templating import TemplateRenderer

INDEX_TITLE = "dummy http backend"


class _GetOnlyStaticFiles(StaticFiles):
    """Packaged static files served for GET only."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        if scope["method"] != "GET":
            raise HTTPException(status_code=405)
        return await super().get_response(path, scope)


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """A registered method and path, as listed on the routes page."""

    method: str
    path: str


class WebBackend:
    """The web backend: configuration, logger and Starlette application.

    Created once at startup. Handlers only read the configuration.
    """

    def __init__(
        self,
        config: WebConfig,
        logger: structlog.stdlib.BoundLogger | None,
        *,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Build the application.

        Raises:
            ConfigError: If the logger is missing, the listen address is
                empty or malformed, or the templates fail to load.
        """
        if logger is None:
            raise ConfigError("missing logger")
        if not config.listen_addr:
            raise ConfigError("missing listen addr")
        self._config = config
        self._logger = logger
        self._host, self._port = parse_listen_addr(config.listen_addr)
        self._renderer = renderer if renderer is not None else TemplateRenderer()
        self._route_infos: list[RouteInfo] = []
        self._app = self._create_app()
        global_status.update(HealthState.OK, "httpdummy running")

    def _add_route(self, routes: list[BaseRoute], path: str, endpoint: Any, methods: list[str]) -> None:
        route = Route(path, endpoint, methods=methods)
        # Starlette answers HEAD on every GET route; only listed methods are served
        if "HEAD" not in methods:
            route.methods.discard("HEAD")
        routes.append(route)
        self._route_infos.extend(RouteInfo(method, path) for method in methods)

    def _create_app(self) -> Starlette:
        """Create the Starlette application with all routes and middleware."""
        routes: list[BaseRoute] = []
        # Monitoring endpoints
        self._add_route(routes, "/_status/health", self._health_endpoint, ["GET", "HEAD"])
        self._add_route(routes, "/_status/metrics", self._metrics_endpoint, ["GET"])
        # Static content is packaged under web/static/
        routes.append(Mount("/s", app=_GetOnlyStaticFiles(packages=[("httpdummy.web", "static")]), name="static"))
        self._route_infos.append(RouteInfo("GET", "/s/{path}"))
        self._add_route(routes, "/", self._index_endpoint, ["GET"])
        self._add_route(routes, "/slow/{duration}", self._slow_endpoint, ["GET"])
        self._add_route(routes, "/post", self._post_endpoint, ["POST"])
        self._add_route(routes, "/post/{duration}", self._post_endpoint, ["POST"])
        self._add_route(routes, "/routes", self._routes_endpoint, ["GET"])

        middleware = [Middleware(RateTickMiddleware, rate=request_rate)]
        if self._config.log_http_requests:
            middleware.append(Middleware(RequestLogMiddleware, logger=self._logger))
        middleware.append(Middleware(RecoveryMiddleware, logger=self._logger))

        return Starlette(
            debug=False,
            routes=routes,
            middleware=middleware,
            exception_handlers={404: self._not_found},
        )

    @property
    def app(self) -> Starlette:
        """Get the Starlette ASGI application."""
        return self._app

    @property
    def config(self) -> WebConfig:
        return self._config

    @property
    def routes(self) -> list[RouteInfo]:
        """Registered routes in registration order."""
        return list(self._route_infos)

    def bind(self) -> socket.socket:
        """Open the listen socket.

        Raises:
            BindError: If the address cannot be bound.
        """
        try:
            if not self._host:
                # Empty host: every interface, IPv6 included where supported
                if socket.has_dualstack_ipv6():
                    return socket.create_server(("", self._port), family=socket.AF_INET6, dualstack_ipv6=True)
                return socket.create_server(("", self._port))
            family = socket.AF_INET6 if ":" in self._host else socket.AF_INET
            return socket.create_server((self._host, self._port), family=family)
        except OSError as e:
            raise BindError(self._config.listen_addr, e.strerror or str(e)) from e

    def run(self) -> None:
        """Bind and serve until the process is stopped.

        Raises:
            BindError: If the listen address is unavailable.
        """
        sock = self.bind()
        self._logger.info("listening", listen_addr=self._config.listen_addr)
        server = uvicorn.Server(
            uvicorn.Config(
                self._app,
                # Logging is configured by httpdummy.logging; requests are
                # logged by RequestLogMiddleware when enabled.
                log_config=None,
                access_log=False,
            )
        )
        server.run(sockets=[sock])

    # === Endpoint handlers ===

    async def _health_endpoint(self, request: Request) -> PlainTextResponse:
        """Handle GET/HEAD /_status/health."""
        state, message = global_status.read()
        return PlainTextResponse(f"{state}\n", headers={"X-Status-Message": message})

    async def _metrics_endpoint(self, request: Request) -> PlainTextResponse:
        """Handle GET /_status/metrics."""
        return PlainTextResponse(get_registry().scrape())

    async def _index_endpoint(self, request: Request) -> HTMLResponse:
        """Handle GET /."""
        remote_addr = f"{request.client.host}:{request.client.port}" if request.client else ""
        return self._renderer.response(
            "index.tmpl",
            title=INDEX_TITLE,
            RemoteAddr=remote_addr,
            IP=client_ip(request.scope),
            host=request.headers.get("host", ""),
        )

    async def _routes_endpoint(self, request: Request) -> HTMLResponse:
        """Handle GET /routes."""
        return self._renderer.response("routes.tmpl", routes=self._route_infos)

    async def _slow_endpoint(self, request: Request) -> Response:
        """Handle GET /slow/{duration}."""
        try:
            interval = parse_duration(request.path_params["duration"])
        except DurationError as e:
            return self._bad_time(e)
        return SlowResponse(self._renderer, interval)

    async def _post_endpoint(self, request: Request) -> Response:
        """Handle POST /post and POST /post/{duration}."""
        duration = request.path_params.get("duration", "")
        interval = 0
        if duration:
            try:
                interval = parse_duration(duration)
            except DurationError as e:
                return self._bad_time(e)
        return PostSinkResponse(interval, expected_size(request.headers))

    async def _not_found(self, request: Request, exc: HTTPException) -> HTMLResponse:
        """Render the not-found page for unmatched paths."""
        if self._config.code_404_as_200:
            return self._renderer.response(
                "404.tmpl",
                200,
                notfound=request.url.path,
                msg="pretending 404 is 200",
            )
        return self._renderer.response("404.tmpl", 404, notfound=request.url.path)

    def _bad_time(self, error: DurationError) -> HTMLResponse:
        self._logger.debug("rejected duration", error=str(error))
        return self._renderer.response("error.tmpl", 400, msg=f"bad time: {error}")
