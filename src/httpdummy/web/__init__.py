# src/httpdummy/web/__init__.py
"""Web backend: diagnostic HTTP routes served by Starlette.

Routes:
- GET/HEAD /_status/health, GET /_status/metrics
- GET /s/{path} packaged static files
- GET / index, GET /routes route listing
- GET /slow/{duration} slow streamed response
- POST /post, POST /post/{duration} body sink
"""

from httpdummy.web.server import RouteInfo, WebBackend
from httpdummy.web.sink import PostSinkResponse
from httpdummy.web.slow import SlowResponse, pacing_interval
from httpdummy.web.templating import TemplateRenderer

__all__ = [
    "PostSinkResponse",
    "RouteInfo",
    "SlowResponse",
    "TemplateRenderer",
    "WebBackend",
    "pacing_interval",
]
