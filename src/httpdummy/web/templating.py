# src/httpdummy/web/templating.py
"""HTML templates for the web backend.

Templates ship inside the package and are all loaded at construction so a
broken template fails startup instead of the first request that uses it.
"""

from __future__ import annotations

from typing import Any

import jinja2
from starlette.responses import HTMLResponse

from httpdummy.errors import ConfigError

TEMPLATE_NAMES: tuple[str, ...] = (
    "index.tmpl",
    "404.tmpl",
    "routes.tmpl",
    "error.tmpl",
    "slow_pre.tmpl",
    "slow_post.tmpl",
)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class TemplateRenderer:
    """Renders the packaged templates.

    Read-only after construction; safe to share between requests.
    """

    def __init__(self, loader: jinja2.BaseLoader | None = None) -> None:
        """Load every template.

        Args:
            loader: Template loader (default: the package's templates/ dir).
                Inject a DictLoader for testing.

        Raises:
            ConfigError: If a template is missing or fails to parse.
        """
        try:
            env = jinja2.Environment(
                loader=loader if loader is not None else jinja2.PackageLoader("httpdummy.web", "templates"),
                autoescape=True,
                keep_trailing_newline=True,
            )
            self._templates = {name: env.get_template(name) for name in TEMPLATE_NAMES}
        except (jinja2.TemplateError, ValueError) as e:
            raise ConfigError(f"error loading templates: {e}") from e

    def render(self, name: str, **context: Any) -> str:
        return self._templates[name].render(**context)

    def response(self, name: str, status_code: int = 200, **context: Any) -> HTMLResponse:
        """Render a template into a complete HTML response."""
        return HTMLResponse(self.render(name, **context), status_code=status_code)
