"""Tests for template loading and rendering."""

from __future__ import annotations

import jinja2
import pytest

from httpdummy.errors import ConfigError
from httpdummy.web.templating import HTML_CONTENT_TYPE, TEMPLATE_NAMES, TemplateRenderer


def _minimal_templates(**overrides: str) -> dict[str, str]:
    templates = {name: f"<p>{name}</p>" for name in TEMPLATE_NAMES}
    templates.update(overrides)
    return templates


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    def test_packaged_templates_load(self) -> None:
        renderer = TemplateRenderer()
        assert "Done." in renderer.render("slow_post.tmpl")

    def test_missing_template_fails_construction(self) -> None:
        """Every template is loaded up front."""
        templates = _minimal_templates()
        del templates["routes.tmpl"]
        with pytest.raises(ConfigError, match="routes.tmpl"):
            TemplateRenderer(jinja2.DictLoader(templates))

    def test_syntax_error_fails_construction(self) -> None:
        templates = _minimal_templates(**{"index.tmpl": "{% if title %}unterminated"})
        with pytest.raises(ConfigError, match="error loading templates"):
            TemplateRenderer(jinja2.DictLoader(templates))

    def test_render_escapes_html(self) -> None:
        renderer = TemplateRenderer(jinja2.DictLoader(_minimal_templates(**{"error.tmpl": "{{ msg }}"})))
        assert renderer.render("error.tmpl", msg="<b>") == "&lt;b&gt;"

    def test_response(self) -> None:
        """response() wraps the rendered template with status and HTML content type."""
        renderer = TemplateRenderer(jinja2.DictLoader(_minimal_templates(**{"404.tmpl": "{{ notfound }}"})))
        response = renderer.response("404.tmpl", 404, notfound="/x")
        assert response.status_code == 404
        assert response.body == b"/x"
        assert response.headers["content-type"] == HTML_CONTENT_TYPE

    def test_404_message_optional(self) -> None:
        renderer = TemplateRenderer()
        assert "pretending" not in renderer.render("404.tmpl", notfound="/x")
        assert "pretending 404 is 200" in renderer.render("404.tmpl", notfound="/x", msg="pretending 404 is 200")
