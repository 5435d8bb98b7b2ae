"""Tests for berlin.export.renderer — Jinja2 rendering and reloads."""

from __future__ import annotations

from pathlib import Path

import pytest

from berlin._errors import RenderError
from berlin.content.model import MediaType, ParsedSource
from berlin.export.renderer import Renderer


@pytest.fixture
def pages(tmp_path: Path) -> Path:
    pages = tmp_path / "pages"
    (pages / "notes").mkdir(parents=True)
    (pages / "base.html").write_text("<main>{% block body %}{% endblock %}</main>")
    (pages / "hello.html").write_text(
        '{% extends "base.html" %}{% block body %}Hello {{ name }}{% endblock %}'
    )
    (pages / "notes" / "base.html").write_text("<h1>{{ title }}</h1>{{ render() }}")
    return pages


class TestRenderer:
    def test_render(self, pages: Path) -> None:
        assert Renderer(pages).render("hello.html", {"name": "Ada"}) == "<main>Hello Ada</main>"

    def test_templates(self, pages: Path) -> None:
        renderer = Renderer(pages)
        assert renderer.templates() == ["base.html", "hello.html", "notes/base.html"]
        assert renderer.has_template("notes/base.html")
        assert not renderer.has_template("missing.html")

    def test_missing_template(self, pages: Path) -> None:
        with pytest.raises(RenderError, match="missing.html"):
            Renderer(pages).render("missing.html", {})

    def test_undefined_variable(self, pages: Path) -> None:
        with pytest.raises(RenderError, match="name"):
            Renderer(pages).render("hello.html", {})

    def test_syntax_error(self, pages: Path) -> None:
        (pages / "broken.html").write_text("{% if %}")
        with pytest.raises(RenderError):
            Renderer(pages).render("broken.html", {})

    def test_no_templates(self, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        with pytest.raises(RenderError, match="No templates found"):
            Renderer(tmp_path / "empty")

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(RenderError):
            Renderer(tmp_path / "nope")

    def test_render_parsed_source(self, pages: Path) -> None:
        source = ParsedSource("file:///n.md", MediaType.HTML, data="<p>a & b</p>")
        html = Renderer(pages).render_parsed_source("notes/base.html", source, {"title": "T"})
        assert html == "<h1>T</h1><p>a & b</p>"

    def test_full_reload_picks_up_edits(self, pages: Path) -> None:
        renderer = Renderer(pages)
        assert renderer.render("hello.html", {"name": "x"}) == "<main>Hello x</main>"

        (pages / "base.html").write_text("<div>{% block body %}{% endblock %}</div>")
        (pages / "new.html").write_text("new")
        renderer.full_reload()

        assert renderer.render("hello.html", {"name": "x"}) == "<div>Hello x</div>"
        assert renderer.has_template("new.html")
