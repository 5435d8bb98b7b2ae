"""Template renderer — Jinja2 over the site's ``pages/`` directory.

The environment is a shared resource: the builder renders through it and
the watcher reloads it when a template changes, so every access goes
through one lock.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError
from markupsafe import Markup

from berlin._errors import RenderError
from berlin.content.model import ParsedSource


class Renderer:
    """Renders named templates with a context.

    Undefined variables are errors, like missing templates and syntax
    errors; all of them surface as ``RenderError``.

    Args:
        templates_dir: Directory holding the templates.

    Raises:
        RenderError: If the directory holds no templates.

    """

    def __init__(self, templates_dir: Path) -> None:
        self._templates_dir = templates_dir
        self._lock = threading.Lock()
        self._env = self._create_env()

    @property
    def templates_dir(self) -> Path:
        return self._templates_dir

    def _create_env(self) -> Environment:
        env = Environment(
            loader=FileSystemLoader(str(self._templates_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        if not self._templates_dir.is_dir() or not env.list_templates():
            msg = f"No templates found in {self._templates_dir}"
            raise RenderError(msg)
        return env

    def full_reload(self) -> None:
        """Drop every compiled template and rescan the directory."""
        env = self._create_env()
        with self._lock:
            self._env = env

    def templates(self) -> list[str]:
        with self._lock:
            return self._env.list_templates()

    def has_template(self, name: str) -> bool:
        return name in self.templates()

    def render(self, name: str, context: Mapping[str, Any]) -> str:
        """Render template *name* with *context*.

        Raises:
            RenderError: On a missing template, a syntax error or an
                undefined reference.

        """
        with self._lock:
            try:
                return self._env.get_template(name).render(context)
            except TemplateError as exc:
                msg = f"Failed to render {name!r}: {exc}"
                raise RenderError(msg) from exc

    def render_parsed_source(
        self,
        name: str,
        source: ParsedSource,
        context: Mapping[str, Any],
    ) -> str:
        """Render *name* for one source.

        The template gets a ``render()`` function returning the source's
        rendered text as safe markup.
        """

        def render_source() -> Markup:
            return Markup(source.data or "")

        return self.render(name, {**context, "render": render_source})
