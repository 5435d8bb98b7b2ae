"""Shared test fixtures for berlin."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from berlin.content.model import FrontMatter, MediaType, ParsedSource

FIRST_NOTE = """\
---
title: My Post!
date: 2024-01-02
tags: [a]
author: [Ada, Grace]
description: First *note*
id: n1
---

# Hello

Body of the first note.
"""

SECOND_NOTE = """\
---
title: Second Note
date: 2023-05-01
---

Untagged body.
"""

FEED_CSV = """\
Key,Author,Title,Url,Date,Date Added,Manual Tags
K1,Bob,Great Link,https://example.org/x,2023,2023-06-01,a; b
K2,Eve,Plain Link,https://www.example.net/y,2022,2023-07-01,
"""

CONFIG = """\
[site]
title = "Notebook"
author = "Ada"
description = "A test site"
url = "https://example.com"

[profiles]
linkedin = "https://linkedin.example/ada"
github = "https://github.example/ada"
"""

TEMPLATES = {
    "index.html": (
        "<title>{{ title }}</title>\n"
        "{% for a in articles %}<article>{{ a.title }}</article>\n{% endfor %}"
        "{% for f in feed %}<link>{{ f.title }} ({{ f.host }})</link>\n{% endfor %}"
        "{% for t in tags %}<tag href=\"{{ t.target }}\">{{ t.name }}</tag>\n{% endfor %}"
        "slides={{ slides | length }}\n"
    ),
    "notes.html": "{% for a in articles %}<li>{{ a.title }} {{ a.date }}</li>\n{% endfor %}",
    "tags/base.html": (
        "<h1>{{ tag_name }}</h1>\n"
        "{% for a in articles %}<article>{{ a.title }}</article>\n{% endfor %}"
        "{% for f in feed %}<link>{{ f.title }}</link>\n{% endfor %}"
    ),
    "notes/base.html": (
        "<h1>{{ title }}</h1>\n<meta name=\"description\" content=\"{{ description }}\">\n"
        "{{ render() }}"
    ),
    "about.html": "<p>About {{ author }}</p>\n",
    "garage.html": "<p>Garage</p>\n",
}


def write_site(root: Path) -> Path:
    """Write a complete site under *root* and return it."""
    notes = root / "content" / "notes"
    notes.mkdir(parents=True)
    (notes / "first.md").write_text(FIRST_NOTE)
    (notes / "second.md").write_text(SECOND_NOTE)

    data = root / "data"
    data.mkdir()
    (data / "feed.csv").write_text(FEED_CSV)

    css = root / "css"
    (css / "partials").mkdir(parents=True)
    (css / "main.css").write_text('@import "partials/_base.css";\n.main { color: red; }\n')
    (css / "print.css").write_text(".print { display: none; }\n")
    (css / "partials" / "_base.css").write_text("body {\n  margin: 0;\n}\n")

    pages = root / "pages"
    for name, text in TEMPLATES.items():
        path = pages / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    static = root / "static" / "img"
    static.mkdir(parents=True)
    (static / "logo.txt").write_text("logo\n")
    (root / "static" / ".hidden").write_text("skip\n")

    (root / "berlin.toml").write_text(CONFIG)
    return root


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """A complete site: notes, a feed CSV, stylesheets, templates and assets.

    ``first.md`` is titled "My Post!" and tagged ``a``; ``second.md`` is
    untagged.  ``css/main.css`` imports ``css/partials/_base.css``.
    """
    root = tmp_path / "site"
    root.mkdir()
    return write_site(root)


def build_source(
    name: str,
    *,
    title: str | None = None,
    tags: list[str] | None = None,
    published: str | None = None,
    data: str = "<p>body</p>",
    media_type: MediaType = MediaType.HTML,
) -> ParsedSource:
    """Build an in-memory Html source without touching the filesystem."""
    front_matter = None
    if title is not None or tags is not None or published is not None:
        front_matter = FrontMatter(
            title=title,
            published=published,
            tags=tuple(tags) if tags is not None else None,
        )
    return ParsedSource(
        f"file:///site/content/notes/{name}",
        media_type,
        data=data,
        front_matter=front_matter,
    )


@pytest.fixture
def make_source() -> Callable[..., ParsedSource]:
    """Factory for in-memory sources (see ``build_source``)."""
    return build_source

