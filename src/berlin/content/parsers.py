"""Per-media-type content parsers.

Each parser takes a specifier and the raw file text and returns a
``ParsedSource``.  They are registered by source media type in
``default_parsers()`` and only ever called through the capturing parser.

- Markdown: YAML front matter + Python-Markdown body, result is Html
- Org: keywords become front matter, body is rewritten to markdown first
- Css: ``@import`` chains inlined, then minified with csscompressor
- Csv and Tera templates: captured verbatim
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import csscompressor
import markdown
import yaml

from berlin._errors import ParseError
from berlin.content.cache import SourceParser
from berlin.content.model import FrontMatter, MediaType, ParsedSource, specifier_to_path

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _stat(specifier: str) -> os.stat_result | None:
    try:
        return specifier_to_path(specifier).stat()
    except OSError:
        return None


def _verbatim(media_type: MediaType) -> SourceParser:
    def parse(specifier: str, content: str) -> ParsedSource:
        return ParsedSource(specifier, media_type, data=content, metadata=_stat(specifier))

    parse.__name__ = f"parse_{media_type.name.lower()}"
    return parse


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

_FRONT_MATTER_RE = re.compile(r"\A\s*---[ \t]*\n(?P<yaml>.*?)\n?---[ \t]*(?:\n|\Z)", re.DOTALL)

# [label]({{< relref "name" >}}) shortcodes exported by ox-hugo
_RELREF_RE = re.compile(r'\[(?P<label>[^\]]+)\]\(\{\{<\s*relref\s+"(?P<name>[^"]*)"\s*>\}\}\)')

_MARKDOWN_EXTENSIONS: list[str] = [
    "attr_list",
    "def_list",
    "fenced_code",
    "footnotes",
    "tables",
    "toc",
    "pymdownx.magiclink",
    "pymdownx.tasklist",
    "pymdownx.tilde",
]


def split_front_matter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split a leading ``---`` delimited YAML block from *text*.

    Returns:
        ``(mapping, body)``; mapping is None when there is no block or the
        block is empty.

    Raises:
        ParseError: If the block is not valid YAML or not a mapping.

    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return None, text
    body = text[match.end():]
    try:
        data = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as exc:
        msg = f"Malformed front matter: {exc}"
        raise ParseError(msg) from exc
    if data is None:
        return None, body
    if not isinstance(data, dict):
        msg = f"Front matter must be a mapping, got {type(data).__name__}"
        raise ParseError(msg)
    return data, body


def rewrite_relrefs(text: str) -> str:
    """Turn relref shortcodes into links to rendered notes."""
    return _RELREF_RE.sub(lambda m: f"[{m['label']}](/notes/{m['name']}.html)", text)


def markdown_to_html(text: str) -> str:
    """Render a markdown body (no front matter) to HTML."""
    return markdown.markdown(text, extensions=_MARKDOWN_EXTENSIONS)


def parse_markdown(specifier: str, content: str) -> ParsedSource:
    """Parse a markdown document into an Html source with front matter."""
    try:
        data, body = split_front_matter(content)
    except ParseError as exc:
        msg = f"{specifier}: {exc}"
        raise ParseError(msg) from exc
    front_matter = FrontMatter.from_mapping(data) if data is not None else None
    html = markdown_to_html(rewrite_relrefs(body))
    return ParsedSource(
        specifier,
        MediaType.HTML,
        data=html,
        front_matter=front_matter,
        metadata=_stat(specifier),
    )


# ---------------------------------------------------------------------------
# Org
# ---------------------------------------------------------------------------

_ORG_KEYWORD_RE = re.compile(r"^#\+(?P<key>[A-Za-z_]+):\s*(?P<value>.*)$")
_ORG_HEADLINE_RE = re.compile(r"^(?P<stars>\*+)\s+(?P<title>.*)$")
_ORG_LINK_RE = re.compile(r"\[\[(?P<url>[^\]]+)\](?:\[(?P<label>[^\]]+)\])?\]")
_ORG_BOLD_RE = re.compile(r"(?<![\w*])\*(?P<text>[^*\s][^*]*?)\*(?![\w*])")
_ORG_ITALIC_RE = re.compile(r"(?<![\w/:])/(?P<text>[^/\s][^/]*?)/(?![\w/])")
_ORG_CODE_RE = re.compile(r"(?<!\w)[=~](?P<text>[^=~\s][^=~]*?)[=~](?!\w)")
_ORG_STRIKE_RE = re.compile(r"(?<![\w+])\+(?P<text>[^+\s][^+]*?)\+(?![\w+])")

_ORG_FRONT_MATTER_KEYS = {
    "title": "title",
    "date": "date",
    "author": "author",
    "description": "description",
    "id": "id",
}


def _org_tags(value: str) -> list[str]:
    return [t for t in re.split(r"[\s:]+", value) if t]


def _org_emphasis(text: str) -> str:
    text = _ORG_CODE_RE.sub(lambda m: f"`{m['text']}`", text)
    text = _ORG_BOLD_RE.sub(lambda m: f"**{m['text']}**", text)
    text = _ORG_ITALIC_RE.sub(lambda m: f"*{m['text']}*", text)
    return _ORG_STRIKE_RE.sub(lambda m: f"~~{m['text']}~~", text)


def _org_inline(line: str) -> str:
    # Link targets are left alone; emphasis applies between links only.
    parts: list[str] = []
    pos = 0
    for m in _ORG_LINK_RE.finditer(line):
        parts.append(_org_emphasis(line[pos:m.start()]))
        if m["label"]:
            parts.append(f"[{_org_emphasis(m['label'])}]({m['url']})")
        else:
            parts.append(f"<{m['url']}>")
        pos = m.end()
    parts.append(_org_emphasis(line[pos:]))
    return "".join(parts)


def org_to_markdown(text: str) -> tuple[dict[str, Any], str]:
    """Convert an org document to ``(front matter mapping, markdown body)``."""
    meta: dict[str, Any] = {}
    out: list[str] = []
    in_block: str | None = None

    for line in text.splitlines():
        stripped = line.strip()
        upper = stripped.upper()

        if in_block is not None:
            if upper.startswith("#+END_"):
                if in_block == "src":
                    out.append("```")
                in_block = None
                continue
            out.append(line if in_block == "src" else f"> {_org_inline(line.strip())}")
            continue

        if upper.startswith("#+BEGIN_SRC") or upper.startswith("#+BEGIN_EXAMPLE"):
            parts = stripped.split()
            lang = parts[1] if upper.startswith("#+BEGIN_SRC") and len(parts) > 1 else ""
            out.append(f"```{lang}")
            in_block = "src"
            continue
        if upper.startswith("#+BEGIN_QUOTE"):
            in_block = "quote"
            continue

        keyword = _ORG_KEYWORD_RE.match(stripped)
        if keyword is not None:
            key = keyword["key"].lower()
            value = keyword["value"].strip()
            if key in ("filetags", "tags"):
                meta["tags"] = _org_tags(value)
            elif key in _ORG_FRONT_MATTER_KEYS:
                meta[_ORG_FRONT_MATTER_KEYS[key]] = value.strip("<>[]") if key == "date" else value
            continue

        headline = _ORG_HEADLINE_RE.match(line)
        if headline is not None:
            level = min(len(headline["stars"]), 6)
            out.append(f"{'#' * level} {_org_inline(headline['title'])}")
            continue

        out.append(_org_inline(line))

    if in_block == "src":
        out.append("```")
    return meta, "\n".join(out) + "\n"


def parse_org(specifier: str, content: str) -> ParsedSource:
    """Parse an org document via its markdown rewrite."""
    meta, body = org_to_markdown(content)
    front_matter = FrontMatter.from_mapping(meta) if meta else None
    return ParsedSource(
        specifier,
        MediaType.HTML,
        data=markdown_to_html(rewrite_relrefs(body)),
        front_matter=front_matter,
        metadata=_stat(specifier),
    )


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

_CSS_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*)?["']?(?P<href>[^"')\s;]+)["']?\s*\)?(?P<media>[^;]*);"""
)


def css_imports(path: Path, content: str) -> list[Path]:
    """Return the local stylesheets *content* imports, resolved against *path*.

    Remote imports (``http:``, ``https:``, protocol-relative) are skipped.
    """
    imports: list[Path] = []
    for match in _CSS_IMPORT_RE.finditer(content):
        href = match["href"]
        if "://" in href or href.startswith("//"):
            continue
        imports.append((path.parent / href).resolve())
    return imports


def bundle_css(path: Path, content: str, _stack: tuple[Path, ...] = ()) -> str:
    """Inline every local ``@import`` of *content* recursively.

    Raises:
        ParseError: On a missing import or an import cycle.

    """
    stack = (*_stack, path)

    def inline(match: re.Match[str]) -> str:
        href = match["href"]
        if "://" in href or href.startswith("//"):
            return match.group(0)
        target = (path.parent / href).resolve()
        if target in stack:
            msg = f"Circular @import of {target} from {path}"
            raise ParseError(msg)
        try:
            imported = target.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Invalid @import {href!r} in {path}: {exc}"
            raise ParseError(msg) from exc
        body = bundle_css(target, imported, stack)
        media = match["media"].strip()
        return f"@media {media}{{{body}}}" if media else body

    return _CSS_IMPORT_RE.sub(inline, content)


def parse_css(specifier: str, content: str) -> ParsedSource:
    """Bundle and minify a stylesheet."""
    path = specifier_to_path(specifier)
    bundled = bundle_css(path, content)
    return ParsedSource(
        specifier,
        MediaType.CSS,
        data=csscompressor.compress(bundled),
        metadata=_stat(specifier),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def default_parsers() -> dict[MediaType, SourceParser]:
    """Parsers for every source media type berlin reads."""
    return {
        MediaType.MARKDOWN: parse_markdown,
        MediaType.ORG: parse_org,
        MediaType.CSS: parse_css,
        MediaType.CSV: _verbatim(MediaType.CSV),
        MediaType.TERA: _verbatim(MediaType.TERA),
    }
