"""Content data model — specifiers, media types, front matter, parsed sources.

A ``ParsedSource`` is the unit that flows through the whole build: loaders
produce it, aggregation functions group it, params and binders read it, and
the renderer exposes its text to templates.

Thread Safety:
    All types here are frozen dataclasses (or enums) and safe to share
    between the builder and the watcher thread.

"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse
from urllib.request import url2pathname

from berlin._errors import IoError, ParseError


class MediaType(Enum):
    """Closed set of source kinds, derived from the file extension."""

    CSS = "css"
    CSV = "csv"
    JSON_FEED_ENTRY = "feedentry"
    HTML = "html"
    MARKDOWN = "md"
    ORG = "org"
    SCSS = "scss"
    TERA = "tera"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_path(cls, path: Path | str) -> MediaType:
        """Determine the media type of *path* from its extension.

        Raises:
            ParseError: If the extension is not a known source kind.

        """
        suffix = Path(path).suffix.lower().lstrip(".")
        media_type = _EXTENSIONS.get(suffix)
        if media_type is None:
            msg = f"Unsupported media type for {path} (extension {suffix!r})"
            raise ParseError(msg)
        return media_type

    def __str__(self) -> str:
        return self.label


_LABELS: dict[MediaType, str] = {
    MediaType.CSS: "Css",
    MediaType.CSV: "Csv",
    MediaType.JSON_FEED_ENTRY: "Feed Entry",
    MediaType.HTML: "Html",
    MediaType.MARKDOWN: "Markdown",
    MediaType.ORG: "Org",
    MediaType.SCSS: "Scss",
    MediaType.TERA: "Tera Template",
}

_EXTENSIONS: dict[str, MediaType] = {m.value: m for m in MediaType}
# Jinja templates share the Tera media type
_EXTENSIONS["j2"] = MediaType.TERA
_EXTENSIONS["jinja"] = MediaType.TERA


@dataclass(frozen=True, slots=True)
class FrontMatter:
    """Structured metadata block at the top of a content file.

    Attributes:
        title: Display title; also the preferred slug source.
        published: Publication date as written (``date`` in the file).
        author: Author names.
        description: Short summary (markdown).
        tags: Tag names.
        id: Stable identifier (used for per-article image paths).

    """

    title: str | None = None
    published: str | None = None
    author: tuple[str, ...] | None = None
    description: str | None = None
    tags: tuple[str, ...] | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FrontMatter:
        """Build front matter from a decoded YAML mapping.

        ``date`` maps to ``published``.  Scalars are stringified, so a YAML
        date such as ``2023-01-31`` becomes ``"2023-01-31"``.  A single
        author or tag string is accepted in place of a list.
        """
        return cls(
            title=_as_str(data.get("title")),
            published=_as_str(data.get("date", data.get("published"))),
            author=_as_tuple(data.get("author")),
            description=_as_str(data.get("description")),
            tags=_as_tuple(data.get("tags")),
            id=_as_str(data.get("id")),
        )

    def fields(self) -> list[tuple[str, Any]]:
        """Return ``(name, value)`` pairs in template order."""
        return [
            ("title", self.title),
            ("description", self.description),
            ("tags", list(self.tags) if self.tags is not None else None),
            ("published", self.published),
            ("author", list(self.author) if self.author is not None else None),
            ("id", self.id),
        ]


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_tuple(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


@dataclass(frozen=True, slots=True)
class ParsedSource:
    """Immutable result of parsing one source.

    Identity for caching is the specifier: two values with the same
    specifier are interchangeable, so equality and hashing use it alone.

    Attributes:
        specifier: Canonical ``file:`` URI of the source.
        media_type: Media type of the *result* (markdown parses to Html).
        data: Rendered text, if the parser captured any.
        front_matter: Metadata block, if present.
        metadata: ``os.stat`` result of the file, if it was available.
        custom: Extra values attached by aggregation functions.

    """

    specifier: str
    media_type: MediaType = field(compare=False)
    data: str | None = field(default=None, compare=False)
    front_matter: FrontMatter | None = field(default=None, compare=False)
    metadata: os.stat_result | None = field(default=None, compare=False, repr=False)
    custom: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.custom is not None and not isinstance(self.custom, MappingProxyType):
            object.__setattr__(self, "custom", MappingProxyType(dict(self.custom)))

    @property
    def has_data(self) -> bool:
        return self.data is not None

    def text(self) -> str:
        """Return the captured text, failing loudly if none was captured."""
        if self.data is None:
            msg = f"No data captured while parsing {self.specifier}"
            raise ParseError(msg)
        return self.data

    @property
    def path(self) -> Path:
        """Filesystem path of the specifier."""
        return specifier_to_path(self.specifier)


# ---------------------------------------------------------------------------
# Specifiers
# ---------------------------------------------------------------------------


def to_specifier(path: Path | str) -> str:
    """Canonicalize *path* and return its ``file:`` URI.

    Raises:
        IoError: If the path does not exist or cannot be resolved.

    """
    try:
        resolved = Path(path).resolve(strict=True)
    except OSError as exc:
        msg = f"Unable to canonicalize {path}: {exc}"
        raise IoError(msg, path) from exc
    return resolved.as_uri()


def resolve_specifier(path: Path | str) -> str:
    """Return the ``file:`` URI of *path* without requiring it to exist.

    Used for eviction, where the file may already have been deleted.
    """
    return Path(path).resolve().as_uri()


def specifier_to_path(specifier: str) -> Path:
    """Map a ``file:`` URI back to a filesystem path."""
    parsed = urlparse(specifier)
    if parsed.scheme != "file":
        msg = f"Not a file specifier: {specifier}"
        raise IoError(msg)
    return Path(url2pathname(parsed.path))
