"""Content models — tags, reading-list feed rows and articles.

A reading-list CSV (one row per bookmarked link) is exposed to templates as
``Feed`` entries; markdown and org notes are exposed as ``Article`` values.
Both carry ``Tag`` values that link to the per-tag index pages.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterator, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any
from urllib.parse import urlparse

from berlin._errors import ParseError
from berlin.content.model import MediaType, ParsedSource
from berlin.content.parsers import markdown_to_html
from berlin.content.slug import slugify, source_slug

UNCATEGORIZED = "uncategorized"

# Separator of the "Manual Tags" column
_TAG_SEPARATOR = "; "


@dataclass(frozen=True, slots=True, order=True)
class Tag:
    """A tag and the URL of its index page."""

    name: str
    target: str = ""

    def __post_init__(self) -> None:
        if not self.target:
            object.__setattr__(self, "target", f"/tags/{slugify(self.name)}.html")

    @classmethod
    def uncategorized(cls) -> Tag:
        return cls(UNCATEGORIZED)

    def __str__(self) -> str:
        return self.name


def tags_or_uncategorized(names: Sequence[str] | None) -> list[Tag]:
    """Tags for *names*, or the single ``uncategorized`` tag when empty."""
    if not names:
        return [Tag.uncategorized()]
    return [Tag(n) for n in names]


@dataclass(frozen=True, slots=True)
class Record:
    """One row of the reading-list CSV export.

    Attributes:
        key: Library key of the entry.
        author: Author field as exported.
        title: Title of the linked page.
        url: Link target.
        date: Publication date of the linked page.
        date_added: When the entry was added to the library.
        tags: Parsed ``Manual Tags`` column.

    """

    key: str = ""
    author: str = ""
    title: str = ""
    url: str = "https://example.com"
    date: str = ""
    date_added: str = ""
    tags: tuple[Tag, ...] = ()

    @classmethod
    def from_row(cls, row: dict[str, str | None]) -> Record:
        raw_tags = row.get("Manual Tags") or ""
        return cls(
            key=row.get("Key") or "",
            author=row.get("Author") or "",
            title=row.get("Title") or "",
            url=row.get("Url") or "",
            date=row.get("Date") or "",
            date_added=row.get("Date Added") or "",
            tags=tuple(Tag(t) for t in raw_tags.split(_TAG_SEPARATOR) if t.strip()),
        )


@dataclass(frozen=True, slots=True)
class Feed:
    """A reading-list entry as shown on pages."""

    title: str = ""
    date_added: str = ""
    url: str = ""
    host: str = ""
    tags: tuple[Tag, ...] = field(default_factory=tuple)

    @classmethod
    def from_record(cls, record: Record) -> Feed:
        return cls(
            title=record.title,
            date_added=record.date_added,
            url=record.url,
            host=urlparse(record.url).hostname or "",
            tags=record.tags,
        )

    @classmethod
    def from_source(cls, source: ParsedSource) -> Feed:
        """Decode a ``JsonFeedEntry`` source produced by ``to_source``.

        Raises:
            ParseError: If the source does not hold a feed entry.

        """
        try:
            data = json.loads(source.text())
        except json.JSONDecodeError as exc:
            msg = f"Not a feed entry: {source.specifier}: {exc}"
            raise ParseError(msg) from exc
        return cls(
            title=data.get("title", ""),
            date_added=data.get("date_added", ""),
            url=data.get("url", ""),
            host=data.get("host", ""),
            tags=tuple(Tag(t["name"], t.get("target", "")) for t in data.get("tags", [])),
        )

    @property
    def tag_list(self) -> list[Tag]:
        return list(self.tags) if self.tags else [Tag.uncategorized()]

    def as_dict(self) -> dict[str, Any]:
        return asdict(self) | {"tags": [asdict(t) for t in self.tags]}

    def to_json(self) -> str:
        return json.dumps(self.as_dict())

    def to_source(self, specifier: str) -> ParsedSource:
        """Wrap the entry as a synthetic source of the CSV it came from."""
        return ParsedSource(specifier, MediaType.JSON_FEED_ENTRY, data=self.to_json())


def read_records(text: str) -> Iterator[Record]:
    """Yield the records of a reading-list CSV export."""
    reader = csv.DictReader(io.StringIO(text), delimiter=",", doublequote=True)
    for row in reader:
        yield Record.from_row(row)


def feed_from_source(source: ParsedSource) -> list[Feed]:
    """Feed entries held by *source* (a Csv or JsonFeedEntry source)."""
    if source.media_type is MediaType.CSV:
        return [Feed.from_record(r) for r in read_records(source.text())]
    if source.media_type is MediaType.JSON_FEED_ENTRY:
        return [Feed.from_source(source)]
    return []


@dataclass(frozen=True, slots=True)
class Article:
    """A note as listed on index and tag pages.

    Attributes:
        title: Note title.
        description: Summary rendered from markdown to HTML.
        author: Authors joined by ``", "``.
        date: Publication date as written.
        target: URL of the note's page (``/notes/<slug>.html``).
        tags: The note's tags.

    """

    title: str = ""
    description: str = ""
    author: str = ""
    date: str = ""
    target: str = ""
    tags: tuple[Tag, ...] = ()

    @classmethod
    def from_source(cls, source: ParsedSource) -> Article:
        fm = source.front_matter
        if fm is None:
            return cls(target=f"/notes/{source_slug(source)}.html")
        title = fm.title or ""
        return cls(
            title=title,
            description=markdown_to_html(fm.description) if fm.description else "",
            author=", ".join(fm.author or ()),
            date=fm.published or "",
            target=f"/notes/{source_slug(source)}.html",
            tags=tuple(Tag(t) for t in fm.tags or ()),
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self) | {"tags": [asdict(t) for t in self.tags]}
