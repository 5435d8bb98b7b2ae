"""Tests for berlin.content.model — media types, front matter, specifiers."""

from __future__ import annotations

from pathlib import Path

import pytest

from berlin._errors import IoError, ParseError
from berlin.content.model import (
    FrontMatter,
    MediaType,
    ParsedSource,
    resolve_specifier,
    specifier_to_path,
    to_specifier,
)

# ---------------------------------------------------------------------------
# MediaType
# ---------------------------------------------------------------------------


class TestMediaType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("note.md", MediaType.MARKDOWN),
            ("note.org", MediaType.ORG),
            ("main.css", MediaType.CSS),
            ("feed.csv", MediaType.CSV),
            ("page.html", MediaType.HTML),
            ("theme.scss", MediaType.SCSS),
            ("index.tera", MediaType.TERA),
            ("index.j2", MediaType.TERA),
            ("entry.feedentry", MediaType.JSON_FEED_ENTRY),
            ("LOUD.MD", MediaType.MARKDOWN),
        ],
    )
    def test_from_path(self, name: str, expected: MediaType) -> None:
        assert MediaType.from_path(name) is expected

    def test_unknown_extension(self) -> None:
        with pytest.raises(ParseError, match="Unsupported media type"):
            MediaType.from_path("archive.zip")

    def test_no_extension(self) -> None:
        with pytest.raises(ParseError):
            MediaType.from_path("Makefile")

    def test_label(self) -> None:
        assert str(MediaType.JSON_FEED_ENTRY) == "Feed Entry"
        assert MediaType.MARKDOWN.extension == "md"


# ---------------------------------------------------------------------------
# FrontMatter
# ---------------------------------------------------------------------------


class TestFrontMatter:
    def test_from_mapping(self) -> None:
        fm = FrontMatter.from_mapping(
            {"title": "Hi", "date": "2024-01-02", "tags": ["a", "b"], "author": "Ada", "id": 7}
        )
        assert fm.title == "Hi"
        assert fm.published == "2024-01-02"
        assert fm.tags == ("a", "b")
        assert fm.author == ("Ada",)
        assert fm.id == "7"

    def test_missing_fields_are_none(self) -> None:
        fm = FrontMatter.from_mapping({})
        assert fm == FrontMatter()
        assert fm.tags is None

    def test_fields_order(self) -> None:
        keys = [k for k, _ in FrontMatter(title="x").fields()]
        assert keys == ["title", "description", "tags", "published", "author", "id"]

    def test_frozen(self) -> None:
        fm = FrontMatter(title="x")
        with pytest.raises(AttributeError):
            fm.title = "y"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# ParsedSource
# ---------------------------------------------------------------------------


class TestParsedSource:
    def test_identity_is_specifier(self) -> None:
        a = ParsedSource("file:///a.md", MediaType.HTML, data="one")
        b = ParsedSource("file:///a.md", MediaType.HTML, data="two")
        assert a == b
        assert hash(a) == hash(b)

    def test_text_without_data(self) -> None:
        source = ParsedSource("file:///a.md", MediaType.HTML)
        assert not source.has_data
        with pytest.raises(ParseError, match="No data captured"):
            source.text()

    def test_custom_is_read_only(self) -> None:
        source = ParsedSource("file:///t.txt", MediaType.JSON_FEED_ENTRY, custom={"k": 1})
        assert source.custom is not None
        with pytest.raises(TypeError):
            source.custom["k"] = 2  # type: ignore[index]

    def test_path(self) -> None:
        source = ParsedSource("file:///site/content/a%20b.md", MediaType.HTML)
        assert source.path == Path("/site/content/a b.md")


# ---------------------------------------------------------------------------
# Specifiers
# ---------------------------------------------------------------------------


class TestSpecifiers:
    def test_to_specifier_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "note one.md"
        path.write_text("x")
        specifier = to_specifier(path)
        assert specifier.startswith("file://")
        assert specifier_to_path(specifier) == path.resolve()

    def test_to_specifier_missing(self, tmp_path: Path) -> None:
        with pytest.raises(IoError) as excinfo:
            to_specifier(tmp_path / "missing.md")
        assert excinfo.value.path == tmp_path / "missing.md"

    def test_resolve_specifier_missing_ok(self, tmp_path: Path) -> None:
        specifier = resolve_specifier(tmp_path / "gone.md")
        assert specifier == (tmp_path / "gone.md").resolve().as_uri()

    def test_non_file_specifier(self) -> None:
        with pytest.raises(IoError):
            specifier_to_path("https://example.com/a.md")
