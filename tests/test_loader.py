"""Tests for berlin.tasks.loader — loading and aggregating task inputs."""

from __future__ import annotations

from pathlib import Path

import pytest

from berlin._errors import ConfigError, IoError
from berlin.content.cache import CapturingParser, ParsedSourceCache
from berlin.content.model import MediaType
from berlin.content.parsers import default_parsers
from berlin.tasks.functions import default_registry
from berlin.tasks.loader import InputLoader, input_matches, load_files, matches_glob
from berlin.tasks.model import AggregationInput, GlobInput, PathsInput


@pytest.fixture
def loader() -> InputLoader:
    parser = CapturingParser(ParsedSourceCache(), default_parsers())
    return InputLoader(parser, default_registry())


def _titles(sources: list) -> list[str | None]:
    return [s.front_matter.title if s.front_matter else None for s in sources]


# ---------------------------------------------------------------------------
# Globbing
# ---------------------------------------------------------------------------


class TestGlobbing:
    def test_load_files_sorted_files_only(self, tmp_site: Path) -> None:
        (tmp_site / "content" / "notes" / "dir.md").mkdir()
        files = load_files(tmp_site, "content/notes/*.md")
        assert [f.name for f in files] == ["first.md", "second.md"]

    @pytest.mark.parametrize(
        ("relative", "pattern", "expected"),
        [
            ("content/notes/a.md", "content/notes/*.md", True),
            ("content/notes/a.org", "content/notes/*.md", False),
            ("css/main.css", "css/**/*.css", True),
            ("css/partials/_base.css", "css/**/*.css", True),
            ("data/feed.csv", "data/feed.csv", True),
            ("data/other.csv", "data/feed.csv", False),
        ],
    )
    def test_matches_glob(self, relative: str, pattern: str, expected: bool) -> None:
        assert matches_glob(relative, pattern) is expected

    def test_input_matches_nested(self) -> None:
        input_ = AggregationInput(
            (GlobInput("content/notes/*.md"), PathsInput(("data/feed.csv",))),
            "tags_index",
        )
        assert input_matches(input_, Path("data/feed.csv"))
        assert input_matches(input_, "content/notes/x.md")
        assert not input_matches(input_, "pages/index.html")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoad:
    def test_glob_input(self, loader: InputLoader, tmp_site: Path) -> None:
        result = loader.load("notes", GlobInput("content/notes/*.md"), tmp_site)
        assert list(result) == ["notes"]
        assert _titles(result["notes"]) == ["My Post!", "Second Note"]
        assert all(s.media_type is MediaType.HTML for s in result["notes"])

    def test_paths_input(self, loader: InputLoader, tmp_site: Path) -> None:
        result = loader.load("feed", PathsInput(("data/feed.csv",)), tmp_site)
        assert result["feed"][0].media_type is MediaType.CSV

    def test_missing_path(self, loader: InputLoader, tmp_site: Path) -> None:
        with pytest.raises(IoError):
            loader.load("x", PathsInput(("data/nope.csv",)), tmp_site)

    def test_glob_without_matches(self, loader: InputLoader, tmp_site: Path) -> None:
        assert loader.load("x", GlobInput("nothing/*.md"), tmp_site) == {"x": []}

    def test_single_nested_uses_parent_aggregate(
        self, loader: InputLoader, tmp_site: Path
    ) -> None:
        input_ = AggregationInput((GlobInput("content/notes/*.md"),), "group_by_tag")
        result = loader.load("tags", input_, tmp_site)
        assert set(result) == {"a", "uncategorized"}
        assert _titles(result["a"]) == ["My Post!"]

    def test_single_nested_aggregation_is_replaced(
        self, loader: InputLoader, tmp_site: Path
    ) -> None:
        inner = AggregationInput((GlobInput("content/notes/*.md"),), "group_by_tag")
        outer = AggregationInput((inner,), "sort_by_date_published")
        result = loader.load("sorted", outer, tmp_site)
        assert list(result) == ["sorted"]
        assert _titles(result["sorted"]) == ["My Post!", "Second Note"]

    def test_multiple_nested_are_flattened(self, loader: InputLoader, tmp_site: Path) -> None:
        (tmp_site / "content" / "notes" / "third.org").write_text(
            "#+TITLE: Third\n#+DATE: 2025-01-01\n\nbody\n"
        )
        input_ = AggregationInput(
            (
                AggregationInput((GlobInput("content/notes/*.md"),), "group_by_tag"),
                GlobInput("content/notes/*.org"),
            ),
            "sort_by_date_published",
        )
        result = loader.load("all", input_, tmp_site)
        assert _titles(result["all"]) == ["Third", "My Post!", "Second Note"]

    def test_unknown_aggregate(self, loader: InputLoader, tmp_site: Path) -> None:
        input_ = AggregationInput((GlobInput("content/notes/*.md"),), "nope")
        with pytest.raises(ConfigError):
            loader.load("x", input_, tmp_site)

    def test_unknown_input_type(self, loader: InputLoader, tmp_site: Path) -> None:
        with pytest.raises(TypeError):
            loader.load("x", "content/*.md", tmp_site)  # type: ignore[arg-type]

    def test_load_all_appends_per_key(self, loader: InputLoader, tmp_site: Path) -> None:
        result = loader.load_all(
            "index",
            [
                GlobInput("content/notes/first.md"),
                GlobInput("content/notes/second.md"),
                AggregationInput((PathsInput(("data/feed.csv",)),), "feed_aggregate_all"),
            ],
            tmp_site,
        )
        assert _titles(result["index"]) == ["My Post!", "Second Note"]
        assert len(result["feed"]) == 2

    def test_sources_are_shared_through_cache(
        self, loader: InputLoader, tmp_site: Path
    ) -> None:
        first = loader.load("a", GlobInput("content/notes/first.md"), tmp_site)["a"][0]
        again = loader.load("b", PathsInput(("content/notes/first.md",)), tmp_site)["b"][0]
        assert again is first
