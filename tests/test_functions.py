"""Tests for berlin.tasks.functions — aggregators, providers and binders."""

from __future__ import annotations

from collections.abc import Callable

from berlin.content.feed import Feed
from berlin.content.model import FrontMatter, MediaType, ParsedSource
from berlin.tasks.functions import (
    FEED_KEY,
    aggregate_all,
    all_tags,
    article_count,
    articles_by_key,
    compute_tags,
    csv_feed_group_by_tag,
    default_registry,
    empty_slides,
    feed_aggregate_all,
    feed_by_key,
    feed_context,
    front_matter_context,
    group_by_tag,
    sort_by_date_published,
    tag_context,
    tags_index,
)
from conftest import FEED_CSV

type SourceFactory = Callable[..., ParsedSource]


def _csv() -> ParsedSource:
    return ParsedSource("file:///site/data/feed.csv", MediaType.CSV, data=FEED_CSV)


# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------


class TestAggregators:
    def test_aggregate_all(self, make_source: SourceFactory) -> None:
        sources = [make_source("a.md"), make_source("b.md")]
        assert aggregate_all("notes", sources) == {"notes": sources}

    def test_sort_by_date_published(self, make_source: SourceFactory) -> None:
        old = make_source("old.md", published="2020-01-01")
        new = make_source("new.md", published="2024-01-01")
        undated = make_source("undated.md", title="U")
        tie_first = make_source("tie1.md", published="2022-06-01")
        tie_second = make_source("tie2.md", published="2022-06-01")

        result = sort_by_date_published("n", [undated, old, tie_first, new, tie_second])

        assert result["n"] == [new, tie_first, tie_second, old, undated]

    def test_group_by_tag(self, make_source: SourceFactory) -> None:
        x = make_source("x.md", tags=["a", "b"])
        y = make_source("y.md", tags=["b"])
        z = make_source("z.md", title="Z")

        groups = group_by_tag("t", [x, y, z])

        assert set(groups) == {"a", "b", "uncategorized"}
        assert groups["a"] == [x]
        assert groups["b"] == [x, y]
        assert groups["uncategorized"] == [z]

    def test_group_by_tag_duplicate_tag(self, make_source: SourceFactory) -> None:
        x = make_source("x.md", tags=["a", "a"])
        assert group_by_tag("t", [x]) == {"a": [x]}

    def test_csv_feed_group_by_tag(self) -> None:
        groups = csv_feed_group_by_tag("t", [_csv()])
        assert set(groups) == {"a", "b", "uncategorized"}
        entry = groups["a"][0]
        assert entry.media_type is MediaType.JSON_FEED_ENTRY
        assert Feed.from_source(entry).title == "Great Link"

    def test_feed_aggregate_all(self, make_source: SourceFactory) -> None:
        result = feed_aggregate_all("index", [_csv(), make_source("a.md")])
        assert list(result) == [FEED_KEY]
        assert [Feed.from_source(s).title for s in result[FEED_KEY]] == [
            "Great Link",
            "Plain Link",
        ]


class TestTagsIndex:
    def test_one_source_per_tag(self, make_source: SourceFactory) -> None:
        note = make_source("n.md", title="Note A", tags=["a"])
        untagged = make_source("u.md", title="Loose")

        result = tags_index("tags", [note, untagged, _csv()])
        sources = result["tags"]

        assert [s.front_matter.title for s in sources if s.front_matter] == [
            "a",
            "b",
            "uncategorized",
        ]
        by_tag = {s.custom["tag_name"]: s.custom for s in sources if s.custom}
        assert [a["title"] for a in by_tag["a"]["articles"]] == ["Note A"]
        assert [f["title"] for f in by_tag["a"]["feed"]] == ["Great Link"]
        assert by_tag["b"]["articles"] == []
        assert [a["title"] for a in by_tag["uncategorized"]["articles"]] == ["Loose"]
        assert [f["title"] for f in by_tag["uncategorized"]["feed"]] == ["Plain Link"]

    def test_specifiers_are_unique(self, make_source: SourceFactory) -> None:
        result = tags_index("tags", [make_source("n.md", tags=["x y", "x"])])
        specifiers = [s.specifier for s in result["tags"]]
        assert len(set(specifiers)) == 2

    def test_empty(self) -> None:
        assert tags_index("tags", []) == {"tags": []}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class TestHandlers:
    def test_articles_by_key(self, make_source: SourceFactory) -> None:
        provide = articles_by_key("notes")
        articles = provide({"notes": [make_source("a.md", title="A")], "other": []})
        assert [a["title"] for a in articles] == ["A"]
        assert articles[0]["target"] == "/notes/a.html"

    def test_articles_by_missing_key(self) -> None:
        assert articles_by_key("nope")({}) == []

    def test_feed_by_key(self) -> None:
        entries = feed_aggregate_all("index", [_csv()])
        feed = feed_by_key()(entries)
        assert [f["host"] for f in feed] == ["example.org", "www.example.net"]

    def test_compute_tags(self, make_source: SourceFactory) -> None:
        sources = {
            "index": [make_source("a.md", tags=["z"]), make_source("b.md", title="B")],
            FEED_KEY: feed_aggregate_all("index", [_csv()])[FEED_KEY],
        }
        tags = compute_tags()(sources)
        assert [t["name"] for t in tags] == ["a", "b", "uncategorized", "z"]
        assert tags[0] == {"name": "a", "target": "/tags/a.html"}


# ---------------------------------------------------------------------------
# Value, custom and static providers
# ---------------------------------------------------------------------------


class TestProviders:
    def test_all_tags(self, make_source: SourceFactory) -> None:
        sources = {
            "x": [make_source("a.md", tags=["b", "a"])],
            "y": [make_source("c.md", tags=["a"])],
        }
        assert [t["name"] for t in all_tags(sources)] == ["a", "b"]

    def test_article_count_counts_distinct_notes(self, make_source: SourceFactory) -> None:
        a = make_source("a.md")
        assert article_count({"x": [a, make_source("b.md")], "y": [a, _csv()]}) == 2

    def test_feed_context(self) -> None:
        context = feed_context({"feed": [_csv()]})
        assert len(context["feed"]) == 2

    def test_empty_slides(self) -> None:
        assert empty_slides() == {"slides": []}


# ---------------------------------------------------------------------------
# Binders
# ---------------------------------------------------------------------------


class TestBinders:
    def test_front_matter_context(self) -> None:
        source = ParsedSource(
            "file:///site/content/notes/a.md",
            MediaType.HTML,
            data="<p>x</p>",
            front_matter=FrontMatter(
                title="A",
                tags=("x", "y"),
                published="2024-01-02",
                author=("Ada",),
                id="n1",
            ),
        )
        context = front_matter_context(source)
        assert context["title"] == "A"
        assert context["page_title"] == "A"
        assert context["page_published"] == "2024-01-02"
        assert context["page_author"] == ["Ada"]
        assert context["page_tags"] == [
            {"name": "x", "target": "/tags/x.html"},
            {"name": "y", "target": "/tags/y.html"},
        ]
        assert context["description"] == "x,y"
        assert context["og_image_path"] == "/static/pics/notes/n1/article_image.png"
        assert "page_description" not in context

    def test_front_matter_context_without_id(self, make_source: SourceFactory) -> None:
        context = front_matter_context(make_source("a.md", title="A"))
        assert "og_image_path" not in context
        assert context["description"] == ""

    def test_front_matter_context_without_front_matter(self, make_source: SourceFactory) -> None:
        assert front_matter_context(make_source("a.md")) == {}

    def test_tag_context(self, make_source: SourceFactory) -> None:
        source = tags_index("tags", [make_source("a.md", title="A", tags=["t"])])["tags"][0]
        context = tag_context(source)
        assert context["tag_name"] == "t"
        assert context["feed"] == []
        assert [a["title"] for a in context["articles"]] == ["A"]

    def test_tag_context_plain_source(self, make_source: SourceFactory) -> None:
        assert tag_context(make_source("a.md")) == {}


class TestDefaultRegistry:
    def test_every_function_registered(self) -> None:
        registry = default_registry()
        assert registry.names("aggregators") == [
            "aggregate_all",
            "csv_feed_group_by_tag",
            "feed_aggregate_all",
            "group_by_tag",
            "sort_by_date_published",
            "tags_index",
        ]
        assert registry.names("handlers") == ["articles_by_key", "compute_tags", "feed_by_key"]
        assert registry.names("binders") == ["front_matter_context", "tag_context"]
        assert ("static", "empty_slides") in registry
        assert registry.get("values", "all_tags") is all_tags
