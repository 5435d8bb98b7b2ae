"""Functions the default task table refers to by name.

``default_registry()`` returns a ``FunctionRegistry`` holding all of them;
config-defined tasks can use the same names.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from typing import Any
from urllib.parse import quote

from berlin._types import AggregatedSources, Context, ValueProvider
from berlin.content.feed import UNCATEGORIZED, Article, Feed, Tag, feed_from_source
from berlin.content.model import FrontMatter, MediaType, ParsedSource
from berlin.tasks.registry import FunctionRegistry

FEED_KEY = "feed"

# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------


def aggregate_all(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """Every source under the task's own key, in load order."""
    return {name: list(sources)}


def _published(source: ParsedSource) -> str | None:
    fm = source.front_matter
    return fm.published if fm is not None else None


def sort_by_date_published(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """Every source under the task's key, newest first.

    Sorting is stable: equal dates keep their load order.  Sources without
    a date come last.
    """
    dated = [s for s in sources if _published(s)]
    undated = [s for s in sources if not _published(s)]
    dated.sort(key=lambda s: _published(s) or "", reverse=True)
    return {name: dated + undated}


def _tag_names(source: ParsedSource) -> tuple[str, ...]:
    fm = source.front_matter
    if fm is None or not fm.tags:
        return (UNCATEGORIZED,)
    return fm.tags


def group_by_tag(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """One key per front-matter tag; untagged sources go to ``uncategorized``."""
    groups: AggregatedSources = {}
    for source in sources:
        for tag in dict.fromkeys(_tag_names(source)):
            groups.setdefault(tag, []).append(source)
    return groups


def _feed_entries(sources: Sequence[ParsedSource]) -> list[tuple[ParsedSource, Feed]]:
    return [
        (source, feed)
        for source in sources
        if source.media_type is MediaType.CSV
        for feed in feed_from_source(source)
    ]


def csv_feed_group_by_tag(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """CSV rows as ``JsonFeedEntry`` sources, one key per row tag."""
    groups: AggregatedSources = {}
    for source, feed in _feed_entries(sources):
        entry = feed.to_source(source.specifier)
        for tag in feed.tag_list:
            groups.setdefault(tag.name, []).append(entry)
    return groups


def feed_aggregate_all(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """CSV rows as ``JsonFeedEntry`` sources under the ``feed`` key."""
    return {FEED_KEY: [feed.to_source(source.specifier) for source, feed in _feed_entries(sources)]}


def tags_index(name: str, sources: Sequence[ParsedSource]) -> AggregatedSources:
    """One synthetic source per tag, holding that tag's articles and feed rows.

    Notes (Html) and CSV rows are grouped by tag; untagged ones go to
    ``uncategorized``.  Each tag becomes a source whose front-matter title
    is the tag name (so it slugifies to the tag) and whose ``custom``
    mapping carries ``tag_name``, ``articles`` and ``feed``.
    """
    articles: dict[str, list[dict[str, Any]]] = {}
    feed: dict[str, list[dict[str, Any]]] = {}

    for source in sources:
        if source.media_type is MediaType.HTML:
            article = Article.from_source(source).as_dict()
            for tag in dict.fromkeys(_tag_names(source)):
                articles.setdefault(tag, []).append(article)
        elif source.media_type in (MediaType.CSV, MediaType.JSON_FEED_ENTRY):
            for entry in feed_from_source(source):
                for tag in entry.tag_list:
                    feed.setdefault(tag.name, []).append(entry.as_dict())

    tag_sources: list[ParsedSource] = []
    for tag in sorted(articles.keys() | feed.keys()):
        tag_sources.append(
            ParsedSource(
                f"file:///tags/{quote(tag)}.txt",
                MediaType.JSON_FEED_ENTRY,
                data="",
                front_matter=FrontMatter(title=tag),
                custom={
                    "tag_name": tag,
                    "articles": articles.get(tag, []),
                    "feed": feed.get(tag, []),
                },
            )
        )
    return {name: tag_sources}


# ---------------------------------------------------------------------------
# Handlers (factories returning value providers)
# ---------------------------------------------------------------------------


def articles_by_key(key: str) -> ValueProvider:
    """Articles built from the sources under *key*."""

    def provide(sources: AggregatedSources) -> list[dict[str, Any]]:
        return [Article.from_source(s).as_dict() for s in sources.get(key, [])]

    return provide


def feed_by_key(key: str = FEED_KEY) -> ValueProvider:
    """Feed entries held by the sources under *key*."""

    def provide(sources: AggregatedSources) -> list[dict[str, Any]]:
        return [f.as_dict() for s in sources.get(key, []) for f in feed_from_source(s)]

    return provide


def compute_tags(articles_key: str = "index", feed_key: str = FEED_KEY) -> ValueProvider:
    """Sorted unique tags of the articles and feed rows."""

    def provide(sources: AggregatedSources) -> list[dict[str, str]]:
        tags: set[Tag] = set()
        for source in sources.get(articles_key, []):
            tags.update(Tag(t) for t in _tag_names(source))
        for source in sources.get(feed_key, []):
            for entry in feed_from_source(source):
                tags.update(entry.tag_list)
        return [asdict(t) for t in sorted(tags)]

    return provide


# ---------------------------------------------------------------------------
# Value and custom providers
# ---------------------------------------------------------------------------


def all_tags(sources: AggregatedSources) -> list[dict[str, str]]:
    """Sorted unique tags across every key."""
    tags = {Tag(t) for group in sources.values() for s in group for t in _tag_names(s)}
    return [asdict(t) for t in sorted(tags)]


def article_count(sources: AggregatedSources) -> int:
    """Number of distinct notes across every key."""
    return len(
        {
            s.specifier
            for group in sources.values()
            for s in group
            if s.media_type is MediaType.HTML
        }
    )


def feed_context(sources: AggregatedSources) -> Context:
    """``feed``: every feed entry across every key."""
    entries = [f for group in sources.values() for s in group for f in feed_from_source(s)]
    return {"feed": [f.as_dict() for f in entries]}


# ---------------------------------------------------------------------------
# Binders
# ---------------------------------------------------------------------------


def front_matter_context(source: ParsedSource) -> Context:
    """``page_<field>`` for every set front-matter field, plus page metadata.

    Also sets ``title``, ``description`` (the tags joined by ``,``) and,
    when the note has an ``id``, ``og_image_path``.
    """
    fm = source.front_matter
    if fm is None:
        return {}
    context: Context = {}
    for key, value in fm.fields():
        if value is None:
            continue
        if key == "tags":
            context[f"page_{key}"] = [asdict(Tag(t)) for t in value]
        else:
            context[f"page_{key}"] = value
    context["description"] = ",".join(fm.tags or ())
    context["title"] = fm.title or ""
    if fm.id:
        context["og_image_path"] = f"/static/pics/notes/{fm.id}/article_image.png"
    return context


def tag_context(source: ParsedSource) -> Context:
    """``tag_name``, ``feed`` and ``articles`` of a ``tags_index`` source."""
    custom = source.custom or {}
    return {key: custom[key] for key in ("tag_name", "feed", "articles") if key in custom}


# ---------------------------------------------------------------------------
# Static providers
# ---------------------------------------------------------------------------


def empty_slides() -> Context:
    return {"slides": []}


def default_registry() -> FunctionRegistry:
    """Registry holding every function in this module."""
    registry = FunctionRegistry()
    for fn in (
        aggregate_all,
        sort_by_date_published,
        group_by_tag,
        csv_feed_group_by_tag,
        feed_aggregate_all,
        tags_index,
    ):
        registry.register("aggregators", fn.__name__, fn)
    for fn in (articles_by_key, feed_by_key, compute_tags):
        registry.register("handlers", fn.__name__, fn)
    registry.register("values", "all_tags", all_tags)
    registry.register("values", "article_count", article_count)
    registry.register("custom", "feed_context", feed_context)
    registry.register("binders", "front_matter_context", front_matter_context)
    registry.register("binders", "tag_context", tag_context)
    registry.register("static", "empty_slides", empty_slides)
    return registry
