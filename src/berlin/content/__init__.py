"""Content layer — sources as parsed, cached data.

Handles the source data model, per-media-type parsing, the parsed-source
cache and file watching.
"""

from berlin.content.cache import CapturingParser, ParsedSourceCache
from berlin.content.feed import Article, Feed, Record, Tag
from berlin.content.model import FrontMatter, MediaType, ParsedSource, to_specifier
from berlin.content.watcher import DebouncedReceiver, FileWatcher, WatchMode

__all__ = [
    "Article",
    "CapturingParser",
    "DebouncedReceiver",
    "Feed",
    "FileWatcher",
    "FrontMatter",
    "MediaType",
    "ParsedSource",
    "ParsedSourceCache",
    "Record",
    "Tag",
    "WatchMode",
    "to_specifier",
]
