"""Parsed-source cache and the capturing parser that fills it.

The cache is keyed by specifier alone.  A lookup that hits returns the
stored value without looking at the file again, so any change to a source
must be followed by ``free()`` before the next parse, or the stale value is
served for the rest of the process.

Thread Safety:
    ``ParsedSourceCache`` guards its dict with a ``threading.Lock``; the
    watcher thread may free entries while the builder reads them.

"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from berlin._errors import IoError, ParseError
from berlin.content.model import MediaType, ParsedSource, resolve_specifier, to_specifier

if TYPE_CHECKING:
    from berlin._types import LoadReporter
    from berlin.observability.collector import BuildCollector

# (specifier, raw content) -> parsed source
type SourceParser = Callable[[str, str], ParsedSource]


class ParsedSourceCache:
    """Specifier -> ParsedSource store shared by the builder and the watcher."""

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: dict[str, ParsedSource] = {}
        self._lock = threading.Lock()

    def get(self, specifier: str) -> ParsedSource | None:
        with self._lock:
            return self._entries.get(specifier)

    def set(self, source: ParsedSource) -> None:
        with self._lock:
            self._entries[source.specifier] = source

    def free(self, specifier: str) -> bool:
        """Evict *specifier*; return True if an entry was removed."""
        with self._lock:
            return self._entries.pop(specifier, None) is not None

    def clear(self) -> int:
        """Evict every entry and return how many there were."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def specifiers(self) -> list[str]:
        """Snapshot of cached specifiers."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, specifier: object) -> bool:
        with self._lock:
            return specifier in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.specifiers())


class CapturingParser:
    """Parses sources through per-media-type parsers, capturing results.

    Lookup is unconditional: a cached specifier is returned as-is and the
    underlying parser is not invoked.  A successful parse is stored before
    it is returned.

    Args:
        cache: Store consulted before and filled after every parse.
        parsers: Parser per source media type.
        collector: Optional event collector for hit/miss records.
        reporter: Called with the parent directory of every file loaded
            through ``load()``.

    """

    def __init__(
        self,
        cache: ParsedSourceCache,
        parsers: Mapping[MediaType, SourceParser],
        *,
        collector: BuildCollector | None = None,
        reporter: LoadReporter | None = None,
    ) -> None:
        self._cache = cache
        self._parsers = dict(parsers)
        self._collector = collector
        self.reporter = reporter

    @property
    def cache(self) -> ParsedSourceCache:
        return self._cache

    def parse(self, specifier: str, content: str, media_type: MediaType) -> ParsedSource:
        """Return the parsed source for *specifier*, parsing only on a miss.

        Raises:
            ParseError: If no parser handles *media_type* or the parser
                rejects the content.

        """
        cached = self._cache.get(specifier)
        if cached is not None:
            if self._collector is not None:
                self._collector.record_parse(specifier, cached.media_type.label, cached=True)
            return cached

        parser = self._parsers.get(media_type)
        if parser is None:
            msg = f"No parser registered for {media_type.label} ({specifier})"
            raise ParseError(msg)

        start = time.perf_counter()
        source = parser(specifier, content)
        parse_ms = (time.perf_counter() - start) * 1000

        self._cache.set(source)
        if self._collector is not None:
            self._collector.record_parse(
                specifier, source.media_type.label, cached=False, parse_ms=parse_ms
            )
        return source

    def load(self, path: Path | str) -> ParsedSource:
        """Canonicalize, read and parse the file at *path*.

        The cache is consulted before the file is read.

        Raises:
            IoError: If the path cannot be canonicalized or read.
            ParseError: If the file's media type has no parser or parsing fails.

        """
        specifier = to_specifier(path)
        resolved = Path(path).resolve()
        if self.reporter is not None:
            self.reporter([resolved.parent])

        cached = self._cache.get(specifier)
        if cached is not None:
            if self._collector is not None:
                self._collector.record_parse(specifier, cached.media_type.label, cached=True)
            return cached

        media_type = MediaType.from_path(resolved)
        try:
            content = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Unable to read {resolved}: {exc}"
            raise IoError(msg, resolved) from exc
        return self.parse(specifier, content, media_type)

    def free(self, path: Path | str) -> bool:
        """Evict the cache entry for *path* (which may no longer exist)."""
        specifier = resolve_specifier(path)
        removed = self._cache.free(specifier)
        if removed and self._collector is not None:
            self._collector.record_free(specifier)
        return removed

    def free_all(self) -> None:
        count = self._cache.clear()
        if count:
            print(f"  Freed {count} cached sources", file=sys.stderr)
