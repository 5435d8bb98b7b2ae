"""Build event model.

Defines the structured records emitted while berlin parses sources, runs
tasks and reacts to filesystem changes.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal

# ---------------------------------------------------------------------------
# Source cache events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceParsed:
    """A source was requested through the capturing parser.

    Attributes:
        specifier: ``file:`` URI of the source.
        media_type: Label of the resulting media type.
        cached: True if the value came from the cache without parsing.
        parse_ms: Time spent parsing in milliseconds (0 for cache hits).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    specifier: str
    media_type: str
    cached: bool
    parse_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SourceFreed:
    """A cache entry was evicted.

    Attributes:
        specifier: ``file:`` URI of the evicted source.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    specifier: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Task events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TaskCompleted:
    """A task ran to completion.

    Attributes:
        task: Task name.
        kind: Task variant.
        outputs: Paths written by the task.
        duration_ms: Wall time in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    task: str
    kind: Literal["render", "mount", "css"]
    outputs: tuple[str, ...]
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class TaskFailed:
    """A task was aborted by an error caught at the dispatch boundary.

    Attributes:
        task: Task name.
        kind: Task variant.
        error: Formatted error (``ExcType: message``).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    task: str
    kind: Literal["render", "mount", "css"]
    error: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Watch events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WatchFlush:
    """The watcher delivered a debounced batch.

    Attributes:
        paths: Sorted, deduplicated paths in the batch.
        mode: Watch mode at the time of the flush.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    paths: tuple[str, ...]
    mode: Literal["automatic", "manual"]
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type BuildLogEvent = SourceParsed | SourceFreed | TaskCompleted | TaskFailed | WatchFlush


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
