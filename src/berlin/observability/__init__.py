"""Build observability — structured events for parsing, tasks and watching.

Human-facing status lines go to stderr; every structured record lands in a
bounded, queryable ``EventLog``.

Quick Start:
    >>> from berlin.observability import BuildCollector, EventLog
    >>> log = EventLog()
    >>> collector = BuildCollector(log)
    >>> collector.record_free("file:///site/content/a.md")
    >>> len(log)
    1

"""

from berlin.observability.collector import BuildCollector
from berlin.observability.events import (
    BuildLogEvent,
    SourceFreed,
    SourceParsed,
    TaskCompleted,
    TaskFailed,
    WatchFlush,
    now_ns,
)
from berlin.observability.log import EventLog

__all__ = [
    "BuildCollector",
    "BuildLogEvent",
    "EventLog",
    "SourceFreed",
    "SourceParsed",
    "TaskCompleted",
    "TaskFailed",
    "WatchFlush",
    "now_ns",
]
