"""Event log — queryable, thread-safe event store.

Stores a bounded ring buffer of build events for inspection.
Supports querying by event type, time range, and specifier or path.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Safe for
    concurrent reads and writes from the builder and the watcher thread.

"""

import threading
from collections import deque
from collections.abc import Sequence
from typing import Any

from berlin.observability.events import BuildLogEvent


def _event_subject(event: Any) -> str:
    """The string a ``path`` query is matched against."""
    for attr in ("specifier", "task"):
        value = getattr(event, attr, None)
        if value:
            return value
    paths = getattr(event, "paths", None) or getattr(event, "outputs", None)
    if paths:
        return "\n".join(paths)
    return ""


class EventLog:
    """Bounded event store with query support.

    Events are stored in a ring buffer (deque with maxlen).  When the
    buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[BuildLogEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: BuildLogEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def append_many(self, events: Sequence[BuildLogEvent]) -> None:
        """Record multiple events at once."""
        with self._lock:
            self._events.extend(events)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[BuildLogEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events after this timestamp (nanoseconds).
            path: Only return events whose specifier, task name or paths
                contain this substring.
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            results: list[BuildLogEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break

                if event_type is not None and not isinstance(event, event_type):
                    continue

                if since_ns and event.timestamp_ns < since_ns:
                    continue

                if path is not None and path not in _event_subject(event):
                    continue

                results.append(event)

            return results

    def recent(self, n: int = 20) -> list[BuildLogEvent]:
        """Return the N most recent events."""
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        with self._lock:
            events = list(self._events)

        type_counts: dict[str, int] = {}
        for event in events:
            name = type(event).__name__
            type_counts[name] = type_counts.get(name, 0) + 1

        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": type_counts,
        }
