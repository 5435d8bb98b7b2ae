"""Build collector — records cache, task and watch events into the event log.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Safe for concurrent use from the builder and the watcher thread.

"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Literal

from berlin.observability.events import (
    SourceFreed,
    SourceParsed,
    TaskCompleted,
    TaskFailed,
    WatchFlush,
    now_ns,
)
from berlin.observability.log import EventLog

if TYPE_CHECKING:
    from berlin.tasks.model import TaskKind


class BuildCollector:
    """Event collector for one berlin process.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Source cache events -----

    def record_parse(
        self,
        specifier: str,
        media_type: str,
        *,
        cached: bool = False,
        parse_ms: float = 0.0,
    ) -> None:
        """Record a capturing-parser request (hit or miss)."""
        self._log.append(
            SourceParsed(
                specifier=specifier,
                media_type=media_type,
                cached=cached,
                parse_ms=parse_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_free(self, specifier: str) -> None:
        """Record a cache eviction."""
        self._log.append(SourceFreed(specifier=specifier, timestamp_ns=now_ns()))

    # ----- Task events -----

    def record_task(
        self,
        task: str,
        kind: TaskKind,
        outputs: Iterable[str],
        *,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a completed task."""
        self._log.append(
            TaskCompleted(
                task=task,
                kind=kind,
                outputs=tuple(outputs),
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_task_failure(self, task: str, kind: TaskKind, error: BaseException) -> None:
        """Record a task aborted at the dispatch boundary."""
        self._log.append(
            TaskFailed(
                task=task,
                kind=kind,
                error=f"{type(error).__name__}: {error}",
                timestamp_ns=now_ns(),
            )
        )

    # ----- Watch events -----

    def record_flush(
        self,
        paths: Iterable[str],
        mode: Literal["automatic", "manual"],
    ) -> None:
        """Record a debounced watcher flush."""
        self._log.append(
            WatchFlush(
                paths=tuple(sorted(paths)),
                mode=mode,
                timestamp_ns=now_ns(),
            )
        )
