"""File watcher — debounced change batches that drive incremental rebuilds.

watchfiles runs in a background thread and forwards every changed path to
a ``DebouncedReceiver`` on the event loop.  The receiver coalesces a burst
of events into one deduplicated batch once no event has arrived for the
debounce interval.

Idle -> Accumulating (each event resets the quiet timer) -> Flush -> Idle

What happens on a flush depends on the ``WatchMode``:

- AUTOMATIC: the watched operation runs with the batch.  A restart request
  while it runs abandons the wait and starts it again.
- MANUAL: the batch is published on the ``BatchBroadcaster``; the
  operation only runs when ``request_restart()`` is called.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, DefaultFilter

from berlin.banner import print_error, print_status
from berlin.reactive.broadcaster import Batch, BatchBroadcaster

if TYPE_CHECKING:
    from berlin.observability.collector import BuildCollector

type WatchOperation = Callable[[Batch], Awaitable[object]]

DEFAULT_DEBOUNCE_MS = 1000

# Changes watchfiles reports that we forward; all of them today.
_FORWARDED: frozenset[Change] = frozenset({Change.added, Change.modified, Change.deleted})


class WatchMode(Enum):
    """Whether a flush restarts the watched operation by itself."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class DebouncedReceiver:
    """Coalesces single-path events into quiet-interval batches.

    Pending paths survive a cancelled ``recv()``; the next call picks up
    where the previous one stopped.

    Args:
        interval: Quiet time in seconds that ends a burst.

    """

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._queue: asyncio.Queue[Path] = asyncio.Queue()
        self._pending: set[Path] = set()

    @property
    def pending(self) -> frozenset[Path]:
        return frozenset(self._pending)

    def send(self, path: Path) -> None:
        """Deliver one changed path (event-loop thread only)."""
        self._queue.put_nowait(path)

    def send_many(self, paths: Iterable[Path]) -> None:
        for path in paths:
            self._queue.put_nowait(path)

    async def recv(self) -> Batch:
        """Wait for the next burst and return it as one deduplicated batch."""
        if not self._pending:
            self._pending.add(await self._queue.get())

        while True:
            try:
                path = await asyncio.wait_for(self._queue.get(), timeout=self.interval)
            except TimeoutError:
                batch = frozenset(self._pending)
                self._pending.clear()
                return batch
            self._pending.add(path)


class FileWatcher:
    """Watches a growing set of roots and triggers an operation per batch.

    Args:
        paths: Initial roots (directories or files) to watch recursively.
        debounce_ms: Quiet interval that ends a burst of events.
        mode: Initial watch mode; may be switched at any time.
        ignore_paths: Paths whose events are dropped (the output directory).
        collector: Optional event collector for flush records.

    """

    def __init__(
        self,
        paths: Iterable[Path] = (),
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        mode: WatchMode = WatchMode.AUTOMATIC,
        ignore_paths: Iterable[Path] = (),
        collector: BuildCollector | None = None,
        job_name: str = "Build",
    ) -> None:
        self.mode = mode
        self.job_name = job_name
        self.broadcaster = BatchBroadcaster()
        self._receiver = DebouncedReceiver(debounce_ms / 1000)
        self._collector = collector
        self._filter = DefaultFilter(ignore_paths=[str(p) for p in ignore_paths])
        self._roots: set[Path] = set()
        self._roots_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._started = False
        self._restart = asyncio.Event()
        self._last_batch: Batch = frozenset()
        self.add_paths(paths)

    @property
    def receiver(self) -> DebouncedReceiver:
        return self._receiver

    # ----- Roots -----

    @property
    def roots(self) -> frozenset[Path]:
        with self._roots_lock:
            return frozenset(self._roots)

    def add_paths(self, paths: Iterable[Path]) -> bool:
        """Watch *paths* (recursively) in addition to the current roots.

        Paths that do not exist or are already covered by a root are
        ignored.  Safe to call from any thread.

        Returns:
            True if the root set changed.

        """
        with self._roots_lock:
            changed = False
            for raw in paths:
                path = Path(raw).resolve()
                if not path.exists():
                    continue
                if any(path == r or path.is_relative_to(r) for r in self._roots):
                    continue
                self._roots = {r for r in self._roots if not r.is_relative_to(path)}
                self._roots.add(path)
                changed = True
            if changed and self._started:
                self._restart_thread()
            return changed

    # ----- Background thread -----

    @property
    def is_running(self) -> bool:
        """Whether the watchfiles background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching in a background thread (call from the event loop)."""
        self._loop = asyncio.get_running_loop()
        with self._roots_lock:
            self._started = True
            if not self.is_running:
                self._restart_thread()

    def stop(self) -> None:
        """Signal the background thread to stop and wait for it."""
        with self._roots_lock:
            thread = self._thread
            self._started = False
            if self._stop_event is not None:
                self._stop_event.set()
            self._thread = None
            self._stop_event = None
        if thread is not None:
            thread.join(timeout=5.0)

    def _restart_thread(self) -> None:
        # Caller holds _roots_lock.
        if self._stop_event is not None:
            self._stop_event.set()
        if not self._roots:
            self._thread = None
            self._stop_event = None
            return
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._watch_loop,
            args=(tuple(sorted(self._roots)), stop_event),
            name="berlin-watcher",
            daemon=True,
        )
        self._thread.start()

    def _watch_loop(self, roots: tuple[Path, ...], stop_event: threading.Event) -> None:
        """Background thread: run watchfiles and forward paths to the loop."""
        from watchfiles import watch

        loop = self._loop
        if loop is None:
            return

        for raw_changes in watch(
            *roots,
            watch_filter=self._filter,
            stop_event=stop_event,
            debounce=50,
            step=50,
        ):
            paths = [Path(p) for change, p in raw_changes if change in _FORWARDED]
            if not paths:
                continue
            try:
                loop.call_soon_threadsafe(self._receiver.send_many, paths)
            except RuntimeError:
                # Event loop closed underneath us.
                return

    # ----- Restart / mode -----

    def set_mode(self, mode: WatchMode) -> None:
        self.mode = mode

    def request_restart(self) -> None:
        """Run the operation again with the most recent batch.

        Thread-safe.  In automatic mode this also interrupts an operation
        that is still running.
        """
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._restart.set)
        else:
            self._restart.set()

    @property
    def last_batch(self) -> Batch:
        return self._last_batch

    # ----- Main loop -----

    async def run(self, operation: WatchOperation) -> None:
        """Watch until cancelled, running *operation* per the current mode.

        Failures of *operation* are reported and watching continues.
        """
        self.start()
        print_status("Watcher", f"{self.job_name} started.")
        recv_task: asyncio.Task[Batch] | None = None
        restart_task: asyncio.Task[bool] | None = None
        try:
            while True:
                if recv_task is None:
                    recv_task = asyncio.create_task(self._receiver.recv())
                restart_task = asyncio.create_task(self._restart.wait())
                done, _ = await asyncio.wait(
                    {recv_task, restart_task}, return_when=asyncio.FIRST_COMPLETED
                )

                if restart_task in done:
                    self._restart.clear()
                    await self._run_operation(operation, self._last_batch)
                else:
                    restart_task.cancel()

                if recv_task.done():
                    batch = recv_task.result()
                    recv_task = None
                    await self._handle_flush(operation, batch)
        finally:
            for task in (recv_task, restart_task):
                if task is not None:
                    task.cancel()
            self.stop()

    async def _handle_flush(self, operation: WatchOperation, batch: Batch) -> None:
        self._last_batch = batch
        if self._collector is not None:
            self._collector.record_flush((str(p) for p in batch), self.mode.value)
        if self.mode is WatchMode.MANUAL:
            self.broadcaster.publish(batch)
            return
        await self._run_operation(operation, batch)

    async def _run_operation(self, operation: WatchOperation, batch: Batch) -> None:
        print_status("Watcher", "File change detected!")
        op = asyncio.create_task(self._guarded(operation, batch))
        while True:
            if self.mode is not WatchMode.AUTOMATIC:
                await op
                break
            restart_task = asyncio.create_task(self._restart.wait())
            done, _ = await asyncio.wait({op, restart_task}, return_when=asyncio.FIRST_COMPLETED)
            if op in done:
                restart_task.cancel()
                break
            self._restart.clear()
            op.cancel()
            print_status("Watcher", "Restarting!")
            op = asyncio.create_task(self._guarded(operation, self._last_batch))
        print_status("Watcher", f"{self.job_name} done!")

    async def _guarded(self, operation: WatchOperation, batch: Batch) -> None:
        try:
            await operation(batch)
        except Exception as exc:
            print_error(str(exc))
