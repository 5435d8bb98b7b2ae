"""Batch broadcaster — publishes debounced change batches to subscribers.

In manual watch mode the watcher does not rebuild on its own; each flush is
published here and whoever is subscribed (a dev tool, a test, a prompt
loop) decides whether to request a restart.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

type Batch = frozenset[Path]

_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class Subscription:
    """A registered batch consumer.

    Attributes:
        subscriber_id: Unique identifier for this subscription.
        queue: Unbounded queue the broadcaster pushes batches onto.

    """

    subscriber_id: int = field(default_factory=lambda: next(_ids))
    queue: asyncio.Queue[Batch] = field(default_factory=asyncio.Queue, compare=False, hash=False)


class BatchBroadcaster:
    """Fans each published batch out to every subscriber's queue.

    Thread-safe: subscriber set protected by a lock.

    """

    def __init__(self) -> None:
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register and return a new subscription."""
        sub = Subscription()
        with self._lock:
            self._subscribers.add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(sub)

    def publish(self, batch: Batch) -> int:
        """Push *batch* to every subscriber.

        Returns:
            Number of subscribers that received the batch.

        """
        with self._lock:
            subscribers = frozenset(self._subscribers)
        for sub in subscribers:
            sub.queue.put_nowait(batch)
        return len(subscribers)

    async def batches(self, sub: Subscription) -> AsyncIterator[Batch]:
        """Yield batches published to *sub* until the consumer stops iterating."""
        try:
            while True:
                yield await sub.queue.get()
        finally:
            self.unsubscribe(sub)
