"""Watch pipeline — connects watcher batches to the task engine.

For every debounced batch:
    1. If any stylesheet changed, rebuild the CSS dependency graph so added,
       removed and re-pointed ``@import``s are tracked.  A graph that can no
       longer be built (a new cycle) keeps the previous one.
    2. Hand the batch to ``Engine.on_change`` on a worker thread, so the
       event loop keeps receiving file events while tasks run.
    3. Print a one-line summary.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from berlin._errors import GraphError
from berlin.banner import print_summary, print_warning

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from berlin.reactive.broadcaster import Batch
    from berlin.tasks.engine import BuildReport, Engine


class WatchPipeline:
    """Runs the engine for each batch the watcher delivers.

    Args:
        engine: Engine bound to the build state.

    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def touches_stylesheets(self, paths: Iterable[Path]) -> bool:
        css_path = self._engine.state.config.css_path.resolve()
        return any(
            p.suffix.lower() == ".css" and p.resolve().is_relative_to(css_path) for p in paths
        )

    def refresh_graph(self) -> bool:
        """Rebuild the CSS graph; on failure keep the previous one.

        Returns:
            True if the graph was rebuilt.

        """
        try:
            self._engine.state.refresh_resolutions()
        except GraphError as exc:
            print_warning(f"{exc}; keeping the previous CSS graph")
            return False
        return True

    async def handle_batch(self, batch: Batch) -> BuildReport:
        """Rebuild everything *batch* affects."""
        if self.touches_stylesheets(batch):
            self.refresh_graph()
        report = await asyncio.to_thread(self._engine.on_change, batch)
        if report.results:
            print_summary(len(report.files), len(report.failed), report.duration_ms)
        return report
