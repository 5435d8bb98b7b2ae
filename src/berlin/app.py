"""Berlin application — one-shot builds and the watch loop.

The two public functions (build, watch) are the primary entry points.
"""

from __future__ import annotations

import asyncio
import sys
import threading
import time
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import TYPE_CHECKING

from berlin.banner import print_banner, print_status, print_summary
from berlin.config_loader import load_config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from berlin.config import BuildConfig
    from berlin.content.watcher import FileWatcher
    from berlin.tasks.engine import BuildReport


def build(
    root: str | Path = ".",
    config_path: str | Path | None = None,
    **kwargs: object,
) -> BuildReport:
    """Run every task once and write the site to the output directory.

    Task failures are reported and do not stop the build; inspect the
    returned report for them.

    Args:
        root: Path to the site root directory.
        config_path: Explicit config file; found in *root* when omitted.
        **kwargs: Override BuildConfig fields.

    Raises:
        ConfigError: If the configuration or the task table is invalid.
        RenderError: If the templates directory holds no templates.

    """
    from berlin.state import BuildState
    from berlin.tasks.engine import Engine

    config = load_config(Path(root), config_path, **kwargs)
    state = BuildState.create(config)
    print_banner(config, len(state.tasks), mode="build", warnings=state.warnings)

    report = Engine(state).run_tasks()
    print_summary(len(report.files), len(report.failed), report.duration_ms)
    return report


def watch(
    root: str | Path = ".",
    config_path: str | Path | None = None,
    *,
    extra_paths: Iterable[str | Path] = (),
    serve: bool = False,
    manual: bool = False,
    **kwargs: object,
) -> None:
    """Build once, then rebuild on every change until interrupted.

    Args:
        root: Path to the site root directory.
        config_path: Explicit config file; found in *root* when omitted.
        extra_paths: Additional files or directories to watch.
        serve: Serve the output directory over HTTP while watching.
        manual: Only rebuild when asked (press Enter), not on every change.
        **kwargs: Override BuildConfig fields.

    """
    config = load_config(Path(root), config_path, **kwargs)
    try:
        asyncio.run(
            run_watch(
                config,
                extra_paths=[Path(p) for p in extra_paths],
                serve=serve,
                manual=manual,
            )
        )
    except KeyboardInterrupt:
        print_status("Watcher", "Stopped.")


async def run_watch(
    config: BuildConfig,
    *,
    extra_paths: Iterable[Path] = (),
    serve: bool = False,
    manual: bool = False,
) -> None:
    """The watch loop for an already loaded *config* (runs until cancelled)."""
    from berlin.content.watcher import FileWatcher, WatchMode
    from berlin.observability import BuildCollector
    from berlin.reactive.pipeline import WatchPipeline
    from berlin.state import BuildState
    from berlin.tasks.engine import Engine

    collector = BuildCollector()
    watcher = FileWatcher(
        [*config.watch_paths(), *extra_paths],
        debounce_ms=config.debounce_ms,
        mode=WatchMode.MANUAL if manual else WatchMode.AUTOMATIC,
        ignore_paths=(config.output_path,),
        collector=collector,
    )
    # Content directories found while loading are watched too.
    state = BuildState.create(config, collector=collector, reporter=watcher.add_paths)
    engine = Engine(state)
    pipeline = WatchPipeline(engine)

    print_banner(config, len(state.tasks), mode="watch", serve=serve, warnings=state.warnings)
    t0 = time.perf_counter()
    report = await asyncio.to_thread(engine.run_tasks)
    print_summary(len(report.files), len(report.failed), (time.perf_counter() - t0) * 1000)

    server = start_server(config) if serve else None
    announcer: asyncio.Task[None] | None = None
    if manual:
        announcer = asyncio.create_task(_announce_batches(watcher))
        threading.Thread(
            target=_read_restart_requests, args=(watcher,), name="berlin-stdin", daemon=True
        ).start()
    try:
        await watcher.run(pipeline.handle_batch)
    finally:
        if announcer is not None:
            announcer.cancel()
        if server is not None:
            server.shutdown()
            server.server_close()


# ---------------------------------------------------------------------------
# Static file server
# ---------------------------------------------------------------------------


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        pass


def start_server(config: BuildConfig) -> ThreadingHTTPServer:
    """Serve the output directory from a daemon thread.

    The server reads whatever is on disk; it does not coordinate with
    rebuilds, so a request during a rebuild may see a partly written file.
    """
    output = config.output_path
    output.mkdir(parents=True, exist_ok=True)
    handler = partial(_QuietHandler, directory=str(output))
    server = ThreadingHTTPServer((config.host, config.port), handler)
    threading.Thread(target=server.serve_forever, name="berlin-http", daemon=True).start()
    return server


# ---------------------------------------------------------------------------
# Manual mode
# ---------------------------------------------------------------------------


async def _announce_batches(watcher: FileWatcher) -> None:
    sub = watcher.broadcaster.subscribe()
    async for batch in watcher.broadcaster.batches(sub):
        label = "file" if len(batch) == 1 else "files"
        print_status("Watcher", f"{len(batch)} changed {label}; press Enter to rebuild.")


def _read_restart_requests(watcher: FileWatcher) -> None:
    for _line in sys.stdin:
        watcher.request_restart()
