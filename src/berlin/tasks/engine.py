"""Task engine — run the task table, in full or for a batch of changes.

Tasks run strictly in table order on the calling thread.  Every task runs
behind a dispatch boundary: a failure is printed with the task name,
recorded as a ``TaskFailed`` event and the remaining tasks still run.

Render tasks:

1. Load every input into one ``AggregatedSources`` (same keys append).
2. Seed the context from the site metadata and fold in every param;
   ``BindParam`` binders are kept for step 3.
3. Without ``[slug]`` in the output, render once.  With it, render once per
   source under the task's own key, into ``output`` with ``[slug]``
   replaced by the source's slug and every binder applied to a copy of the
   context.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from berlin._errors import TaskError
from berlin.banner import print_error
from berlin.config_loader import initialize_context
from berlin.content.slug import source_slug
from berlin.export.assets import (
    ExportedFile,
    copy_asset,
    copy_static,
    expand_file_pattern,
    is_hidden,
    write_output,
)
from berlin.tasks.loader import InputLoader, input_matches, load_files, matches_glob
from berlin.tasks.model import (
    SLUG_PLACEHOLDER,
    BindParam,
    CssTask,
    CustomParam,
    GlobInput,
    HandlerParam,
    MountTask,
    MultipleParam,
    Param,
    PathsInput,
    RenderTask,
    SingleParam,
    StaticParam,
    Task,
)

if TYPE_CHECKING:
    from berlin._types import AggregatedSources, Context, SourceBinder
    from berlin.state import BuildState
    from berlin.tasks.model import TaskKind


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Outcome of one task run.

    Attributes:
        task: Task name.
        kind: Task kind.
        files: Files the task wrote.
        error: The failure caught at the dispatch boundary, if any.
        duration_ms: Wall time of the run.

    """

    task: str
    kind: TaskKind
    files: tuple[ExportedFile, ...] = ()
    error: BaseException | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Outcome of a full build or of one change batch."""

    results: tuple[TaskResult, ...]
    duration_ms: float = 0.0

    @property
    def files(self) -> tuple[ExportedFile, ...]:
        return tuple(f for r in self.results for f in r.files)

    @property
    def failed(self) -> tuple[TaskResult, ...]:
        return tuple(r for r in self.results if not r.ok)

    @property
    def ok(self) -> bool:
        return not self.failed

    def result(self, task: str) -> TaskResult | None:
        """The result of the task named *task*, if it ran."""
        for r in self.results:
            if r.task == task:
                return r
        return None


class Engine:
    """Runs tasks against one ``BuildState``.

    A lock serialises full builds and change batches, so a manual restart
    never overlaps a rebuild that is still writing.

    """

    def __init__(self, state: BuildState) -> None:
        self._state = state
        self._loader = InputLoader(state.parser, state.registry)
        self._lock = threading.Lock()

    @property
    def state(self) -> BuildState:
        return self._state

    # ----- Full runs -----

    def run_tasks(self, tasks: Iterable[Task] | None = None) -> BuildReport:
        """Run *tasks* (default: the whole table) in order."""
        selected = list(tasks) if tasks is not None else self._state.tasks
        with self._lock:
            t0 = time.perf_counter()
            results = tuple(self._dispatch(task, partial(self.run_task, task)) for task in selected)
            return BuildReport(results, (time.perf_counter() - t0) * 1000)

    def run_task(self, task: Task) -> tuple[ExportedFile, ...]:
        """Run one task without the dispatch boundary.

        Raises:
            BerlinError: Whatever the task fails with.

        """
        match task:
            case RenderTask():
                return self._run_render(task)
            case MountTask():
                return copy_static(
                    self._state.config.static_path, self._state.config.output_path, task.output
                )
            case CssTask():
                return self._run_css(task)
        msg = f"Unknown task {task!r}"
        raise TypeError(msg)

    # ----- Render -----

    def _run_render(self, task: RenderTask) -> tuple[ExportedFile, ...]:
        state = self._state
        config = state.config

        sources: AggregatedSources = {}
        if task.inputs:
            sources = self._loader.load_all(task.name, task.inputs, config.root)
            if not any(sources.values()):
                msg = f"No input found for task {task.name!r}"
                raise TaskError(msg)

        context = initialize_context(config.config_file)
        binders: list[SourceBinder] = []
        for param in task.params:
            self._apply_param(param, sources, context, binders)

        output_dir = config.output_path
        if not task.per_item:
            started = time.perf_counter()
            html = state.renderer.render(task.template, context)
            written = write_output(
                output_dir, task.output, html, source=task.template, started=started
            )
            return (written,)

        files: list[ExportedFile] = []
        for source in sources.get(task.name, []):
            started = time.perf_counter()
            item_context = dict(context)
            for bind in binders:
                item_context.update(bind(source))
            html = state.renderer.render_parsed_source(task.template, source, item_context)
            output = task.output.replace(SLUG_PLACEHOLDER, source_slug(source))
            files.append(
                write_output(output_dir, output, html, source=source.specifier, started=started)
            )
        return tuple(files)

    def _apply_param(
        self,
        param: Param,
        sources: AggregatedSources,
        context: Context,
        binders: list[SourceBinder],
    ) -> None:
        registry = self._state.registry
        match param:
            case StaticParam(provider=name):
                context.update(registry.get("static", name)())
            case SingleParam(key=key, provider=name):
                context[key] = registry.get("values", name)(sources)
            case MultipleParam(mappings=mappings):
                for key, name in mappings:
                    context[key] = registry.get("values", name)(sources)
            case CustomParam(provider=name):
                context.update(registry.get("custom", name)(sources))
            case BindParam(provider=name):
                binders.append(registry.get("binders", name))
            case HandlerParam(key=key, handler=name, args=args):
                context[key] = registry.get("handlers", name)(*args)(sources)

    # ----- Css -----

    def _run_css(
        self,
        task: CssTask,
        paths: Iterable[Path] | None = None,
    ) -> tuple[ExportedFile, ...]:
        """Bundle the task's stylesheets, or only *paths*, into ``css/``."""
        config = self._state.config
        if paths is None:
            input_: GlobInput | PathsInput = GlobInput(task.input_pattern)
        else:
            input_ = PathsInput(tuple(str(p) for p in paths))

        files: list[ExportedFile] = []
        for source in self._loader.load(task.name, input_, config.css_path).get(task.name, []):
            started = time.perf_counter()
            output = f"css/{expand_file_pattern(task.output, source.path.name)}"
            files.append(
                write_output(
                    config.output_path,
                    output,
                    source.text(),
                    source=source.specifier,
                    source_type="css",
                    started=started,
                )
            )
        return tuple(files)

    # ----- Change batches -----

    def on_change(self, paths: Iterable[Path]) -> BuildReport:
        """Rebuild what a batch of changed paths affects.

        Every changed input is freed from the cache before its task runs
        again; deleted files are freed and never parsed.  Each task runs at
        most once per batch.

        Raises:
            RenderError: If a template changed and the templates directory
                can no longer be loaded.

        """
        changed = sorted({Path(p).resolve() for p in paths})
        templates = self._state.config.templates_path.resolve()
        with self._lock:
            t0 = time.perf_counter()
            if any(p.is_relative_to(templates) for p in changed):
                self._state.renderer.full_reload()

            results: list[TaskResult] = []
            for task in self._state.tasks:
                result = self._on_change_task(task, changed)
                if result is not None:
                    results.append(result)
            return BuildReport(tuple(results), (time.perf_counter() - t0) * 1000)

    def _on_change_task(self, task: Task, changed: list[Path]) -> TaskResult | None:
        match task:
            case RenderTask():
                if self._free_render_inputs(task, changed):
                    return self._dispatch(task, partial(self._run_render, task))
            case CssTask():
                return self._on_css_change(task, changed)
            case MountTask():
                return self._on_static_change(task, changed)
        return None

    def _free_render_inputs(self, task: RenderTask, changed: list[Path]) -> bool:
        config = self._state.config
        root = config.root.resolve()
        templates = config.templates_path.resolve()
        parser = self._state.parser

        affected = False
        for path in changed:
            if path.is_relative_to(root):
                relative = path.relative_to(root)
                if any(input_matches(i, relative) for i in task.inputs):
                    parser.free(path)
                    affected = True
            if path.is_relative_to(templates) and matches_glob(
                path.relative_to(templates), task.template
            ):
                parser.free(path)
                affected = True
        return affected

    def _on_css_change(self, task: CssTask, changed: list[Path]) -> TaskResult | None:
        css_path = self._state.config.css_path.resolve()
        stylesheets = [
            p
            for p in changed
            if p.is_relative_to(css_path)
            and matches_glob(p.relative_to(css_path), task.input_pattern)
        ]
        if not stylesheets:
            return None

        parser = self._state.parser
        for path in stylesheets:
            parser.free(path)

        resolutions = self._state.resolutions
        if resolutions is None:
            return self._dispatch(task, partial(self._run_css, task))

        entry_points = {p.resolve() for p in load_files(css_path, task.input_pattern)}
        roots = {root for p in stylesheets for root in resolutions.get_root(p)}
        roots &= entry_points
        if not roots:
            return None
        for root in roots:
            parser.free(root)
        return self._dispatch(task, partial(self._run_css, task, sorted(roots)))

    def _on_static_change(self, task: MountTask, changed: list[Path]) -> TaskResult | None:
        config = self._state.config
        static_path = config.static_path.resolve()
        assets = [
            p
            for p in changed
            if p.is_relative_to(static_path)
            and p.is_file()
            and not is_hidden(p.relative_to(static_path))
        ]
        if not assets:
            return None

        def copy_changed() -> tuple[ExportedFile, ...]:
            return tuple(
                copy_asset(
                    p,
                    config.output_path
                    / expand_file_pattern(task.output, p.relative_to(static_path)),
                )
                for p in assets
            )

        return self._dispatch(task, copy_changed)

    # ----- Dispatch boundary -----

    def _dispatch(
        self,
        task: Task,
        run: Callable[[], tuple[ExportedFile, ...]],
    ) -> TaskResult:
        collector = self._state.collector
        t0 = time.perf_counter()
        try:
            files = run()
        except Exception as exc:
            duration_ms = (time.perf_counter() - t0) * 1000
            print_error(str(exc), context=task.name)
            collector.record_task_failure(task.name, task.kind, exc)
            return TaskResult(task.name, task.kind, error=exc, duration_ms=duration_ms)

        duration_ms = (time.perf_counter() - t0) * 1000
        collector.record_task(
            task.name,
            task.kind,
            (str(f.output_path) for f in files),
            duration_ms=duration_ms,
        )
        return TaskResult(task.name, task.kind, files, duration_ms=duration_ms)
