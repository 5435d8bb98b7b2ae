"""Build state — the resources one site build owns.

The cache, the capturing parser, the template renderer and the CSS
dependency graph are created once per process and threaded through the
engine and the watch pipeline explicitly; nothing here is module-global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from berlin._errors import GraphError
from berlin.config_loader import read_task_entries
from berlin.content.cache import CapturingParser, ParsedSourceCache
from berlin.content.parsers import default_parsers
from berlin.export.renderer import Renderer
from berlin.observability.collector import BuildCollector
from berlin.reactive.graph import Resolutions, build_resolutions
from berlin.tasks.defaults import default_tasks, tasks_from_config
from berlin.tasks.functions import default_registry

if TYPE_CHECKING:
    from berlin._types import LoadReporter
    from berlin.config import BuildConfig
    from berlin.tasks.model import Task
    from berlin.tasks.registry import FunctionRegistry


@dataclass(slots=True)
class BuildState:
    """Everything a task run needs, owned by one site build.

    Attributes:
        config: Resolved build configuration.
        cache: Parsed sources by specifier.
        parser: Capturing parser filling ``cache``.
        renderer: Jinja2 renderer over the templates directory.
        registry: Functions the task table refers to by name.
        tasks: The task table, in execution order.
        collector: Event collector for parse, task and watch records.
        resolutions: CSS dependency graph, or None when there is none.
        warnings: Non-fatal startup problems, shown in the banner.

    """

    config: BuildConfig
    cache: ParsedSourceCache
    parser: CapturingParser
    renderer: Renderer
    registry: FunctionRegistry
    tasks: list[Task]
    collector: BuildCollector
    resolutions: Resolutions | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        config: BuildConfig,
        *,
        tasks: list[Task] | None = None,
        registry: FunctionRegistry | None = None,
        collector: BuildCollector | None = None,
        reporter: LoadReporter | None = None,
    ) -> BuildState:
        """Create the state for *config*.

        The task table is, in order of preference: *tasks*, the
        ``[[tasks]]`` of the config file, the default table.  A CSS graph
        that cannot be built is a warning, not a failure.

        Raises:
            ConfigError: If the task table refers to unknown functions.
            RenderError: If the templates directory holds no templates.

        """
        registry = registry if registry is not None else default_registry()
        if tasks is None:
            entries = read_task_entries(config.config_file)
            tasks = tasks_from_config(entries) if entries else default_tasks(config)
        registry.validate(tasks)

        collector = collector if collector is not None else BuildCollector()
        cache = ParsedSourceCache()
        parser = CapturingParser(
            cache, default_parsers(), collector=collector, reporter=reporter
        )
        state = cls(
            config=config,
            cache=cache,
            parser=parser,
            renderer=Renderer(config.templates_path),
            registry=registry,
            tasks=list(tasks),
            collector=collector,
        )
        try:
            state.refresh_resolutions()
        except GraphError as exc:
            state.warnings.append(f"{exc}; CSS changes rebuild every stylesheet")
        return state

    def refresh_resolutions(self) -> None:
        """Rebuild the CSS dependency graph from the css directory.

        Raises:
            GraphError: On a cycle; the previous graph is kept.

        """
        css_path = self.config.css_path
        if not css_path.is_dir():
            self.resolutions = None
            return
        self.resolutions = build_resolutions(css_path)
