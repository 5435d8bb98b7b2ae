"""Declarative task table model.

Tasks, inputs and params are plain frozen data.  Every behaviour they need
(aggregating, computing template values, binding per-source context) is
referenced by name and resolved through a ``FunctionRegistry``, so a task
table can be printed, compared and loaded from a config file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal

# Per-item placeholder in Render output patterns
SLUG_PLACEHOLDER = "[slug]"

# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathsInput:
    """An explicit list of files, relative to the site root."""

    paths: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class GlobInput:
    """Every file matching a glob pattern relative to the site root."""

    pattern: str


@dataclass(frozen=True, slots=True)
class AggregationInput:
    """Nested inputs re-aggregated by a named aggregation function.

    A single nested input is loaded as-is and aggregated by ``aggregate``.
    Several nested inputs are each aggregated by their own function first,
    flattened, and then aggregated by ``aggregate``.
    """

    inputs: tuple[Input, ...]
    aggregate: str


type Input = PathsInput | GlobInput | AggregationInput


def input_patterns(input_: Input) -> list[str]:
    """Every glob pattern or literal path an input (recursively) reads."""
    match input_:
        case PathsInput(paths=paths):
            return list(paths)
        case GlobInput(pattern=pattern):
            return [pattern]
        case AggregationInput(inputs=inputs):
            return [p for nested in inputs for p in input_patterns(nested)]
    return []


# ---------------------------------------------------------------------------
# Params
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StaticParam:
    """Merge a context produced without looking at the sources."""

    provider: str


@dataclass(frozen=True, slots=True)
class SingleParam:
    """Set ``key`` to a value computed from the aggregated sources."""

    key: str
    provider: str


@dataclass(frozen=True, slots=True)
class MultipleParam:
    """Set several keys, each from its own value provider."""

    mappings: tuple[tuple[str, str], ...]


@dataclass(frozen=True, slots=True)
class CustomParam:
    """Merge a sub-context computed from the aggregated sources."""

    provider: str


@dataclass(frozen=True, slots=True)
class BindParam:
    """Per-source context, applied once per item of a per-item render."""

    provider: str


@dataclass(frozen=True, slots=True)
class HandlerParam:
    """Set ``key`` from a named handler built with ``args``."""

    key: str
    handler: str
    args: tuple[str, ...] = ()


type Param = StaticParam | SingleParam | MultipleParam | CustomParam | BindParam | HandlerParam


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

type TaskKind = Literal["render", "mount", "css"]


@dataclass(frozen=True, slots=True)
class RenderTask:
    """Render a template to one file, or one file per source.

    Attributes:
        name: Task name; also the aggregation key per-item renders iterate.
        template: Template name relative to the templates directory.
        output: Output path relative to the target directory.  When it
            contains ``[slug]`` one file is rendered per source.
        inputs: Sources to load and aggregate.
        params: Context contributions, applied in order.

    """

    name: str
    template: str
    output: str
    inputs: tuple[Input, ...] = ()
    params: tuple[Param, ...] = ()

    kind: ClassVar[TaskKind] = "render"

    @property
    def per_item(self) -> bool:
        return SLUG_PLACEHOLDER in self.output


@dataclass(frozen=True, slots=True)
class MountTask:
    """Copy the static directory to ``output`` (``{file}`` = relative path)."""

    output: str
    name: str = "static"

    kind: ClassVar[TaskKind] = "mount"


@dataclass(frozen=True, slots=True)
class CssTask:
    """Bundle stylesheets matching ``input_pattern`` in the css directory.

    Each result is written to ``css/<output>`` under the target directory,
    with ``{file}`` replaced by the stylesheet's file name.
    """

    input_pattern: str
    output: str
    name: str = "css"

    kind: ClassVar[TaskKind] = "css"


type Task = RenderTask | MountTask | CssTask
