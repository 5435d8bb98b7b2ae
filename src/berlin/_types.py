"""Shared type definitions for berlin."""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from pathlib import Path

    from berlin.content.model import ParsedSource

# Canonical ``file:`` URI of a source file
type Specifier = str

# Mode of operation
type BuildMode = Literal["build", "watch"]

# Template context handed to the renderer
type Context = dict[str, Any]

# Aggregation key -> ordered parsed sources
type AggregatedSources = dict[str, list[ParsedSource]]

# (task name, sources) -> aggregated sources
type AggregateFunc = Callable[[str, Sequence[ParsedSource]], AggregatedSources]

# aggregated sources -> one template value
type ValueProvider = Callable[[AggregatedSources], Any]

# single source -> context
type SourceBinder = Callable[[ParsedSource], Context]

# Called with the parent directories of sources as they load
type LoadReporter = Callable[[Sequence[Path]], None]
