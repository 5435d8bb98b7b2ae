"""Input loading — turn declared inputs into aggregated sources.

Plain inputs (a path list or a glob) load every file through the capturing
parser and aggregate with ``aggregate_all``.  Aggregation inputs compose:

- one nested input: load it, then aggregate with the parent's function in
  place of the nested one's;
- several nested inputs: aggregate each with its own function, flatten the
  results in order, then aggregate with the parent's function.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import Path
from typing import TYPE_CHECKING

from berlin.tasks.functions import aggregate_all
from berlin.tasks.model import AggregationInput, GlobInput, Input, PathsInput, input_patterns

if TYPE_CHECKING:
    from berlin._types import AggregatedSources, AggregateFunc
    from berlin.content.cache import CapturingParser
    from berlin.content.model import ParsedSource
    from berlin.tasks.registry import FunctionRegistry


def load_files(base_path: Path, pattern: str) -> list[Path]:
    """Files under *base_path* matching *pattern*, in sorted order."""
    return sorted(p for p in base_path.glob(pattern) if p.is_file())


def matches_glob(relative: Path | str, pattern: str) -> bool:
    """Whether a root-relative path matches a glob pattern.

    ``**/`` also matches zero directories, so ``css/**/*.css`` matches
    ``css/main.css``.
    """
    text = Path(relative).as_posix()
    if fnmatchcase(text, pattern):
        return True
    return "**/" in pattern and fnmatchcase(text, pattern.replace("**/", ""))


def input_matches(input_: Input, relative: Path | str) -> bool:
    """Whether *relative* is one of the files *input_* (recursively) reads."""
    return any(matches_glob(relative, pattern) for pattern in input_patterns(input_))


class InputLoader:
    """Loads inputs relative to a base path.

    Args:
        parser: Capturing parser every file goes through.
        registry: Resolves the aggregation functions inputs name.

    """

    def __init__(self, parser: CapturingParser, registry: FunctionRegistry) -> None:
        self._parser = parser
        self._registry = registry

    def load(self, name: str, input_: Input, base_path: Path) -> AggregatedSources:
        """Load and aggregate one input for the task *name*.

        Raises:
            IoError: If a listed path is missing or a file cannot be read.
            ParseError: If a file cannot be parsed.
            ConfigError: If an aggregation function is not registered.

        """
        sources, aggregate = self._process(name, input_, base_path)
        return aggregate(name, sources)

    def load_all(
        self,
        name: str,
        inputs: Iterable[Input],
        base_path: Path,
    ) -> AggregatedSources:
        """Load every input; sources under the same key are appended."""
        merged: AggregatedSources = {}
        for input_ in inputs:
            for key, sources in self.load(name, input_, base_path).items():
                merged.setdefault(key, []).extend(sources)
        return merged

    def _process(
        self,
        name: str,
        input_: Input,
        base_path: Path,
    ) -> tuple[list[ParsedSource], AggregateFunc]:
        match input_:
            case PathsInput(paths=paths):
                return self._parse(base_path / p for p in paths), aggregate_all
            case GlobInput(pattern=pattern):
                return self._parse(load_files(base_path, pattern)), aggregate_all
            case AggregationInput(inputs=inputs, aggregate=aggregate_name):
                aggregate = self._registry.get("aggregators", aggregate_name)
                if len(inputs) == 1:
                    sources, _ = self._process(name, inputs[0], base_path)
                    return sources, aggregate
                flattened: list[ParsedSource] = []
                for nested in inputs:
                    nested_sources, nested_aggregate = self._process(name, nested, base_path)
                    for group in nested_aggregate(name, nested_sources).values():
                        flattened.extend(group)
                return flattened, aggregate
        msg = f"Unknown input {input_!r}"
        raise TypeError(msg)

    def _parse(self, paths: Iterable[Path]) -> list[ParsedSource]:
        return [self._parser.load(path) for path in paths]

