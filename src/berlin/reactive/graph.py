"""CSS dependency graph — which root stylesheets a changed file affects.

Edges point from a stylesheet to the stylesheets it ``@import``s.  Roots
are the stylesheets nothing imports; they are the entry points the Css
task writes to the output directory.  When a partial changes, only the
roots that reach it need to be rebuilt.

The graph is immutable once built.  Watch mode replaces it wholesale when
the stylesheet set changes (see ``reactive.pipeline``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from berlin._errors import GraphError
from berlin.content.parsers import css_imports


class Resolutions:
    """Acyclic import graph with a precomputed root index.

    Build through ``ResolutionsBuilder`` or ``Resolutions.from_rules``.

    """

    __slots__ = ("_edges", "_roots")

    def __init__(self, edges: Mapping[Path, tuple[Path, ...]]) -> None:
        self._edges = dict(edges)
        imported = {dep for deps in self._edges.values() for dep in deps}
        self._roots = frozenset(node for node in self._edges if node not in imported)

    @classmethod
    def from_rules(cls, rules: Iterable[tuple[Path, Sequence[Path]]]) -> Resolutions:
        builder = ResolutionsBuilder()
        for path, imports in rules:
            builder.add_rule(path, imports)
        return builder.build()

    @property
    def roots(self) -> frozenset[Path]:
        """Stylesheets with no incoming import edge."""
        return self._roots

    @property
    def nodes(self) -> frozenset[Path]:
        return frozenset(self._edges)

    def imports_of(self, path: Path) -> tuple[Path, ...]:
        """Direct imports of *path* (empty for unknown paths)."""
        return self._edges.get(path, ())

    def is_empty(self) -> bool:
        return not self._edges

    def get_root(self, changed: Path) -> set[Path]:
        """Return the roots whose import closure contains *changed*.

        A root that is itself *changed* is included.  Paths that are not
        nodes of the graph yield an empty set.
        """
        if changed not in self._edges:
            return set()
        return {root for root in self._roots if changed in self._reachable(root)}

    def _reachable(self, start: Path) -> set[Path]:
        seen: set[Path] = set()
        stack = [start]
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._edges.get(node, ()))
        return seen

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, path: object) -> bool:
        return path in self._edges


class ResolutionsBuilder:
    """Collects ``(path, imports)`` rules and validates them into a graph."""

    def __init__(self) -> None:
        self._rules: dict[Path, tuple[Path, ...]] = {}

    def add_rule(self, path: Path, imports: Sequence[Path]) -> ResolutionsBuilder:
        """Register the direct imports of *path*.

        Raises:
            GraphError: If *path* already has a rule.

        """
        if path in self._rules:
            msg = f"Path already added: {path}"
            raise GraphError(msg)
        self._rules[path] = tuple(imports)
        return self

    def build(self) -> Resolutions:
        """Validate and freeze the graph.

        Import-only paths become nodes without outgoing edges.

        Raises:
            GraphError: If the graph contains a cycle.

        """
        edges: dict[Path, tuple[Path, ...]] = dict(self._rules)
        for deps in self._rules.values():
            for dep in deps:
                edges.setdefault(dep, ())

        cycle = _find_cycle(edges)
        if cycle is not None:
            chain = " -> ".join(p.name for p in cycle)
            msg = f"Cannot construct graph: cycle detected ({chain})"
            raise GraphError(msg)
        return Resolutions(edges)


def _find_cycle(edges: Mapping[Path, tuple[Path, ...]]) -> list[Path] | None:
    """Return one cycle as a node list (first node repeated), or None."""
    white, grey, black = 0, 1, 2
    color = dict.fromkeys(edges, white)

    for start in edges:
        if color[start] != white:
            continue
        path: list[Path] = [start]
        iters = [iter(edges[start])]
        color[start] = grey
        while iters:
            node = next(iters[-1], None)
            if node is None:
                color[path.pop()] = black
                iters.pop()
                continue
            if color[node] == grey:
                return [*path[path.index(node):], node]
            if color[node] == white:
                color[node] = grey
                path.append(node)
                iters.append(iter(edges[node]))
    return None


def read_css_rules(css_dir: Path, pattern: str = "**/*.css") -> list[tuple[Path, list[Path]]]:
    """Scan *css_dir* and return one ``(stylesheet, imports)`` rule per file.

    Unreadable files are skipped; they surface later as task failures.
    """
    rules: list[tuple[Path, list[Path]]] = []
    for path in sorted(css_dir.glob(pattern)):
        if not path.is_file():
            continue
        resolved = path.resolve()
        try:
            content = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        rules.append((resolved, css_imports(resolved, content)))
    return rules


def build_resolutions(css_dir: Path) -> Resolutions:
    """Build the graph for every stylesheet under *css_dir*.

    Raises:
        GraphError: On a cycle.

    """
    return Resolutions.from_rules(read_css_rules(css_dir))
