"""Tests for berlin.reactive.graph — the CSS import graph."""

from __future__ import annotations

from pathlib import Path

import pytest

from berlin._errors import GraphError
from berlin.reactive.graph import (
    Resolutions,
    ResolutionsBuilder,
    build_resolutions,
    read_css_rules,
)

A = Path("/css/a.css")
B = Path("/css/b.css")
C = Path("/css/c.css")
D = Path("/css/d.css")


class TestResolutions:
    def test_shared_partial_reaches_both_roots(self) -> None:
        graph = Resolutions.from_rules([(A, [C]), (B, [C])])
        assert graph.get_root(C) == {A, B}

    def test_root_includes_itself(self) -> None:
        graph = Resolutions.from_rules([(A, [C]), (B, [C])])
        assert graph.get_root(A) == {A}

    def test_transitive(self) -> None:
        graph = Resolutions.from_rules([(A, [B]), (B, [C]), (D, [])])
        assert graph.get_root(C) == {A}
        assert graph.roots == frozenset({A, D})

    def test_unknown_path(self) -> None:
        graph = Resolutions.from_rules([(A, [C])])
        assert graph.get_root(Path("/css/zzz.css")) == set()

    def test_import_only_paths_become_nodes(self) -> None:
        graph = Resolutions.from_rules([(A, [C])])
        assert C in graph
        assert graph.imports_of(C) == ()
        assert len(graph) == 2

    def test_empty(self) -> None:
        graph = Resolutions.from_rules([])
        assert graph.is_empty()
        assert graph.roots == frozenset()


class TestResolutionsBuilder:
    def test_cycle(self) -> None:
        builder = ResolutionsBuilder().add_rule(A, [B]).add_rule(B, [C]).add_rule(C, [A])
        with pytest.raises(GraphError, match="cycle detected"):
            builder.build()

    def test_self_import(self) -> None:
        with pytest.raises(GraphError, match="cycle"):
            ResolutionsBuilder().add_rule(A, [A]).build()

    def test_duplicate_path(self) -> None:
        builder = ResolutionsBuilder().add_rule(A, [])
        with pytest.raises(GraphError, match="already added"):
            builder.add_rule(A, [B])


class TestReadRules:
    def test_read_css_rules(self, tmp_site: Path) -> None:
        css = tmp_site / "css"
        rules = dict(read_css_rules(css))
        main = (css / "main.css").resolve()
        partial = (css / "partials" / "_base.css").resolve()
        assert rules[main] == [partial]
        assert rules[(css / "print.css").resolve()] == []
        assert rules[partial] == []

    def test_build_resolutions(self, tmp_site: Path) -> None:
        css = tmp_site / "css"
        graph = build_resolutions(css)
        partial = (css / "partials" / "_base.css").resolve()
        assert graph.get_root(partial) == {(css / "main.css").resolve()}
        assert graph.roots == frozenset(
            {(css / "main.css").resolve(), (css / "print.css").resolve()}
        )

    def test_build_resolutions_cycle(self, tmp_path: Path) -> None:
        (tmp_path / "a.css").write_text('@import "b.css";')
        (tmp_path / "b.css").write_text('@import "a.css";')
        with pytest.raises(GraphError):
            build_resolutions(tmp_path)
