"""Tests for berlin.export.assets — output writing and static copying."""

from __future__ import annotations

from pathlib import Path

import pytest

from berlin._errors import IoError
from berlin.export.assets import (
    copy_asset,
    copy_static,
    expand_file_pattern,
    is_hidden,
    write_output,
)


class TestExpandFilePattern:
    def test_replaces_placeholder(self) -> None:
        assert expand_file_pattern("static/{file}", Path("img/logo.png")) == "static/img/logo.png"

    def test_without_placeholder(self) -> None:
        assert expand_file_pattern("all.css", "main.css") == "all.css"


class TestWriteOutput:
    def test_creates_parents(self, tmp_path: Path) -> None:
        exported = write_output(tmp_path, "notes/a.html", "<p>é</p>", source="notes/base.html")

        assert exported.output_path == tmp_path / "notes" / "a.html"
        assert exported.output_path.read_text(encoding="utf-8") == "<p>é</p>"
        assert exported.size_bytes == len("<p>é</p>".encode())
        assert exported.source_type == "render"

    def test_leading_slash_stays_inside(self, tmp_path: Path) -> None:
        exported = write_output(tmp_path, "/index.html", "x", source="index.html")
        assert exported.output_path == tmp_path / "index.html"

    def test_unwritable(self, tmp_path: Path) -> None:
        (tmp_path / "blocker").write_text("file, not a directory")
        with pytest.raises(IoError) as excinfo:
            write_output(tmp_path, "blocker/a.html", "x", source="a")
        assert excinfo.value.path == tmp_path / "blocker" / "a.html"


class TestCopy:
    def test_copy_asset(self, tmp_path: Path) -> None:
        src = tmp_path / "a.txt"
        src.write_text("abc")
        exported = copy_asset(src, tmp_path / "out" / "deep" / "a.txt")
        assert exported.output_path.read_text() == "abc"
        assert exported.size_bytes == 3
        assert exported.source_type == "asset"

    def test_copy_missing(self, tmp_path: Path) -> None:
        with pytest.raises(IoError):
            copy_asset(tmp_path / "missing.txt", tmp_path / "out.txt")

    @pytest.mark.parametrize(
        ("relative", "hidden"),
        [
            ("img/logo.png", False),
            (".DS_Store", True),
            ("_app.js", False),
            ("assets/_partial.css", False),
            (".cache/bundle.js", True),
            ("pkg/__pycache__/x.pyc", True),
        ],
    )
    def test_is_hidden(self, relative: str, hidden: bool) -> None:
        assert is_hidden(Path(relative)) is hidden

    def test_copy_static(self, tmp_site: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        files = copy_static(tmp_site / "static", out, "static/{file}")

        assert [f.output_path for f in files] == [out / "static" / "img" / "logo.txt"]
        assert not (out / "static" / ".hidden").exists()

    def test_copy_static_underscore_and_dot_dirs(self, tmp_path: Path) -> None:
        static = tmp_path / "static"
        (static / ".git").mkdir(parents=True)
        (static / ".git" / "config").write_text("secret")
        (static / "_app.js").write_text("app")
        out = tmp_path / "out"

        files = copy_static(static, out, "{file}")

        assert [f.output_path for f in files] == [out / "_app.js"]
        assert not (out / ".git").exists()

    def test_copy_static_missing_dir(self, tmp_path: Path) -> None:
        assert copy_static(tmp_path / "nope", tmp_path / "out", "{file}") == ()
