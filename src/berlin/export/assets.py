"""Output writing and asset copying.

Everything a task puts under the target directory goes through here, so
parent directories are created uniformly and filesystem failures surface
as ``IoError`` with the failing path attached.
"""

from __future__ import annotations

import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from berlin._errors import IoError

# Placeholder in Mount and Css output patterns
FILE_PLACEHOLDER = "{file}"

# Path parts skipped during asset copying, besides dot-files and dot-directories
_SKIPPED_PARTS = frozenset({"__pycache__"})


@dataclass(frozen=True, slots=True)
class ExportedFile:
    """Record of a single file written by a task.

    Attributes:
        source: Logical source (template name, stylesheet or asset path).
        output_path: Absolute filesystem path to the written file.
        source_type: Category of the written file.
        size_bytes: Size of the written file in bytes.
        duration_ms: Time taken to render/copy and write this file.

    """

    source: str
    output_path: Path
    source_type: Literal["render", "css", "asset"]
    size_bytes: int
    duration_ms: float


def expand_file_pattern(pattern: str, relative: Path | str) -> str:
    """Substitute the ``{file}`` placeholder of *pattern*."""
    return pattern.replace(FILE_PLACEHOLDER, Path(relative).as_posix())


def write_output(
    output_dir: Path,
    relative: str,
    content: str,
    *,
    source: str,
    source_type: Literal["render", "css", "asset"] = "render",
    started: float | None = None,
) -> ExportedFile:
    """Write *content* to ``output_dir/relative``, creating parents.

    Raises:
        IoError: If the file or one of its parents cannot be written.

    """
    t0 = started if started is not None else time.perf_counter()
    target = output_dir / relative.lstrip("/")
    data = content.encode("utf-8")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        msg = f"Unable to write {target}: {exc}"
        raise IoError(msg, target) from exc
    return ExportedFile(
        source=source,
        output_path=target,
        source_type=source_type,
        size_bytes=len(data),
        duration_ms=(time.perf_counter() - t0) * 1000,
    )


def copy_asset(src: Path, dest: Path) -> ExportedFile:
    """Copy one file, creating the destination's parents.

    Raises:
        IoError: If the copy fails.

    """
    t0 = time.perf_counter()
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest)
        size = dest.stat().st_size
    except OSError as exc:
        msg = f"Unable to copy {src} to {dest}: {exc}"
        raise IoError(msg, src) from exc
    return ExportedFile(
        source=str(src),
        output_path=dest,
        source_type="asset",
        size_bytes=size,
        duration_ms=(time.perf_counter() - t0) * 1000,
    )


def is_hidden(path: Path) -> bool:
    """Whether any part of the relative *path* is a dot-name or ``__pycache__``."""
    return any(part.startswith(".") or part in _SKIPPED_PARTS for part in path.parts)


def copy_static(static_path: Path, output_dir: Path, pattern: str) -> tuple[ExportedFile, ...]:
    """Copy every file under *static_path* to ``output_dir/<pattern>``.

    ``{file}`` in *pattern* is replaced by the file's path relative to
    *static_path*.  Files under a dot-name or ``__pycache__`` are skipped.

    """
    if not static_path.is_dir():
        return ()

    results: list[ExportedFile] = []
    for src_file in sorted(static_path.rglob("*")):
        if not src_file.is_file() or is_hidden(src_file.relative_to(static_path)):
            continue
        relative = src_file.relative_to(static_path)
        dest = output_dir / expand_file_pattern(pattern, relative)
        results.append(copy_asset(src_file, dest))
    return tuple(results)
