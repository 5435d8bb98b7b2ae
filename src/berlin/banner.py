"""Startup banner and status lines — mode-aware output on stderr.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from berlin._types import BuildMode
    from berlin.config import BuildConfig


# ---------------------------------------------------------------------------
# ANSI helpers, honouring NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_RED = "\033[31m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_BLUE = "\033[94m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Mode badges
# ---------------------------------------------------------------------------

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "build": (_YELLOW, "build"),
    "watch": (_GREEN, "watch"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_status(label: str, message: str) -> None:
    """Print a ``<Label> message`` status line (watcher, copy, css...)."""
    print(f"{_BLUE}{label}{_RESET} {message}", file=sys.stderr)


def print_error(message: str, *, context: str | None = None) -> None:
    """Print an ``error`` line, optionally tagged with the failing task."""
    where = f"{_DIM}[{context}]{_RESET} " if context else ""
    print(f"{_RED}{_BOLD}error{_RESET}: {where}{message}", file=sys.stderr)


def print_warning(message: str) -> None:
    print(f"  {_YELLOW}!{_RESET} {message}", file=sys.stderr)


def print_banner(
    config: BuildConfig,
    task_count: int,
    mode: BuildMode,
    *,
    serve: bool = False,
    warnings: list[str] | None = None,
) -> None:
    """Print the berlin startup banner to stderr.

    Args:
        config: Resolved BuildConfig.
        task_count: Number of tasks in the task table.
        mode: One of ``"build"``, ``"watch"``.
        serve: Whether the output directory is being served over HTTP.
        warnings: Optional list of warning messages to display.

    """
    from berlin import __version__

    lines: list[str] = [
        "",
        f"  {_BOLD}berlin{_RESET} {_DIM}v{__version__}{_RESET}  {_mode_badge(mode)}",
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    tasks_label = "task" if task_count == 1 else "tasks"
    lines.append(f"  {_DIM}├─{_RESET} {task_count} {tasks_label}")
    lines.append(f"  {_DIM}├─{_RESET} templates: {_DIM}{config.templates_path}{_RESET}")
    lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}")

    if serve:
        lines.append("")
        lines.append(f"  {_clickable_url(f'http://{config.host}:{config.port}')}")

    if mode == "watch":
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)


def print_summary(written: int, failed: int, duration_ms: float) -> None:
    """Print the one-line build summary."""
    status = f"{_GREEN}ok{_RESET}" if not failed else f"{_RED}{failed} failed{_RESET}"
    files_label = "file" if written == 1 else "files"
    print(
        f"  {written} {files_label} written {_DIM}in {duration_ms:.0f}ms{_RESET} ({status})",
        file=sys.stderr,
    )
