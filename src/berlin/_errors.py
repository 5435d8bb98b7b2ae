"""Berlin error hierarchy.

All berlin-specific errors inherit from BerlinError for easy catching.
"""

from __future__ import annotations

from pathlib import Path


class BerlinError(Exception):
    """Base error for all berlin operations."""


class ConfigError(BerlinError):
    """Invalid, unreadable or missing configuration."""


class ParseError(BerlinError):
    """A content parser failed or no parser handles the media type."""


class IoError(BerlinError):
    """Reading, writing, copying or canonicalizing a file failed.

    Attributes:
        path: The file the operation failed on.

    """

    def __init__(self, msg: str, path: Path | str | None = None) -> None:
        super().__init__(msg)
        self.path = Path(path) if path is not None else None


class GraphError(BerlinError):
    """The CSS dependency graph could not be built (duplicate path or cycle)."""


class RenderError(BerlinError):
    """The template engine failed to load or render a template."""


class TaskError(BerlinError):
    """A task failed for a reason not covered by a more specific error."""
