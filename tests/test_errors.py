"""Tests for berlin._errors."""

from pathlib import Path

import pytest

from berlin._errors import (
    BerlinError,
    ConfigError,
    GraphError,
    IoError,
    ParseError,
    RenderError,
    TaskError,
)

ALL_ERRORS = (ConfigError, ParseError, IoError, GraphError, RenderError, TaskError)


class TestErrorHierarchy:
    """All berlin errors inherit from BerlinError."""

    def test_berlin_error_is_exception(self) -> None:
        assert issubclass(BerlinError, Exception)

    @pytest.mark.parametrize("error_cls", ALL_ERRORS)
    def test_inherits(self, error_cls: type[BerlinError]) -> None:
        assert issubclass(error_cls, BerlinError)

    def test_catch_all_berlin_errors(self) -> None:
        """All specific errors are catchable via BerlinError."""
        for error_cls in ALL_ERRORS:
            with pytest.raises(BerlinError):
                raise error_cls("test")


class TestIoError:
    def test_carries_path(self) -> None:
        err = IoError("Unable to read", "/tmp/x.md")
        assert err.path == Path("/tmp/x.md")
        assert str(err) == "Unable to read"

    def test_path_optional(self) -> None:
        assert IoError("boom").path is None
