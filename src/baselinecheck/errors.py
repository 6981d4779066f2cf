"""Errors that abort a scan. Everything else is counted or logged."""

from __future__ import annotations


class BaselineCheckError(Exception):
    """Base class for fatal scan errors."""


class ScanPathError(BaselineCheckError):
    """An input root path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f'Path "{path}" does not exist')
        self.path = path


class OutputWriteError(BaselineCheckError):
    """The report could not be written to its output path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Error writing report to {path}: {reason}")
        self.path = path


class ScanCancelled(BaselineCheckError):
    """The caller asked for an in-flight scan to stop."""
