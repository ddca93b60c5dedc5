# core/errors.py
"""
Exceptions surfaced to callers of the analyzer.

Only conditions the caller must act on are exceptions. Classification
misses, failed conversions and walk errors are logged and never raised.
"""

from __future__ import annotations

from pathlib import Path


class LogLensError(Exception):
    """Base class for every error raised by the analyzer."""


class ScanRootError(LogLensError):
    """The root folder handed to a scan cannot be opened."""

    def __init__(self, root: Path, reason: str) -> None:
        super().__init__(f"Cannot open folder '{root}': {reason}")
        self.root = root


class NoArtifactsFound(LogLensError):
    """A full scan completed without producing a single log record."""

    def __init__(self, root: Path) -> None:
        super().__init__(f"Could not find any recognized log elements inside '{root}'")
        self.root = root


class UnknownArtifactError(LogLensError, KeyError):
    """No composite instance matches the requested folder key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"No analyzable artifact found for '{self.key}'"
