# core/interfaces.py
"""
Stable abstractions the rest of the analyzer depends on.
The scanner, watcher and filter index import only these interfaces,
never a concrete log format.

Design notes:
- One capability interface (Entity) with two variant kinds: SimpleLogEntity
  for append-only files and CompositeEntity for multi-file folders.
- Operations an entity does not support return a well-defined
  "not applicable" value (False, None, []) instead of being left unset.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from .models import ArtifactAnalysis, EntityKind, LogRecord

__all__ = ["Entity", "SimpleLogEntity", "CompositeEntity", "LogWriter"]


class Entity(ABC):
    """
    One kind of recognizable diagnostic artifact.

    Entities must be stateless: the scanner calls them from many worker
    threads at once, and the same instance serves every scan.
    """

    #: Classification label; also groups instances in the filter index.
    name: str = ""
    #: Color used by the presentation layer to highlight this entity's lines.
    color: str = "#ffffff"
    kind: EntityKind = EntityKind.SIMPLE

    def is_ignored(self, path: Path) -> bool:
        """
        Return True if the path should be silently claimed without records.
        Checked before classification.
        """
        return False

    @abstractmethod
    def matches(self, path: Path) -> bool:
        """Classification predicate. Must not raise for ordinary misses."""
        raise NotImplementedError

    @abstractmethod
    def convert(self, path: Path) -> List[LogRecord]:
        """
        Produce the records for a matched path. An empty list means the
        match was not productive; the scanner logs it and moves on.
        """
        raise NotImplementedError

    def convert_line(self, line: str) -> Optional[LogRecord]:
        """Convert one appended line, or None if it does not fit the format."""
        return None

    def changeable_path(self, path: Path) -> Optional[Path]:
        """Path to follow for growth (file or directory), or None."""
        return None

    def default_visible(self, path: Path) -> bool:
        return True

    def display_name(self, path: Path) -> str:
        return path.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class SimpleLogEntity(Entity):
    """
    A single append-only file whose lines map to records.

    Subclasses implement matches() and convert_line(); convert() feeds every
    line through parse_lines() so full-file and incremental conversion share
    one format definition.
    """

    kind = EntityKind.SIMPLE

    def convert(self, path: Path) -> List[LogRecord]:
        with path.open("r", encoding="utf-8", errors="replace") as fp:
            return self.parse_lines(fp)

    def parse_lines(self, lines: Iterable[str]) -> List[LogRecord]:
        records: List[LogRecord] = []
        for line in lines:
            record = self.convert_line(line.rstrip("\r\n"))
            if record is not None:
                records.append(record)
        return records

    def changeable_path(self, path: Path) -> Optional[Path]:
        return path


class CompositeEntity(Entity):
    """
    A directory representing one multi-file artifact instance.
    Its contents are summarized lazily through analyze().
    """

    kind = EntityKind.COMPOSITE

    @abstractmethod
    def analyze(self, path: Path) -> ArtifactAnalysis:
        """Build the (possibly expensive) multi-file summary of one folder."""
        raise NotImplementedError


class LogWriter(Protocol):
    """
    Optional sink for the aggregated log (e.g., CSV/JSON exporters).
    Any object providing a compatible 'write' method qualifies.
    """

    def write(self, records: Iterable[LogRecord]) -> None:
        ...
