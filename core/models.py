# core/models.py
"""
Plain data shapes for the analyzer (no parsing, no I/O).
These are the "contracts" that entities, services and exporters speak.

Design goals:
- Minimal and framework-agnostic (easy to test and reason about).
- Immutable where it matters: records and instances never change once produced.
- FilterEntry stays mutable because the presentation layer toggles it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

# Records without a usable timestamp sort before everything else.
ZERO_TIME = datetime.min


class Severity(Enum):
    """
    Normalized severity of a log record. The presentation layer styles lines
    by this value (e.g., ERROR in red, FREEZE in orange).
    """
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FREEZE = "FREEZE"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Severity":
        """Map a level name from any supported log format onto Severity."""
        if not raw:
            return cls.INFO
        name = raw.strip().upper()
        return _SEVERITY_ALIASES.get(name, cls.__members__.get(name, cls.INFO))


_SEVERITY_ALIASES = {
    "TRACE": Severity.DEBUG,
    "FINE": Severity.DEBUG,
    "WARNING": Severity.WARN,
    "SEVERE": Severity.ERROR,
    "FATAL": Severity.ERROR,
}


class EntityKind(Enum):
    SIMPLE = "simple"        # one file -> stream of records
    COMPOSITE = "composite"  # one directory -> one artifact instance


@dataclass(frozen=True)
class LogRecord:
    """
    One normalized diagnostic event.

    Converters build records without an owner; the aggregator stamps
    instance_id and entity_name when the record is appended.
    """
    severity: Severity
    timestamp: Optional[datetime]
    message: str
    instance_id: str = ""
    entity_name: str = ""

    @property
    def sort_key(self) -> datetime:
        return self.timestamp or ZERO_TIME


@dataclass(frozen=True)
class EntityInstance:
    """
    A concrete path recognized by an entity during a scan.

    Fields:
    - entity_name: the owning entity's classification label.
    - path: the recognized file or directory.
    - id: SHA-1 of the literal path string (see utils.path_utils.path_hash).
    - visible: default visibility resolved at scan time.
    """
    entity_name: str
    path: Path
    id: str
    visible: bool = True


@dataclass
class FilterEntry:
    id: str
    label: str
    entity_name: str
    color: str
    checked: bool = True


@dataclass
class FilterGroup:
    entity_name: str
    entries: List[FilterEntry] = field(default_factory=list)


@dataclass(frozen=True)
class CapturedFile:
    """A single capture inside a stack-snapshot folder."""
    name: str
    content: str
    thread_count: int


@dataclass(frozen=True)
class ArtifactAnalysis:
    """
    Summary of a composite artifact, e.g. every capture inside a
    thread-dump folder. Computed lazily and memoized per folder.
    """
    folder: Path
    files: Tuple[CapturedFile, ...] = ()

    @property
    def file_names(self) -> List[str]:
        return [f.name for f in self.files]

    def content_of(self, name: str) -> Optional[str]:
        for f in self.files:
            if f.name == name:
                return f.content
        return None


@dataclass(frozen=True)
class ScanStats:
    """Counters describing one completed directory walk."""
    root: Path
    entries: int
    claimed: int
    ignored: int
    other: int
    records: int
