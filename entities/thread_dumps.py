# entities/thread_dumps.py
"""
Thread dump folders captured on UI freezes.

A folder such as `threadDumps-freeze-20230101-120000-IU-231.8109.175` is one
artifact instance. The scan represents it as a single FREEZE record; the
individual dump files are read only when the folder is analyzed.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.interfaces import CompositeEntity
from core.models import ArtifactAnalysis, CapturedFile, LogRecord, Severity

log = logging.getLogger(__name__)

FOLDER_MARKER = "threadDump"
STAMP_PATTERN = re.compile(r"(?P<date>\d{8})-(?P<time>\d{6})")


class ThreadDumpsEntity(CompositeEntity):
    name = "Thread Dumps"
    color = "#faa379"

    def __init__(self, max_file_bytes: int = 5_000_000) -> None:
        self.max_file_bytes = max_file_bytes

    def matches(self, path: Path) -> bool:
        return FOLDER_MARKER in path.name and path.is_dir()

    def convert(self, path: Path) -> List[LogRecord]:
        return [LogRecord(
            severity=Severity.FREEZE,
            timestamp=folder_timestamp(path),
            message=f"Freeze started: {path.name}",
        )]

    def display_name(self, path: Path) -> str:
        m = STAMP_PATTERN.search(path.name)
        if m:
            return f"TD-{m.group('time')}"
        return path.name

    def analyze(self, path: Path) -> ArtifactAnalysis:
        files = []
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            if not child.is_file():
                continue
            try:
                with child.open("r", encoding="utf-8", errors="replace") as fp:
                    content = fp.read(self.max_file_bytes)
            except OSError as exc:
                log.warning("Cannot read thread dump %s: %s", child, exc)
                continue
            files.append(CapturedFile(
                name=child.name,
                content=content,
                thread_count=count_threads(content),
            ))
        return ArtifactAnalysis(folder=path, files=tuple(files))


def folder_timestamp(path: Path) -> Optional[datetime]:
    """Parse `YYYYMMDD-HHMMSS` from a folder name; None if absent or invalid."""
    m = STAMP_PATTERN.search(path.name)
    if not m:
        return None
    try:
        return datetime.strptime(f"{m.group('date')}-{m.group('time')}", "%Y%m%d-%H%M%S")
    except ValueError:
        return None


def count_threads(dump: str) -> int:
    # Every thread section of a JVM dump starts with its quoted name
    return sum(1 for line in dump.splitlines() if line.startswith('"'))
