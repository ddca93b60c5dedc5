# entities/snapshots.py
"""
Performance snapshots (CPU/allocation `.snapshot` files, `.hprof` heap dumps).

Binary content is never read; the capture time comes from the file name.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.interfaces import SimpleLogEntity
from core.models import LogRecord, Severity

SUFFIXES = {".snapshot", ".hprof"}
# 2023-01-01-12-00-00, 2023-01-01_12-00-00 or 20230101-120000
STAMP_PATTERNS = (
    (re.compile(r"\d{4}-\d{2}-\d{2}[-_]\d{2}-\d{2}-\d{2}"), "%Y-%m-%d-%H-%M-%S"),
    (re.compile(r"\d{8}-\d{6}"), "%Y%m%d-%H%M%S"),
)


class SnapshotEntity(SimpleLogEntity):
    name = "Performance Snapshot"
    color = "#a8c8f0"

    def matches(self, path: Path) -> bool:
        return path.suffix.lower() in SUFFIXES and path.is_file()

    def convert(self, path: Path) -> List[LogRecord]:
        return [LogRecord(
            severity=Severity.INFO,
            timestamp=snapshot_timestamp(path.name),
            message=f"Performance snapshot captured: {path.name}",
        )]

    def changeable_path(self, path: Path) -> Optional[Path]:
        return None

    def default_visible(self, path: Path) -> bool:
        # Snapshots are bulky markers; users opt in
        return False


def snapshot_timestamp(filename: str) -> Optional[datetime]:
    for pattern, fmt in STAMP_PATTERNS:
        m = pattern.search(filename)
        if not m:
            continue
        try:
            return datetime.strptime(m.group(0).replace("_", "-"), fmt)
        except ValueError:
            continue
    return None
