# entities/application_log.py
"""
Application log entity: append-only text logs such as idea.log.

Line format:
    2023-01-01 12:00:00,123 [  12345]   INFO - #c.i.o.a.Foo - Message text

Lines that do not start a new entry (stack traces, wrapped messages) are
continuation lines of the previous entry during a full-file conversion.
During live update they are dropped, since a single line carries no context.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from core.interfaces import SimpleLogEntity
from core.models import LogRecord, Severity

LINE_PATTERN = re.compile(
    r"^(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3})\s+"
    r"\[\s*\d+\]\s+"
    r"(?P<level>[A-Z]+)\s+-\s+"
    r"(?P<msg>.*)$"
)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S,%f"


class ApplicationLogEntity(SimpleLogEntity):
    name = "Application Log"
    color = "#d8e9a8"

    def is_ignored(self, path: Path) -> bool:
        # Lock files sit next to live logs; claim them so they stay out of "other files"
        return path.name.endswith(".lck")

    def matches(self, path: Path) -> bool:
        return path.suffix == ".log" and path.is_file()

    def convert_line(self, line: str) -> Optional[LogRecord]:
        m = LINE_PATTERN.match(line)
        if not m:
            return None
        return LogRecord(
            severity=Severity.parse(m.group("level")),
            timestamp=_parse_timestamp(m.group("ts")),
            message=m.group("msg"),
        )

    def parse_lines(self, lines: Iterable[str]) -> List[LogRecord]:
        records: List[LogRecord] = []
        current: Optional[LogRecord] = None
        continuation: List[str] = []

        def flush() -> None:
            if current is None:
                return
            if continuation:
                records.append(LogRecord(
                    severity=current.severity,
                    timestamp=current.timestamp,
                    message="\n".join([current.message, *continuation]),
                ))
            else:
                records.append(current)

        for raw in lines:
            line = raw.rstrip("\r\n")
            record = self.convert_line(line)
            if record is not None:
                flush()
                current, continuation = record, []
            elif current is not None and line.strip():
                continuation.append(line)
        flush()
        return records


def _parse_timestamp(raw: str) -> Optional[datetime]:
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT)
    except ValueError:
        return None
