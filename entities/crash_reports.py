# entities/crash_reports.py
"""
JVM fatal error reports (hs_err_pid*.log, java_error_in_*.log, jbr_err_pid*.log).

Each report becomes a single ERROR record. These files also end in `.log`, so
the application log entity matches them too; its converter finds no entries
and that match is simply non-productive.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.interfaces import SimpleLogEntity
from core.models import LogRecord, Severity

NAME_PATTERN = re.compile(r"^(hs_err_pid|java_error_in_|jbr_err_pid).*\.log$")
# Time: Sun Jan  1 12:00:00 2023 CET elapsed time: 12.3 seconds
TIME_PATTERN = re.compile(
    r"^Time:\s+\w{3}\s+(?P<month>\w{3})\s+(?P<day>\d{1,2})\s+"
    r"(?P<clock>\d{2}:\d{2}:\d{2})\s+(?:\S+\s+)?(?P<year>\d{4})"
)
FRAME_MARKER = "# Problematic frame:"


class CrashReportEntity(SimpleLogEntity):
    name = "Crash Report"
    color = "#ff8080"

    def matches(self, path: Path) -> bool:
        return bool(NAME_PATTERN.match(path.name)) and path.is_file()

    def convert(self, path: Path) -> List[LogRecord]:
        timestamp: Optional[datetime] = None
        frame: Optional[str] = None
        take_frame = False
        with path.open("r", encoding="utf-8", errors="replace") as fp:
            for raw in fp:
                line = raw.rstrip("\r\n")
                if take_frame:
                    frame = line.lstrip("# ").strip() or None
                    take_frame = False
                elif line.startswith(FRAME_MARKER):
                    take_frame = True
                elif timestamp is None:
                    timestamp = parse_time_line(line)

        message = f"JVM crash: {path.name}"
        if frame:
            message = f"{message} ({frame})"
        return [LogRecord(severity=Severity.ERROR, timestamp=timestamp, message=message)]

    def changeable_path(self, path: Path) -> Optional[Path]:
        # Reports are written once; nothing to follow.
        return None


def parse_time_line(line: str) -> Optional[datetime]:
    m = TIME_PATTERN.match(line)
    if not m:
        return None
    raw = f"{m.group('year')} {m.group('month')} {m.group('day')} {m.group('clock')}"
    try:
        return datetime.strptime(raw, "%Y %b %d %H:%M:%S")
    except ValueError:
        return None
