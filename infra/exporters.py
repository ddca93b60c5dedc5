# infra/exporters.py
"""
Writers and tabular views for the aggregated log.

Exports:
- JSON: {"schema_version": ..., "records": [...]}
- CSV: one row per record
- records_frame(): pandas DataFrame for table widgets

Usage:
    from infra.exporters import JsonLogWriter, LogCsvWriter
    JsonLogWriter("log.json").write(orchestrator.logs())
    LogCsvWriter("log.csv").write(orchestrator.logs())
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pandas as pd

from core.interfaces import LogWriter
from core.models import LogRecord

SCHEMA_VERSION = "1.0-aggregated-log"
COLUMNS = ["Time", "Severity", "Entity", "Message", "InstanceId"]


def _record_to_plain(r: LogRecord) -> Dict[str, Any]:
    return {
        "time": r.timestamp.isoformat() if r.timestamp else None,
        "severity": r.severity.value,
        "entity": r.entity_name,
        "message": r.message,
        "instance_id": r.instance_id,
    }


def records_frame(records: Iterable[LogRecord]) -> pd.DataFrame:
    """One row per record, in the given order. Missing timestamps become NaT."""
    rows: List[Dict[str, Any]] = [
        {
            "Time": r.timestamp,
            "Severity": r.severity.value,
            "Entity": r.entity_name,
            "Message": r.message,
            "InstanceId": r.instance_id,
        }
        for r in records
    ]
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["Time"] = pd.to_datetime(df["Time"])
    return df


class JsonLogWriter(LogWriter):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, records: Iterable[LogRecord]) -> None:
        payload = {
            "schema_version": SCHEMA_VERSION,
            "records": [_record_to_plain(r) for r in records],
        }
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


class LogCsvWriter(LogWriter):
    """
    Writes a record-level table:
    Time,Severity,Entity,Message,InstanceId
    """
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, records: Iterable[LogRecord]) -> None:
        with self.path.open("w", newline="", encoding="utf-8") as fp:
            w = csv.writer(fp)
            w.writerow(COLUMNS)
            for r in records:
                w.writerow([
                    r.timestamp.isoformat() if r.timestamp else "",
                    r.severity.value,
                    r.entity_name,
                    r.message,
                    r.instance_id,
                ])
