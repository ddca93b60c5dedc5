# services/aggregator.py
"""
Shared aggregation state: the merged log, recognized instances and
unclassified files.

Every mutation goes through one re-entrant lock (the write barrier). The
scanner's owner thread and the live-update followers both write through it,
so the structures stay consistent without either knowing about the other.
"""

from __future__ import annotations

import bisect
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from core.models import EntityInstance, LogRecord

log = logging.getLogger(__name__)


class LogAggregator:
    """
    Owner of the AggregatedLog, per-entity instance maps and OtherFiles.

    Usage:
        agg = LogAggregator()
        agg.append("Application Log", instance, records)
        agg.sort_by_time()
        agg.records()  # sorted copy
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._records: List[LogRecord] = []
        # entity name -> {path -> instance}
        self._instances: Dict[str, Dict[Path, EntityInstance]] = {}
        self._other_files: List[Path] = []
        self._count = 0

    # ---------- writes ----------

    def append(self, entity_name: str, instance: EntityInstance, records: Iterable[LogRecord]) -> int:
        """
        Register the instance and append its records, stamping each with the
        owning instance id and entity name. Returns the number appended.
        """
        stamped = [replace(r, instance_id=instance.id, entity_name=entity_name) for r in records]
        with self.lock:
            self._instances.setdefault(entity_name, {})[instance.path] = instance
            self._records.extend(stamped)
            self._count += len(stamped)
        return len(stamped)

    def insert(self, instance: EntityInstance, record: LogRecord) -> LogRecord:
        """
        Insert one record at its timestamp position. Equal timestamps keep
        arrival order (the new record goes after existing equals).
        """
        stamped = replace(record, instance_id=instance.id, entity_name=instance.entity_name)
        with self.lock:
            bisect.insort_right(self._records, stamped, key=_sort_key)
            self._count += 1
        return stamped

    def sort_by_time(self) -> None:
        """Stable ascending sort; records without timestamp come first."""
        with self.lock:
            self._records.sort(key=_sort_key)

    def add_other_file(self, path: Path) -> None:
        with self.lock:
            self._other_files.append(path)

    def drop_other_files(self, keep) -> int:
        """Keep only other files for which keep(path) is true; return how many were dropped."""
        with self.lock:
            before = len(self._other_files)
            self._other_files = [p for p in self._other_files if keep(p)]
            return before - len(self._other_files)

    def clear(self) -> None:
        with self.lock:
            self._records = []
            self._instances = {}
            self._other_files = []
            self._count = 0

    # ---------- reads ----------

    def is_empty(self) -> bool:
        return self._count == 0

    def __len__(self) -> int:
        return self._count

    def records(self) -> List[LogRecord]:
        with self.lock:
            return list(self._records)

    def other_files(self) -> List[Path]:
        with self.lock:
            return list(self._other_files)

    def instances(self, entity_name: Optional[str] = None) -> List[EntityInstance]:
        """All instances, or those of one entity, ordered by path."""
        with self.lock:
            if entity_name is not None:
                found = list(self._instances.get(entity_name, {}).values())
            else:
                found = [i for by_path in self._instances.values() for i in by_path.values()]
        return sorted(found, key=lambda i: (i.entity_name, str(i.path)))


def _sort_key(record: LogRecord):
    return record.sort_key
