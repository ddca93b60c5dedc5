# services/scanner.py
"""
Concurrent directory walk: classify every entry of a bundle and convert the
matches into records.

Classification runs on a bounded worker pool. Workers only read the
filesystem and build outcomes; the calling thread is the single owner that
applies outcomes to the aggregator, in enumeration order, under the
aggregator's write barrier. The aggregate is therefore the same no matter
how the workers are scheduled.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Set

from core.errors import ScanRootError
from core.interfaces import Entity
from core.models import EntityInstance, LogRecord, ScanStats
from core.registry import EntityRegistry
from utils.path_utils import is_hidden, is_within, iter_entries, path_hash

from .aggregator import LogAggregator

log = logging.getLogger(__name__)

# on_progress(current_index, total_entries, current_path)
ProgressFn = Callable[[int, int, Path], None]


@dataclass
class _Match:
    entity: Entity
    records: List[LogRecord]
    visible: bool


@dataclass
class _PathOutcome:
    path: Path
    is_dir: bool
    ignored: bool = False
    matches: List[_Match] = field(default_factory=list)


class DirectoryScanner:
    """
    Walks a root folder and feeds every productive classification into the
    aggregator. One scanner may be reused for many scans.

    Usage:
        scanner = DirectoryScanner(registry, aggregator, workers=8)
        stats = scanner.scan("/tmp/bundle")
    """

    def __init__(
        self,
        registry: EntityRegistry,
        aggregator: LogAggregator,
        workers: int = 8,
        on_progress: Optional[ProgressFn] = None,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.workers = max(1, workers)
        self._on_progress = on_progress

    def scan(self, root: Path | str) -> ScanStats:
        """
        Classify every entry under root (root included) and return counters.

        Raises ScanRootError if root cannot be opened. Anything that goes
        wrong below the root is logged and skipped.
        """
        root_path = Path(root)
        _check_root(root_path)

        started = time.monotonic()
        log.info("Parsing log directory %s", root_path)
        entries = list(iter_entries(root_path))
        total = len(entries)

        claimed_dirs: Set[Path] = set()
        claimed = ignored = other = records = 0

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="scan") as pool:
            futures = [pool.submit(self._classify, path, is_dir) for path, is_dir in entries]
            # Owner loop: apply in submission order, not completion order.
            for i, fut in enumerate(futures, start=1):
                outcome = fut.result()
                if self._on_progress:
                    self._on_progress(i, total, outcome.path)

                with self.aggregator.lock:
                    if outcome.ignored:
                        ignored += 1
                        if outcome.is_dir:
                            claimed_dirs.add(outcome.path)
                        continue
                    if outcome.matches:
                        claimed += 1
                        if outcome.is_dir:
                            claimed_dirs.add(outcome.path)
                        for m in outcome.matches:
                            instance = EntityInstance(
                                entity_name=m.entity.name,
                                path=outcome.path,
                                id=path_hash(outcome.path),
                                visible=m.visible,
                            )
                            records += self.aggregator.append(m.entity.name, instance, m.records)
                    elif not outcome.is_dir and not is_hidden(outcome.path):
                        self.aggregator.add_other_file(outcome.path)
                        other += 1

        if claimed_dirs:
            other -= self.aggregator.drop_other_files(lambda p: not is_within(p, claimed_dirs))

        log.info(
            "Parsed %d entries in %.2fs: %d claimed, %d ignored, %d other, %d log entries",
            total, time.monotonic() - started, claimed, ignored, other, records,
        )
        return ScanStats(root=root_path, entries=total, claimed=claimed, ignored=ignored, other=other, records=records)

    # ---------- worker side (no shared writes) ----------

    def _classify(self, path: Path, is_dir: bool) -> _PathOutcome:
        outcome = _PathOutcome(path=path, is_dir=is_dir)

        for entity in self.registry:
            if _safe_predicate(entity, "is_ignored", path):
                outcome.ignored = True
                return outcome

        for entity in self.registry:
            if not _safe_predicate(entity, "matches", path):
                continue
            entries = self._safe_convert(entity, path)
            if not entries:
                log.info("Entity %r returned nothing for %s; not counted as recognized", entity.name, path)
                continue
            visible = _safe_predicate(entity, "default_visible", path, fallback=True)
            outcome.matches.append(_Match(entity=entity, records=entries, visible=visible))
        return outcome

    def _safe_convert(self, entity: Entity, path: Path) -> List[LogRecord]:
        """
        Convert a matched path, turning unexpected exceptions into a
        non-productive match.
        """
        try:
            return list(entity.convert(path) or [])
        except Exception as exc:
            log.warning("Entity %r failed to convert %s: %s", entity.name, path, exc)
            return []


def _safe_predicate(entity: Entity, method: str, path: Path, fallback: bool = False) -> bool:
    try:
        return bool(getattr(entity, method)(path))
    except Exception as exc:
        log.warning("Entity %r %s() raised for %s: %s", entity.name, method, path, exc)
        return fallback


def _check_root(root: Path) -> None:
    if not root.exists():
        raise ScanRootError(root, "no such directory")
    if not root.is_dir():
        raise ScanRootError(root, "not a directory")
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        raise ScanRootError(root, exc.strerror or str(exc)) from exc
