# services/orchestrator.py
"""
High-level coordinator: the explicit analysis context handed to the
presentation layer.

One Orchestrator owns one working folder at a time: it scans it, sorts the
merged log, builds the filter index, serves lazy artifact analysis and runs
live update. Callers construct it with an immutable entity registry; there
is no process-wide analyzer.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from core.errors import NoArtifactsFound
from core.models import ArtifactAnalysis, FilterGroup, LogRecord, ScanStats
from core.registry import EntityRegistry
from entities.builtin import default_registry
from infra.config_loader import load_config
from infra.exporters import records_frame
from utils.path_utils import newest_mtime

from .aggregator import LogAggregator
from .artifacts import ArtifactAnalyzer
from .filters import FilterIndex
from .scanner import DirectoryScanner, ProgressFn
from .watcher import LiveUpdateWatcher

log = logging.getLogger(__name__)


class Orchestrator:
    """
    Coordinates the end-to-end analysis of one diagnostic bundle.

    Usage:
        orchestrator = Orchestrator(on_progress=my_progress_fn)
        orchestrator.open("/tmp/logs")
        for record in orchestrator.logs():
            ...
        orchestrator.clear()
    """

    def __init__(
        self,
        registry: Optional[EntityRegistry] = None,
        config: Optional[Dict[str, Any]] = None,
        on_progress: Optional[ProgressFn] = None,
    ) -> None:
        self.config = dict(config) if config is not None else load_config()
        self.registry = registry if registry is not None else default_registry(self.config)
        self.aggregator = LogAggregator()
        self.filters_index = FilterIndex()
        self.scanner = DirectoryScanner(
            self.registry,
            self.aggregator,
            workers=int(self.config.get("scan_workers", 8)),
            on_progress=on_progress,
        )
        self.artifacts = ArtifactAnalyzer(self.registry, self.aggregator)
        self.watcher = LiveUpdateWatcher(
            self.registry,
            self.aggregator,
            debounce_ms=int(self.config.get("watch_debounce_ms", 200)),
            step_ms=int(self.config.get("watch_step_ms", 50)),
            join_timeout=float(self.config.get("watch_join_timeout", 2.0)),
        )
        self.work_dir: Optional[Path] = None
        self.is_temp = False
        self.last_stats: Optional[ScanStats] = None
        self._last_modified: Optional[datetime] = None

    def open(self, folder: Path | str, is_temp: bool = False) -> ScanStats:
        """
        Reset, then scan folder and prepare every accessor.

        is_temp marks folder as a throwaway extraction target that clear()
        deletes from disk.

        Raises ScanRootError if folder cannot be opened and NoArtifactsFound
        if the scan recognized nothing. In the latter case the (empty) state
        stays readable, e.g. other_files().
        """
        self.clear()
        self.work_dir = Path(folder)
        self.is_temp = is_temp
        self.artifacts.work_dir = self.work_dir

        stats = self.scanner.scan(self.work_dir)
        self.last_stats = stats
        self.aggregator.sort_by_time()
        self.filters_index.build(self.registry, self.aggregator)

        if self.aggregator.is_empty():
            raise NoArtifactsFound(self.work_dir)

        if self.config.get("live_update"):
            self.enable_live_update()
        return stats

    # ---------- accessors ----------

    def logs(self) -> List[LogRecord]:
        return self.aggregator.records()

    def logs_frame(self) -> pd.DataFrame:
        """The aggregated log as a DataFrame, with each row's filter state."""
        df = records_frame(self.aggregator.records())
        df["Visible"] = df["InstanceId"].isin(self.filters_index.visible_ids())
        return df

    def other_files(self) -> List[Path]:
        return self.aggregator.other_files()

    def filters(self) -> List[FilterGroup]:
        return self.filters_index.groups()

    def set_visibility(self, instance_id: str, checked: bool) -> bool:
        return self.filters_index.set_visibility(instance_id, checked)

    def set_filters(self, states: Mapping[str, bool]) -> int:
        return self.filters_index.apply(states)

    def artifact(self, folder_key: Path | str) -> ArtifactAnalysis:
        return self.artifacts.analyze(folder_key)

    def is_empty(self) -> bool:
        return self.aggregator.is_empty()

    def last_modified_time(self) -> Optional[datetime]:
        """Newest mtime of any non-hidden file in the working folder (memoized)."""
        if self._last_modified is not None or self.work_dir is None:
            return self._last_modified
        path, ts = newest_mtime(self.work_dir)
        if path is None:
            return None
        self._last_modified = datetime.fromtimestamp(ts)
        log.info("Last modified file: %s timestamp: %s", path, self._last_modified)
        return self._last_modified

    # ---------- live update ----------

    def enable_live_update(self) -> int:
        return self.watcher.enable()

    def disable_live_update(self) -> None:
        self.watcher.disable()

    def poll_live_update(self) -> int:
        return self.watcher.poll()

    # ---------- reset ----------

    def clear(self) -> None:
        """
        Drop every piece of per-folder state. Idempotent; safe before any scan.
        Entities are never touched.
        """
        self.watcher.disable()
        self.aggregator.clear()
        self.filters_index.clear()
        self.artifacts.clear()
        self._last_modified = None
        self.last_stats = None

        if self.is_temp and self.work_dir is not None:
            try:
                shutil.rmtree(self.work_dir)
                log.info("Temp folder %s removed", self.work_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                log.error("Removing folder '%s' failed: %s", self.work_dir, exc)
        self.is_temp = False
        self.work_dir = None
        self.artifacts.work_dir = None
