# services/artifacts.py
"""
Lazy, memoized analysis of composite artifacts (e.g. thread-dump folders).

Nothing is read during the scan beyond the folder name; the dump files are
parsed the first time the presentation layer asks for a folder, and the
result is reused until the next reset.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from core.errors import UnknownArtifactError
from core.interfaces import CompositeEntity
from core.models import ArtifactAnalysis
from core.registry import EntityRegistry

from .aggregator import LogAggregator

log = logging.getLogger(__name__)


class ArtifactAnalyzer:
    """
    Memoization table keyed by the folder path of a composite instance.

    Usage:
        analyzer = ArtifactAnalyzer(registry, aggregator)
        analysis = analyzer.analyze("threadDumps-freeze-20230101-120000")
    """

    def __init__(self, registry: EntityRegistry, aggregator: LogAggregator, work_dir: Optional[Path] = None) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.work_dir = work_dir
        self._cache: Dict[Path, ArtifactAnalysis] = {}
        self._lock = threading.Lock()

    def analyze(self, folder_key: Path | str) -> ArtifactAnalysis:
        entity, folder = self._resolve(folder_key)
        with self._lock:
            cached = self._cache.get(folder)
            if cached is not None:
                return cached
            log.info("Analyzing %s folder %s", entity.name, folder)
            analysis = entity.analyze(folder)
            self._cache[folder] = analysis
            return analysis

    def is_cached(self, folder_key: Path | str) -> bool:
        try:
            _, folder = self._resolve(folder_key)
        except UnknownArtifactError:
            return False
        return folder in self._cache

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def _resolve(self, folder_key: Path | str) -> Tuple[CompositeEntity, Path]:
        """
        Find the composite instance a key refers to: exact path first, then a
        path relative to the working folder, then the first instance whose
        path contains the key.
        """
        key = Path(folder_key)
        candidates = [key]
        if self.work_dir is not None and not key.is_absolute():
            candidates.append(self.work_dir / key)

        composites = self.registry.composites()
        for candidate in candidates:
            for entity in composites:
                for inst in self.aggregator.instances(entity.name):
                    if inst.path == candidate:
                        return entity, inst.path

        needle = str(folder_key)
        for entity in composites:
            for inst in self.aggregator.instances(entity.name):
                if needle and needle in str(inst.path):
                    return entity, inst.path

        raise UnknownArtifactError(needle)
