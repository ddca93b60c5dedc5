# entities/builtin.py
"""
The entities shipped with the analyzer and the registry built from them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.interfaces import Entity
from core.registry import EntityRegistry, RegistryBuilder

from .application_log import ApplicationLogEntity
from .crash_reports import CrashReportEntity
from .snapshots import SnapshotEntity
from .thread_dumps import ThreadDumpsEntity


def builtin_entities(config: Optional[Dict[str, Any]] = None) -> List[Entity]:
    cfg = config or {}
    return [
        ApplicationLogEntity(),
        ThreadDumpsEntity(max_file_bytes=int(cfg.get("max_artifact_bytes", 5_000_000))),
        CrashReportEntity(),
        SnapshotEntity(),
    ]


def default_registry(config: Optional[Dict[str, Any]] = None) -> EntityRegistry:
    builder = RegistryBuilder()
    for entity in builtin_entities(config):
        builder.register(entity)
    return builder.build()
