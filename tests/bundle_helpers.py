"""Builders for on-disk diagnostic bundles used across the test modules."""
from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

T0 = datetime(2023, 1, 1, 10, 0, 0)


def app_log_line(ts: datetime, message: str = "message", level: str = "INFO") -> str:
    return f"{ts:%Y-%m-%d %H:%M:%S},{ts.microsecond // 1000:03d} [  12345]   {level} - #c.i.Test - {message}"


def write_app_log(path: Path, timestamps: Iterable[datetime], prefix: str = "line", level: str = "INFO") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [app_log_line(ts, f"{prefix} {i}", level) for i, ts in enumerate(timestamps)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def seconds(*offsets: float) -> list[datetime]:
    return [T0 + timedelta(seconds=s) for s in offsets]


def make_config(**overrides) -> dict:
    cfg = {
        "log_level": "INFO",
        "log_dir": None,
        "scan_workers": 4,
        "live_update": False,
        "watch_debounce_ms": 50,
        "watch_step_ms": 20,
        "watch_join_timeout": 2.0,
        "max_artifact_bytes": 1_000_000,
    }
    cfg.update(overrides)
    return cfg


def idle_watch(*paths, stop_event=None, **kwargs):
    """Stand-in for watchfiles.watch that never reports changes; tests poll explicitly."""
    stop_event.wait(10)
    yield from ()


class BundleTestCase(unittest.TestCase):
    def make_bundle(self) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        return Path(tmpdir.name)
