# infra/config_loader.py
"""
Central configuration loader for the analyzer.

Responsibilities:
- Provide a single place to define default configuration values.
- Allow simple environment variable overrides for quick tweaks (no code changes).

Environment variables:
- LOGLENS_LOG_LEVEL             (DEBUG/INFO/WARNING/ERROR)
- LOGLENS_LOG_DIR               (folder for the rotating log file)
- LOGLENS_SCAN_WORKERS          (int; classification thread pool size)
- LOGLENS_WATCH_DEBOUNCE_MS     (int; change batching window for live update)
- LOGLENS_WATCH_STEP_MS         (int; how often followers check for stop/changes)
- LOGLENS_WATCH_JOIN_TIMEOUT    (float seconds; wait per follower on disable)
- LOGLENS_MAX_ARTIFACT_BYTES    (int; read cap per file during artifact analysis)
- LOGLENS_LIVE_UPDATE           ("1"/"true"/"yes" -> start live update after open)
"""

from __future__ import annotations

import os
from typing import Any, Dict


def _default_workers() -> int:
    # Same sizing rule as concurrent.futures.ThreadPoolExecutor
    return min(32, (os.cpu_count() or 1) + 4)


_DEFAULT: Dict[str, Any] = {
    "log_level": "INFO",
    "log_dir": None,                 # None -> ./logs

    # Scanning
    "scan_workers": _default_workers(),

    # Live update
    "live_update": False,
    "watch_debounce_ms": 200,
    "watch_step_ms": 50,
    "watch_join_timeout": 2.0,

    # Artifact analysis
    "max_artifact_bytes": 5_000_000,  # cap per capture file to protect memory
}


def load_config() -> Dict[str, Any]:
    """
    Return a config dict. Environment variables can override every key.
    Malformed numeric values are ignored and the default is kept.
    """
    cfg = dict(_DEFAULT)

    # Numeric overrides
    _int_env(cfg, "scan_workers", "LOGLENS_SCAN_WORKERS")
    _int_env(cfg, "watch_debounce_ms", "LOGLENS_WATCH_DEBOUNCE_MS")
    _int_env(cfg, "watch_step_ms", "LOGLENS_WATCH_STEP_MS")
    _int_env(cfg, "max_artifact_bytes", "LOGLENS_MAX_ARTIFACT_BYTES")
    _float_env(cfg, "watch_join_timeout", "LOGLENS_WATCH_JOIN_TIMEOUT")

    # Boolean overrides
    _bool_env(cfg, "live_update", "LOGLENS_LIVE_UPDATE")

    # String overrides
    _str_upper_env(cfg, "log_level", "LOGLENS_LOG_LEVEL")
    _str_env(cfg, "log_dir", "LOGLENS_LOG_DIR")

    if cfg["scan_workers"] < 1:
        cfg["scan_workers"] = 1

    return cfg


# ----------------- helpers -----------------

def _bool_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is None:
        return
    s = val.strip().lower()
    cfg[key] = s in {"1", "true", "yes", "on"}


def _int_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val and val.strip().isdigit():
        cfg[key] = int(val)


def _float_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if not val:
        return
    try:
        cfg[key] = float(val)
    except ValueError:
        pass


def _str_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is not None and val.strip():
        cfg[key] = val.strip()


def _str_upper_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is not None:
        cfg[key] = val.strip().upper()
