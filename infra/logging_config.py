# infra/logging_config.py
"""
Logging setup for a LogLens host: console plus a rotating file.

Scanner workers and live-update followers log from their own threads, so the
thread name is part of every line.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "loglens.log"

# watchfiles reports every change batch at INFO; followers produce many
NOISY_LOGGERS = ("watchfiles",)


def configure_logging(level_name: str = "INFO", log_dir: Optional[Path | str] = None) -> Path:
    """
    Configure console + rotating file logging and return the log file path.

    Args:
        level_name: "DEBUG" | "INFO" | "WARNING" | "ERROR" (case-insensitive)
        log_dir: folder for loglens.log (defaults to ./logs)

    Calling it again only updates levels, so a host may re-apply config.
    """
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    log_dir = Path(log_dir) if log_dir else (Path.cwd() / "logs")
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        for h in root.handlers:
            h.setLevel(level)
        return log_file

    log_dir.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(fmt)

    # 5 MB x 3 files
    file_handler = RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(fmt)

    for h in (console, file_handler):
        h.setLevel(level)
        root.addHandler(h)
    return log_file
