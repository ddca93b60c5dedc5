# utils/path_utils.py
"""
Path utilities: enumerate every entry of a diagnostic bundle.

Goals:
- Single responsibility: filesystem discovery only (no parsing, no aggregation).
- Cross-platform safe; the hidden-file convention is POSIX-only.
- Never abort a walk because of one unreadable sub-tree.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

log = logging.getLogger(__name__)


def iter_entries(root: Path | str) -> Iterator[Tuple[Path, bool]]:
    """
    Yield (path, is_dir) for the root itself and every entry below it.

    Notes
    -----
    - Uses os.walk(topdown=True); directories are yielded before their contents.
    - Does not follow symlinks (safer; avoids infinite loops).
    - Unreadable directories are logged and skipped; the walk continues elsewhere.
    """
    root_path = Path(root)
    yield root_path, True

    def _on_error(exc: OSError) -> None:
        log.warning("Skipping unreadable path %s: %s", getattr(exc, "filename", "?"), exc)

    for dirpath, dirnames, filenames in os.walk(root_path, topdown=True, onerror=_on_error, followlinks=False):
        base = Path(dirpath)
        # Sorted so enumeration order (and therefore tie order) is reproducible.
        dirnames.sort()
        for dname in dirnames:
            yield base / dname, True
        for fname in sorted(filenames):
            yield base / fname, False


def is_hidden(path: Path) -> bool:
    """Dot-file convention; nothing is hidden on Windows."""
    if sys.platform.startswith("win"):
        return False
    return path.name.startswith(".")


def is_within(path: Path, folders: Iterable[Path]) -> bool:
    """True if path lies strictly inside any of the given folders."""
    for folder in folders:
        if path != folder and folder in path.parents:
            return True
    return False


def path_hash(path: Path | str) -> str:
    """
    Stable identifier for a path: SHA-1 over the literal path string.
    Same path in, same id out, across scans and processes.
    """
    return hashlib.sha1(str(path).encode("utf-8")).hexdigest()


def newest_mtime(root: Path | str) -> Tuple[Optional[Path], float]:
    """
    Return the most recently modified non-hidden file under root and its
    mtime. (None, 0.0) if the tree holds no such file.
    """
    newest: Optional[Path] = None
    newest_ts = 0.0
    for path, is_dir in iter_entries(root):
        if is_dir or is_hidden(path):
            continue
        try:
            ts = path.stat().st_mtime
        except OSError:
            continue
        if ts > newest_ts:
            newest, newest_ts = path, ts
    return newest, newest_ts
