# services/watcher.py
"""
Live update: follow growing logs and feed new lines into the aggregate.

Purpose:
    While an application keeps running, its logs keep growing. Instead of
    re-scanning the bundle, each instance whose entity exposes a changeable
    path gets a follower that reads only the newly written lines and inserts
    the converted records at their timestamp position.

Design Decisions:
    - watchfiles delivers change notifications; the follower then reads from
      its remembered offset, so a missed or merged notification loses nothing
    - Files are opened per read; a stopped follower holds no handles
    - Partial trailing lines are buffered until their newline arrives
    - Truncation (rotation, manual clear) restarts reading from the top
    - Lines that do not fit the entity's format are dropped
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from watchfiles import watch

from core.interfaces import Entity
from core.models import EntityInstance
from core.registry import EntityRegistry

from .aggregator import LogAggregator

log = logging.getLogger(__name__)


class WatchState(Enum):
    STOPPED = "stopped"
    WATCHING = "watching"


class FileTail:
    """
    Track the read offset of one file and return complete new lines.

    Attributes:
        path: File being tailed.
        offset: Current read position in bytes.
        partial: Undecoded bytes of the last line, waiting for its newline.
    """

    def __init__(self, path: Path, from_end: bool = True) -> None:
        self.path = path
        self.offset = 0
        self.partial = b""
        if from_end:
            try:
                self.offset = path.stat().st_size
            except OSError:
                self.offset = 0

    def read_new_lines(self) -> List[str]:
        """Read complete lines written since the last call."""
        try:
            size = self.path.stat().st_size
        except OSError:
            # File may have been removed between notifications
            return []

        if size < self.offset:
            log.info("%s was truncated; reading from the beginning", self.path)
            self.offset = 0
            self.partial = b""

        if size == self.offset:
            return []

        with self.path.open("rb") as f:
            f.seek(self.offset)
            data = f.read(size - self.offset)
        self.offset += len(data)

        # Split on raw bytes so a multi-byte character cut by a flush is decoded whole
        *complete, self.partial = (self.partial + data).split(b"\n")
        return [line.removesuffix(b"\r").decode("utf-8", errors="replace") for line in complete]


class Follower:
    """
    Follow one changeable path (a file, or a directory of files) on behalf of
    one instance. State machine: STOPPED -> WATCHING -> STOPPED.
    """

    def __init__(
        self,
        entity: Entity,
        instance: EntityInstance,
        target: Path,
        aggregator: LogAggregator,
        debounce_ms: int = 200,
        step_ms: int = 50,
    ) -> None:
        self.entity = entity
        self.instance = instance
        self.target = target
        self.aggregator = aggregator
        self.debounce_ms = debounce_ms
        self.step_ms = step_ms
        self.state = WatchState.STOPPED
        self._tails: Dict[Path, FileTail] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> bool:
        """Begin watching. Returns False (and stays STOPPED) if the target is missing."""
        if not self.target.exists():
            log.warning("Cannot watch %s for %r: path does not exist", self.target, self.entity.name)
            return False
        try:
            if self.target.is_dir():
                # Existing files continue from their end; new arrivals are read whole
                for child in sorted(self.target.iterdir()):
                    if child.is_file():
                        self._tails[child] = FileTail(child, from_end=True)
            else:
                self._tails[self.target] = FileTail(self.target, from_end=True)
        except OSError as exc:
            log.warning("Cannot watch %s for %r: %s", self.target, self.entity.name, exc)
            return False

        self.state = WatchState.WATCHING
        self._thread = threading.Thread(target=self._run, name=f"follow-{self.target.name}", daemon=True)
        self._thread.start()
        log.info("Watching %s for %r", self.target, self.entity.name)
        return True

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                log.warning("Follower for %s did not stop within %.1fs", self.target, timeout)
        self._thread = None
        with self._lock:
            self.state = WatchState.STOPPED
            self._tails.clear()

    def poll(self) -> int:
        """Read and insert everything new. Returns the number of records inserted."""
        with self._lock:
            if self.state is not WatchState.WATCHING:
                return 0
            if self.target.is_dir():
                self._discover_new_files()

            inserted = 0
            for tail in list(self._tails.values()):
                for line in tail.read_new_lines():
                    record = self._convert(line)
                    if record is None:
                        continue
                    self.aggregator.insert(self.instance, record)
                    inserted += 1
            if inserted:
                log.debug("Inserted %d live entries from %s", inserted, self.target)
            return inserted

    def _discover_new_files(self) -> None:
        try:
            children = sorted(self.target.iterdir())
        except OSError as exc:
            log.warning("Cannot list %s: %s", self.target, exc)
            return
        for child in children:
            if child not in self._tails and child.is_file():
                self._tails[child] = FileTail(child, from_end=False)

    def _convert(self, line: str):
        try:
            return self.entity.convert_line(line)
        except Exception as exc:
            log.debug("Dropping line from %s: %s", self.target, exc)
            return None

    def _run(self) -> None:
        try:
            for _changes in watch(
                self.target,
                watch_filter=None,
                debounce=self.debounce_ms,
                step=self.step_ms,
                stop_event=self._stop,
                recursive=False,
                raise_interrupt=False,
            ):
                self.poll()
        except Exception as exc:
            log.error("Watching %s failed, live update stopped for it: %s", self.target, exc)
        finally:
            with self._lock:
                self.state = WatchState.STOPPED


class LiveUpdateWatcher:
    """
    Manages one follower per (entity, instance) with a changeable path.

    Usage:
        watcher = LiveUpdateWatcher(registry, aggregator)
        watcher.enable()
        ...
        watcher.disable()
    """

    def __init__(
        self,
        registry: EntityRegistry,
        aggregator: LogAggregator,
        debounce_ms: int = 200,
        step_ms: int = 50,
        join_timeout: float = 2.0,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.debounce_ms = debounce_ms
        self.step_ms = step_ms
        self.join_timeout = join_timeout
        self._followers: Dict[Tuple[str, str], Follower] = {}

    @property
    def is_enabled(self) -> bool:
        return any(f.state is WatchState.WATCHING for f in self._followers.values())

    def enable(self) -> int:
        """
        Start following every changeable path not already followed.
        A follower that fails to start is logged and skipped. Returns the
        number of followers started by this call.
        """
        started = 0
        seen = set()
        for entity in self.registry:
            if entity.name in seen:
                continue
            seen.add(entity.name)
            for inst in self.aggregator.instances(entity.name):
                key = (entity.name, inst.id)
                if key in self._followers:
                    continue
                target = entity.changeable_path(inst.path)
                if target is None:
                    continue
                follower = Follower(entity, inst, Path(target), self.aggregator, self.debounce_ms, self.step_ms)
                if follower.start():
                    self._followers[key] = follower
                    started += 1
        log.info("Live update enabled: %d paths followed", len(self._followers))
        return started

    def poll(self) -> int:
        """Synchronously drain every follower; returns records inserted."""
        return sum(f.poll() for f in list(self._followers.values()))

    def disable(self) -> None:
        """Stop every follower. Safe to call when nothing is being watched."""
        followers = list(self._followers.values())
        self._followers.clear()
        for f in followers:
            f.stop(self.join_timeout)
        if followers:
            log.info("Live update disabled: %d followers stopped", len(followers))

    def states(self) -> Dict[Path, WatchState]:
        return {f.target: f.state for f in self._followers.values()}
