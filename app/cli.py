# app/cli.py
"""
LogLens command line: headless entry point for analyzing a diagnostic bundle.

Flow:
1) Load config and configure logging.
2) Open the bundle (scan, merge, build filters).
3) Apply entity filters, print the merged log and optionally export it.
4) Optionally analyze one artifact folder or follow live updates.

Run:
    loglens /path/to/bundle
    loglens /path/to/bundle --hide "Performance Snapshot" --json out.json
    loglens /path/to/bundle --artifact threadDumps-freeze-20230101-101500
    loglens /path/to/bundle --follow
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List, Optional

from core.errors import NoArtifactsFound, ScanRootError, UnknownArtifactError
from core.models import LogRecord
from infra.config_loader import load_config
from infra.exporters import JsonLogWriter, LogCsvWriter
from infra.logging_config import configure_logging
from services.orchestrator import Orchestrator

log = logging.getLogger("app")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loglens",
        description="Merge a diagnostic bundle into one chronological log.",
    )
    parser.add_argument("folder", help="bundle folder to analyze")
    parser.add_argument("--temp", action="store_true", help="delete the folder when done (extracted archive)")
    parser.add_argument("--hide", action="append", default=[], metavar="ENTITY",
                        help="hide every instance of an entity, e.g. 'Performance Snapshot' (repeatable)")
    parser.add_argument("--json", metavar="PATH", help="write the visible records as JSON")
    parser.add_argument("--csv", metavar="PATH", help="write the visible records as CSV")
    parser.add_argument("--artifact", metavar="KEY", help="analyze one thread dump folder instead of printing the log")
    parser.add_argument("--follow", action="store_true", help="keep running and merge lines appended to live logs")
    parser.add_argument("--quiet", action="store_true", help="do not print the merged log")
    return parser


def format_record(record: LogRecord) -> str:
    ts = record.timestamp.isoformat(sep=" ", timespec="milliseconds") if record.timestamp else "-"
    return f"{ts} {record.severity.value:<6} [{record.entity_name}] {record.message}"


def _hide_entities(orchestrator: Orchestrator, names: List[str]) -> None:
    states = {}
    for name in names:
        entity = orchestrator.registry.by_name(name)
        if entity is None:
            raise KeyError(name)
        states.update({inst.id: False for inst in orchestrator.aggregator.instances(entity.name)})
    orchestrator.set_filters(states)


def _visible_records(orchestrator: Orchestrator) -> List[LogRecord]:
    visible = set(orchestrator.filters_index.visible_ids())
    return [r for r in orchestrator.logs() if r.instance_id in visible]


def _print_artifact(orchestrator: Orchestrator, key: str) -> None:
    analysis = orchestrator.artifact(key)
    print(f"{analysis.folder}")
    for f in analysis.files:
        print(f"  {f.name}: {f.thread_count} threads")


def _follow(orchestrator: Orchestrator, interval: float = 1.0) -> None:
    started = orchestrator.enable_live_update()
    print(f"Following {started} live paths; press Ctrl+C to stop.")
    seen = len(orchestrator.aggregator)
    try:
        while True:
            time.sleep(interval)
            count = len(orchestrator.aggregator)
            if count != seen:
                print(f"+{count - seen} live entries ({count} total)")
                seen = count
    except KeyboardInterrupt:
        pass
    finally:
        orchestrator.disable_live_update()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config()
    log_file = configure_logging(cfg.get("log_level", "INFO"), cfg.get("log_dir"))
    log.debug("Logging to %s", log_file)

    orchestrator = Orchestrator(config=cfg)
    try:
        try:
            stats = orchestrator.open(args.folder, is_temp=args.temp)
        except ScanRootError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        except NoArtifactsFound as exc:
            print(f"error: {exc}", file=sys.stderr)
            print(f"{len(orchestrator.other_files())} unrecognized files", file=sys.stderr)
            return 1

        print(
            f"Scanned {stats.entries} entries: {stats.claimed} recognized, "
            f"{stats.other} other, {stats.records} log entries"
        )

        try:
            _hide_entities(orchestrator, args.hide)
        except KeyError as exc:
            print(f"error: unknown entity {exc}; known: {', '.join(orchestrator.registry.names())}", file=sys.stderr)
            return 2

        if args.artifact:
            try:
                _print_artifact(orchestrator, args.artifact)
            except UnknownArtifactError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return 2
            return 0

        records = _visible_records(orchestrator)
        if not args.quiet:
            for record in records:
                print(format_record(record))
        if args.json:
            JsonLogWriter(args.json).write(records)
        if args.csv:
            LogCsvWriter(args.csv).write(records)

        if args.follow:
            _follow(orchestrator)
        return 0
    finally:
        orchestrator.clear()


if __name__ == "__main__":
    sys.exit(main())
