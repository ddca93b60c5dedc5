from datetime import datetime

from bundle_helpers import BundleTestCase, app_log_line, seconds, write_app_log

from core.models import Severity
from entities.application_log import ApplicationLogEntity
from entities.builtin import default_registry
from entities.crash_reports import CrashReportEntity
from entities.snapshots import SnapshotEntity, snapshot_timestamp
from entities.thread_dumps import ThreadDumpsEntity, count_threads


class ApplicationLogEntityTests(BundleTestCase):
    def setUp(self) -> None:
        self.entity = ApplicationLogEntity()

    def test_convert_line_parses_fields(self) -> None:
        record = self.entity.convert_line(
            "2023-01-01 10:00:00,250 [  12345]   WARN - #c.i.o.a.Foo - Slow operation"
        )
        self.assertIsNotNone(record)
        assert record is not None
        self.assertEqual(record.severity, Severity.WARN)
        self.assertEqual(record.timestamp, datetime(2023, 1, 1, 10, 0, 0, 250000))
        self.assertEqual(record.message, "#c.i.o.a.Foo - Slow operation")

    def test_convert_line_rejects_foreign_format(self) -> None:
        self.assertIsNone(self.entity.convert_line("\tat java.base/java.lang.Thread.run(Thread.java:833)"))
        self.assertIsNone(self.entity.convert_line(""))

    def test_severe_maps_to_error(self) -> None:
        record = self.entity.convert_line(app_log_line(seconds(0)[0], "boom", level="SEVERE"))
        assert record is not None
        self.assertEqual(record.severity, Severity.ERROR)

    def test_continuation_lines_join_previous_entry(self) -> None:
        root = self.make_bundle()
        path = root / "idea.log"
        path.write_text(
            "preamble without timestamp\n"
            + app_log_line(seconds(0)[0], "Exception in plugin", level="ERROR") + "\n"
            + "java.lang.IllegalStateException: bad\n"
            + "\tat com.example.Plugin.run(Plugin.java:10)\n"
            + app_log_line(seconds(1)[0], "recovered") + "\n",
            encoding="utf-8",
        )

        records = self.entity.convert(path)

        self.assertEqual(len(records), 2)
        self.assertEqual(
            records[0].message,
            "#c.i.Test - Exception in plugin\njava.lang.IllegalStateException: bad\n"
            "\tat com.example.Plugin.run(Plugin.java:10)",
        )
        self.assertEqual(records[1].message, "#c.i.Test - recovered")

    def test_matches_log_files_and_ignores_lock_files(self) -> None:
        root = self.make_bundle()
        log_file = write_app_log(root / "idea.log", seconds(0))
        lock = root / "idea.log.lck"
        lock.write_text("", encoding="utf-8")
        (root / "sub.log").mkdir()

        self.assertTrue(self.entity.matches(log_file))
        self.assertFalse(self.entity.matches(root / "sub.log"))
        self.assertTrue(self.entity.is_ignored(lock))
        self.assertEqual(self.entity.changeable_path(log_file), log_file)


class ThreadDumpsEntityTests(BundleTestCase):
    def setUp(self) -> None:
        self.entity = ThreadDumpsEntity()

    def test_folder_becomes_single_freeze_record(self) -> None:
        folder = self.make_bundle() / "threadDumps-freeze-20230101-120000-IU-231.1"
        folder.mkdir()

        self.assertTrue(self.entity.matches(folder))
        records = self.entity.convert(folder)

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].severity, Severity.FREEZE)
        self.assertEqual(records[0].timestamp, datetime(2023, 1, 1, 12, 0, 0))
        self.assertIn(folder.name, records[0].message)
        self.assertEqual(self.entity.display_name(folder), "TD-120000")

    def test_files_named_like_dumps_are_not_folders(self) -> None:
        dump = self.make_bundle() / "threadDump-20230101-120001.txt"
        dump.write_text('"main" prio=5\n', encoding="utf-8")
        self.assertFalse(self.entity.matches(dump))

    def test_missing_stamp_gives_no_timestamp(self) -> None:
        folder = self.make_bundle() / "threadDumps-manual"
        folder.mkdir()
        self.assertIsNone(self.entity.convert(folder)[0].timestamp)
        self.assertEqual(self.entity.display_name(folder), "threadDumps-manual")

    def test_analyze_reads_files_in_name_order(self) -> None:
        folder = self.make_bundle() / "threadDumps-freeze-20230101-120000"
        folder.mkdir()
        (folder / "threadDump-20230101-120005.txt").write_text('"AWT-EventQueue-0"\n"main"\n', encoding="utf-8")
        (folder / "threadDump-20230101-120001.txt").write_text('"main"\n  at Foo\n', encoding="utf-8")
        (folder / "nested").mkdir()

        analysis = self.entity.analyze(folder)

        self.assertEqual(analysis.file_names, ["threadDump-20230101-120001.txt", "threadDump-20230101-120005.txt"])
        self.assertEqual([f.thread_count for f in analysis.files], [1, 2])
        self.assertEqual(analysis.content_of("threadDump-20230101-120001.txt"), '"main"\n  at Foo\n')
        self.assertIsNone(analysis.content_of("missing.txt"))

    def test_count_threads(self) -> None:
        self.assertEqual(count_threads('"a" daemon\n  at x\n\n"b"\n'), 2)


class CrashReportEntityTests(BundleTestCase):
    def test_report_becomes_error_record(self) -> None:
        path = self.make_bundle() / "java_error_in_idea_4242.log"
        path.write_text(
            "#\n# A fatal error has been detected by the Java Runtime Environment:\n#\n"
            "# Problematic frame:\n# C  [libc.so.6+0x1234]  memcpy+0x10\n#\n"
            "Time: Sun Jan  1 12:30:00 2023 CET elapsed time: 42.1 seconds (0d 0h 0m 42s)\n",
            encoding="utf-8",
        )
        entity = CrashReportEntity()

        self.assertTrue(entity.matches(path))
        records = entity.convert(path)

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].severity, Severity.ERROR)
        self.assertEqual(records[0].timestamp, datetime(2023, 1, 1, 12, 30, 0))
        self.assertEqual(records[0].message, "JVM crash: java_error_in_idea_4242.log (C  [libc.so.6+0x1234]  memcpy+0x10)")
        self.assertIsNone(entity.changeable_path(path))

    def test_plain_logs_are_not_crash_reports(self) -> None:
        path = write_app_log(self.make_bundle() / "idea.log", seconds(0))
        self.assertFalse(CrashReportEntity().matches(path))


class SnapshotEntityTests(BundleTestCase):
    def test_snapshot_is_hidden_by_default(self) -> None:
        path = self.make_bundle() / "IU-231-2023-01-01-12-00-00.snapshot"
        path.write_bytes(b"\x00\x01")
        entity = SnapshotEntity()

        self.assertTrue(entity.matches(path))
        self.assertFalse(entity.default_visible(path))
        record = entity.convert(path)[0]
        self.assertEqual(record.timestamp, datetime(2023, 1, 1, 12, 0, 0))
        self.assertEqual(record.severity, Severity.INFO)

    def test_snapshot_timestamp_formats(self) -> None:
        self.assertEqual(snapshot_timestamp("heap-20230102-030405.hprof"), datetime(2023, 1, 2, 3, 4, 5))
        self.assertEqual(snapshot_timestamp("cpu-2023-01-02_03-04-05.snapshot"), datetime(2023, 1, 2, 3, 4, 5))
        self.assertIsNone(snapshot_timestamp("heap.hprof"))


class DefaultRegistryTests(BundleTestCase):
    def test_builtin_entities_in_registration_order(self) -> None:
        self.assertEqual(
            default_registry().names(),
            ["Application Log", "Thread Dumps", "Crash Report", "Performance Snapshot"],
        )

    def test_max_artifact_bytes_reaches_thread_dumps(self) -> None:
        registry = default_registry({"max_artifact_bytes": 10})
        entity = registry.by_name("Thread Dumps")
        self.assertEqual(entity.max_file_bytes, 10)
