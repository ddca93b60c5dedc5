from bundle_helpers import BundleTestCase, seconds, write_app_log

from entities.builtin import default_registry
from services.aggregator import LogAggregator
from services.filters import FilterIndex
from services.scanner import DirectoryScanner
from utils.path_utils import path_hash


class FilterIndexTests(BundleTestCase):
    def setUp(self) -> None:
        self.root = self.make_bundle()
        write_app_log(self.root / "idea.log", seconds(0))
        write_app_log(self.root / "b" / "build.log", seconds(1))
        (self.root / "threadDumps-freeze-20230101-120000").mkdir()
        (self.root / "heap-20230101-120000.hprof").write_bytes(b"\x00")

        self.registry = default_registry()
        self.agg = LogAggregator()
        DirectoryScanner(self.registry, self.agg).scan(self.root)
        self.index = FilterIndex()
        self.groups = self.index.build(self.registry, self.agg)

    def test_groups_sorted_by_entity_and_label(self) -> None:
        self.assertEqual(
            [g.entity_name for g in self.groups],
            ["Application Log", "Performance Snapshot", "Thread Dumps"],
        )
        app = self.groups[0]
        self.assertEqual([e.label for e in app.entries], ["build.log", "idea.log"])
        self.assertEqual(self.groups[2].entries[0].label, "TD-120000")
        self.assertEqual(self.groups[2].entries[0].color, "#faa379")

    def test_default_visibility_comes_from_entity(self) -> None:
        snapshot = self.groups[1].entries[0]
        self.assertFalse(snapshot.checked)
        self.assertTrue(all(e.checked for e in self.groups[0].entries))

    def test_set_visibility_by_id(self) -> None:
        target = path_hash(self.root / "idea.log")

        self.assertTrue(self.index.set_visibility(target, False))

        entry = next(e for g in self.index.groups() for e in g.entries if e.id == target)
        self.assertFalse(entry.checked)
        self.assertNotIn(target, self.index.visible_ids())

    def test_unknown_id_is_ignored(self) -> None:
        before = [(e.id, e.checked) for g in self.index.groups() for e in g.entries]
        self.assertFalse(self.index.set_visibility("stale-id", False))
        after = [(e.id, e.checked) for g in self.index.groups() for e in g.entries]
        self.assertEqual(before, after)

    def test_apply_many(self) -> None:
        snapshot_id = path_hash(self.root / "heap-20230101-120000.hprof")
        matched = self.index.apply({snapshot_id: True, "stale-id": False})
        self.assertEqual(matched, 1)
        self.assertIn(snapshot_id, self.index.visible_ids())

    def test_clear(self) -> None:
        self.index.clear()
        self.assertTrue(self.index.is_empty())
        self.assertEqual(self.index.groups(), [])
