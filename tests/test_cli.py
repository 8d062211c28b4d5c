import json
import tempfile
import unittest
from pathlib import Path

from dicepattern.cli import filter_history, main, quick_summary
from dicepattern.core.data.schema import build_observation
from dicepattern.core.data.store import ObservationStore


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.db = str(self.tmp / "cli.db")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *argv: str) -> None:
        main(["--db", self.db, *argv])

    def _stored(self):
        store = ObservationStore(self.db)
        try:
            return store.load()
        finally:
            store.close()

    def test_add_and_remove_persist(self) -> None:
        self._run("add", "10", "20")
        self._run("add", "15", "45")
        stored = self._stored()
        self.assertEqual([(o.first_value, o.second_value) for o in stored], [(10, 20), (15, 45)])

        self._run("remove", str(stored[0].id))
        self.assertEqual([o.second_value for o in self._stored()], [45])

    def test_invalid_add_exits_without_saving(self) -> None:
        with self.assertRaises(SystemExit):
            self._run("add", "5", "20")
        self.assertEqual(self._stored(), [])

    def test_clear_requires_confirmation(self) -> None:
        self._run("add", "10", "20")
        with self.assertRaises(SystemExit):
            self._run("clear")
        self.assertEqual(len(self._stored()), 1)
        self._run("clear", "--yes")
        self.assertEqual(self._stored(), [])

    def test_read_only_commands_run(self) -> None:
        for first, second in ((10, 20), (15, 45), (50, 8), (30, 31), (6, 54), (22, 12)):
            self._run("add", str(first), str(second))
        self._run("history", "--sort", "asc", "--search", "k")
        self._run("predict", "--steps", "3")
        self._run("matrix")
        self._run("stats")
        self._run("insights")
        self.assertEqual(len(self._stored()), 6)

    def test_negative_history_limit_rejected(self) -> None:
        self._run("add", "10", "20")
        with self.assertRaises(SystemExit):
            self._run("history", "--limit", "-1")
        self._run("history", "--limit", "0")

    def test_export_then_import(self) -> None:
        self._run("add", "10", "20")
        self._run("add", "50", "8")
        export_path = self.tmp / "backup.json"
        self._run("export", str(export_path))

        self._run("clear", "--yes")
        self._run("import", str(export_path))
        self.assertEqual([o.second_value for o in self._stored()], [20, 8])

    def test_bad_import_leaves_store_untouched(self) -> None:
        self._run("add", "10", "20")
        bad = self.tmp / "bad.json"
        bad.write_text(json.dumps([{"id": 1, "first_value": 10, "second_value": 80}]), encoding="utf-8")
        with self.assertRaises(SystemExit):
            self._run("import", str(bad))
        self.assertEqual([o.second_value for o in self._stored()], [20])


class FilterHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = [
            build_observation(1, 10, 20),
            build_observation(2, 15, 45),
            build_observation(3, 50, 8),
        ]

    def test_ranks_newest_first(self) -> None:
        rows = filter_history(self.log)
        self.assertEqual([(rank, obs.id) for rank, obs in rows], [(1, 3), (2, 2), (3, 1)])

    def test_ascending(self) -> None:
        rows = filter_history(self.log, sort="asc")
        self.assertEqual([(rank, obs.id) for rank, obs in rows], [(3, 1), (2, 2), (1, 3)])

    def test_search_matches_class_and_state(self) -> None:
        self.assertEqual([obs.id for _, obs in filter_history(self.log, search="extreme")], [2])
        self.assertEqual([obs.id for _, obs in filter_history(self.log, search="k")], [3, 1])


class QuickSummaryTests(unittest.TestCase):
    def test_empty_log(self) -> None:
        self.assertEqual(quick_summary([]), ("0", "-", "-", "-"))

    def test_reports_share_and_last_entry(self) -> None:
        log = [
            build_observation(1, 10, 20),
            build_observation(2, 25, 45),
            build_observation(3, 50, 8),
        ]
        self.assertEqual(quick_summary(log), ("3", "67% K", "↓ falling", "LOW"))


if __name__ == "__main__":
    unittest.main()
