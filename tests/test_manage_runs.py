"""
Tests for the manage_runs CLI.
"""

import json

import pytest

import magic_lines_dialect
import manage_runs
import sample_strategy_dialect
from run_store import RunStore

from tests.fixtures.test_data import MAGIC_LINES_LATER_LOG, MAGIC_LINES_LOG, SAMPLE_STRATEGY_REPORT


class TestManageRuns:
    @pytest.fixture(autouse=True)
    def setup_store(self, tmp_path):
        self.tmp_path = tmp_path
        self.database = str(tmp_path / "runs.db")
        self.store = RunStore(self.database)
        self.magic_id = self.store.save_parsed_run(
            magic_lines_dialect.extract(MAGIC_LINES_LOG, 5.0), raw_data=MAGIC_LINES_LOG)
        self.later_id = self.store.save_parsed_run(
            magic_lines_dialect.extract(MAGIC_LINES_LATER_LOG, 5.0), raw_data=MAGIC_LINES_LATER_LOG)
        self.sample_id = self.store.save_parsed_run(
            sample_strategy_dialect.extract(SAMPLE_STRATEGY_REPORT), raw_data=SAMPLE_STRATEGY_REPORT)

    def run_cli(self, *args):
        return manage_runs.main(["--database", self.database] + [str(arg) for arg in args])

    def test_list(self, capsys):
        assert self.run_cli("list") == 0
        output = capsys.readouterr().out
        assert "MagicLinesScalper" in output
        assert "2024-05-15..2024-06-03" in output

        assert self.run_cli("list", "--strategy", "Sample Strategy") == 0
        assert "MagicLinesScalper" not in capsys.readouterr().out

    def test_list_empty(self, capsys):
        empty = str(self.tmp_path / "empty.db")
        assert manage_runs.main(["--database", empty, "list"]) == 1
        assert "No runs found." in capsys.readouterr().out

    def test_show(self, capsys):
        assert self.run_cli("show", self.magic_id) == 0
        output = capsys.readouterr().out
        assert "RTH Magic Lines" in output
        assert "Trade Analysis by Line" in output
        assert "2024-06-03\t8.00\t1 trades" in output

    def test_show_missing_run(self, capsys):
        assert self.run_cli("show", 999) == 1
        assert "Run 999 not found" in capsys.readouterr().out

    def test_merge(self, capsys):
        assert self.run_cli("merge", self.magic_id, self.later_id, "--name", "May-July") == 0
        assert "into run" in capsys.readouterr().out

        merged = [run for run in self.store.list_runs() if run["run_name"] == "May-July"]
        assert len(merged) == 1
        assert merged[0]["total_trades"] == 4
        assert merged[0]["net_pnl"] == 35.0

    def test_merge_rejected(self, capsys):
        assert self.run_cli("merge", self.magic_id, self.sample_id) == 2
        assert "Cannot merge" in capsys.readouterr().out

    def test_merge_overlap_reported(self, capsys):
        assert self.run_cli("merge", self.magic_id, self.magic_id) == 2
        assert "overlap 2024-05-15 to 2024-06-03" in capsys.readouterr().out

    def test_baseline(self):
        assert self.run_cli("baseline", self.magic_id) == 0
        assert self.store.get_baseline("MagicLinesScalper")["id"] == self.magic_id

        assert self.run_cli("baseline", self.magic_id, "--unset") == 0
        assert self.store.get_baseline("MagicLinesScalper") is None

    def test_export_and_import(self, capsys):
        output = self.tmp_path / "export" / "magic.json"
        assert self.run_cli("export", self.magic_id, output) == 0
        assert json.loads(output.read_text())["run_name"] == "RTH Magic Lines"

        assert self.run_cli("import", output) == 0
        assert len(self.store.list_runs("MagicLinesScalper")) == 3

    def test_import_invalid_payload(self, capsys):
        path = self.tmp_path / "bad.json"
        path.write_text(json.dumps({"strategy_name": "X"}))

        assert self.run_cli("import", path) == 2
        assert self.run_cli("import", self.tmp_path / "missing.json") == 1

    def test_delete(self):
        assert self.run_cli("delete", self.sample_id) == 0
        assert self.store.list_runs("Sample Strategy") == []
        assert self.run_cli("delete", self.sample_id) == 1

    def test_day(self, capsys):
        assert self.run_cli("day", self.magic_id, "2024-05-15") == 0
        output = capsys.readouterr().out
        assert "2 trades, PnL 15.00 (1W/1L)" in output
        assert "[FILL NEAR MISS]" in output

    def test_day_rejects_bad_date(self, capsys):
        assert self.run_cli("day", self.magic_id, "5/15/2024") == 2
        assert "Expected YYYY-MM-DD" in capsys.readouterr().out

    def test_notes(self, capsys):
        assert self.run_cli("notes", "MagicLinesScalper", "Widen X1 next run") == 0
        capsys.readouterr()

        assert self.run_cli("notes", "MagicLinesScalper") == 0
        assert capsys.readouterr().out.strip() == "Widen X1 next run"
