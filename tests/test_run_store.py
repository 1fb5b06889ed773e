"""
Tests for the SQLite run store.
"""

import pytest

import magic_lines_dialect
import sample_strategy_dialect
from run_store import RunStore

from tests.fixtures.test_data import MAGIC_LINES_LOG, SAMPLE_STRATEGY_REPORT


class TestRunStore:
    def setup_method(self):
        self.magic_run = magic_lines_dialect.extract(MAGIC_LINES_LOG, 5.0)
        self.sample_run = sample_strategy_dialect.extract(SAMPLE_STRATEGY_REPORT)

    @pytest.fixture
    def store(self, tmp_path):
        return RunStore(str(tmp_path / "data" / "runs.db"))

    def test_creates_database_directory(self, tmp_path, store):
        assert (tmp_path / "data" / "runs.db").exists()

    def test_save_and_load_round_trip(self, store):
        run_id = store.save_parsed_run(self.magic_run, raw_data=MAGIC_LINES_LOG, source_sha256="abc")
        loaded = store.load_parsed_run(run_id)

        assert loaded.strategy_name == self.magic_run.strategy_name
        assert loaded.net_pnl == self.magic_run.net_pnl
        assert loaded.daily_pnl == self.magic_run.daily_pnl
        assert loaded.parameters == self.magic_run.parameters
        assert loaded.custom_metrics == self.magic_run.custom_metrics
        assert loaded.detailed_events == self.magic_run.detailed_events
        assert loaded.detailed_trades == self.magic_run.detailed_trades
        assert loaded.line_statistics == self.magic_run.line_statistics
        assert store.get_raw_data(run_id) == MAGIC_LINES_LOG

    def test_run_without_trades(self, store):
        run_id = store.save_parsed_run(self.sample_run)
        loaded = store.load_parsed_run(run_id)

        assert loaded.total_trades == 42
        assert loaded.detailed_trades == []
        assert loaded.line_statistics == []
        assert [b.date for b in loaded.daily_pnl] == ["2024-05-13", "2024-05-14", "2024-05-15"]

    def test_list_runs_with_date_range(self, store):
        magic_id = store.save_parsed_run(self.magic_run)
        store.save_parsed_run(self.sample_run)

        runs = store.list_runs()
        assert [run["strategy_name"] for run in runs] == ["MagicLinesScalper", "Sample Strategy"]
        assert runs[0]["id"] == magic_id
        assert runs[0]["start_date"] == "2024-05-15"
        assert runs[0]["end_date"] == "2024-06-03"

        assert len(store.list_runs("Sample Strategy")) == 1
        assert store.list_runs("Unknown") == []

    def test_strategies_are_shared_between_runs(self, store):
        store.save_parsed_run(self.sample_run)
        store.save_parsed_run(self.sample_run)

        strategies = store.list_strategies()
        assert len(strategies) == 1
        assert strategies[0]["run_count"] == 2

    def test_strategy_notes(self, store):
        strategy_id = store.get_or_create_strategy("MagicLinesScalper")

        assert store.get_strategy_notes(strategy_id) is None
        store.set_strategy_notes(strategy_id, "Tighter stops from June")
        assert store.get_strategy_notes(strategy_id) == "Tighter stops from June"
        with pytest.raises(KeyError):
            store.set_strategy_notes(999, "missing")

    def test_find_run_by_sha256(self, store):
        run_id = store.save_parsed_run(self.sample_run, source_sha256="feed")
        assert store.find_run_by_sha256("feed") == run_id
        assert store.find_run_by_sha256("beef") is None

    def test_single_baseline_per_strategy(self, store):
        first = store.save_parsed_run(self.sample_run)
        second = store.save_parsed_run(self.sample_run)

        store.set_baseline(first)
        store.set_baseline(second)
        assert store.get_baseline("Sample Strategy")["id"] == second
        assert store.get_run(first)["is_baseline"] == 0

        store.set_baseline(second, False)
        assert store.get_baseline("Sample Strategy") is None

    def test_delete_cascades(self, store):
        run_id = store.save_parsed_run(self.magic_run)
        store.delete_run(run_id)

        with pytest.raises(KeyError):
            store.get_run(run_id)
        assert store.get_daily_buckets(run_id) == []
        assert store.get_trade_summaries(run_id) == []
        assert store.get_metrics(run_id) == []
        with pytest.raises(KeyError):
            store.delete_run(run_id)

    def test_failed_save_rolls_back(self, store):
        self.magic_run.detailed_trades[0].trade_id = object()

        with pytest.raises(Exception):
            store.save_parsed_run(self.magic_run)
        assert store.list_runs() == []

    def test_individual_inserts(self, store):
        strategy_id = store.get_or_create_strategy("Sample Strategy")
        run_id = store.insert_run(strategy_id, self.sample_run)
        store.insert_daily_buckets(run_id, self.sample_run.daily_pnl)
        store.insert_parameters(run_id, self.sample_run.parameters)
        store.insert_metrics(run_id, self.sample_run.custom_metrics)

        assert store.get_daily_buckets(run_id) == self.sample_run.daily_pnl
        assert store.get_parameters(run_id) == self.sample_run.parameters
        assert store.get_metrics(run_id) == self.sample_run.custom_metrics
