"""
Tests for run-level and per-line aggregation.
"""

import pytest

from run_aggregator import RunAggregator, build_daily_buckets, max_drawdown, profit_factor, sharpe_ratio

from tests.fixtures.test_data import make_trade


class TestRunAggregator:
    def setup_method(self):
        self.trades = [
            make_trade(25.0, time="09:35:00", line_label="UP 1", trade_id="1"),
            make_trade(-10.0, time="10:05:00", line_label="DOWN 1", trade_id="2", direction="SHORT"),
        ]
        self.aggregate = RunAggregator(self.trades).aggregate()

    def test_one_winner_one_loser(self):
        assert self.aggregate.total_trades == 2
        assert self.aggregate.net_pnl == 15.0
        assert self.aggregate.win_rate == 0.5
        assert self.aggregate.gross_profit == 25.0
        assert self.aggregate.gross_loss == 10.0
        assert self.aggregate.profit_factor == 2.5
        assert self.aggregate.max_drawdown == 10.0

    def test_daily_bucket_tracks_intraday_extremes(self):
        assert len(self.aggregate.daily_buckets) == 1
        bucket = self.aggregate.daily_buckets[0]
        assert bucket.date == "2024-05-15"
        assert bucket.net_pnl == 15.0
        assert bucket.trade_count == 2
        assert bucket.highest_intraday_running_pnl == 25.0
        assert bucket.lowest_intraday_running_pnl == 15.0

    def test_line_stats_sorted_by_label(self):
        labels = [stats.line_label for stats in self.aggregate.line_stats]
        assert labels == ["DOWN 1", "UP 1"]

        down, up = self.aggregate.line_stats
        assert down.total_trades == 1
        assert down.losing_trades == 1
        assert down.win_rate == 0.0
        assert down.gross_loss == 10.0
        assert down.profit_factor == 0.0
        assert up.winning_trades == 1
        assert up.win_rate == 1.0
        assert up.avg_pnl == 25.0
        assert up.profit_factor is None

    def test_line_counts_add_up_to_total(self):
        assert sum(stats.total_trades for stats in self.aggregate.line_stats) == self.aggregate.total_trades
        assert sum(stats.net_pnl for stats in self.aggregate.line_stats) == pytest.approx(self.aggregate.net_pnl)

    def test_empty_trade_list(self):
        aggregate = RunAggregator([]).aggregate()

        assert aggregate.total_trades == 0
        assert aggregate.net_pnl == 0.0
        assert aggregate.win_rate == 0.0
        assert aggregate.profit_factor is None
        assert aggregate.max_drawdown == 0.0
        assert aggregate.sharpe_ratio is None
        assert aggregate.daily_buckets == []
        assert aggregate.line_stats == []

    def test_rejects_non_trade_input(self):
        with pytest.raises(TypeError):
            RunAggregator([{"realized_pnl": 1.0}])
        with pytest.raises(TypeError):
            RunAggregator(tuple(self.trades))

    def test_breakeven_trade_is_neither_win_nor_loss(self):
        aggregate = RunAggregator(self.trades + [make_trade(0.0, time="11:00:00")]).aggregate()

        assert aggregate.total_trades == 3
        assert aggregate.win_rate == 0.3333
        up = [stats for stats in aggregate.line_stats if stats.line_label == "UP 1"][0]
        assert up.winning_trades == 1
        assert up.losing_trades == 0

    def test_values_are_rounded_once(self):
        trades = [make_trade(0.1), make_trade(0.2), make_trade(-0.05)]
        aggregate = RunAggregator(trades).aggregate()

        assert aggregate.net_pnl == 0.25
        assert aggregate.profit_factor == 6.0

    def test_print_table(self, capsys):
        RunAggregator(self.trades).print_table(self.aggregate.line_stats)
        output = capsys.readouterr().out

        assert "Trade Analysis by Line" in output
        assert "DOWN 1" in output
        assert "n/a" in output

    def test_print_table_without_trades(self, capsys):
        RunAggregator([]).print_table([])
        assert "No trades to analyze." in capsys.readouterr().out


class TestMetricFunctions:
    def test_profit_factor_undefined_without_losses(self):
        assert profit_factor(100.0, 0.0) is None
        assert profit_factor(0.0, 50.0) == 0.0
        assert profit_factor(75.0, 50.0) == 1.5

    def test_max_drawdown_peak_starts_at_zero(self):
        assert max_drawdown([-10.0, -5.0]) == 15.0
        assert max_drawdown([10.0, -4.0, 6.0, -12.0, 3.0]) == 12.0
        assert max_drawdown([5.0, 5.0]) == 0.0
        assert max_drawdown([]) == 0.0

    def test_sharpe_ratio(self):
        assert sharpe_ratio([10.0, -10.0, 30.0]) == pytest.approx(10.0 / 16.32993, rel=1e-4)

    def test_sharpe_ratio_degenerate_cases(self):
        assert sharpe_ratio([]) is None
        assert sharpe_ratio([10.0]) is None
        assert sharpe_ratio([5.0, 5.0, 5.0]) is None

    def test_build_daily_buckets_resets_running_pnl_per_day(self):
        trades = [
            make_trade(-5.0, date="2024-05-14", time="09:30:00"),
            make_trade(20.0, date="2024-05-14", time="10:00:00"),
            make_trade(7.0, date="2024-05-15", time="09:30:00"),
            make_trade(-9.0, date="2024-05-15", time="09:45:00"),
        ]
        buckets = build_daily_buckets(trades)

        assert [b.date for b in buckets] == ["2024-05-14", "2024-05-15"]
        assert buckets[0].highest_intraday_running_pnl == 15.0
        assert buckets[0].lowest_intraday_running_pnl == -5.0
        assert buckets[1].highest_intraday_running_pnl == 7.0
        assert buckets[1].lowest_intraday_running_pnl == -2.0
        assert sum(b.net_pnl for b in buckets) == 13.0

    def test_buckets_sorted_even_when_trades_are_not(self):
        trades = [make_trade(1.0, date="2024-06-03"), make_trade(2.0, date="2024-05-15")]
        assert [b.date for b in build_daily_buckets(trades)] == ["2024-05-15", "2024-06-03"]
