"""
Tests for joining extracted events into completed trades.
"""

import log_patterns
from trade_correlator import correlate
from trade_events import PnlUpdateEvent, TradeFillEvent, TradeKey, TradeSummaryEvent

from tests.fixtures.test_data import MAGIC_LINES_LOG, MAGIC_LINES_POINT_VALUE


def _fill(trade_id, date="2024-05-15", direction="LONG", entry=100.0):
    return TradeFillEvent(date, "09:30:00", TradeKey(date, trade_id), direction, entry, 0)


def _summary(trade_id, date="2024-05-15", direction="LONG", line="UP 1", high=105.0, low=99.0,
             max_profit=5.0, max_loss=-1.0):
    return TradeSummaryEvent(date, "09:45:00", TradeKey(date, trade_id), direction, line, 100.0,
                             high, low, max_profit, max_loss, 10)


def _pnl(trade_id, pnl, date="2024-05-15"):
    return PnlUpdateEvent(date, "09:45:00", TradeKey(date, trade_id), pnl, pnl)


class TestCorrelate:
    def setup_method(self):
        events = log_patterns.extract_all(MAGIC_LINES_LOG)
        self.result = correlate(
            events.fills,
            events.summaries,
            events.pnl_updates,
            events.current_trades,
            point_value=MAGIC_LINES_POINT_VALUE,
            sl_adjustments=events.sl_adjustments,
            tp_near_misses=events.tp_near_misses,
        )

    def test_fill_without_summary_is_dropped(self):
        assert len(self.result.trades) == 3
        assert self.result.dropped_fills == 1
        assert "3" not in [trade.trade_id for trade in self.result.trades]

    def test_trades_keep_fill_order(self):
        assert [(t.date, t.trade_id) for t in self.result.trades] == [
            ("2024-05-15", "1"),
            ("2024-05-15", "2"),
            ("2024-06-03", "1"),
        ]

    def test_winning_long_trade(self):
        trade = self.result.trades[0]

        assert trade.direction == "LONG"
        assert trade.line_label == "UP 1"
        assert trade.entry_price == 100.0
        assert trade.exit_price == 104.25
        assert trade.exit_reason == "Take Profit"
        assert trade.realized_pnl == 25.0
        assert trade.max_profit_dollars == 25.0
        assert trade.max_loss_dollars == -2.5
        assert trade.bars_held == 14
        assert trade.bars_since_last_trade == 5
        assert trade.sl_adjustment_count == 1
        assert trade.near_miss_count == 1
        assert trade.profit_efficiency == 1.0
        assert trade.is_win

    def test_exit_price_falls_back_to_extreme_for_direction(self):
        short_trade = self.result.trades[1]
        long_trade = self.result.trades[2]

        assert short_trade.exit_price == 101.0
        assert short_trade.exit_reason == ""
        assert long_trade.exit_price == 124.0

    def test_auxiliary_counts_are_per_trade(self):
        assert self.result.trades[1].sl_adjustment_count == 0
        assert self.result.trades[1].near_miss_count == 0
        # same sequence id, later date
        assert self.result.trades[2].sl_adjustment_count == 0


def test_missing_pnl_update_defaults_to_zero():
    result = correlate([_fill("1")], [_summary("1")], [], [])

    assert len(result.trades) == 1
    assert result.trades[0].realized_pnl == 0.0
    assert not result.trades[0].is_win
    assert not result.trades[0].is_loss


def test_later_pnl_update_supersedes_earlier():
    result = correlate([_fill("1")], [_summary("1")], [_pnl("1", 10.0), _pnl("1", 12.5)], [])
    assert result.trades[0].realized_pnl == 12.5


def test_point_value_scales_dollar_columns():
    result = correlate([_fill("1")], [_summary("1", max_profit=4.0, max_loss=-1.5)], [_pnl("1", 4.0)], [],
                       point_value=2.0)
    trade = result.trades[0]

    assert trade.max_profit_pts == 4.0
    assert trade.max_profit_dollars == 8.0
    assert trade.max_loss_dollars == -3.0
    assert trade.profit_efficiency == 0.5


def test_profit_efficiency_undefined_without_favourable_excursion():
    result = correlate([_fill("1")], [_summary("1", max_profit=0.0)], [_pnl("1", -5.0)], [])
    assert result.trades[0].profit_efficiency is None


def test_empty_input():
    result = correlate([], [], [], [])
    assert result.trades == []
    assert result.dropped_fills == 0


def test_repeated_fill_for_a_key_joins_only_once():
    result = correlate([_fill("1"), _fill("1", entry=101.0)], [_summary("1")], [_pnl("1", 25.0)], [])

    assert len(result.trades) == 1
    assert result.trades[0].entry_price == 100.0
    assert result.trades[0].realized_pnl == 25.0
    assert result.dropped_fills == 1
