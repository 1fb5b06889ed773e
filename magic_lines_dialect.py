"""
MagicLinesScalper log dialect.

Every event type is extracted once, the events are joined into trades by
TradeKey, and the trades are aggregated into a ParsedRun.
"""

from typing import List

import log_patterns
import my_utils
from constants import CONST
from log_patterns import ParameterSpec, parameter_pattern
from metrics_names import MetricNames
from parsed_run import CustomMetric, DetailedEvents, ParsedRun
from run_aggregator import RunAggregate, RunAggregator
from streak import Streak
from trade_correlator import correlate

STRATEGY_NAME = "MagicLinesScalper"
DETECTION_KEYWORDS = ("MagicLinesScalper", "Magic Lines", "RTH Magic Lines")

NUMBER = r"(\d+(?:\.\d+)?)"
BOOLEAN = r"(True|False)"

PARAMETER_SPECS = [
    # Main
    ParameterSpec("Trade Quantity", parameter_pattern(r"Trade Quantity:[ \t]*(\d+)"), "number"),
    ParameterSpec("Max Gain", parameter_pattern(r"Max Gain:[ \t]*\$(\d+)"), "number"),
    ParameterSpec("Max Loss", parameter_pattern(r"Max Loss:[ \t]*\$(\d+)"), "number"),
    ParameterSpec("Max Consecutive Losses", parameter_pattern(r"Max Consecutive Losses:[ \t]*(\d+)"), "number"),
    ParameterSpec("Loss Cut Off", parameter_pattern(r"Loss Cut Off:[ \t]*\$(\d+)"), "number"),
    ParameterSpec("Full Take Profit", parameter_pattern(rf"Full Take Profit:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("Full Stop Loss", parameter_pattern(rf"Full Stop Loss:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    # Entry logic
    ParameterSpec("Min Distance From Line", parameter_pattern(rf"Min Distance From Line:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("Max Distance From Line", parameter_pattern(rf"Max Distance From Line:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("Entry Offset", parameter_pattern(rf"Entry Offset:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("Line Cross Bar Count", parameter_pattern(r"Line Cross Bar Count:[ \t]*(\d+)"), "number"),
    ParameterSpec("Upside Short Trades", parameter_pattern(rf"Upside Short Trades:[ \t]*{BOOLEAN}"), "boolean"),
    ParameterSpec("Downside Long Trades", parameter_pattern(rf"Downside Long Trades:[ \t]*{BOOLEAN}"), "boolean"),
    # Position management
    ParameterSpec("Dynamic Trim", parameter_pattern(rf"Dynamic Trim:[ \t]*{BOOLEAN}"), "boolean"),
    ParameterSpec("Trim Percent", parameter_pattern(r"Trim Percent:[ \t]*(\d+)%"), "number"),
    ParameterSpec("Trim Take Profit", parameter_pattern(rf"Trim Take Profit:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("SL Adjustment", parameter_pattern(rf"SL Adjustment:[ \t]*{BOOLEAN}"), "boolean"),
    ParameterSpec("X1", parameter_pattern(rf"X1:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("X2", parameter_pattern(rf"X2:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    ParameterSpec("L1", parameter_pattern(r"L1:[ \t]*([+-]?\d+(?:\.\d+)?)[ \t]*pts"), "number"),
    ParameterSpec("L2", parameter_pattern(rf"L2:[ \t]*{NUMBER}[ \t]*pts"), "number"),
    # Session
    ParameterSpec("Start Time", parameter_pattern(r"Start Time:[ \t]*(\d{2}:\d{2})"), "string"),
    ParameterSpec("End Time", parameter_pattern(r"End Time:[ \t]*(\d{2}:\d{2})"), "string"),
    # Lines
    ParameterSpec("Upside Levels", parameter_pattern(r"Upside Levels:[ \t]*([\d., \t]+)"), "string"),
    ParameterSpec("Downside Levels", parameter_pattern(r"Downside Levels:[ \t]*([\d., \t]+)"), "string"),
    ParameterSpec("Mini Mode", parameter_pattern(rf"Mini Mode:[ \t]*{BOOLEAN}"), "boolean"),
    ParameterSpec("Instrument", parameter_pattern(r"Instrument:[ \t]*(\w+)"), "string"),
]


def can_handle(text: str) -> bool:
    return any(keyword in text for keyword in DETECTION_KEYWORDS)


def _metric(name, value) -> CustomMetric:
    return CustomMetric(name, value, MetricNames.DESCRIPTIONS.get(name))


def build_custom_metrics(trades, events, dropped_fills: int) -> List[CustomMetric]:
    near_misses = len(events.tp_near_misses) + len(events.fill_near_misses)
    total_bars = sum(trade.bars_held for trade in trades)
    avg_duration = total_bars / len(trades) if trades else 0.0

    metrics = [
        _metric(MetricNames.NEAR_MISSES, near_misses),
        _metric(MetricNames.SL_ADJUSTMENTS, len(events.sl_adjustments)),
        _metric(MetricNames.AVG_TRADE_DURATION, round(avg_duration, 2)),
        _metric(MetricNames.INCOMPLETE_TRADES, dropped_fills),
    ]

    if trades:
        streak = Streak()
        for trade in trades:
            streak.process(trade.realized_pnl)
        pnls = [trade.realized_pnl for trade in trades]
        metrics.extend([
            _metric(MetricNames.BEST_TRADE, my_utils.round_currency(max(pnls))),
            _metric(MetricNames.WORST_TRADE, my_utils.round_currency(min(pnls))),
            _metric(MetricNames.MAX_CONSECUTIVE_LOSSES, streak.max_consecutive_losses),
            _metric(MetricNames.MAX_CONSECUTIVE_WINS, streak.max_consecutive_wins),
        ])
    return metrics


def line_metrics(aggregate: RunAggregate) -> List[CustomMetric]:
    """Flattens per-line statistics into '<line> - <stat>' metrics for the store."""
    metrics = []
    for stats in aggregate.line_stats:
        values = {
            MetricNames.LINE_TOTAL_TRADES: stats.total_trades,
            MetricNames.LINE_WIN_RATE: stats.win_rate,
            MetricNames.LINE_NET_PNL: stats.net_pnl,
            MetricNames.LINE_AVG_PNL: stats.avg_pnl,
            MetricNames.LINE_GROSS_PROFIT: stats.gross_profit,
            MetricNames.LINE_GROSS_LOSS: stats.gross_loss,
            MetricNames.LINE_PROFIT_FACTOR: stats.profit_factor,
        }
        for stat in MetricNames.get_line_stat_names():
            if values[stat] is None:
                continue
            metrics.append(CustomMetric(
                MetricNames.line_metric_name(stats.line_label, stat),
                values[stat],
                f"{stat} for trades on line {stats.line_label}",
            ))
    return metrics


def extract(text: str, point_value: float = CONST.DEFAULT_POINT_VALUE) -> ParsedRun:
    events = log_patterns.extract_all(text)
    trades, dropped_fills = correlate(
        events.fills,
        events.summaries,
        events.pnl_updates,
        events.current_trades,
        point_value=point_value,
        sl_adjustments=events.sl_adjustments,
        tp_near_misses=events.tp_near_misses,
    )
    aggregate = RunAggregator(trades).aggregate()
    detailed_events = DetailedEvents(
        tp_near_misses=list(events.tp_near_misses),
        fill_near_misses=list(events.fill_near_misses),
        sl_adjustments=list(events.sl_adjustments),
    )

    return ParsedRun(
        strategy_name=STRATEGY_NAME,
        run_name=log_patterns.extract_run_name(text) or STRATEGY_NAME,
        net_pnl=aggregate.net_pnl,
        total_trades=aggregate.total_trades,
        win_rate=aggregate.win_rate,
        profit_factor=aggregate.profit_factor,
        max_drawdown=aggregate.max_drawdown,
        sharpe_ratio=aggregate.sharpe_ratio,
        daily_pnl=aggregate.daily_buckets,
        parameters=log_patterns.extract_parameters(text, PARAMETER_SPECS),
        custom_metrics=build_custom_metrics(trades, detailed_events, dropped_fills) + line_metrics(aggregate),
        detailed_events=detailed_events,
        detailed_trades=trades,
        line_statistics=aggregate.line_stats,
    )
