import logging
from collections import OrderedDict, namedtuple
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import magic_lines_dialect
import my_utils
from daily_bucket import DailyBucket
from metrics_names import MetricNames
from parsed_run import CustomMetric, DetailedEvents, ParsedRun
from run_aggregator import RunAggregator, max_drawdown

LOGGER = logging.getLogger(__name__)

MISSING = "MISSING"

DateOverlap = namedtuple("DateOverlap", ["run1", "run2", "overlap"])


class MergeError(ValueError):
    """Raised when runs cannot be merged; carries the failed validation."""

    def __init__(self, validation):
        super().__init__("; ".join(validation.errors))
        self.validation = validation


@dataclass
class MergeValidation:
    errors: List[str] = field(default_factory=list)
    overlaps: List[DateOverlap] = field(default_factory=list)
    # parameter name -> [(run id, value or MISSING), ...]
    parameter_differences: Dict[str, List[Tuple[object, str]]] = field(default_factory=dict)
    merged_date_range: Optional[Tuple[str, str]] = None

    @property
    def can_merge(self) -> bool:
        return not self.errors


def validate_merge(runs: Sequence[ParsedRun], run_ids: Optional[Sequence] = None) -> MergeValidation:
    """
    Checks that runs can be merged: at least two, one strategy, no two date ranges
    overlapping and identical parameters.

    Args:
        runs: the runs to merge.
        run_ids: labels used in the report, defaults to 1..N.
    """
    run_ids = list(run_ids) if run_ids is not None else list(range(1, len(runs) + 1))
    validation = MergeValidation()

    if len(runs) < 2:
        validation.errors.append("At least 2 runs are required for merging")
        return validation

    strategies = {run.strategy_name for run in runs}
    if len(strategies) > 1:
        validation.errors.append(f"Cannot merge runs from different strategies: {', '.join(sorted(strategies))}")
        return validation

    date_ranges = [(run_id, run.date_range()) for run_id, run in zip(run_ids, runs)]
    for i, (run1, range1) in enumerate(date_ranges):
        for run2, range2 in date_ranges[i + 1:]:
            if range1 is None or range2 is None:
                continue
            if range1[0] <= range2[1] and range2[0] <= range1[1]:
                overlap_start = max(range1[0], range2[0])
                overlap_end = min(range1[1], range2[1])
                validation.overlaps.append(DateOverlap(run1, run2, f"{overlap_start} to {overlap_end}"))
    if validation.overlaps:
        validation.errors.append("Cannot merge runs with overlapping date ranges")
        return validation

    parameter_maps = [run.parameter_map() for run in runs]
    parameter_names = sorted({name for params in parameter_maps for name in params})
    for name in parameter_names:
        values = [(run_id, params.get(name, MISSING)) for run_id, params in zip(run_ids, parameter_maps)]
        if len({value for _, value in values}) > 1:
            validation.parameter_differences[name] = values
    if validation.parameter_differences:
        validation.errors.append("Cannot merge runs with different parameters")
        return validation

    known_ranges = [date_range for _, date_range in date_ranges if date_range is not None]
    if known_ranges:
        validation.merged_date_range = (min(r[0] for r in known_ranges), max(r[1] for r in known_ranges))
    return validation


def merge_daily_buckets(runs: Sequence[ParsedRun]) -> List[DailyBucket]:
    merged: Dict[str, DailyBucket] = {}
    for run in runs:
        for bucket in run.daily_pnl:
            target = merged.get(bucket.date)
            if target is None:
                merged[bucket.date] = DailyBucket(
                    date=bucket.date,
                    net_pnl=bucket.net_pnl,
                    trade_count=bucket.trade_count,
                    highest_intraday_running_pnl=bucket.highest_intraday_running_pnl,
                    lowest_intraday_running_pnl=bucket.lowest_intraday_running_pnl,
                )
            else:
                target.net_pnl = my_utils.round_currency(target.net_pnl + bucket.net_pnl)
                target.trade_count += bucket.trade_count
    return [merged[date] for date in sorted(merged)]


def merge_custom_metrics(runs: Sequence[ParsedRun]) -> List[CustomMetric]:
    """Combines same-named metrics with MetricNames.merge_rule, keeping first-seen order."""
    grouped = OrderedDict()
    for run in runs:
        for metric in run.custom_metrics:
            if metric.value is None:
                continue
            entry = grouped.setdefault(metric.name, {'values': [], 'description': metric.description})
            entry['values'].append(metric.value)

    merged = []
    for name, entry in grouped.items():
        values = entry['values']
        rule = MetricNames.merge_rule(name)
        if rule == "mean":
            value = round(sum(values) / len(values), 4)
        elif rule == "max":
            value = max(values)
        elif rule == "min":
            value = min(values)
        else:
            value = sum(values)
        merged.append(CustomMetric(name, value, entry['description']))
    return merged


def rebuild_trade_metrics(runs: Sequence[ParsedRun], trades, events: DetailedEvents, aggregate) -> List[CustomMetric]:
    """
    Recomputes the trade-derived metrics of a merge from the merged trades, so
    per-line values agree with the merged line statistics. Metrics that cannot be
    derived from trades are still combined with merge_custom_metrics.
    """
    dropped_fills = sum(
        metric.value or 0
        for run in runs
        for metric in run.custom_metrics
        if metric.name == MetricNames.INCOMPLETE_TRADES
    )
    rebuilt = (magic_lines_dialect.build_custom_metrics(trades, events, dropped_fills)
               + magic_lines_dialect.line_metrics(aggregate))
    rebuilt_names = {metric.name for metric in rebuilt}
    carried = [
        metric for metric in merge_custom_metrics(runs)
        if metric.name not in rebuilt_names and not MetricNames.is_line_metric(metric.name)
    ]
    return rebuilt + carried


def merge_runs(
    runs: Sequence[ParsedRun],
    run_name: Optional[str] = None,
    run_description: Optional[str] = None,
    run_ids: Optional[Sequence] = None,
) -> ParsedRun:
    """
    Builds one run out of several runs of the same strategy.

    Summary metrics, line statistics and trade-derived custom metrics are recomputed
    with RunAggregator over the concatenated trades. Runs without detailed trades
    (report dialects) fall back to their daily buckets and merge_custom_metrics.

    Raises:
        MergeError: if validate_merge rejects the runs.
    """
    validation = validate_merge(runs, run_ids)
    if not validation.can_merge:
        raise MergeError(validation)

    labels = list(run_ids) if run_ids is not None else list(range(1, len(runs) + 1))
    trades = sorted(
        (trade for run in runs for trade in run.detailed_trades),
        key=lambda trade: (trade.date, trade.time),
    )
    daily_pnl = merge_daily_buckets(runs)
    events = DetailedEvents(
        tp_near_misses=[e for run in runs for e in run.detailed_events.tp_near_misses],
        fill_near_misses=[e for run in runs for e in run.detailed_events.fill_near_misses],
        sl_adjustments=[e for run in runs for e in run.detailed_events.sl_adjustments],
    )

    merged = ParsedRun(
        strategy_name=runs[0].strategy_name,
        net_pnl=0.0,
        run_name=run_name or f"Merged {runs[0].run_name or runs[0].strategy_name}",
        run_description=run_description or f"Merged from runs: {', '.join(str(label) for label in labels)}",
        daily_pnl=daily_pnl,
        parameters=list(runs[0].parameters),
        custom_metrics=merge_custom_metrics(runs),
        detailed_events=events,
        detailed_trades=trades,
    )

    if all(run.detailed_trades for run in runs):
        aggregate = RunAggregator(trades).aggregate()
        merged.net_pnl = aggregate.net_pnl
        merged.total_trades = aggregate.total_trades
        merged.win_rate = aggregate.win_rate
        merged.profit_factor = aggregate.profit_factor
        merged.max_drawdown = aggregate.max_drawdown
        merged.sharpe_ratio = aggregate.sharpe_ratio
        merged.daily_pnl = aggregate.daily_buckets
        merged.line_statistics = aggregate.line_stats
        merged.custom_metrics = rebuild_trade_metrics(runs, trades, events, aggregate)
    else:
        LOGGER.info("Merging runs without detailed trades; metrics come from daily P&L")
        merged.net_pnl = my_utils.round_currency(sum(run.net_pnl for run in runs))
        counts = [run.total_trades for run in runs]
        if all(count is not None for count in counts):
            merged.total_trades = sum(counts)
            rates = [run.win_rate for run in runs]
            if merged.total_trades and all(rate is not None for rate in rates):
                wins = sum(rate * count for rate, count in zip(rates, counts))
                merged.win_rate = my_utils.round_rate(wins / merged.total_trades)
        merged.max_drawdown = my_utils.round_currency(max_drawdown([bucket.net_pnl for bucket in daily_pnl]))

    return merged
