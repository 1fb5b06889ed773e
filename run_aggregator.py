import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import my_utils
from daily_bucket import DailyBucket
from line_stats import LineStatistics
from reconstructed_trade import ReconstructedTrade


@dataclass
class RunAggregate:
    """Summary metrics of one trade sequence, already rounded for storage and display."""
    daily_buckets: List[DailyBucket] = field(default_factory=list)
    net_pnl: float = 0.0
    total_trades: int = 0
    win_rate: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    profit_factor: Optional[float] = None
    max_drawdown: float = 0.0
    sharpe_ratio: Optional[float] = None
    line_stats: List[LineStatistics] = field(default_factory=list)


def profit_factor(gross_profit: float, gross_loss: float) -> Optional[float]:
    """gross_profit / gross_loss; None (undefined) when there is no gross loss."""
    return my_utils.safe_ratio(gross_profit, gross_loss)


def max_drawdown(pnls: List[float]) -> float:
    """Largest peak-to-trough fall of the cumulative P&L. The peak starts at 0."""
    peak = 0.0
    running_total = 0.0
    worst = 0.0
    for pnl in pnls:
        running_total += pnl
        peak = max(peak, running_total)
        worst = max(worst, peak - running_total)
    return worst


def sharpe_ratio(pnls: List[float]) -> Optional[float]:
    """
    Per-trade Sharpe ratio: mean / population standard deviation.

    Returns None with fewer than two trades or when every trade has the same P&L.
    """
    if len(pnls) < 2:
        return None
    mean = sum(pnls) / len(pnls)
    variance = sum((pnl - mean) ** 2 for pnl in pnls) / len(pnls)
    std_dev = math.sqrt(variance)
    if std_dev == 0:
        return None
    return mean / std_dev


def build_daily_buckets(trades: List[ReconstructedTrade]) -> List[DailyBucket]:
    """
    Folds trades into one bucket per date, sorted by date. The running P&L restarts
    at zero each day and its extremes are taken after each trade.
    """
    buckets: Dict[str, DailyBucket] = {}
    running: Dict[str, float] = defaultdict(float)
    for trade in trades:
        bucket = buckets.get(trade.date)
        if bucket is None:
            bucket = buckets[trade.date] = DailyBucket(date=trade.date)
        bucket.net_pnl += trade.realized_pnl
        bucket.trade_count += 1
        running[trade.date] += trade.realized_pnl
        value = running[trade.date]
        if bucket.highest_intraday_running_pnl is None or value > bucket.highest_intraday_running_pnl:
            bucket.highest_intraday_running_pnl = value
        if bucket.lowest_intraday_running_pnl is None or value < bucket.lowest_intraday_running_pnl:
            bucket.lowest_intraday_running_pnl = value

    return [buckets[date] for date in sorted(buckets)]


class RunAggregator:
    """
    Derives run-level and per-line statistics from a chronologically ordered list
    of ReconstructedTrade objects. Rounding happens once, in aggregate().

    Args:
        trades (List[ReconstructedTrade]): completed trades in log order.
    """

    def __init__(self, trades: List[ReconstructedTrade]):
        if not isinstance(trades, list) or not all(isinstance(t, ReconstructedTrade) for t in trades):
            raise TypeError("Input 'trades' must be a list of ReconstructedTrade objects.")
        self.trades = trades

    def analyze_by_line(self) -> Dict[str, LineStatistics]:
        """Groups trades by line label; unrounded, sorted by label."""
        line_accumulator = defaultdict(lambda: {
            'count': 0, 'win_count': 0, 'loss_count': 0,
            'net_pnl': 0.0, 'gross_profit': 0.0, 'gross_loss': 0.0,
        })

        for trade in self.trades:
            accumulator = line_accumulator[trade.line_label]
            accumulator['count'] += 1
            accumulator['net_pnl'] += trade.realized_pnl
            if trade.is_win:
                accumulator['win_count'] += 1
                accumulator['gross_profit'] += trade.realized_pnl
            elif trade.is_loss:
                accumulator['loss_count'] += 1
                accumulator['gross_loss'] += abs(trade.realized_pnl)

        results: Dict[str, LineStatistics] = {}
        for line_label, accumulator in line_accumulator.items():
            total_trades = accumulator['count']
            results[line_label] = LineStatistics(
                line_label=line_label,
                total_trades=total_trades,
                winning_trades=accumulator['win_count'],
                losing_trades=accumulator['loss_count'],
                win_rate=accumulator['win_count'] / total_trades,
                net_pnl=accumulator['net_pnl'],
                avg_pnl=accumulator['net_pnl'] / total_trades,
                gross_profit=accumulator['gross_profit'],
                gross_loss=accumulator['gross_loss'],
                profit_factor=profit_factor(accumulator['gross_profit'], accumulator['gross_loss']),
            )

        return dict(sorted(results.items()))

    def aggregate(self) -> RunAggregate:
        pnls = [trade.realized_pnl for trade in self.trades]
        total_trades = len(pnls)
        gross_profit = sum(pnl for pnl in pnls if pnl > 0)
        gross_loss = abs(sum(pnl for pnl in pnls if pnl < 0))
        winning_trades = sum(1 for pnl in pnls if pnl > 0)

        daily_buckets = [
            DailyBucket(
                date=bucket.date,
                net_pnl=my_utils.round_currency(bucket.net_pnl),
                trade_count=bucket.trade_count,
                highest_intraday_running_pnl=my_utils.round_currency(bucket.highest_intraday_running_pnl),
                lowest_intraday_running_pnl=my_utils.round_currency(bucket.lowest_intraday_running_pnl),
            )
            for bucket in build_daily_buckets(self.trades)
        ]

        line_stats = [
            LineStatistics(
                line_label=stats.line_label,
                total_trades=stats.total_trades,
                winning_trades=stats.winning_trades,
                losing_trades=stats.losing_trades,
                win_rate=my_utils.round_rate(stats.win_rate),
                net_pnl=my_utils.round_currency(stats.net_pnl),
                avg_pnl=my_utils.round_currency(stats.avg_pnl),
                gross_profit=my_utils.round_currency(stats.gross_profit),
                gross_loss=my_utils.round_currency(stats.gross_loss),
                profit_factor=my_utils.round_ratio(stats.profit_factor),
            )
            for stats in self.analyze_by_line().values()
        ]

        sharpe = sharpe_ratio(pnls)
        return RunAggregate(
            daily_buckets=daily_buckets,
            net_pnl=my_utils.round_currency(sum(pnls)),
            total_trades=total_trades,
            win_rate=my_utils.round_rate(winning_trades / total_trades) if total_trades > 0 else 0.0,
            gross_profit=my_utils.round_currency(gross_profit),
            gross_loss=my_utils.round_currency(gross_loss),
            profit_factor=my_utils.round_ratio(profit_factor(gross_profit, gross_loss)),
            max_drawdown=my_utils.round_currency(max_drawdown(pnls)),
            sharpe_ratio=round(sharpe, 4) if sharpe is not None else None,
            line_stats=line_stats,
        )

    def print_table(self, line_stats: List[LineStatistics]):
        print("\n--- Trade Analysis by Line ---")
        if not line_stats:
            print("\nNo trades to analyze.")
            return

        headers = ["Line", "Count", "Win Rate", "Profit Factor", "Net PnL", "Avg PnL"]
        widths = [16, 7, 10, 15, 11, 10]
        header_line = " | ".join(
            f"{header:<{width}}" if i == 0 else f"{header:>{width}}"
            for i, (header, width) in enumerate(zip(headers, widths))
        )
        separator = '-' * len(header_line)

        print(separator)
        print(header_line)
        print(separator)
        for stats in line_stats:
            pf_str = f"{stats.profit_factor:.2f}" if stats.profit_factor is not None else "n/a"
            values = [
                stats.line_label,
                str(stats.total_trades),
                f"{stats.win_rate:.1%}",
                pf_str,
                f"{stats.net_pnl:.2f}",
                f"{stats.avg_pnl:.2f}",
            ]
            print(" | ".join(
                f"{value:<{width}}" if i == 0 else f"{value:>{width}}"
                for i, (value, width) in enumerate(zip(values, widths))
            ))
        print(separator)
