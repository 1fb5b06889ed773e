import logging
from collections import Counter, namedtuple
from typing import Dict, Iterable, List

import my_utils
from constants import CONST
from reconstructed_trade import ReconstructedTrade

LOGGER = logging.getLogger(__name__)

CorrelationResult = namedtuple("CorrelationResult", ["trades", "dropped_fills"])


def _index_by_key(events: Iterable) -> Dict:
    """Last event wins when a key repeats, matching a later log line superseding an earlier one."""
    index = {}
    for event in events:
        if event.trade_key is not None:
            index[event.trade_key] = event
    return index


def _count_by_key(events: Iterable) -> Counter:
    return Counter(event.trade_key for event in events if event.trade_key is not None)


def _fallback_exit(summary) -> float:
    return summary.high_price if summary.direction == CONST.LONG else summary.low_price


def correlate(
    fills,
    summaries,
    pnl_updates,
    current_trades,
    point_value: float = CONST.DEFAULT_POINT_VALUE,
    sl_adjustments=(),
    tp_near_misses=(),
) -> CorrelationResult:
    """
    Joins fill, summary, P&L update and current-trade events that share a trade key
    into completed trades.

    Args:
        fills: TradeFillEvent list in log order; the output keeps this order.
            Only the first fill of a key becomes a trade.
        summaries: TradeSummaryEvent list. A fill without a summary is dropped.
        pnl_updates: PnlUpdateEvent list. Realized P&L is 0 when a trade has none.
        current_trades: CurrentTradeEvent list supplying exit price and reason.
        point_value: Currency per instrument point for the max profit/loss columns.
        sl_adjustments: SlAdjustmentEvent list, counted per trade.
        tp_near_misses: TpNearMissEvent list, counted per trade.

    Returns:
        CorrelationResult(trades, dropped_fills).
    """
    summary_index = _index_by_key(summaries)
    pnl_index = _index_by_key(pnl_updates)
    current_index = _index_by_key(current_trades)
    sl_counts = _count_by_key(sl_adjustments)
    near_miss_counts = _count_by_key(tp_near_misses)

    trades: List[ReconstructedTrade] = []
    consumed_keys = set()
    dropped_fills = 0
    for fill in fills:
        summary = summary_index.get(fill.trade_key)
        # a key joins one trade; a repeated fill (restarted ID sequence) is dropped
        if summary is None or fill.trade_key in consumed_keys:
            dropped_fills += 1
            continue
        consumed_keys.add(fill.trade_key)

        pnl_update = pnl_index.get(fill.trade_key)
        realized_pnl = pnl_update.completed_trade_pnl if pnl_update is not None else 0.0

        current = current_index.get(fill.trade_key)
        if current is not None:
            exit_price, exit_reason = current.exit_price, current.exit_reason
        else:
            exit_price, exit_reason = _fallback_exit(summary), ""

        max_profit_dollars = summary.max_profit_pts * point_value
        max_loss_dollars = summary.max_loss_pts * point_value
        profit_efficiency = realized_pnl / max_profit_dollars if max_profit_dollars > 0 else None

        trades.append(
            ReconstructedTrade(
                trade_id=fill.trade_key.trade_id,
                date=fill.date,
                time=fill.time,
                direction=fill.direction,
                line_label=summary.line_label,
                entry_price=fill.entry_price,
                exit_price=exit_price,
                high_price=summary.high_price,
                low_price=summary.low_price,
                realized_pnl=realized_pnl,
                max_profit_pts=summary.max_profit_pts,
                max_loss_pts=summary.max_loss_pts,
                max_profit_dollars=my_utils.round_currency(max_profit_dollars),
                max_loss_dollars=my_utils.round_currency(max_loss_dollars),
                bars_held=summary.bars_held,
                bars_since_last_trade=fill.bars_since_last_trade,
                exit_reason=exit_reason,
                sl_adjustment_count=sl_counts.get(fill.trade_key, 0),
                near_miss_count=near_miss_counts.get(fill.trade_key, 0),
                profit_efficiency=my_utils.round_rate(profit_efficiency),
            )
        )

    if dropped_fills:
        LOGGER.debug("Dropped %d fill(s) with no matching or already used trade summary", dropped_fills)
    return CorrelationResult(trades, dropped_fills)
