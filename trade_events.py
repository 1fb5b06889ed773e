from collections import namedtuple

# (canonical date, per-log sequence id); unique within one run only
TradeKey = namedtuple("TradeKey", ["date", "trade_id"])

TradeFillEvent = namedtuple("TradeFillEvent", ["date", "time", "trade_key", "direction", "entry_price", "bars_since_last_trade"])

TradeSummaryEvent = namedtuple("TradeSummaryEvent", ["date", "time", "trade_key", "direction", "line_label", "entry_price", "high_price", "low_price", "max_profit_pts", "max_loss_pts", "bars_held"])

PnlUpdateEvent = namedtuple("PnlUpdateEvent", ["date", "time", "trade_key", "completed_trade_pnl", "cumulative_total_pnl"])

CurrentTradeEvent = namedtuple("CurrentTradeEvent", ["date", "time", "trade_key", "direction", "exit_price", "exit_reason"])

TpNearMissEvent = namedtuple("TpNearMissEvent", ["date", "time", "trade_key", "direction", "target", "closest_distance", "reason"])

FillNearMissEvent = namedtuple("FillNearMissEvent", ["date", "time", "trade_key", "direction", "line_label", "closest_distance"])

SlAdjustmentEvent = namedtuple("SlAdjustmentEvent", ["date", "time", "trade_key", "direction", "trigger", "adjustment"])
