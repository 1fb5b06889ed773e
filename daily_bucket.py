from dataclasses import dataclass
from typing import Optional


@dataclass
class DailyBucket:
    """P&L of one trading day. Intraday extremes are of the running P&L re-based to zero each day."""
    date: str
    net_pnl: float = 0.0
    trade_count: int = 0
    highest_intraday_running_pnl: Optional[float] = None
    lowest_intraday_running_pnl: Optional[float] = None
