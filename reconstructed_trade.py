from dataclasses import dataclass
from typing import Optional


# --- One completed trade rebuilt from its fill, summary and P&L lines ---
@dataclass
class ReconstructedTrade:
    """
    A single completed trade. Prices are instrument prices, the *_pts fields are
    points as logged, and every other money field is currency (points times the
    point value in effect when the run was parsed).
    """
    trade_id: str
    date: str                 # canonical YYYY-MM-DD
    time: str                 # fill time, HH:MM:SS
    direction: str            # LONG or SHORT
    line_label: str
    entry_price: float
    exit_price: float
    high_price: float
    low_price: float
    realized_pnl: float       # 0 when the log never emitted a P&L update for the trade
    max_profit_pts: float
    max_loss_pts: float
    max_profit_dollars: float
    max_loss_dollars: float
    bars_held: int
    bars_since_last_trade: int = 0
    exit_reason: str = ""
    sl_adjustment_count: int = 0
    near_miss_count: int = 0
    profit_efficiency: Optional[float] = None

    @property
    def is_win(self) -> bool:
        return self.realized_pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.realized_pnl < 0
