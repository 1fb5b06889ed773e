from dataclasses import dataclass
from typing import Optional


# --- Statistics for the trades triggered by one configured price line ---
@dataclass
class LineStatistics:
    """Represents the calculated statistics for a single trading line."""
    line_label: str
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    net_pnl: float = 0.0
    avg_pnl: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    profit_factor: Optional[float] = None  # None when the line has no losing trades
