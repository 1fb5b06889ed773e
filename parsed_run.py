from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional

import my_utils
from daily_bucket import DailyBucket
from line_stats import LineStatistics
from reconstructed_trade import ReconstructedTrade

RunParameter = namedtuple("RunParameter", ["name", "value", "type"])

CustomMetric = namedtuple("CustomMetric", ["name", "value", "description"])


@dataclass
class DetailedEvents:
    tp_near_misses: list = field(default_factory=list)
    fill_near_misses: list = field(default_factory=list)
    sl_adjustments: list = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.tp_near_misses or self.fill_near_misses or self.sl_adjustments)


@dataclass
class ParsedRun:
    """
    Everything extracted from one strategy log dump. A plain value: it holds no
    reference to the text it came from or to the store it is written to.
    """
    strategy_name: str
    net_pnl: float
    run_name: Optional[str] = None
    run_description: Optional[str] = None
    total_trades: Optional[int] = None
    win_rate: Optional[float] = None
    profit_factor: Optional[float] = None
    max_drawdown: Optional[float] = None
    sharpe_ratio: Optional[float] = None
    daily_pnl: List[DailyBucket] = field(default_factory=list)
    parameters: List[RunParameter] = field(default_factory=list)
    custom_metrics: List[CustomMetric] = field(default_factory=list)
    detailed_events: DetailedEvents = field(default_factory=DetailedEvents)
    detailed_trades: List[ReconstructedTrade] = field(default_factory=list)
    line_statistics: List[LineStatistics] = field(default_factory=list)

    def trading_dates(self) -> List[str]:
        return [bucket.date for bucket in self.daily_pnl]

    def date_range(self):
        return my_utils.get_date_range(self.trading_dates())

    def parameter_map(self) -> dict:
        return {param.name: param.value for param in self.parameters}
