import re
from dataclasses import dataclass, field
from typing import List

import log_patterns
import my_utils
from parsed_run import ParsedRun

CANONICAL_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class DaySummary:
    total_trades: int = 0
    total_pnl: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0


@dataclass
class DaySlice:
    """One trading day of a run: its raw log lines, trades and events."""
    date: str
    raw_lines: List[str] = field(default_factory=list)
    trades: list = field(default_factory=list)
    events: list = field(default_factory=list)
    summary: DaySummary = field(default_factory=DaySummary)


def extract_day_slice(raw_text: str, date: str, parsed_run: ParsedRun) -> DaySlice:
    """
    Collects everything a run logged on one date, for side-by-side day comparison.

    Args:
        raw_text: the run's original log text.
        date: canonical YYYY-MM-DD date.
        parsed_run: the run parsed from raw_text.

    Raises:
        ValueError: if date is not in YYYY-MM-DD form.
    """
    if not CANONICAL_DATE_PATTERN.match(date or ""):
        raise ValueError(f"Invalid date '{date}'. Expected YYYY-MM-DD")

    day = DaySlice(date=date)
    day.raw_lines = [line for line_date, line in log_patterns.iter_dated_lines(raw_text) if line_date == date]
    day.trades = [trade for trade in parsed_run.detailed_trades if trade.date == date]

    events = parsed_run.detailed_events
    day.events = sorted(
        (event for event in events.tp_near_misses + events.fill_near_misses + events.sl_adjustments
         if event.date == date),
        key=lambda event: event.time,
    )

    if day.trades:
        pnls = [trade.realized_pnl for trade in day.trades]
        day.summary = DaySummary(
            total_trades=len(pnls),
            total_pnl=my_utils.round_currency(sum(pnls)),
            winning_trades=sum(1 for pnl in pnls if pnl > 0),
            losing_trades=sum(1 for pnl in pnls if pnl < 0),
        )
    else:
        for bucket in parsed_run.daily_pnl:
            if bucket.date == date:
                day.summary = DaySummary(total_trades=bucket.trade_count, total_pnl=bucket.net_pnl)
                break
    return day
