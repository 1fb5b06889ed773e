"""
Sample Strategy log dialect: a results report with labelled headline metrics
and one P&L line per day. It carries no per-trade events.
"""

import re
from typing import List

import my_utils
from constants import CONST
from daily_bucket import DailyBucket
from log_patterns import ParameterSpec, extract_number, extract_parameters, extract_string
from metrics_names import MetricNames
from parsed_run import CustomMetric, ParsedRun

STRATEGY_NAME = "Sample Strategy"
DETECTION_KEYWORDS = ("sample strategy", "strategy: sample")

FLAGS = re.IGNORECASE | re.MULTILINE
AMOUNT = r"([+-]?\$?[+-]?[\d,]+(?:\.\d+)?)"

NET_PNL_PATTERN = re.compile(rf"net pnl[:\s]+{AMOUNT}", FLAGS)
TOTAL_TRADES_PATTERN = re.compile(r"total trades[:\s]+(\d+)", FLAGS)
WIN_RATE_PATTERN = re.compile(r"win rate[:\s]+(\d+(?:\.\d+)?)[ \t]*%", FLAGS)
PROFIT_FACTOR_PATTERN = re.compile(r"profit factor[:\s]+(\d+(?:\.\d+)?)", FLAGS)
MAX_DRAWDOWN_PATTERN = re.compile(rf"max drawdown[:\s]+{AMOUNT}", FLAGS)
SHARPE_RATIO_PATTERN = re.compile(r"sharpe ratio[:\s]+([+-]?\d+(?:\.\d+)?)", FLAGS)
RUN_NAME_PATTERN = re.compile(r"^[ \t]*run(?: name)?[ \t]*[: \t][ \t]*(.+?)[ \t]*\r?$", FLAGS)

PARAMETER_SPECS = [
    ParameterSpec("Period", re.compile(r"period[:\s]+(\d+)", FLAGS), "number"),
    ParameterSpec("Stop Loss", re.compile(r"stop loss[:\s]+(\d+(?:\.\d+)?)", FLAGS), "number"),
    ParameterSpec("Take Profit", re.compile(r"take profit[:\s]+(\d+(?:\.\d+)?)", FLAGS), "number"),
    ParameterSpec("Time Frame", re.compile(r"time frame[ \t]*:?[ \t]*(.+?)[ \t]*\r?$", FLAGS), "string"),
    ParameterSpec("Enabled", re.compile(r"enabled[:\s]+(true|false)", FLAGS), "boolean"),
]

METRIC_PATTERNS = [
    (MetricNames.NEAR_MISSES, re.compile(r"near misses[:\s]+(\d+)", FLAGS), "Number of near miss trades"),
    (MetricNames.AVG_TRADE_DURATION, re.compile(r"avg trade duration[:\s]+(\d+(?:\.\d+)?)", FLAGS),
     "Average trade duration in minutes"),
    (MetricNames.CONSECUTIVE_LOSSES, re.compile(r"consecutive losses[:\s]+(\d+)", FLAGS), "Maximum consecutive losses"),
]

# 2024-05-15: $125.50 (3 trades)
DAILY_PNL_PATTERN = re.compile(
    r"^[ \t]*(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{1,2}-\d{1,2})[ \t]*:[ \t]*" + AMOUNT +
    r"(?:[ \t]*\((\d+)[ \t]*trades?\))?[ \t]*\r?$",
    FLAGS,
)


def can_handle(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in DETECTION_KEYWORDS)


def extract_daily_pnl(text: str) -> List[DailyBucket]:
    """Daily lines in either date form; a date listed twice is summed into one bucket."""
    buckets = {}
    for match in DAILY_PNL_PATTERN.finditer(text):
        date = my_utils.normalize_date(match.group(1))
        bucket = buckets.setdefault(date, DailyBucket(date=date))
        bucket.net_pnl = my_utils.round_currency(bucket.net_pnl + my_utils.parse_float(match.group(2)))
        bucket.trade_count += my_utils.parse_int(match.group(3))
    return [buckets[date] for date in sorted(buckets)]


def extract_custom_metrics(text: str) -> List[CustomMetric]:
    metrics = []
    for name, pattern, description in METRIC_PATTERNS:
        value = extract_number(text, pattern)
        if value is not None:
            metrics.append(CustomMetric(name, value, description))
    return metrics


def extract(text: str, point_value: float = CONST.DEFAULT_POINT_VALUE) -> ParsedRun:
    """point_value is accepted for a uniform handler signature; this report is already in currency."""
    total_trades = extract_number(text, TOTAL_TRADES_PATTERN)
    win_rate = extract_number(text, WIN_RATE_PATTERN)
    max_drawdown = extract_number(text, MAX_DRAWDOWN_PATTERN)

    return ParsedRun(
        strategy_name=STRATEGY_NAME,
        run_name=extract_string(text, RUN_NAME_PATTERN),
        net_pnl=extract_number(text, NET_PNL_PATTERN) or 0.0,
        total_trades=int(total_trades) if total_trades is not None else None,
        win_rate=my_utils.round_rate(win_rate / 100) if win_rate is not None else None,
        profit_factor=extract_number(text, PROFIT_FACTOR_PATTERN),
        max_drawdown=abs(max_drawdown) if max_drawdown is not None else None,
        sharpe_ratio=extract_number(text, SHARPE_RATIO_PATTERN),
        daily_pnl=extract_daily_pnl(text),
        parameters=extract_parameters(text, PARAMETER_SPECS),
        custom_metrics=extract_custom_metrics(text),
    )
