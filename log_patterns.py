"""
Pattern extractors for strategy runner log dumps.

Each extract_* function scans the whole text with one regular expression and
returns its typed records in log order (the log is append-only, so log order is
chronological). An extractor never raises on odd input: numeric fields that do
not convert become 0 (see my_utils.parse_float) and the record is kept.
"""

import re
from collections import namedtuple
from typing import Iterator, List, Optional, Tuple

import my_utils
from parsed_run import RunParameter
from trade_events import (
    CurrentTradeEvent,
    FillNearMissEvent,
    PnlUpdateEvent,
    SlAdjustmentEvent,
    TpNearMissEvent,
    TradeFillEvent,
    TradeKey,
    TradeSummaryEvent,
)

DATE = r"(?P<date>\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{1,2}-\d{1,2})"
TIME = r"(?P<time>\d{1,2}:\d{2}(?::\d{2})?(?:[ \t]*[AP]M)?)"
TRADE_ID = r"[ \t]*\(ID:[ \t]*(?P<trade_id>\d+)\)"
DIRECTION = r"[ \t]*(?P<direction>LONG|SHORT)"
SEP = r"[ \t]*\|[ \t]*"
NUM = r"[+-]?[\d.,]+"
MONEY = r"[+-]?\$?[+-]?[\d.,]+"
TEXT = r"[^|\r\n]+?"
EOL = r"[ \t]*\r?$"

PARAMETER_PREFIX = r"^[^\[\r\n]*?\b"

ParameterSpec = namedtuple("ParameterSpec", ["name", "pattern", "type"])

ExtractedEvents = namedtuple(
    "ExtractedEvents",
    ["fills", "summaries", "pnl_updates", "current_trades", "tp_near_misses", "fill_near_misses", "sl_adjustments"],
)


def _event_pattern(tag: str, body: str, id_required: bool = True) -> re.Pattern:
    trade_id = TRADE_ID if id_required else f"(?:{TRADE_ID})?"
    return re.compile(
        rf"(?<![\d/-]){DATE}[ \t]+{TIME}[ \t]+\[(?:{tag}){trade_id}\]{body}",
        re.IGNORECASE | re.MULTILINE,
    )


# [TRADE FILL (ID: 3)] LONG | Entry: 100.00 | Bars Since Last Trade: 5
FILL_PATTERN = _event_pattern(
    r"TRADE FILL",
    rf"{DIRECTION}{SEP}Entry:[ \t]*(?P<entry>{NUM})(?:{SEP}Bars Since Last Trade:[ \t]*(?P<bars_since>{NUM}))?",
)

# [TRADE SUMMARY (ID: 3)] LONG | Line: UP 1 | Entry: 100.00 | High: 105.00 | Low: 99.50 |
#   Max Profit: 5.00pts | Max Loss: -0.50pts | Bars: 14
SUMMARY_PATTERN = _event_pattern(
    r"TRADE SUMMARY",
    rf"{DIRECTION}{SEP}Line:[ \t]*(?P<line>{TEXT}){SEP}Entry:[ \t]*(?P<entry>{NUM}){SEP}"
    rf"High:[ \t]*(?P<high>{NUM}){SEP}Low:[ \t]*(?P<low>{NUM}){SEP}"
    rf"Max Profit:[ \t]*(?P<max_profit>{NUM})[ \t]*pts{SEP}Max Loss:[ \t]*(?P<max_loss>{NUM})[ \t]*pts{SEP}"
    rf"Bars:[ \t]*(?P<bars>{NUM})",
)

# [PNL UPDATE (ID: 3)] COMPLETED TRADE PnL: $25.00 | TOTAL PnL: $125.00
PNL_UPDATE_PATTERN = _event_pattern(
    r"PNL UPDATE",
    rf"[ \t]*COMPLETED TRADE PnL:[ \t]*(?P<completed>{MONEY})(?:{SEP}TOTAL PnL:[ \t]*(?P<total>{MONEY}))?",
)

# [TRADE COMPLETION (ID: 3)] LONG | Exit: 104.25 | Reason: Take Profit
CURRENT_TRADE_PATTERN = _event_pattern(
    r"TRADE COMPLETION",
    rf"{DIRECTION}{SEP}Exit:[ \t]*(?P<exit>{NUM})(?:{SEP}Reason:[ \t]*(?P<reason>[^|\r\n]*?))?{EOL}",
)

# [TP NEAR MISS (ID: 3)] LONG | Target: 106.00 | Closest: 0.25pts | Reason: Reversed
TP_NEAR_MISS_PATTERN = _event_pattern(
    r"(?:TRIM )?TP NEAR MISS",
    rf"{DIRECTION}{SEP}Target:[ \t]*(?P<target>{TEXT}){SEP}Closest:[ \t]*(?P<closest>{TEXT})"
    rf"(?:{SEP}Reason:[ \t]*(?P<reason>[^|\r\n]*?))?{EOL}",
)

# [FILL NEAR MISS] SHORT | Line: DOWN 2 | Closest: 0.50pts
FILL_NEAR_MISS_PATTERN = _event_pattern(
    r"FILL NEAR MISS",
    rf"{DIRECTION}(?:{SEP}Line:[ \t]*(?P<line>{TEXT}))?{SEP}Closest:[ \t]*(?P<closest>{TEXT}){EOL}",
    id_required=False,
)

# [SL ADJUSTMENT (ID: 3)] LONG | Trigger: X1 reached | Adjustment: SL moved to 101.00
SL_ADJUSTMENT_PATTERN = _event_pattern(
    r"SL ADJUSTMENT",
    rf"{DIRECTION}{SEP}Trigger:[ \t]*(?P<trigger>{TEXT}){SEP}Adjustment:[ \t]*(?P<adjustment>{TEXT}){EOL}",
)

LINE_DATE_PATTERN = re.compile(r"(?<![\d/-])(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{1,2}-\d{1,2})(?![\d/-])")
RUN_NAME_PATTERN = re.compile(r"Strategy '([^']+)'")
INSTRUMENT_PATTERN = re.compile(PARAMETER_PREFIX + r"Instrument:[ \t]*(\w+)", re.IGNORECASE | re.MULTILINE)


def _stamp(match: re.Match) -> Tuple[str, str]:
    return my_utils.normalize_date(match.group("date")), my_utils.normalize_time(match.group("time"))


def _key(match: re.Match, date: str) -> Optional[TradeKey]:
    trade_id = match.group("trade_id")
    return TradeKey(date, trade_id) if trade_id is not None else None


def _direction(match: re.Match) -> str:
    return match.group("direction").upper()


def _text(match: re.Match, name: str) -> str:
    value = match.group(name)
    return value.strip() if value else ""


def extract_fills(text: str) -> List[TradeFillEvent]:
    fills: List[TradeFillEvent] = []
    for match in FILL_PATTERN.finditer(text):
        date, time = _stamp(match)
        fills.append(
            TradeFillEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                my_utils.parse_float(match.group("entry")),
                my_utils.parse_int(match.group("bars_since")),
            )
        )
    return fills


def extract_summaries(text: str) -> List[TradeSummaryEvent]:
    summaries: List[TradeSummaryEvent] = []
    for match in SUMMARY_PATTERN.finditer(text):
        date, time = _stamp(match)
        summaries.append(
            TradeSummaryEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                _text(match, "line"),
                my_utils.parse_float(match.group("entry")),
                my_utils.parse_float(match.group("high")),
                my_utils.parse_float(match.group("low")),
                my_utils.parse_float(match.group("max_profit")),
                my_utils.parse_float(match.group("max_loss")),
                my_utils.parse_int(match.group("bars")),
            )
        )
    return summaries


def extract_pnl_updates(text: str) -> List[PnlUpdateEvent]:
    updates: List[PnlUpdateEvent] = []
    for match in PNL_UPDATE_PATTERN.finditer(text):
        date, time = _stamp(match)
        updates.append(
            PnlUpdateEvent(
                date,
                time,
                _key(match, date),
                my_utils.parse_float(match.group("completed")),
                my_utils.parse_float(match.group("total")),
            )
        )
    return updates


def extract_current_trades(text: str) -> List[CurrentTradeEvent]:
    current_trades: List[CurrentTradeEvent] = []
    for match in CURRENT_TRADE_PATTERN.finditer(text):
        date, time = _stamp(match)
        current_trades.append(
            CurrentTradeEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                my_utils.parse_float(match.group("exit")),
                _text(match, "reason"),
            )
        )
    return current_trades


def extract_tp_near_misses(text: str) -> List[TpNearMissEvent]:
    near_misses: List[TpNearMissEvent] = []
    for match in TP_NEAR_MISS_PATTERN.finditer(text):
        date, time = _stamp(match)
        near_misses.append(
            TpNearMissEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                _text(match, "target"),
                _text(match, "closest"),
                _text(match, "reason"),
            )
        )
    return near_misses


def extract_fill_near_misses(text: str) -> List[FillNearMissEvent]:
    near_misses: List[FillNearMissEvent] = []
    for match in FILL_NEAR_MISS_PATTERN.finditer(text):
        date, time = _stamp(match)
        near_misses.append(
            FillNearMissEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                _text(match, "line"),
                _text(match, "closest"),
            )
        )
    return near_misses


def extract_sl_adjustments(text: str) -> List[SlAdjustmentEvent]:
    adjustments: List[SlAdjustmentEvent] = []
    for match in SL_ADJUSTMENT_PATTERN.finditer(text):
        date, time = _stamp(match)
        adjustments.append(
            SlAdjustmentEvent(
                date,
                time,
                _key(match, date),
                _direction(match),
                _text(match, "trigger"),
                _text(match, "adjustment"),
            )
        )
    return adjustments


def extract_all(text: str) -> ExtractedEvents:
    """Runs every event extractor over the text once."""
    return ExtractedEvents(
        extract_fills(text),
        extract_summaries(text),
        extract_pnl_updates(text),
        extract_current_trades(text),
        extract_tp_near_misses(text),
        extract_fill_near_misses(text),
        extract_sl_adjustments(text),
    )


def parameter_pattern(label_regex: str) -> re.Pattern:
    """
    Builds a header pattern for 'Label: value' lines. Lines containing a '[' tag
    are event lines and never match, so 'SL Adjustment: True' cannot be confused
    with an [SL ADJUSTMENT] event.
    """
    return re.compile(PARAMETER_PREFIX + label_regex, re.IGNORECASE | re.MULTILINE)


def extract_number(text: str, pattern: re.Pattern) -> Optional[float]:
    match = pattern.search(text)
    if match and match.group(1):
        value = my_utils.parse_float(match.group(1), default=None)
        return value
    return None


def extract_string(text: str, pattern: re.Pattern) -> Optional[str]:
    match = pattern.search(text)
    if match and match.group(1):
        return match.group(1).strip().rstrip(",").strip()
    return None


def extract_parameters(text: str, specs: List[ParameterSpec]) -> List[RunParameter]:
    parameters = []
    for spec in specs:
        value = extract_string(text, spec.pattern)
        if value:
            parameters.append(RunParameter(spec.name, value, spec.type))
    return parameters


def extract_run_name(text: str) -> Optional[str]:
    return extract_string(text, RUN_NAME_PATTERN)


def extract_instrument(text: str) -> Optional[str]:
    return extract_string(text, INSTRUMENT_PATTERN)


def iter_dated_lines(text: str) -> Iterator[Tuple[str, str]]:
    """
    Yield (canonical date, stripped line) for each line that carries a date.
    """
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        match = LINE_DATE_PATTERN.search(stripped)
        if match:
            yield my_utils.normalize_date(match.group(1)), stripped
