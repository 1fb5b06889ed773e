import pytest

import magic_lines_dialect
import sample_strategy_dialect
from day_slice import extract_day_slice

from tests.fixtures.test_data import MAGIC_LINES_LOG, MAGIC_LINES_MAY_15_LINE_COUNT, SAMPLE_STRATEGY_REPORT


def test_day_slice_from_trades():
    run = magic_lines_dialect.extract(MAGIC_LINES_LOG, 5.0)
    day = extract_day_slice(MAGIC_LINES_LOG, "2024-05-15", run)

    assert len(day.raw_lines) == MAGIC_LINES_MAY_15_LINE_COUNT
    assert [trade.trade_id for trade in day.trades] == ["1", "2"]
    assert [event.time for event in day.events] == ["09:36:00", "09:40:00", "11:00:00"]
    assert day.summary.total_trades == 2
    assert day.summary.total_pnl == 15.0
    assert day.summary.winning_trades == 1
    assert day.summary.losing_trades == 1


def test_day_slice_from_daily_bucket():
    run = sample_strategy_dialect.extract(SAMPLE_STRATEGY_REPORT)
    day = extract_day_slice(SAMPLE_STRATEGY_REPORT, "2024-05-14", run)

    assert day.raw_lines == ["5/14/2024: -$150.00 (12 trades)"]
    assert day.trades == []
    assert day.summary.total_trades == 12
    assert day.summary.total_pnl == -150.0


def test_day_without_activity():
    run = magic_lines_dialect.extract(MAGIC_LINES_LOG, 5.0)
    day = extract_day_slice(MAGIC_LINES_LOG, "2024-05-16", run)

    assert day.raw_lines == []
    assert day.summary.total_trades == 0


@pytest.mark.parametrize("date", ["5/15/2024", "2024-5-15", "", None])
def test_rejects_non_canonical_date(date):
    run = magic_lines_dialect.extract(MAGIC_LINES_LOG, 5.0)
    with pytest.raises(ValueError):
        extract_day_slice(MAGIC_LINES_LOG, date, run)
