import logging
import re
from datetime import datetime

from constants import CONST

LOGGER = logging.getLogger(__name__)

US_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
TIME_FORMATS = ("%I:%M:%S %p", "%I:%M %p", "%H:%M:%S", "%H:%M")


def normalize_date(date_str):
    """
    Normalizes a log date to the canonical YYYY-MM-DD form.

    Args:
        date_str: A date written as M/D/YYYY or YYYY-MM-DD (zero padding optional).

    Returns:
        The zero-padded YYYY-MM-DD string, or the stripped input unchanged when it
        matches neither form.
    """
    if date_str is None:
        return ""
    value = date_str.strip()
    match = US_DATE_PATTERN.match(value)
    if match:
        month, day, year = match.groups()
        return f"{int(year):04d}-{int(month):02d}-{int(day):02d}"
    match = ISO_DATE_PATTERN.match(value)
    if match:
        year, month, day = match.groups()
        return f"{int(year):04d}-{int(month):02d}-{int(day):02d}"
    return value


def normalize_time(time_str):
    """Converts 12-hour or 24-hour log times to HH:MM:SS; unknown forms are returned stripped."""
    if time_str is None:
        return ""
    value = " ".join(time_str.split()).upper()
    for time_format in TIME_FORMATS:
        try:
            return datetime.strptime(value, time_format).strftime(CONST.TIME_FORMAT)
        except ValueError:
            continue
    return time_str.strip()


def parse_float(value, default=0.0):
    """
    Parses a numeric log field, tolerating currency signs, thousands separators
    and a trailing 'pts' unit. Unparseable input yields the default.
    """
    if value is None:
        return default
    cleaned = str(value).strip().replace(",", "").replace("$", "")
    if cleaned.lower().endswith("pts"):
        cleaned = cleaned[:-3]
    try:
        return float(cleaned)
    except ValueError:
        LOGGER.debug("Malformed numeric field '%s'; using %s", value, default)
        return default


def parse_int(value, default=0):
    if value is None:
        return default
    try:
        return int(str(value).strip().replace(",", ""))
    except ValueError:
        LOGGER.debug("Malformed integer field '%s'; using %s", value, default)
        return default


def safe_ratio(numerator, denominator):
    """Returns numerator / denominator, or None when the denominator is zero."""
    if not denominator:
        return None
    return numerator / denominator


def round_currency(value):
    return round(value, 2) if value is not None else None


def round_rate(value):
    return round(value, 4) if value is not None else None


def round_ratio(value):
    return round(value, 2) if value is not None else None


def get_date_range(dates):
    """
    Gets the first and last date of a collection of canonical date strings.

    Returns:
        A (start, end) tuple, or None when there are no dates. Lexical order
        is chronological because the canonical form is zero-padded.
    """
    sorted_dates = sorted(d for d in dates if d)
    if not sorted_dates:
        return None
    return sorted_dates[0], sorted_dates[-1]
