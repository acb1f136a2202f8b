"""
Date Arithmetic

Calendar-day helpers shared by the status engine, the stage calculator and
the dashboard aggregation.

All dates are handled as timezone-naive calendar dates. Strings are parsed
with a single convention: the calendar date written in the string is used
as is (``"2025-05-12"`` and ``"2025-05-12T23:30:00-03:00"`` are both
May 12th), so no value is ever shifted through UTC.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

import pytz
from dateutil import parser as dateutil_parser

from core.errors import MalformedDateError

logger = logging.getLogger(__name__)

# Strings must start with a full YYYY-MM-DD date
FULL_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_date(value: Any, field: str = "date", entry_id: Optional[str] = None) -> date:
    """
    Convert a date-like value into a calendar date.

    Args:
        value: ``date``, ``datetime`` (including pandas ``Timestamp``) or an
               ISO 8601 string such as ``YYYY-MM-DD``
        field: Field name reported if parsing fails
        entry_id: Owning entry id reported if parsing fails

    Returns:
        The calendar date, with any time-of-day component stripped

    Raises:
        MalformedDateError: If the value is empty or cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and FULL_DATE_PREFIX.match(value.strip()):
        try:
            return dateutil_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError) as e:
            logger.debug(f"Could not parse {field}={value!r}: {e}")
    raise MalformedDateError(field, entry_id, value)


def days_between(start: Any, end: Any) -> int:
    """
    Whole days from ``start`` to ``end``, clamped to zero.

    Both arguments are normalized to calendar dates first, so time-of-day and
    daylight-saving shifts never produce fractional days. An ``end`` before
    ``start`` returns 0.

    Example:
        >>> days_between("2025-05-12", "2025-06-15")
        34
        >>> days_between("2025-06-15", "2025-05-12")
        0
    """
    start_date = parse_date(start, field="start")
    end_date = parse_date(end, field="end")
    return max(0, (end_date - start_date).days)


def today(timezone: str = "America/Argentina/Buenos_Aires") -> date:
    """Current calendar date in the workshop timezone."""
    return datetime.now(pytz.timezone(timezone)).date()
