"""
Formatting Utilities

Display helpers for dates, stay durations, currency amounts and status labels.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

import pandas as pd

from core.calculations.dates import parse_date
from core.calculations.status import StatusKind
from core.errors import MalformedDateError

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    StatusKind.OPERATIVE: "OPERATIVO",
    StatusKind.TESTING: "EN PRUEBA",
    StatusKind.WAITING_PARTS: "ESPERA REPUESTOS",
    StatusKind.IN_REPAIR: "EN REPARACIÓN",
}

STATUS_COLORS = {
    StatusKind.OPERATIVE: "#10B981",  # Green
    StatusKind.TESTING: "#8B5CF6",    # Violet
    StatusKind.WAITING_PARTS: "#F59E0B",  # Orange
    StatusKind.IN_REPAIR: "#3B82F6",  # Blue
}


def format_date_display(value: Any) -> str:
    """
    Format a date as dd/mm/yyyy.

    Args:
        value: date, datetime or YYYY-MM-DD string

    Returns:
        Formatted date, empty string for empty input, or the original value
        as a string if it cannot be parsed
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    try:
        return parse_date(value).strftime("%d/%m/%Y")
    except MalformedDateError:
        return str(value)


def format_days(days: int) -> str:
    """Stay duration as shown in tables, e.g. '34 d.'"""
    return f"{int(days)} d."


def format_currency_abbr(value: float) -> str:
    """
    Format a USD amount rounded to whole dollars with dot thousands separators.

    Example:
        >>> format_currency_abbr(4420.0)
        'USD 4.420'
    """
    amount = Decimal(str(value or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"USD {int(amount):,}".replace(",", ".")


def status_label(status: StatusKind) -> str:
    """Spanish display label for a status."""
    return STATUS_LABELS[StatusKind(status)]
