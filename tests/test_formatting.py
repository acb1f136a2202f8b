"""Tests for display formatting helpers."""

from datetime import date, datetime

import pytest

from core.calculations.status import StatusKind
from utils.formatting import (
    STATUS_COLORS,
    STATUS_LABELS,
    format_currency_abbr,
    format_date_display,
    format_days,
    status_label,
)


class TestFormatDateDisplay:
    @pytest.mark.parametrize("value, expected", [
        ("2025-05-12", "12/05/2025"),
        (date(2025, 5, 12), "12/05/2025"),
        (datetime(2025, 5, 12, 8, 0), "12/05/2025"),
        (None, ""),
        ("", ""),
        ("ayer", "ayer"),
    ])
    def test_values(self, value, expected):
        assert format_date_display(value) == expected


class TestFormatNumbers:
    def test_days(self):
        assert format_days(34) == "34 d."
        assert format_days(0) == "0 d."

    @pytest.mark.parametrize("value, expected", [
        (4420.0, "USD 4.420"),
        (7873.125, "USD 7.873"),
        (1234567.5, "USD 1.234.568"),
        (0.5, "USD 1"),
        (0, "USD 0"),
        (None, "USD 0"),
    ])
    def test_currency(self, value, expected):
        assert format_currency_abbr(value) == expected


class TestStatusLabels:
    def test_every_status_has_label_and_color(self):
        for status in StatusKind:
            assert status in STATUS_LABELS
            assert status in STATUS_COLORS

    def test_label(self):
        assert status_label(StatusKind.WAITING_PARTS) == "ESPERA REPUESTOS"

    def test_label_from_value(self):
        assert status_label("operative") == "OPERATIVO"
