"""Tests for the intake edit form's change detection."""

from datetime import date

import pytest

from conftest import make_entry
from core.errors import MalformedDateError
from ui.entry_display import intake_changes


@pytest.fixture
def entry():
    entry = make_entry('ENT-1', 'E1402', '2025-05-12', [('2025-05-12', 'Ingreso')])
    entry.assigned_work = 'Ruta 40'
    entry.departure_date_estimate = '2025-06-30'
    return entry


class TestIntakeChanges:
    def test_unchanged_form(self, entry):
        changes = intake_changes(entry, 'Ruta 40', entry.fault_report, date(2025, 5, 12), '2025-06-30')
        assert changes == {}

    def test_only_edited_fields(self, entry):
        changes = intake_changes(entry, 'Ruta 3', entry.fault_report, date(2025, 5, 10), '2025-06-30')
        assert changes == {'assigned_work': 'Ruta 3', 'entry_date': date(2025, 5, 10)}

    def test_symptoms_and_departure(self, entry):
        changes = intake_changes(entry, 'Ruta 40', 'Pierde aceite', date(2025, 5, 12), '2025-07-15')
        assert changes == {
            'fault_report': 'Pierde aceite',
            'departure_date_estimate': date(2025, 7, 15),
        }

    def test_first_departure_estimate(self):
        entry = make_entry('ENT-2', 'E1464', '2025-06-10', [])
        changes = intake_changes(entry, '', entry.fault_report, date(2025, 6, 10), '2025-06-20')
        assert changes == {'departure_date_estimate': date(2025, 6, 20)}

    def test_blank_departure_is_ignored(self, entry):
        assert intake_changes(entry, 'Ruta 40', entry.fault_report, date(2025, 5, 12), '  ') == {}

    def test_malformed_departure(self, entry):
        with pytest.raises(MalformedDateError) as exc_info:
            intake_changes(entry, 'Ruta 40', entry.fault_report, date(2025, 5, 12), '30/06/2025')
        assert exc_info.value.field == 'fecha_salida'
        assert exc_info.value.entry_id == 'ENT-1'
