"""Tests for workshop records and their row conversions."""

from datetime import date

import pytest

from core.workshop.models import (
    REPORT_FIELDS,
    Equipment,
    MaintenanceAction,
    MaintenanceEntry,
    TechnicalReport,
    build_equipment_index,
    is_completed,
    resolve_equipment,
    toggle_completed,
)


class TestEquipment:
    def test_from_record(self):
        eq = Equipment.from_record({
            'id': 'E1402', 'tipo': 'EXCAVADORA', 'marca': 'VOLVO', 'modelo': 'EC290',
            'horas': 11882, 'valor_nuevo': '320000', 'demerito': 0.75, 'comentario_general': None,
        })
        assert eq.replacement_value == 320000.0
        assert eq.depreciation_factor == 0.75
        assert eq.description == 'EXCAVADORA VOLVO EC290'

    def test_missing_factor_stays_missing(self):
        eq = Equipment.from_record({'id': 'V0800', 'demerito': None})
        assert eq.depreciation_factor is None
        assert eq.hours == 0

    def test_record_round_trip(self):
        eq = Equipment('E1464', 'EXCAVADORA', 'KOMATSU', 'PC240', 5744, 240000.0, 0.9, 'Cabina nueva')
        assert Equipment.from_record(eq.to_record()) == eq

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            Equipment('E1', hours=-1)
        with pytest.raises(ValueError):
            Equipment('E1', replacement_value=-100)


class TestEntries:
    def test_entry_from_record(self):
        action = MaintenanceAction.from_record({
            'id': 10, 'ingreso_id': 5, 'descripcion': 'Ingreso', 'fecha_accion': date(2025, 6, 1),
            'responsable': None,
        })
        entry = MaintenanceEntry.from_record(
            {'id': 5, 'equipo_id': 'E1402', 'fecha_ingreso': date(2025, 6, 1),
             'informe_fallas': 'No arranca', 'obra_asignada': 'Ruta 40'},
            actions=[action],
        )
        assert entry.id == '5'
        assert action.entry_id == '5'
        assert action.performed_by == 'Taller'
        assert entry.last_action is action
        assert entry.comment is None

    def test_last_action_of_empty_entry(self):
        assert MaintenanceEntry('1', 'E1402', '2025-06-01').last_action is None

    def test_equipment_index(self, catalog):
        index = build_equipment_index(catalog)
        assert set(index) == {eq.id for eq in catalog}
        assert build_equipment_index(index) is index
        assert build_equipment_index(None) == {}

    def test_resolve_missing_equipment(self, equipment_index):
        entry = MaintenanceEntry('1', 'X9999', '2025-06-01')
        assert resolve_equipment(equipment_index, entry) is None


class TestTechnicalReport:
    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown technical report fields"):
            TechnicalReport('1', {'motor': 'ok', 'alas': 'rotas'})

    def test_record_has_every_field(self):
        record = TechnicalReport('1', {'motor': 'Juntas nuevas'}).to_record()
        assert record['ingreso_id'] == '1'
        assert record['motor'] == 'Juntas nuevas'
        assert set(REPORT_FIELDS) <= set(record)
        assert record['cabina'] == ''

    def test_toggle_completed(self):
        text = toggle_completed('Cambio de juntas', date(2025, 6, 15))
        assert text == 'Cambio de juntas [COMPLETADO - 15/06/2025]'
        assert is_completed(text)
        assert toggle_completed(text, date(2025, 6, 16)) == 'Cambio de juntas'
        assert not is_completed('Cambio de juntas')
