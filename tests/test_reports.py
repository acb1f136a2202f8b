"""Tests for report tables and CSV export."""

import pandas as pd
import pytest

from conftest import make_entry
from core.analysis.dashboard import aggregate
from core.analysis.reports import (
    ACTION_TABLE_COLUMNS,
    ENTRY_SUMMARY_COLUMNS,
    action_table,
    entry_summary_frame,
    frame_to_csv_bytes,
    kpi_table,
)


class TestActionTable:
    def test_columns_and_values(self, entries, reference_date):
        df = action_table(entries[0], reference_date)

        assert list(df.columns) == ACTION_TABLE_COLUMNS
        assert df['Fecha'].tolist() == ['12/05/2025', '15/06/2025']
        assert df['Parcial'].tolist() == ['34 d.', '0 d.']
        assert df['Acumulado'].tolist() == ['34 d.', '34 d.']
        assert df['Responsable'].tolist() == ['Juan Pérez', 'Juan Pérez']

    def test_empty_entry(self, reference_date):
        df = action_table(make_entry('1', 'E1402', '2025-06-01', []), reference_date)
        assert df.empty
        assert list(df.columns) == ACTION_TABLE_COLUMNS


class TestEntrySummary:
    def test_rows(self, entries, equipment_index, reference_date):
        df = entry_summary_frame(entries, equipment_index, reference_date)

        assert list(df.columns) == ENTRY_SUMMARY_COLUMNS
        assert len(df) == 4
        first = df.iloc[0]
        assert first['interno'] == 'E1402'
        assert first['marca_modelo'] == 'VOLVO EC290 BLC PRIME'
        assert first['estado'] == 'OPERATIVO'
        assert first['estadia_dias'] == 34
        assert first['perdida_estimada_usd'] == pytest.approx(4420.0)
        assert not first['retrabajo']

    def test_loss_is_rounded(self, entries, equipment_index, reference_date):
        df = entry_summary_frame(entries, equipment_index, reference_date)
        # 216.125 at 2 decimals
        assert df.iloc[2]['perdida_estimada_usd'] == pytest.approx(216.12, abs=0.01)

    def test_unknown_equipment(self, equipment_index, reference_date):
        entry = make_entry('9', 'X9999', '2025-06-01', [('2025-06-01', 'Ingreso')])
        row = entry_summary_frame([entry], equipment_index, reference_date).iloc[0]

        assert row['tipo'] == 'N/A'
        assert row['perdida_estimada_usd'] == 0.0

    def test_no_entries(self, equipment_index, reference_date):
        df = entry_summary_frame([], equipment_index, reference_date)
        assert df.empty
        assert list(df.columns) == ENTRY_SUMMARY_COLUMNS


class TestKpiTable:
    def test_indicators(self, entries, catalog, reference_date):
        df = kpi_table(aggregate(entries, catalog, reference_date))
        values = dict(zip(df['Indicador'], df['Valor']))

        assert list(df.columns) == ['Indicador', 'Valor']
        assert values['Equipos actualmente en Taller'] == 2
        assert values['Estadía Promedio Total (días)'] == '15.75 d.'
        assert values['Pérdida de Facturación Estimada'] == 'USD 7.873'


class TestCsvExport:
    def test_bom_and_accents(self):
        df = pd.DataFrame([{'Acción': 'Reparación', 'Días': 3}])
        payload = frame_to_csv_bytes(df)

        assert payload.startswith(b'\xef\xbb\xbf')
        text = payload.decode('utf-8-sig')
        assert text.splitlines() == ['Acción,Días', 'Reparación,3']
