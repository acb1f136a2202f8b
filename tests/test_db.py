"""Tests for query building, row assembly and database writes."""

from datetime import date
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from core.db import fetchers, writers
from core.db.pool import DatabasePool
from core.db.queries import WorkshopQueryBuilder
from core.errors import PersistenceError
from core.workshop.models import REPORT_FIELDS, Equipment, TechnicalReport


class FakeCursor:
    """Cursor returning one prepared (columns, rows) result per execute."""

    def __init__(self, results=(), error=None):
        self.results = list(results)
        self.error = error
        self.executed = []
        self.description = None
        self.rowcount = 1
        self._rows = []

    def execute(self, query, parameters=None):
        if self.error is not None:
            raise self.error
        self.executed.append((query, parameters))
        if self.results:
            columns, self._rows = self.results.pop(0)
            self.description = [(c,) for c in columns]

    def fetchall(self):
        return self._rows


def connection_returning(cursor):
    conn = MagicMock()
    conn.cursor.return_value = cursor
    context = MagicMock()
    context.__enter__.return_value = conn
    context.__exit__.return_value = False
    return MagicMock(return_value=context)


class TestDatabasePool:
    @pytest.fixture
    def threaded_pool(self):
        with patch('core.db.pool.pool.ThreadedConnectionPool') as factory:
            yield factory

    def test_commits_on_success(self, threaded_pool):
        db = DatabasePool({'host': 'localhost'})
        with db.get_connection() as conn:
            conn.cursor().execute("SELECT 1")

        conn = threaded_pool.return_value.getconn.return_value
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        threaded_pool.return_value.putconn.assert_called_once_with(conn)

    def test_rolls_back_and_reraises(self, threaded_pool):
        db = DatabasePool({'host': 'localhost'})
        with pytest.raises(RuntimeError):
            with db.get_connection():
                raise RuntimeError("boom")

        conn = threaded_pool.return_value.getconn.return_value
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        threaded_pool.return_value.putconn.assert_called_once_with(conn)

    def test_pool_is_opened_once(self, threaded_pool):
        db = DatabasePool({'host': 'localhost'})
        with db.get_connection():
            pass
        with db.get_connection():
            pass
        assert threaded_pool.call_count == 1

        db.close_pool()
        threaded_pool.return_value.closeall.assert_called_once()
        assert db.pool is None


class TestQueryBuilder:
    @pytest.fixture
    def builder(self):
        return WorkshopQueryBuilder()

    @pytest.mark.parametrize("value, valid", [
        ("E1402", True),
        ("ENT-3f2a9c1b7d4e", True),
        ("12", True),
        ("", False),
        (None, False),
        ("E1402; DROP TABLE equipos", False),
        ("x" * 65, False),
    ])
    def test_validate_id(self, builder, value, valid):
        assert builder.validate_id(value) is valid

    def test_actions_keep_insertion_order(self, builder):
        query, params = builder.build_actions_query()
        assert query.endswith("ORDER BY ingreso_id, created_at, id")
        assert params == []

    def test_insert_equipment_is_parameterized(self, builder):
        record = Equipment('E1402', 'EXCAVADORA', 'VOLVO', 'EC290', 100, 320000, 0.75).to_record()
        query, params = builder.build_insert_equipment(record)
        assert query.count("%s") == len(params) == 8
        assert params[0] == 'E1402'

    def test_invalid_interno_rejected(self, builder):
        with pytest.raises(ValueError, match="Invalid interno"):
            builder.build_delete_equipment("E1'; --")

    def test_update_entry_only_editable_columns(self, builder):
        query, params = builder.build_update_entry('ENT-1', {'obra_asignada': 'Ruta 40'})
        assert query == "UPDATE ingresos_taller SET obra_asignada = %s WHERE id = %s"
        assert params == ['Ruta 40', 'ENT-1']

        with pytest.raises(ValueError, match="not editable"):
            builder.build_update_entry('ENT-1', {'equipo_id': 'E9999'})
        with pytest.raises(ValueError, match="No columns"):
            builder.build_update_entry('ENT-1', {})

    def test_action_needs_description(self, builder):
        record = {'id': 'ACT-1', 'ingreso_id': 'ENT-1', 'descripcion': '  ', 'fecha_accion': '2025-06-01'}
        with pytest.raises(ValueError, match="must not be empty"):
            builder.build_insert_action(record)

    def test_delete_entry_removes_children_first(self, builder):
        statements = builder.build_delete_entry('ENT-1')
        tables = [query.split()[2] for query, _ in statements]
        assert tables == ['acciones_taller', 'informe_taller', 'ingresos_taller']
        assert all(params == ['ENT-1'] for _, params in statements)

    def test_upsert_report(self, builder):
        query, params = builder.build_upsert_report(TechnicalReport('ENT-1', {'motor': 'ok'}).to_record())
        assert "ON CONFLICT (ingreso_id)" in query
        assert len(params) == len(REPORT_FIELDS) + 1


class TestRowsToEntries:
    def test_assembly(self):
        entry_rows = [
            {'id': 1, 'equipo_id': 'E1402', 'fecha_ingreso': date(2025, 6, 1)},
            {'id': 2, 'equipo_id': 'E1464', 'fecha_ingreso': date(2025, 6, 2)},
        ]
        action_rows = [
            {'id': 10, 'ingreso_id': 1, 'descripcion': 'Ingreso', 'fecha_accion': date(2025, 6, 1)},
            {'id': 12, 'ingreso_id': 1, 'descripcion': 'Operativo', 'fecha_accion': date(2025, 6, 9)},
            {'id': 11, 'ingreso_id': 1, 'descripcion': 'Reingreso', 'fecha_accion': date(2025, 6, 10)},
            {'id': 99, 'ingreso_id': 7, 'descripcion': 'Huérfana', 'fecha_accion': date(2025, 6, 1)},
        ]
        report_rows = [{'ingreso_id': 2, 'motor': 'Juntas'}]

        entries = fetchers.rows_to_entries(entry_rows, action_rows, report_rows)

        assert [e.id for e in entries] == ['1', '2']
        # Row order is kept, ids are not re-sorted
        assert [a.id for a in entries[0].actions] == ['10', '12', '11']
        assert entries[1].actions == []
        assert entries[0].technical_report is None
        assert entries[1].technical_report.get('motor') == 'Juntas'


class TestFetchers:
    def test_fetch_equipment(self):
        cursor = FakeCursor([(('id', 'tipo', 'valor_nuevo', 'demerito'),
                              [('E1402', 'EXCAVADORA', 320000, 0.75)])])
        with patch('core.db.fetchers.get_connection', connection_returning(cursor)):
            equipment = fetchers.fetch_equipment()

        assert len(equipment) == 1
        assert equipment[0].id == 'E1402'
        assert equipment[0].replacement_value == 320000.0

    def test_fetch_entries(self):
        cursor = FakeCursor([
            (('id', 'equipo_id', 'fecha_ingreso'), [(1, 'E1402', date(2025, 6, 1))]),
            (('id', 'ingreso_id', 'descripcion', 'fecha_accion', 'responsable'),
             [(10, 1, 'Ingreso', date(2025, 6, 1), 'Juan')]),
            (('ingreso_id', 'motor'), []),
        ])
        with patch('core.db.fetchers.get_connection', connection_returning(cursor)):
            entries = fetchers.fetch_entries()

        assert len(cursor.executed) == 3
        assert entries[0].actions[0].performed_by == 'Juan'

    def test_database_error_is_wrapped(self):
        cursor = FakeCursor(error=psycopg2.OperationalError("connection refused"))
        with patch('core.db.fetchers.get_connection', connection_returning(cursor)):
            with pytest.raises(PersistenceError) as exc_info:
                fetchers.fetch_entries()
        assert exc_info.value.operation == "fetch_entries"
        assert isinstance(exc_info.value.cause, psycopg2.OperationalError)


class TestWriters:
    def test_create_entry_inserts_entry_and_first_action(self):
        cursor = FakeCursor()
        with patch('core.db.writers.get_connection', connection_returning(cursor)):
            entry = writers.create_entry(
                ' e1402 ', date(2025, 5, 12), 'Ingreso - diagnóstico', date(2025, 5, 12),
                fault_report='No levanta presión'
            )

        assert entry.equipment_id == 'E1402'
        assert entry.entry_date == '2025-05-12'
        assert len(entry.actions) == 1
        assert entry.actions[0].performed_by == 'Taller'
        assert [q.split()[2] for q, _ in cursor.executed] == ['ingresos_taller', 'acciones_taller']

    def test_create_entry_needs_first_action(self):
        with pytest.raises(ValueError):
            writers.create_entry('E1402', date(2025, 5, 12), '  ', date(2025, 5, 12))

    def test_create_equipment_rejects_duplicates(self):
        with pytest.raises(ValueError, match="already exists"):
            writers.create_equipment(Equipment('e1402'), existing_ids=['E1402'])

    def test_create_equipment_uppercases_interno(self):
        cursor = FakeCursor()
        with patch('core.db.writers.get_connection', connection_returning(cursor)):
            equipment = writers.create_equipment(Equipment(' v0800 ', 'PICKUP'))
        assert equipment.id == 'V0800'
        assert cursor.executed[0][1][0] == 'V0800'

    def test_append_action(self):
        cursor = FakeCursor()
        with patch('core.db.writers.get_connection', connection_returning(cursor)):
            action = writers.append_action('ENT-1', ' Operativo ', date(2025, 6, 15), 'Ana')
        assert action.description == 'Operativo'
        assert action.date == '2025-06-15'
        assert action.performed_by == 'Ana'

    def test_update_entry_writes_only_given_fields(self):
        cursor = FakeCursor()
        with patch('core.db.writers.get_connection', connection_returning(cursor)):
            writers.update_entry('ENT-1', assigned_work=' Ruta 3 ', entry_date=date(2025, 5, 10))

        query, params = cursor.executed[0]
        assert query == "UPDATE ingresos_taller SET obra_asignada = %s, fecha_ingreso = %s WHERE id = %s"
        assert params == ['Ruta 3', '2025-05-10', 'ENT-1']

    def test_delete_entry_runs_in_one_transaction(self):
        cursor = FakeCursor()
        get_connection = connection_returning(cursor)
        with patch('core.db.writers.get_connection', get_connection):
            affected = writers.delete_entry('ENT-1')
        assert get_connection.call_count == 1
        assert len(cursor.executed) == 3
        assert affected == 3

    def test_database_error_is_wrapped(self):
        cursor = FakeCursor(error=psycopg2.IntegrityError("duplicate key"))
        with patch('core.db.writers.get_connection', connection_returning(cursor)):
            with pytest.raises(PersistenceError, match="update_entry_comment"):
                writers.update_entry_comment('ENT-1', 'Sin novedad')

    def test_new_id(self):
        first, second = writers.new_id("ENT"), writers.new_id("ENT")
        assert first.startswith("ENT-")
        assert first != second
        assert WorkshopQueryBuilder.validate_id(first)
