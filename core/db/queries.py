"""
Secure Query Builder Module

Parameterized SQL for every read and write against the workshop database.
Identifiers and required texts are validated before a query is built.

Tables:
    equipos          equipment catalog
    ingresos_taller  maintenance entries
    acciones_taller  actions, owned by an entry
    informe_taller   technical report, at most one per entry (unique ingreso_id)
"""

import logging
import re
from typing import Any, Dict, List, Sequence, Tuple

from core.workshop.models import REPORT_FIELDS

logger = logging.getLogger(__name__)

EQUIPMENT_COLUMNS = (
    "id", "tipo", "marca", "modelo", "horas", "valor_nuevo", "demerito", "comentario_general",
)
ENTRY_COLUMNS = (
    "id", "equipo_id", "fecha_ingreso", "obra_asignada", "informe_fallas",
    "observaciones", "fecha_salida",
)
ACTION_COLUMNS = ("id", "ingreso_id", "descripcion", "fecha_accion", "responsable")
ENTRY_EDITABLE_COLUMNS = ("obra_asignada", "informe_fallas", "fecha_ingreso", "fecha_salida")
ACTION_EDITABLE_COLUMNS = ("descripcion", "responsable", "fecha_accion")

ID_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


class WorkshopQueryBuilder:
    """Secure query builder with parameterized queries and input validation."""

    @staticmethod
    def validate_id(value: str) -> bool:
        """
        Validate a record identifier (interno, entry id, action id).

        Args:
            value: Identifier to validate

        Returns:
            bool: True if valid identifier format
        """
        if not value or not isinstance(value, str) or len(value) > 64:
            return False
        return bool(ID_PATTERN.match(value))

    def _require_id(self, value: str, name: str) -> str:
        if not self.validate_id(value):
            raise ValueError(f"Invalid {name}: {value!r}")
        return value

    @staticmethod
    def _require_text(value: str, name: str) -> str:
        if not value or not str(value).strip():
            raise ValueError(f"{name} must not be empty")
        return str(value).strip()

    @staticmethod
    def _set_clause(values: Dict[str, Any], allowed: Sequence[str]) -> Tuple[str, List[Any]]:
        unknown = set(values) - set(allowed)
        if unknown:
            raise ValueError(f"Columns not editable: {sorted(unknown)}")
        if not values:
            raise ValueError("No columns to update")
        columns = [c for c in allowed if c in values]
        clause = ", ".join(f"{c} = %s" for c in columns)
        return clause, [values[c] for c in columns]

    # Reads

    def build_equipment_query(self) -> Tuple[str, List[Any]]:
        query = f"SELECT {', '.join(EQUIPMENT_COLUMNS)} FROM equipos ORDER BY id"
        return query, []

    def build_entries_query(self) -> Tuple[str, List[Any]]:
        query = f"SELECT {', '.join(ENTRY_COLUMNS)} FROM ingresos_taller"
        return query, []

    def build_actions_query(self) -> Tuple[str, List[Any]]:
        # Insertion order decides which action is the latest
        query = (
            f"SELECT {', '.join(ACTION_COLUMNS)} FROM acciones_taller "
            f"ORDER BY ingreso_id, created_at, id"
        )
        return query, []

    def build_reports_query(self) -> Tuple[str, List[Any]]:
        query = f"SELECT ingreso_id, {', '.join(REPORT_FIELDS)} FROM informe_taller"
        return query, []

    # Equipment writes

    def build_insert_equipment(self, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(record.get("id"), "interno")
        placeholders = ", ".join(["%s"] * len(EQUIPMENT_COLUMNS))
        query = f"INSERT INTO equipos ({', '.join(EQUIPMENT_COLUMNS)}) VALUES ({placeholders})"
        return query, [record.get(c) for c in EQUIPMENT_COLUMNS]

    def build_update_equipment(self, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
        equipment_id = self._require_id(record.get("id"), "interno")
        columns = EQUIPMENT_COLUMNS[1:]
        clause = ", ".join(f"{c} = %s" for c in columns)
        query = f"UPDATE equipos SET {clause} WHERE id = %s"
        return query, [record.get(c) for c in columns] + [equipment_id]

    def build_delete_equipment(self, equipment_id: str) -> Tuple[str, List[Any]]:
        self._require_id(equipment_id, "interno")
        return "DELETE FROM equipos WHERE id = %s", [equipment_id]

    # Entry writes

    def build_insert_entry(self, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(record.get("id"), "entry id")
        self._require_id(record.get("equipo_id"), "interno")
        placeholders = ", ".join(["%s"] * len(ENTRY_COLUMNS))
        query = (
            f"INSERT INTO ingresos_taller ({', '.join(ENTRY_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )
        return query, [record.get(c) for c in ENTRY_COLUMNS]

    def build_update_entry(self, entry_id: str, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(entry_id, "entry id")
        clause, params = self._set_clause(values, ENTRY_EDITABLE_COLUMNS)
        return f"UPDATE ingresos_taller SET {clause} WHERE id = %s", params + [entry_id]

    def build_update_entry_comment(self, entry_id: str, comment: str) -> Tuple[str, List[Any]]:
        self._require_id(entry_id, "entry id")
        return "UPDATE ingresos_taller SET observaciones = %s WHERE id = %s", [comment, entry_id]

    def build_delete_entry(self, entry_id: str) -> List[Tuple[str, List[Any]]]:
        """Statements removing an entry with its actions and report, children first."""
        self._require_id(entry_id, "entry id")
        return [
            ("DELETE FROM acciones_taller WHERE ingreso_id = %s", [entry_id]),
            ("DELETE FROM informe_taller WHERE ingreso_id = %s", [entry_id]),
            ("DELETE FROM ingresos_taller WHERE id = %s", [entry_id]),
        ]

    # Action writes

    def build_insert_action(self, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(record.get("id"), "action id")
        self._require_id(record.get("ingreso_id"), "entry id")
        self._require_text(record.get("descripcion"), "Action description")
        placeholders = ", ".join(["%s"] * len(ACTION_COLUMNS))
        query = (
            f"INSERT INTO acciones_taller ({', '.join(ACTION_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )
        return query, [record.get(c) for c in ACTION_COLUMNS]

    def build_update_action(self, action_id: str, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(action_id, "action id")
        if "descripcion" in values:
            self._require_text(values["descripcion"], "Action description")
        clause, params = self._set_clause(values, ACTION_EDITABLE_COLUMNS)
        return f"UPDATE acciones_taller SET {clause} WHERE id = %s", params + [action_id]

    # Technical report

    def build_upsert_report(self, record: Dict[str, Any]) -> Tuple[str, List[Any]]:
        self._require_id(record.get("ingreso_id"), "entry id")
        columns = ("ingreso_id",) + REPORT_FIELDS
        placeholders = ", ".join(["%s"] * len(columns))
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in REPORT_FIELDS)
        query = (
            f"INSERT INTO informe_taller ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT (ingreso_id) DO UPDATE SET {updates}"
        )
        return query, [record.get(c) for c in columns]


# Global instance
secure_query_builder = WorkshopQueryBuilder()
