"""
Data Writing Module

Create, edit and delete operations for the equipment catalog, maintenance
entries, their actions and technical reports.

Every function runs in its own transaction. Failures are logged and raised
as PersistenceError; nothing is retried automatically.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import psycopg2

from .pool import get_connection
from .queries import secure_query_builder
from core.errors import PersistenceError
from core.workshop.models import (
    DEFAULT_PERFORMED_BY,
    Equipment,
    MaintenanceAction,
    MaintenanceEntry,
    TechnicalReport,
)

logger = logging.getLogger(__name__)


def new_id(prefix: str) -> str:
    """Unique record id such as 'ENT-3f2a9c1b7d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _execute(operation: str, statements: List[Tuple[str, List[Any]]]) -> int:
    """Run statements in one transaction and return the total affected row count."""
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            affected = 0
            for query, parameters in statements:
                cursor.execute(query, parameters)
                affected += max(cursor.rowcount, 0)
    except psycopg2.Error as e:
        logger.error(f"Error in {operation}: {e}", exc_info=True)
        raise PersistenceError(operation, e) from e

    logger.info(f"{operation}: {affected} rows affected")
    return affected


def _date_value(value) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# Equipment

def create_equipment(equipment: Equipment, existing_ids=()) -> Equipment:
    """
    Add a unit to the catalog. The interno is stored upper-case.

    Raises:
        ValueError: If the interno is empty or already in ``existing_ids``
    """
    interno = (equipment.id or "").strip().upper()
    if not interno:
        raise ValueError("Interno must not be empty")
    if interno in {i.upper() for i in existing_ids}:
        raise ValueError(f"Interno {interno} already exists")

    equipment.id = interno
    statement = secure_query_builder.build_insert_equipment(equipment.to_record())
    _execute("create_equipment", [statement])
    return equipment


def update_equipment(equipment: Equipment) -> int:
    """Replace every field of a catalog record."""
    statement = secure_query_builder.build_update_equipment(equipment.to_record())
    return _execute("update_equipment", [statement])


def delete_equipment(equipment_id: str) -> int:
    """Remove a unit from the catalog. Its maintenance entries are kept."""
    statement = secure_query_builder.build_delete_equipment(equipment_id)
    return _execute("delete_equipment", [statement])


# Entries and actions

def create_entry(
    equipment_id: str,
    entry_date,
    first_action: str,
    action_date,
    fault_report: str = "",
    performed_by: str = "",
    assigned_work: Optional[str] = None,
    comment: Optional[str] = None,
    departure_date_estimate=None
) -> MaintenanceEntry:
    """
    Register equipment entering the workshop with its intake action.

    Raises:
        ValueError: If the first action description is empty
    """
    if not first_action or not first_action.strip():
        raise ValueError("An entry needs a first action")

    entry = MaintenanceEntry(
        id=new_id("ENT"),
        equipment_id=equipment_id.strip().upper(),
        entry_date=_date_value(entry_date),
        fault_report=(fault_report or "").strip(),
        assigned_work=(assigned_work or "").strip() or None,
        comment=(comment or "").strip() or None,
        departure_date_estimate=_date_value(departure_date_estimate),
    )
    action = MaintenanceAction(
        id=new_id("ACT"),
        entry_id=entry.id,
        description=first_action.strip(),
        date=_date_value(action_date),
        performed_by=(performed_by or "").strip() or DEFAULT_PERFORMED_BY,
    )
    entry.actions.append(action)

    statements = [
        secure_query_builder.build_insert_entry({
            "id": entry.id,
            "equipo_id": entry.equipment_id,
            "fecha_ingreso": entry.entry_date,
            "obra_asignada": entry.assigned_work,
            "informe_fallas": entry.fault_report,
            "observaciones": entry.comment,
            "fecha_salida": entry.departure_date_estimate,
        }),
        secure_query_builder.build_insert_action(_action_record(action)),
    ]
    _execute("create_entry", statements)
    return entry


def _action_record(action: MaintenanceAction) -> Dict[str, Any]:
    return {
        "id": action.id,
        "ingreso_id": action.entry_id,
        "descripcion": action.description,
        "fecha_accion": action.date,
        "responsable": action.performed_by,
    }


def append_action(
    entry_id: str,
    description: str,
    action_date,
    performed_by: str = ""
) -> MaintenanceAction:
    """Append an action to the end of an entry's log."""
    action = MaintenanceAction(
        id=new_id("ACT"),
        entry_id=entry_id,
        description=(description or "").strip(),
        date=_date_value(action_date),
        performed_by=(performed_by or "").strip() or DEFAULT_PERFORMED_BY,
    )
    statement = secure_query_builder.build_insert_action(_action_record(action))
    _execute("append_action", [statement])
    return action


def update_action(
    action_id: str,
    description: Optional[str] = None,
    action_date=None,
    performed_by: Optional[str] = None
) -> int:
    """Edit one action in place; its position in the log does not change."""
    values = {}
    if description is not None:
        values["descripcion"] = description.strip()
    if action_date is not None:
        values["fecha_accion"] = _date_value(action_date)
    if performed_by is not None:
        values["responsable"] = performed_by.strip() or DEFAULT_PERFORMED_BY
    statement = secure_query_builder.build_update_action(action_id, values)
    return _execute("update_action", [statement])


def update_entry(
    entry_id: str,
    assigned_work: Optional[str] = None,
    fault_report: Optional[str] = None,
    entry_date=None,
    departure_date_estimate=None
) -> int:
    """Edit the intake fields of an entry."""
    values = {}
    if assigned_work is not None:
        values["obra_asignada"] = assigned_work.strip()
    if fault_report is not None:
        values["informe_fallas"] = fault_report.strip()
    if entry_date is not None:
        values["fecha_ingreso"] = _date_value(entry_date)
    if departure_date_estimate is not None:
        values["fecha_salida"] = _date_value(departure_date_estimate)
    statement = secure_query_builder.build_update_entry(entry_id, values)
    return _execute("update_entry", [statement])


def update_entry_comment(entry_id: str, comment: str) -> int:
    """Replace an entry's general observations."""
    statement = secure_query_builder.build_update_entry_comment(entry_id, (comment or "").strip())
    return _execute("update_entry_comment", [statement])


def delete_entry(entry_id: str) -> int:
    """Delete an entry together with its actions and technical report."""
    return _execute("delete_entry", secure_query_builder.build_delete_entry(entry_id))


def upsert_technical_report(report: TechnicalReport) -> int:
    """Create or replace the technical report of an entry."""
    statement = secure_query_builder.build_upsert_report(report.to_record())
    return _execute("upsert_technical_report", [statement])
