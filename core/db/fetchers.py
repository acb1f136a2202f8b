"""
Data Fetching Module

Reads the equipment catalog and the maintenance entries (with their nested
actions and technical reports) from the workshop database.

Rows are returned in whatever order the database produces; only the action
order within an entry is meaningful and it is preserved.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import psycopg2

from .pool import get_connection
from .queries import secure_query_builder
from core.errors import PersistenceError
from core.workshop.models import (
    Equipment,
    MaintenanceAction,
    MaintenanceEntry,
    TechnicalReport,
)

logger = logging.getLogger(__name__)


def _fetch_records(cursor, query: str, parameters: List[Any]) -> List[Dict[str, Any]]:
    """Execute a query and return rows as dictionaries keyed by column name."""
    cursor.execute(query, parameters)
    data = cursor.fetchall()
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row)) for row in data]


def rows_to_equipment(rows: Iterable[Mapping[str, Any]]) -> List[Equipment]:
    """Build Equipment records from ``equipos`` rows."""
    return [Equipment.from_record(row) for row in rows]


def rows_to_entries(
    entry_rows: Iterable[Mapping[str, Any]],
    action_rows: Iterable[Mapping[str, Any]],
    report_rows: Iterable[Mapping[str, Any]] = ()
) -> List[MaintenanceEntry]:
    """
    Assemble entries with their actions and reports.

    Actions keep the order of ``action_rows`` within each entry. Actions or
    reports pointing at an unknown entry are dropped with a warning.
    """
    actions_by_entry: Dict[str, List[MaintenanceAction]] = defaultdict(list)
    for row in action_rows:
        action = MaintenanceAction.from_record(row)
        actions_by_entry[action.entry_id].append(action)

    reports_by_entry = {}
    for row in report_rows:
        report = TechnicalReport.from_record(row)
        reports_by_entry[report.entry_id] = report

    entries = []
    for row in entry_rows:
        entry_id = str(row["id"])
        entries.append(MaintenanceEntry.from_record(
            row,
            actions=actions_by_entry.pop(entry_id, []),
            technical_report=reports_by_entry.pop(entry_id, None),
        ))

    if actions_by_entry:
        logger.warning(f"Dropped actions for unknown entries: {sorted(actions_by_entry)}")
    if reports_by_entry:
        logger.warning(f"Dropped reports for unknown entries: {sorted(reports_by_entry)}")

    return entries


def fetch_equipment() -> List[Equipment]:
    """
    Fetch the equipment catalog.

    Raises:
        PersistenceError: If the database read fails
    """
    logger.info("Fetching equipment catalog")

    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            query, parameters = secure_query_builder.build_equipment_query()
            rows = _fetch_records(cursor, query, parameters)

    except psycopg2.Error as e:
        logger.error(f"Error fetching equipment: {e}", exc_info=True)
        raise PersistenceError("fetch_equipment", e) from e

    equipment = rows_to_equipment(rows)
    logger.info(f"Successfully fetched {len(equipment)} equipment records")
    return equipment


def fetch_entries() -> List[MaintenanceEntry]:
    """
    Fetch all maintenance entries with nested actions and technical reports.

    Raises:
        PersistenceError: If the database read fails
    """
    logger.info("Fetching maintenance entries")

    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            query, parameters = secure_query_builder.build_entries_query()
            entry_rows = _fetch_records(cursor, query, parameters)

            query, parameters = secure_query_builder.build_actions_query()
            action_rows = _fetch_records(cursor, query, parameters)

            query, parameters = secure_query_builder.build_reports_query()
            report_rows = _fetch_records(cursor, query, parameters)

    except psycopg2.Error as e:
        logger.error(f"Error fetching maintenance entries: {e}", exc_info=True)
        raise PersistenceError("fetch_entries", e) from e

    entries = rows_to_entries(entry_rows, action_rows, report_rows)
    logger.info(
        f"Successfully fetched {len(entries)} entries with {len(action_rows)} actions "
        f"and {len(report_rows)} technical reports"
    )
    return entries


def fetch_snapshot() -> Tuple[List[Equipment], List[MaintenanceEntry]]:
    """Catalog and entries in one call, as consumed by the dashboard."""
    return fetch_equipment(), fetch_entries()
