"""
Report Tables

Tabular views of entries and KPIs shared by the Streamlit pages and the CSV
export. Every duration here comes from stage_durations or the classifier.
"""

import io
import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from core.analysis.dashboard import DashboardStats
from core.calculations.loss import estimate_loss
from core.calculations.rework import ReworkDetector
from core.calculations.stages import stage_durations
from core.calculations.status import StatusClassifier, StatusKind
from core.workshop.models import EquipmentIndex, MaintenanceEntry, resolve_equipment
from utils.formatting import (
    format_currency_abbr,
    format_date_display,
    format_days,
    status_label,
)

logger = logging.getLogger(__name__)

ACTION_TABLE_COLUMNS = ['Fecha', 'Acción', 'Responsable', 'Parcial', 'Acumulado']

ENTRY_SUMMARY_COLUMNS = [
    'interno', 'tipo', 'marca_modelo', 'fecha_ingreso', 'estado',
    'estadia_dias', 'perdida_estimada_usd', 'retrabajo',
]


def action_table(
    entry: MaintenanceEntry,
    reference_date,
    classifier: Optional[StatusClassifier] = None
) -> pd.DataFrame:
    """
    Action history of an entry with partial and accumulated stay per stage.

    Returns:
        DataFrame with columns Fecha, Acción, Responsable, Parcial, Acumulado
    """
    rows = [
        {
            'Fecha': format_date_display(stage.action.date),
            'Acción': stage.action.description,
            'Responsable': stage.action.performed_by or '-',
            'Parcial': format_days(stage.stage_days),
            'Acumulado': format_days(stage.cumulative_days),
        }
        for stage in stage_durations(entry, reference_date, classifier)
    ]
    return pd.DataFrame(rows, columns=ACTION_TABLE_COLUMNS)


def entry_summary_frame(
    entries: Iterable[MaintenanceEntry],
    equipment_index: EquipmentIndex,
    reference_date,
    classifier: Optional[StatusClassifier] = None
) -> pd.DataFrame:
    """
    One row per entry with status, stay, estimated loss and rework flag.

    Entries whose equipment is missing from the catalog show "N/A" as type
    and a loss of 0.
    """
    classifier = classifier or StatusClassifier()
    detector = ReworkDetector(classifier.keywords)

    rows = []
    for entry in entries:
        result = classifier.classify(entry, reference_date)
        eq = resolve_equipment(equipment_index, entry)
        rows.append({
            'interno': entry.equipment_id,
            'tipo': eq.type if eq else 'N/A',
            'marca_modelo': f"{eq.brand} {eq.model}".strip() if eq else '',
            'fecha_ingreso': format_date_display(entry.entry_date),
            'estado': status_label(result.status),
            'estadia_dias': result.total_days,
            'perdida_estimada_usd': estimate_loss(result.total_days, eq),
            'retrabajo': detector.has_rework(entry.actions),
        })

    df = pd.DataFrame(rows, columns=ENTRY_SUMMARY_COLUMNS)
    if not df.empty:
        df['perdida_estimada_usd'] = np.round(df['perdida_estimada_usd'].astype(float), 2)
    logger.debug(f"Built summary for {len(df)} entries")
    return df


def kpi_table(stats: DashboardStats) -> pd.DataFrame:
    """Key performance indicators as a two-column table."""
    rows = [
        ('Equipos actualmente en Taller', stats.currently_in_workshop),
        ('Estadía Promedio Total (días)', f"{stats.average_stay:.2f} d."),
        ('Total Equipos Operativos (Histórico)', stats.status_counts[StatusKind.OPERATIVE]),
        ('Equipos en Prueba (Actual)', stats.status_counts[StatusKind.TESTING]),
        ('Equipos en Espera de Repuestos (Actual)', stats.status_counts[StatusKind.WAITING_PARTS]),
        ('Equipos en Reparación Activa (Actual)', stats.status_counts[StatusKind.IN_REPAIR]),
        ('Total Retrabajos (Histórico)', stats.historical_reworks),
        ('Retrabajos en Taller (Actual)', stats.reworks_in_workshop),
        ('Espera Promedio de Repuestos (días)', f"{stats.average_parts_wait:.1f} d."),
        ('Pérdida de Facturación Estimada', format_currency_abbr(stats.total_estimated_loss)),
    ]
    return pd.DataFrame(rows, columns=['Indicador', 'Valor'])


def frame_to_csv_bytes(df: pd.DataFrame) -> bytes:
    """CSV payload for download buttons (UTF-8 with BOM so spreadsheets keep accents)."""
    csv_buffer = io.StringIO()
    df.to_csv(csv_buffer, index=False)
    return csv_buffer.getvalue().encode('utf-8-sig')
