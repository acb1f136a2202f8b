"""
Entry Display UI Components

Cards for maintenance entries: header with status and stay, the stage table,
and the forms that append or edit actions, comments and technical reports.
"""

import streamlit as st
import logging
from datetime import date
from typing import Callable, Optional

from core.analysis.reports import action_table
from core.calculations.dates import parse_date
from core.calculations.loss import estimate_loss
from core.calculations.rework import ReworkDetector
from core.calculations.status import StatusClassifier
from core.db import writers
from core.errors import PersistenceError
from core.workshop.models import (
    REPORT_FIELDS,
    Equipment,
    MaintenanceEntry,
    TechnicalReport,
    is_completed,
    toggle_completed,
)
from utils.formatting import format_currency_abbr, format_date_display, status_label

logger = logging.getLogger(__name__)

REPORT_LABELS = {
    "motor": "Motor",
    "sistema_hidraulico": "Sistema Hidráulico",
    "sistema_electrico": "Sistema Eléctrico",
    "sistema_neumatico": "Sistema Neumático",
    "estructura": "Estructura / Chasis",
    "cabina": "Cabina / Operador",
    "tren_rodante": "Tren Rodante / Neumáticos",
    "elementos_desgaste": "Elementos de Desgaste",
    "componentes_especificos": "Componentes Específicos",
    "observaciones": "Observaciones Finales",
}


def run_write(action: Callable, success_message: str, on_saved: Callable) -> bool:
    """
    Run a database write and report the outcome.

    Persistence errors are shown to the user, who can submit again; invalid
    input is shown as a warning.
    """
    try:
        action()
    except ValueError as e:
        st.warning(str(e))
        return False
    except PersistenceError as e:
        logger.error(f"Write failed: {e}")
        st.error(f"❌ {e}. Revise la conexión y vuelva a intentar.")
        return False

    st.success(success_message)
    on_saved()
    return True


def render_entry_header(
    entry: MaintenanceEntry,
    equipment: Optional[Equipment],
    classifier: StatusClassifier,
    reference_date: date,
    show_loss: bool = False
):
    """One-line summary of an entry: interno, equipment, status, stay and loss."""
    result = classifier.classify(entry, reference_date)
    eq_text = f"{equipment.type} | {equipment.brand} {equipment.model}" if equipment else "Equipo desconocido"

    col1, col2, col3, col4 = st.columns([3, 2, 1, 2])
    with col1:
        st.markdown(f"**INTERNO {entry.equipment_id}** · {eq_text}")
        st.caption(
            f"Ingreso: {format_date_display(entry.entry_date)}"
            + (f" · Obra: {entry.assigned_work}" if entry.assigned_work else "")
            + (f" · Salida est.: {format_date_display(entry.departure_date_estimate)}"
               if entry.departure_date_estimate else "")
        )
    with col2:
        st.markdown(f"**{status_label(result.status)}**")
        if ReworkDetector(classifier.keywords).has_rework(entry.actions):
            st.caption("🔁 Retrabajo")
    with col3:
        st.metric("Estadía", f"{result.total_days} d.")
    with col4:
        if show_loss:
            st.metric("Pérdida estimada", f"-{format_currency_abbr(estimate_loss(result.total_days, equipment))}")


def render_action_form(entry: MaintenanceEntry, reference_date: date, on_saved: Callable):
    """Form appending a new action to the entry's log."""
    with st.form(key=f"add_action_{entry.id}", clear_on_submit=True):
        description = st.text_input("Nueva acción", placeholder="Ej: Pedido de repuestos / Operativo")
        col1, col2 = st.columns(2)
        with col1:
            performed_by = st.text_input("Responsable")
        with col2:
            action_date = st.date_input("Fecha", value=reference_date)

        if st.form_submit_button("Agregar acción"):
            if not description.strip():
                st.warning("La acción no puede estar vacía")
                return
            run_write(
                lambda: writers.append_action(entry.id, description, action_date, performed_by),
                "Acción registrada",
                on_saved
            )


def render_edit_action_form(entry: MaintenanceEntry, on_saved: Callable):
    """Form editing one existing action in place."""
    if not entry.actions:
        return

    options = {f"{i + 1}. {a.description}": a for i, a in enumerate(entry.actions)}
    selected = st.selectbox("Editar acción", list(options), key=f"edit_select_{entry.id}")
    action = options[selected]

    with st.form(key=f"edit_action_{entry.id}"):
        description = st.text_input("Descripción", value=action.description)
        performed_by = st.text_input("Responsable", value=action.performed_by)
        action_date = st.text_input("Fecha (AAAA-MM-DD)", value=str(action.date or ""))

        if st.form_submit_button("Guardar cambios"):
            run_write(
                lambda: writers.update_action(
                    action.id, description, parse_date(action_date, field="fecha_accion"), performed_by
                ),
                "Acción actualizada",
                on_saved
            )


def intake_changes(
    entry: MaintenanceEntry,
    assigned_work: str,
    fault_report: str,
    entry_date: date,
    departure_text: str
) -> dict:
    """
    Keyword arguments for writers.update_entry with only the edited intake fields.

    Raises:
        MalformedDateError: If the estimated departure is not a YYYY-MM-DD date
    """
    changes = {}
    if assigned_work.strip() != (entry.assigned_work or ""):
        changes["assigned_work"] = assigned_work
    if fault_report.strip() != (entry.fault_report or ""):
        changes["fault_report"] = fault_report
    if entry_date != parse_date(entry.entry_date, field="entry_date", entry_id=entry.id):
        changes["entry_date"] = entry_date
    if departure_text.strip():
        departure = parse_date(departure_text, field="fecha_salida", entry_id=entry.id)
        current = entry.departure_date_estimate
        if current is None or current == "" or departure != parse_date(current, field="fecha_salida"):
            changes["departure_date_estimate"] = departure
    return changes


def render_edit_entry_form(entry: MaintenanceEntry, on_saved: Callable):
    """Form editing the intake fields: assigned work, symptoms, entry and departure dates."""
    with st.form(key=f"edit_entry_{entry.id}"):
        col1, col2 = st.columns(2)
        with col1:
            assigned_work = st.text_input("Obra asignada", value=entry.assigned_work or "")
            entry_date = st.date_input(
                "Fecha de ingreso",
                value=parse_date(entry.entry_date, field="entry_date", entry_id=entry.id)
            )
        with col2:
            departure_text = st.text_input(
                "Salida estimada (AAAA-MM-DD)",
                value=str(entry.departure_date_estimate or "")
            )
        fault_report = st.text_area("Informe preliminar / síntomas",
                                    value=entry.fault_report or "", height=68)

        if st.form_submit_button("Guardar ingreso"):
            try:
                changes = intake_changes(entry, assigned_work, fault_report, entry_date, departure_text)
            except ValueError as e:
                st.warning(str(e))
                return
            if not changes:
                st.info("Sin cambios")
                return
            run_write(
                lambda: writers.update_entry(entry.id, **changes),
                "Ingreso actualizado",
                on_saved
            )


def render_comment_form(entry: MaintenanceEntry, on_saved: Callable):
    """Form editing the entry's general observations."""
    with st.form(key=f"comment_{entry.id}"):
        comment = st.text_area("Observaciones generales", value=entry.comment or "", height=80)
        if st.form_submit_button("Guardar observaciones"):
            run_write(
                lambda: writers.update_entry_comment(entry.id, comment),
                "Observaciones guardadas",
                on_saved
            )


def render_report_form(entry: MaintenanceEntry, reference_date: date, on_saved: Callable):
    """Technical report checklist, created or replaced on save."""
    report = entry.technical_report or TechnicalReport(entry.id)

    with st.form(key=f"report_{entry.id}"):
        values = {}
        completed = {}
        for name in REPORT_FIELDS:
            current = report.get(name)
            values[name] = st.text_area(REPORT_LABELS[name], value=current, height=68,
                                        key=f"report_{entry.id}_{name}")
            completed[name] = st.checkbox("Completado", value=is_completed(current),
                                          key=f"report_{entry.id}_{name}_done")

        if st.form_submit_button("Guardar informe"):
            fields = {}
            for name, text in values.items():
                if completed[name] != is_completed(text):
                    text = toggle_completed(text, reference_date)
                fields[name] = text
            run_write(
                lambda: writers.upsert_technical_report(TechnicalReport(entry.id, fields)),
                "Informe técnico guardado",
                on_saved
            )


def render_delete_button(entry: MaintenanceEntry, on_saved: Callable):
    """Delete an entry after an explicit confirmation."""
    confirm = st.checkbox("Confirmar eliminación del ingreso y sus acciones",
                          key=f"confirm_delete_{entry.id}")
    if st.button("🗑️ Eliminar ingreso", key=f"delete_{entry.id}", disabled=not confirm):
        run_write(lambda: writers.delete_entry(entry.id), "Ingreso eliminado", on_saved)


def render_entry_card(
    entry: MaintenanceEntry,
    equipment: Optional[Equipment],
    classifier: StatusClassifier,
    reference_date: date,
    on_saved: Callable,
    show_loss: bool = False,
    with_report: bool = False
):
    """
    Render a full entry card.

    Args:
        entry: Maintenance entry
        equipment: Resolved catalog record, or None if unknown
        classifier: Status classifier shared by the page
        reference_date: "Today"
        on_saved: Callback after a successful write (reloads data)
        show_loss: Show the estimated loss metric (history page)
        with_report: Show the technical report form (history page)
    """
    with st.container(border=True):
        render_entry_header(entry, equipment, classifier, reference_date, show_loss)

        with st.expander("Historial de acciones", expanded=False):
            st.markdown(f"**Informe preliminar / síntomas:** {entry.fault_report or 'Sin información preliminar registrada.'}")
            st.dataframe(action_table(entry, reference_date, classifier),
                         use_container_width=True, hide_index=True)

            tab_add, tab_edit, tab_intake, tab_comment = st.tabs(
                ["Nueva acción", "Editar acción", "Editar ingreso", "Observaciones"]
            )
            with tab_add:
                render_action_form(entry, reference_date, on_saved)
            with tab_edit:
                render_edit_action_form(entry, on_saved)
            with tab_intake:
                render_edit_entry_form(entry, on_saved)
            with tab_comment:
                render_comment_form(entry, on_saved)

            if with_report:
                st.markdown("**Informe técnico**")
                render_report_form(entry, reference_date, on_saved)

            render_delete_button(entry, on_saved)


def render_new_entry_form(equipment_index, reference_date: date, on_saved: Callable):
    """Form registering equipment entering the workshop with its intake action."""
    with st.form(key="new_entry", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            interno = st.text_input("Interno", placeholder="E1402")
            entry_date = st.date_input("Fecha de ingreso", value=reference_date)
            assigned_work = st.text_input("Obra asignada")
        with col2:
            first_action = st.text_input("Primera acción", placeholder="Ingreso a taller - Diagnóstico")
            action_date = st.date_input("Fecha de la acción", value=reference_date)
            performed_by = st.text_input("Responsable")
        fault_report = st.text_area("Informe preliminar / síntomas", height=68)
        comment = st.text_area("Observaciones", height=68)

        if st.form_submit_button("Registrar ingreso"):
            key = interno.strip().upper()
            if key not in equipment_index:
                st.warning(f"El interno '{interno}' no existe en el catálogo")
                return
            run_write(
                lambda: writers.create_entry(
                    key, entry_date, first_action, action_date,
                    fault_report=fault_report, performed_by=performed_by,
                    assigned_work=assigned_work, comment=comment
                ),
                f"Ingreso de {key} registrado",
                on_saved
            )
