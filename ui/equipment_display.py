"""
Equipment Catalog UI

Searchable catalog table with forms to add, edit and delete equipment.
"""

import streamlit as st
import pandas as pd
import logging
from typing import Callable, List

from core.db import writers
from core.workshop.filters import filter_equipment
from core.workshop.models import Equipment
from ui.entry_display import run_write

logger = logging.getLogger(__name__)


def equipment_frame(equipment: List[Equipment]) -> pd.DataFrame:
    """Catalog as a display table."""
    return pd.DataFrame(
        [
            {
                'Interno': eq.id,
                'Tipo': eq.type,
                'Marca': eq.brand,
                'Modelo': eq.model,
                'Horas': eq.hours,
                'Valor nuevo (USD)': eq.replacement_value,
                'Demérito': eq.depreciation_factor,
                'Comentario': eq.general_comment or '',
            }
            for eq in equipment
        ],
        columns=['Interno', 'Tipo', 'Marca', 'Modelo', 'Horas', 'Valor nuevo (USD)', 'Demérito', 'Comentario']
    )


def _equipment_fields(prefix: str, current: Equipment = None) -> dict:
    current = current or Equipment(id="")
    col1, col2, col3 = st.columns(3)
    with col1:
        eq_type = st.text_input("Tipo", value=current.type, key=f"{prefix}_type")
        hours = st.number_input("Horas", min_value=0, value=int(current.hours or 0), step=1,
                                key=f"{prefix}_hours")
    with col2:
        brand = st.text_input("Marca", value=current.brand, key=f"{prefix}_brand")
        value = st.number_input("Valor nuevo (USD)", min_value=0.0,
                                value=float(current.replacement_value or 0), step=1000.0,
                                key=f"{prefix}_value")
    with col3:
        model = st.text_input("Modelo", value=current.model, key=f"{prefix}_model")
        factor = st.number_input("Demérito", min_value=0.0, max_value=1.0,
                                 value=float(current.depreciation_factor or 0.8), step=0.05,
                                 key=f"{prefix}_factor")
    comment = st.text_area("Comentario general", value=current.general_comment or "",
                           height=68, key=f"{prefix}_comment")
    return dict(type=eq_type, brand=brand, model=model, hours=int(hours),
                replacement_value=float(value), depreciation_factor=float(factor),
                general_comment=comment.strip() or None)


def render_equipment_page(equipment: List[Equipment], on_saved: Callable):
    """Catalog page: search, table, add, edit and delete."""
    st.header("🗂️ Catálogo de Equipos")

    term = st.text_input("Buscar por interno, marca o tipo", key="equipment_search")
    filtered = filter_equipment(equipment, term)
    st.dataframe(equipment_frame(filtered), use_container_width=True, hide_index=True)
    st.caption(f"{len(filtered)} de {len(equipment)} equipos")

    with st.expander("➕ Nuevo equipo", expanded=False):
        with st.form(key="new_equipment", clear_on_submit=True):
            interno = st.text_input("Interno", placeholder="E0000")
            fields = _equipment_fields("new_eq")
            if st.form_submit_button("Guardar equipo"):
                run_write(
                    lambda: writers.create_equipment(
                        Equipment(id=interno, **fields),
                        existing_ids=[eq.id for eq in equipment]
                    ),
                    f"Equipo {interno.upper()} agregado",
                    on_saved
                )

    if not equipment:
        return

    by_id = {eq.id: eq for eq in equipment}
    with st.expander("✏️ Editar / eliminar equipo", expanded=False):
        selected = st.selectbox("Interno", list(by_id), key="edit_equipment_select")
        current = by_id[selected]
        with st.form(key=f"edit_equipment_{selected}"):
            fields = _equipment_fields(f"edit_eq_{selected}", current)
            if st.form_submit_button("Guardar cambios"):
                run_write(
                    lambda: writers.update_equipment(Equipment(id=selected, **fields)),
                    f"Equipo {selected} actualizado",
                    on_saved
                )

        st.caption("Eliminar un equipo no elimina sus ingresos a taller.")
        confirm = st.checkbox(f"Confirmar eliminación de {selected}", key=f"confirm_eq_{selected}")
        if st.button("🗑️ Eliminar equipo", key=f"delete_eq_{selected}", disabled=not confirm):
            run_write(lambda: writers.delete_equipment(selected), f"Equipo {selected} eliminado", on_saved)
