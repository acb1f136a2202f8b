"""
Workshop Tracker - Main Application

Tracks equipment in the repair workshop:
- Tracking: units still in the workshop, their action log and stay
- History: operative units with estimated downtime loss and technical reports
- Equipment: master catalog
- Dashboard: KPIs and charts

Status, stay, loss and rework figures all come from the core engine.
"""

import streamlit as st
import logging

from config import Config
from utils.auth import check_password
from utils.config import get_app_config, get_keyword_config, load_config, validate_config
from core.analysis.dashboard import DashboardAggregator
from core.analysis.reports import entry_summary_frame, frame_to_csv_bytes
from core.calculations.dates import today
from core.calculations.status import StatusClassifier
from core.db.fetchers import fetch_snapshot
from core.errors import MalformedDateError, PersistenceError
from core.workshop.filters import (
    WORKSHOP_CATEGORIES,
    in_workshop,
    matches_search,
    operative_history,
    tracking_order,
)
from core.workshop.models import build_equipment_index, resolve_equipment
from ui.dashboard_display import render_dashboard
from ui.entry_display import render_entry_card, render_new_entry_form
from ui.equipment_display import render_equipment_page

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load configuration
load_config()
app_config = get_app_config()

# Streamlit page config
st.set_page_config(
    page_title="GEyT - Seguimiento de Taller",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Validate configuration
config_errors = validate_config()
if config_errors:
    st.error("❌ Configuration errors detected:")
    for error in config_errors:
        st.error(error)
    st.stop()


@st.cache_data(ttl=app_config["cache_ttl_seconds"], show_spinner="Cargando datos del taller...")
def load_snapshot():
    return fetch_snapshot()


def reload_data():
    load_snapshot.clear()
    st.rerun()


# Login gate
if not st.session_state.get("authenticated", False):
    st.title("🔒 GEyT - Seguimiento de Taller")
    with st.form("login"):
        password = st.text_input("Contraseña", type="password")
        if st.form_submit_button("Ingresar"):
            if check_password(password, Config.SHARED_PASSWORD):
                st.session_state["authenticated"] = True
                st.rerun()
            else:
                st.error("Contraseña incorrecta")
    st.stop()

# Sidebar navigation
with st.sidebar:
    st.header("GEyT Taller")
    page = st.radio("Vista", ["Seguimiento", "Historial", "Equipos", "Dashboard"])
    st.divider()
    if st.button("🔄 Recargar datos"):
        reload_data()
    if st.button("Cerrar sesión"):
        st.session_state["authenticated"] = False
        st.rerun()

try:
    equipment, entries = load_snapshot()
except PersistenceError as e:
    logger.error(f"Could not load workshop data: {e}")
    st.error(f"❌ No se pudieron cargar los datos: {e}")
    if st.button("Reintentar"):
        reload_data()
    st.stop()

reference_date = today(Config.TIMEZONE)
classifier = StatusClassifier(get_keyword_config())
equipment_index = build_equipment_index(equipment)

try:
    if page == "Seguimiento":
        st.header("🔧 Seguimiento de Taller")

        with st.expander("➕ Nuevo ingreso a taller", expanded=False):
            render_new_entry_form(equipment_index, reference_date, reload_data)

        term = st.text_input("Buscar por interno, síntoma, tipo o marca", key="tracking_search")
        active = [
            entry for entry in tracking_order(in_workshop(entries, reference_date, classifier),
                                              reference_date, classifier)
            if matches_search(entry, equipment_index, term)
        ]
        st.caption(f"{len(active)} equipos en taller")

        for entry in active:
            render_entry_card(entry, resolve_equipment(equipment_index, entry),
                              classifier, reference_date, reload_data)

    elif page == "Historial":
        st.header("✅ Historial / Equipos Operativos")

        col1, col2 = st.columns([3, 1])
        with col1:
            term = st.text_input("Buscar", key="history_search")
        with col2:
            category = st.selectbox("Sector", ("all",) + WORKSHOP_CATEGORIES,
                                    format_func=lambda c: "Todos" if c == "all" else c.capitalize())

        history = operative_history(entries, equipment_index, reference_date, term, category, classifier)
        summary = entry_summary_frame(history, equipment_index, reference_date, classifier)
        st.download_button(
            label="📥 Exportar operativos (CSV)",
            data=frame_to_csv_bytes(summary),
            file_name=f"Operativos_{reference_date.strftime('%d-%m-%Y')}.csv",
            mime="text/csv",
            key="download_history"
        )

        for entry in history:
            render_entry_card(entry, resolve_equipment(equipment_index, entry),
                              classifier, reference_date, reload_data,
                              show_loss=True, with_report=True)
        if not history:
            st.info("No hay equipos operativos registrados en el historial.")

    elif page == "Equipos":
        render_equipment_page(equipment, reload_data)

    else:
        st.header("📊 Dashboard de Taller")
        aggregator = DashboardAggregator(classifier, top_n=app_config["top_types"])
        render_dashboard(aggregator.aggregate(entries, equipment_index, reference_date))

except MalformedDateError as e:
    logger.error(f"Malformed workshop data: {e}")
    st.error(f"❌ Dato inválido: {e}. Corrija la fecha indicada y recargue.")

st.caption("GEyT - Sistema de Seguimiento de Taller")
