"""
Dashboard Display Functions

UI components for the workshop KPIs: stat cards, current status distribution
and the most frequent equipment types.
"""

import streamlit as st
import plotly.graph_objects as go
import logging

from core.analysis.dashboard import DashboardStats, status_breakdown_frame, type_breakdown_frame
from core.analysis.reports import frame_to_csv_bytes, kpi_table
from utils.formatting import STATUS_COLORS, format_currency_abbr, status_label

logger = logging.getLogger(__name__)


def render_kpi_cards(stats: DashboardStats):
    """
    Display the headline KPIs.

    Shows equipment in the workshop, historical reworks, average stay,
    average parts wait, operative count and total estimated loss.
    """
    col1, col2, col3, col4, col5, col6 = st.columns(6)

    with col1:
        st.metric("Equipos en Taller", stats.currently_in_workshop,
                  help="Equipos no operativos hoy")

    with col2:
        st.metric("Total Retrabajos", stats.historical_reworks,
                  delta=f"{stats.reworks_in_workshop} en taller", delta_color="off",
                  help="Historial de reintervenciones")

    with col3:
        st.metric("Estadía Promedio", f"{stats.average_stay:.2f} d.",
                  help="Σ estadías / total ingresos")

    with col4:
        st.metric("Espera Repuestos", f"{stats.average_parts_wait:.1f} d.",
                  help="Demora promedio en compras")

    with col5:
        st.metric("Operativos", stats.operative_count,
                  help="Equipos con salida de taller")

    with col6:
        st.metric("Pérdida Estimada", format_currency_abbr(stats.total_estimated_loss),
                  help="Facturación estimada perdida por estadía")


def render_status_chart(stats: DashboardStats):
    """Donut chart of the current status of every entry."""
    df = status_breakdown_frame(stats)

    fig = go.Figure(go.Pie(
        labels=[status_label(s) for s in df['status']],
        values=df['count'],
        hole=0.55,
        marker=dict(colors=[STATUS_COLORS[s] for s in df['status']]),
        sort=False,
        hovertemplate='%{label}<br>%{value} equipos<extra></extra>'
    ))
    fig.update_layout(
        height=380,
        legend=dict(orientation="h", yanchor="bottom", y=-0.2, xanchor="center", x=0.5)
    )
    st.plotly_chart(fig, use_container_width=True)


def render_type_chart(stats: DashboardStats):
    """Horizontal bar chart of entry counts per equipment type."""
    df = type_breakdown_frame(stats)

    if df.empty:
        st.info("Sin ingresos con equipos del catálogo")
        return

    fig = go.Figure(go.Bar(
        x=df['count'],
        y=df['type'],
        orientation='h',
        marker_color='#6366F1',
        hovertemplate='%{y}<br>%{x} ingresos<extra></extra>'
    ))
    fig.update_layout(
        height=380,
        yaxis=dict(autorange='reversed', tickfont=dict(size=9)),
        xaxis=dict(visible=False),
        margin=dict(l=30)
    )
    st.plotly_chart(fig, use_container_width=True)


def render_dashboard(stats: DashboardStats):
    """Full dashboard page: cards, charts and the KPI table download."""
    logger.debug(f"Rendering dashboard for {stats.total_entries} entries")

    render_kpi_cards(stats)
    st.divider()

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Estado Actual de Equipos")
        render_status_chart(stats)
    with col2:
        st.subheader("Ingresos por Tipo de Equipo")
        render_type_chart(stats)

    kpis = kpi_table(stats)
    with st.expander("📋 Resumen de Indicadores", expanded=False):
        st.dataframe(kpis, use_container_width=True, hide_index=True)
        st.download_button(
            label="📥 Descargar indicadores (CSV)",
            data=frame_to_csv_bytes(kpis),
            file_name="indicadores_taller.csv",
            mime="text/csv",
            key="download_kpis"
        )
