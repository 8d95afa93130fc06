"""
Calendar summary cards
"""
import streamlit as st
import pandas as pd

from engine.registry import DEFAULT_REGISTRY
from models.event import CalendarSummary, EventType


def render_summary(summary: CalendarSummary):
    """
    Render summary cards with event counts
    """
    st.header("📊 Overview")

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            label="📅 Total Events",
            value=summary.total_events,
            help="Events matching the current filters"
        )

    with col2:
        st.metric(
            label="⏳ Upcoming",
            value=summary.upcoming_events,
        )

    with col3:
        st.metric(
            label="⚠️ Overdue",
            value=summary.overdue_events,
            delta=f"{summary.overdue_events} need attention" if summary.overdue_events else None,
            delta_color="inverse",
        )

    with col4:
        st.metric(
            label="✅ Completed",
            value=summary.completed_events,
        )

    if not summary.events_by_type:
        return

    with st.expander("Events by type", expanded=False):
        df_types = pd.DataFrame([
            {
                'Type': f"{DEFAULT_REGISTRY.lookup(EventType(t)).icon} {DEFAULT_REGISTRY.label(EventType(t))}",
                'Events': count,
            }
            for t, count in summary.events_by_type.items()
        ]).sort_values('Events', ascending=False)

        st.dataframe(
            df_types,
            hide_index=True,
            use_container_width=True
        )
