"""
Sidebar filters and view selector
"""
import streamlit as st
from datetime import date
from typing import Dict, List

from config import settings
from engine.registry import DEFAULT_REGISTRY
from models.event import CalendarFilters, CalendarViewMode, Event, EventStatus


def _options(events: List[Event], attr: str) -> Dict[str, str]:
    """id -> display name for the snapshots present on the events"""
    options = {}
    for event in events:
        snapshot = getattr(event, attr)
        if snapshot is not None:
            options[snapshot.id] = snapshot.name
    return dict(sorted(options.items(), key=lambda item: item[1]))


def render_sidebar(events: List[Event], source_name: str):
    """
    Render sidebar with view controls and event filters
    Returns: dict with selected options
    """
    st.sidebar.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.sidebar.caption(f"Source: {source_name}")
    st.sidebar.markdown("---")

    # View selector
    st.sidebar.subheader("🗓️ View")
    modes = [m.value for m in CalendarViewMode]
    view_mode = st.sidebar.radio(
        "Calendar view",
        options=modes,
        index=modes.index(settings.DEFAULT_VIEW_MODE),
        format_func=str.title,
        horizontal=True,
    )
    anchor = st.sidebar.date_input(
        "Show period containing",
        value=date.today(),
        help="The month, week or day shown is the one containing this date"
    )

    refresh = st.sidebar.button("🔄 Refresh events", use_container_width=True)

    # Filters
    st.sidebar.markdown("---")
    st.sidebar.subheader("🔍 Filters")

    search = st.sidebar.text_input(
        "Search",
        placeholder="Title or description...",
    )

    properties = _options(events, 'property')
    property_ids = st.sidebar.multiselect(
        "Property",
        options=list(properties.keys()),
        format_func=lambda pid: properties[pid],
    )

    units = _options(events, 'unit')
    unit_ids = st.sidebar.multiselect(
        "Unit",
        options=list(units.keys()),
        format_func=lambda uid: units[uid],
    )

    assignees = _options(events, 'assignee')
    assignee_ids = st.sidebar.multiselect(
        "Assigned to",
        options=list(assignees.keys()),
        format_func=lambda aid: assignees[aid],
    )

    event_types = st.sidebar.multiselect(
        "Event type",
        options=[event_type for event_type, _ in DEFAULT_REGISTRY.items()],
        format_func=lambda t: f"{DEFAULT_REGISTRY.lookup(t).icon} {DEFAULT_REGISTRY.label(t)}",
    )

    statuses = st.sidebar.multiselect(
        "Status",
        options=list(EventStatus),
        format_func=lambda s: s.value.title(),
        help="Leave empty to show every status"
    )

    filters = CalendarFilters(
        property_ids=property_ids,
        unit_ids=unit_ids,
        assignee_ids=assignee_ids,
        event_types=event_types,
        statuses=statuses,
        search=search or None,
    )

    return {
        'view_mode': CalendarViewMode(view_mode),
        'anchor': anchor,
        'filters': filters,
        'refresh': refresh,
    }
