"""
Property Calendar
Main Streamlit Application - aggregated calendar of leases, payments,
maintenance, inspections, appliances and custom events
"""
import logging
from datetime import date, datetime

import streamlit as st

# Import engine
from engine.calendar_service import CalendarService
from engine.errors import UpstreamFetchError

# Import sources
from ingestion.source_client import RestSourceClient
from storage.database import Database
from storage.audit_log import AuditLog

# Import UI components
from ui.filters import render_sidebar
from ui.summary import render_summary
from ui.calendar_view import render_calendar
from ui.tasks import render_tasks
from ui.event_details import render_event_details, render_new_event_panel, render_audit_trail

# Import config
from config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title=settings.APP_TITLE,
    page_icon=settings.APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------

def build_source():
    """Hosted backend when configured, else the local DuckDB store with demo data."""
    if settings.BACKEND_URL:
        return RestSourceClient()

    database = Database()
    if database.conn is not None and not database.fetch_rows("property"):
        database.seed_sample_data(date.today())
    return database


def initialize_session_state():
    """Initialize session state variables."""
    if "service" not in st.session_state:
        audit_log = AuditLog()
        st.session_state.audit_log = audit_log
        st.session_state.service = CalendarService(build_source(), audit_log=audit_log)
    defaults = {
        "events": [],
        "needs_refresh": True,
        "refreshed_at": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def refresh_events(service: CalendarService):
    """Run a full rebuild; keep the previous events when the backend fails."""
    try:
        st.session_state.events = service.refresh()
        st.session_state.refreshed_at = datetime.now()
    except UpstreamFetchError as e:
        logger.error("Calendar refresh failed: %s", e)
        st.error(f"❌ Could not load calendar data: {e}")
    st.session_state.needs_refresh = False

    report = service.last_report
    if report.skipped:
        st.warning(
            f"⚠️ {report.skipped} record(s) could not be placed on the calendar "
            f"({', '.join(f'{k}: {v}' for k, v in report.skipped_by_kind().items())})"
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    initialize_session_state()
    service: CalendarService = st.session_state.service
    audit_log: AuditLog = st.session_state.audit_log

    if st.session_state.needs_refresh:
        with st.spinner("Loading calendar…"):
            refresh_events(service)

    all_events = st.session_state.events
    sidebar = render_sidebar(all_events, type(service.source).__name__)

    if sidebar["refresh"]:
        with st.spinner("Loading calendar…"):
            refresh_events(service)
        all_events = st.session_state.events

    st.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.markdown("---")

    today = service.clock().date()
    aggregator = service.aggregator
    events = aggregator.aggregate(all_events, sidebar["filters"])

    render_summary(aggregator.summarize(events))
    st.markdown("---")

    tab_calendar, tab_tasks, tab_details, tab_activity = st.tabs(
        ["🗓️ Calendar", "✅ Tasks", "🔎 Details", "📜 Activity"]
    )

    with tab_calendar:
        render_calendar(events, sidebar["view_mode"], sidebar["anchor"], aggregator, today)

    with tab_tasks:
        render_tasks(
            aggregator.task_data(events, today),
            aggregator.today_tasks(events, today),
        )

    with tab_details:
        changed = render_event_details(events, service)
        st.markdown("---")
        changed = render_new_event_panel(service) or changed
        if changed:
            st.session_state.needs_refresh = True
            st.rerun()

    with tab_activity:
        render_audit_trail(audit_log)
        with st.expander("🗂️ Raw events"):
            st.dataframe(aggregator.to_dataframe(events), use_container_width=True)

    st.markdown("---")
    refreshed_at = st.session_state.refreshed_at
    st.caption(
        f"{settings.APP_TITLE} | "
        f"{len(all_events)} events | "
        f"refreshed {refreshed_at.strftime('%Y-%m-%d %H:%M') if refreshed_at else 'never'}"
    )


if __name__ == "__main__":
    main()
