"""
Event details panel with actions, custom event form and audit trail
"""
import streamlit as st
from datetime import date, datetime
from typing import List

from engine.calendar_service import CalendarService, DispatchResult
from engine.errors import UpstreamFetchError
from models.event import CustomEventInput, Event, RECURRING_PATTERNS
from storage.audit_log import AuditLog
from utils.helpers import format_date


def _show_result(result: DispatchResult):
    if result.ok:
        st.success(f"✅ {result.message}")
    else:
        st.error(result.message)


def event_label(event: Event) -> str:
    return f"{format_date(event.date)} · {event.icon} {event.title}"


def render_event_details(events: List[Event], service: CalendarService):
    """
    Render details and actions for a selected event
    Returns True when the event stream needs a refresh
    """
    st.header("🔎 Event Details")

    if not events:
        st.info("No events to show.")
        return False

    options = {e.id: e for e in events}
    selected_id = st.selectbox(
        "Choose an event:",
        options=list(options.keys()),
        format_func=lambda event_id: event_label(options[event_id]),
    )
    event = options[selected_id]

    col1, col2, col3 = st.columns(3)
    with col1:
        st.write(f"**Type:** {service.registry.label(event.type)}")
        st.write(f"**Date:** {format_date(event.date)}")
        if event.end_date and event.end_date != event.date:
            st.write(f"**Ends:** {format_date(event.end_date)}")
        if event.time:
            st.write(f"**Time:** {event.time}")
    with col2:
        st.write(f"**Status:** {event.status.value.title()}")
        if event.property:
            st.write(f"**Property:** {event.property.name}")
        if event.unit:
            st.write(f"**Unit:** {event.unit.name}")
    with col3:
        if event.assignee:
            st.write(f"**Assigned to:** {event.assignee.name} ({event.assignee.type})")
        if event.is_recurring:
            st.write(f"**Repeats:** {event.recurring_pattern}")
        if event.tags:
            st.write(f"**Tags:** {', '.join(event.tags)}")

    if event.description:
        st.info(event.description)

    if not event.actions:
        st.caption("No actions available for this event.")
        return False

    st.markdown("---")
    changed = False
    action_cols = st.columns(len(event.actions))

    for col, action in zip(action_cols, event.actions):
        with col:
            if action.type == "navigate":
                st.link_button(action.label, action.href, use_container_width=True)
                continue

            if action.type == "reschedule":
                new_date = st.date_input("New date", value=event.date, key=f"reschedule_{event.id}")
                if st.button(action.label, key=f"{action.id}_{event.id}", use_container_width=True):
                    changed = _dispatch(service, event, action.id, new_date=new_date)
                continue

            if action.type == "edit":
                with st.popover(action.label, use_container_width=True):
                    updates = render_custom_event_form(f"edit_{event.id}", event)
                    if updates is not None:
                        changed = _dispatch(service, event, action.id, updates=updates)
                continue

            if st.button(action.label, key=f"{action.id}_{event.id}", use_container_width=True):
                changed = _dispatch(service, event, action.id)

    return changed


def _dispatch(service: CalendarService, event: Event, action_id: str, **kwargs) -> bool:
    try:
        result = service.dispatch_action(event, action_id, **kwargs)
    except UpstreamFetchError as e:
        st.error(f"Backend error: {e}")
        return False
    _show_result(result)
    return result.ok


def render_custom_event_form(key: str, event: Event = None):
    """
    Form for creating or editing a custom event
    Returns a CustomEventInput when submitted, else None
    """
    with st.form(key=key, clear_on_submit=event is None):
        title = st.text_input("Title", value=event.title if event else "", key=f"{key}_title")
        description = st.text_area(
            "Description", value=(event.description or "") if event else "", key=f"{key}_description"
        )

        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input("Date", value=event.date if event else date.today(), key=f"{key}_date")
            all_day = st.checkbox("All day", value=event.all_day if event else False, key=f"{key}_all_day")
        with col2:
            end = st.date_input(
                "End date", value=(event.end_date or event.date) if event else None, key=f"{key}_end_date"
            )
            time_value = st.text_input("Time (HH:MM)", value=(event.time or "") if event else "", key=f"{key}_time")

        tags = st.text_input(
            "Tags (comma separated)", value=", ".join(event.tags) if event else "", key=f"{key}_tags"
        )

        is_recurring = st.checkbox("Repeats", value=event.is_recurring if event else False, key=f"{key}_recurring")
        patterns = list(RECURRING_PATTERNS)
        pattern = st.selectbox(
            "Repeat pattern",
            options=patterns,
            index=patterns.index(event.recurring_pattern) if event and event.recurring_pattern else 0,
            key=f"{key}_pattern",
        )

        submit = st.form_submit_button("💾 Save")

    if not submit:
        return None

    return CustomEventInput(
        title=title,
        date=start,
        description=description or None,
        end_date=end if end and end != start else None,
        time=time_value or None,
        all_day=all_day,
        property_id=event.property_id if event else None,
        unit_id=event.unit_id if event else None,
        tags=[t.strip() for t in tags.split(",") if t.strip()],
        is_recurring=is_recurring,
        recurring_pattern=pattern if is_recurring else None,
    )


def render_new_event_panel(service: CalendarService):
    """
    Create a custom event
    Returns True when an event was created
    """
    st.subheader("➕ New Custom Event")
    event_input = render_custom_event_form("new_custom_event")
    if event_input is None:
        return False

    try:
        result = service.create_custom_event(event_input)
    except UpstreamFetchError as e:
        st.error(f"Backend error: {e}")
        return False
    _show_result(result)
    return result.ok


def render_audit_trail(audit_log: AuditLog):
    """Render recent audit trail"""
    st.subheader("📜 Recent Activity")

    logs = audit_log.get_recent_logs(limit=20)

    if not logs:
        st.info("No activity recorded yet.")
        return

    for log in reversed(logs):  # Most recent first
        timestamp = log.get('timestamp', '')
        action = log.get('action', '')
        user = log.get('user', '')
        details = log.get('details', {})

        try:
            timestamp_str = datetime.fromisoformat(timestamp).strftime('%Y-%m-%d %H:%M:%S')
        except ValueError:
            timestamp_str = timestamp

        if action == 'event_action':
            outcome = "ran" if details.get('accepted') else "was refused"
            title = f"{timestamp_str} - {user} {outcome} {details.get('action_id')} on {details.get('event_id')}"
        elif action == 'data_refresh':
            title = f"{timestamp_str} - refreshed {details.get('events_built', 0)} events from {details.get('source')}"
        else:
            title = f"{timestamp_str} - {action.replace('_', ' ')}"

        with st.expander(title):
            st.write(f"**Action:** {action}")
            st.write(f"**User:** {user}")
            for key, value in details.items():
                st.write(f"  • {key}: {value}")
