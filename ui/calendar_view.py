"""
Calendar views - month/week timeline and agenda list
"""
import streamlit as st
import plotly.express as px
from datetime import date, timedelta
from typing import List

from engine.aggregator import EventAggregator
from engine.registry import DEFAULT_REGISTRY
from models.event import CalendarViewMode, Event
from utils.helpers import format_date, get_month_name

BUCKET_TITLES = {
    'overdue_past': "⏪ Past",
    'today': "📍 Today",
    'this_week': "🗓️ Later this week",
    'this_month': "📆 Later this month",
    'later': "🔭 Later",
}

STATUS_EMOJI = {
    'upcoming': '⚪',
    'overdue': '🔴',
    'completed': '✅',
    'cancelled': '⛔',
}


def _period_title(mode: CalendarViewMode, start: date, end: date) -> str:
    if mode == CalendarViewMode.MONTH:
        return get_month_name(start)
    if mode == CalendarViewMode.DAY:
        return format_date(start)
    return f"{format_date(start)} - {format_date(end)}"


def render_calendar(
    events: List[Event],
    mode: CalendarViewMode,
    anchor: date,
    aggregator: EventAggregator,
    today: date
):
    """
    Render the calendar for the selected view mode
    """
    start, end = aggregator.view_window(mode, anchor)
    st.header(f"🗓️ {_period_title(mode, start, end)}")

    visible = aggregator.events_in_view(events, mode, anchor)
    if not visible:
        st.info("No events in this period for the selected filters.")
        return

    if mode == CalendarViewMode.AGENDA:
        render_agenda(visible, aggregator, today)
    elif mode == CalendarViewMode.DAY:
        render_event_list(visible)
    else:
        render_timeline(visible, start, end)


def render_timeline(events: List[Event], start: date, end: date):
    """Gantt-style timeline, one row per event type"""
    df = EventAggregator.to_dataframe(events)

    # Bars need a width; an event occupies its whole last day
    df['finish'] = df['end_date'].apply(lambda d: d + timedelta(days=1))
    df['type_label'] = df['type'].apply(lambda t: DEFAULT_REGISTRY.label(t))
    color_map = {
        config.label: config.border_color
        for _, config in DEFAULT_REGISTRY.items()
    }

    fig = px.timeline(
        df,
        x_start='date',
        x_end='finish',
        y='type_label',
        color='type_label',
        color_discrete_map=color_map,
        hover_name='title',
        hover_data={'status': True, 'time': True, 'assignee': True, 'type_label': False},
    )

    fig.update_yaxes(title=None, autorange="reversed")
    fig.update_layout(
        xaxis_range=[start, end + timedelta(days=1)],
        height=max(300, 60 * df['type_label'].nunique()),
        showlegend=False,
        margin=dict(l=10, r=10, t=30, b=10),
    )

    st.plotly_chart(fig, use_container_width=True)
    render_event_list(events)


def render_event_list(events: List[Event]):
    """Compact table of events"""
    df = EventAggregator.to_dataframe(events)
    df['status'] = df['status'].apply(lambda s: f"{STATUS_EMOJI.get(s, '')} {s}")
    df['date'] = df['date'].apply(format_date)

    st.dataframe(
        df[['date', 'time', 'icon', 'title', 'status', 'assignee']],
        hide_index=True,
        use_container_width=True
    )


def render_agenda(events: List[Event], aggregator: EventAggregator, today: date):
    """Events grouped into relative date buckets"""
    buckets = aggregator.bucket_by_date(events, today)

    for bucket, bucket_events in buckets.items():
        if not bucket_events:
            continue

        st.subheader(f"{BUCKET_TITLES[bucket]} ({len(bucket_events)})")
        for event in bucket_events:
            when = format_date(event.date)
            if event.time:
                when += f" {event.time}"
            st.markdown(
                f"{STATUS_EMOJI.get(event.status.value, '')} **{when}** "
                f"{event.icon} {event.title}"
                + (f" · _{event.property.name}_" if event.property else "")
            )
