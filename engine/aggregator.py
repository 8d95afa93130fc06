"""
Event aggregation engine - filters, sorts and groups normalized events
"""
from collections import OrderedDict
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
import yaml
from dateutil.relativedelta import relativedelta

from config import settings
from models.event import (
    CalendarFilters,
    CalendarSummary,
    CalendarTask,
    CalendarTaskData,
    CalendarViewMode,
    Event,
    EventStatus,
    EventType,
)
from utils.helpers import days_between

DATE_BUCKETS = ("overdue_past", "today", "this_week", "this_month", "later")
OPEN_STATUSES = (EventStatus.UPCOMING, EventStatus.OVERDUE)


def sort_key(event: Event) -> Tuple:
    """Date, then all-day before timed, then time, then id"""
    return (event.date, event.time is not None, event.time or "", event.id)


def format_event_title(event: Event) -> str:
    """Title with property and unit names appended"""
    title = event.title
    if event.property:
        title += f" - {event.property.name}"
    if event.unit:
        title += f", {event.unit.name}"
    return title


class EventAggregator:
    """
    Filters and groups a flat event list for calendar views.
    Never mutates the events it is given; every call returns a new list.
    """

    def __init__(self, task_mappings: Optional[dict] = None):
        self.task_mappings = task_mappings if task_mappings is not None else self._load_task_mappings()

    @staticmethod
    def _load_task_mappings() -> dict:
        """Load task priority/type tag mappings from YAML"""
        mappings_path = Path(__file__).parent.parent / "config" / "task_mappings.yaml"
        try:
            with open(mappings_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            # Default mappings if file not found
            return {
                'priority_tags': {
                    'urgent': ['urgent', 'emergency'],
                    'high': ['high', 'important'],
                    'low': ['low'],
                },
                'type_tags': {},
                'event_type_tasks': {},
            }

    # ------------------------------------------------------------------
    # Filtering and sorting
    # ------------------------------------------------------------------

    def aggregate(self, events: List[Event], filters: Optional[CalendarFilters] = None) -> List[Event]:
        """Apply filters and return a new, sorted list"""
        filtered = self.apply_filters(events, filters or CalendarFilters())
        return sorted(filtered, key=sort_key)

    def apply_filters(self, events: List[Event], filters: CalendarFilters) -> List[Event]:
        """AND-combine every filter that is set"""
        filtered = list(events)

        if filters.property_ids:
            property_ids = set(filters.property_ids)
            filtered = [e for e in filtered if e.property_id and e.property_id in property_ids]

        if filters.unit_ids:
            unit_ids = set(filters.unit_ids)
            filtered = [e for e in filtered if e.unit_id and e.unit_id in unit_ids]

        if filters.assignee_ids:
            assignee_ids = set(filters.assignee_ids)
            filtered = [e for e in filtered if e.assignee_id and e.assignee_id in assignee_ids]

        if filters.event_types:
            event_types = {EventType(t) for t in filters.event_types}
            filtered = [e for e in filtered if e.type in event_types]

        if filters.statuses:
            statuses = {EventStatus(s) for s in filters.statuses}
            filtered = [e for e in filtered if e.status in statuses]

        if filters.date_from:
            filtered = [e for e in filtered if e.date >= filters.date_from]

        if filters.date_to:
            filtered = [e for e in filtered if e.date <= filters.date_to]

        if filters.search:
            needle = filters.search.lower()
            filtered = [
                e for e in filtered
                if needle in e.title.lower()
                or (e.description is not None and needle in e.description.lower())
            ]

        return filtered

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def group_by_status(self, events: List[Event]) -> Dict[EventStatus, List[Event]]:
        """Partition by status, keeping sort order inside each group"""
        groups: Dict[EventStatus, List[Event]] = OrderedDict((s, []) for s in EventStatus)
        for event in sorted(events, key=sort_key):
            groups[event.status].append(event)
        return groups

    def bucket_by_date(self, events: List[Event], today: date) -> Dict[str, List[Event]]:
        """
        Partition by date relative to today.
        Buckets are exclusive: an event in 'today' is not repeated in 'this_week'.
        """
        week_end = today + timedelta(days=6 - today.weekday())
        month_end = today + relativedelta(day=31)

        buckets: Dict[str, List[Event]] = OrderedDict((name, []) for name in DATE_BUCKETS)
        for event in sorted(events, key=sort_key):
            if event.date < today:
                buckets['overdue_past'].append(event)
            elif event.date == today:
                buckets['today'].append(event)
            elif event.date <= week_end:
                buckets['this_week'].append(event)
            elif event.date <= month_end:
                buckets['this_month'].append(event)
            else:
                buckets['later'].append(event)
        return buckets

    @staticmethod
    def view_window(mode: CalendarViewMode, anchor: date) -> Tuple[date, date]:
        """
        Inclusive date range shown by a calendar view
        Month views cover the anchor's month, week and agenda views the
        Monday-to-Sunday week containing the anchor.
        """
        mode = CalendarViewMode(mode)
        if mode == CalendarViewMode.MONTH:
            start = anchor.replace(day=1)
            return start, start + relativedelta(day=31)
        if mode == CalendarViewMode.DAY:
            return anchor, anchor
        start = anchor - timedelta(days=anchor.weekday())
        return start, start + timedelta(days=6)

    def events_in_view(self, events: List[Event], mode: CalendarViewMode, anchor: date) -> List[Event]:
        """Events overlapping the view window, sorted"""
        start, end = self.view_window(mode, anchor)
        visible = [e for e in events if e.date <= end and (e.end_date or e.date) >= start]
        return sorted(visible, key=sort_key)

    # ------------------------------------------------------------------
    # Summaries and tasks
    # ------------------------------------------------------------------

    def summarize(self, events: List[Event]) -> CalendarSummary:
        """Count events by status and type"""
        summary = CalendarSummary(total_events=len(events))

        for event in events:
            type_key = event.type.value
            status_key = event.status.value
            summary.events_by_type[type_key] = summary.events_by_type.get(type_key, 0) + 1
            summary.events_by_status[status_key] = summary.events_by_status.get(status_key, 0) + 1

        summary.upcoming_events = summary.events_by_status.get(EventStatus.UPCOMING.value, 0)
        summary.overdue_events = summary.events_by_status.get(EventStatus.OVERDUE.value, 0)
        summary.completed_events = summary.events_by_status.get(EventStatus.COMPLETED.value, 0)
        return summary

    def task_priority(self, tags: List[str], days_until_due: int) -> str:
        """Priority from tags, else from how soon the task is due"""
        tag_set = {t.lower() for t in tags or []}
        for priority, priority_tags in (self.task_mappings.get('priority_tags') or {}).items():
            if tag_set.intersection(t.lower() for t in priority_tags):
                return priority

        if days_until_due < 0:
            return 'urgent'  # Overdue
        if days_until_due <= 1:
            return 'high'  # Due today or tomorrow
        if days_until_due <= 7:
            return 'medium'  # Due this week
        return 'low'

    def task_type(self, event: Event) -> str:
        """Task type from tags, else from the event type"""
        tag_set = {t.lower() for t in event.tags}
        for task_type, type_tags in (self.task_mappings.get('type_tags') or {}).items():
            if tag_set.intersection(t.lower() for t in type_tags):
                return task_type
        return (self.task_mappings.get('event_type_tasks') or {}).get(event.type.value, 'general')

    def to_task(self, event: Event, today: date) -> CalendarTask:
        days_until_due = days_between(event.date, today)
        is_overdue = event.status == EventStatus.OVERDUE or (
            days_until_due < 0 and not event.status.is_terminal
        )
        return CalendarTask(
            id=event.id,
            title=event.title,
            description=event.description or "",
            due_date=event.date,
            priority=self.task_priority(event.tags, days_until_due),
            status=event.status.value,
            type=self.task_type(event),
            days_overdue=abs(days_until_due) if is_overdue and days_until_due < 0 else 0,
            property_name=event.property.name if event.property else None,
            unit_name=event.unit.name if event.unit else None,
            tags=list(event.tags),
        )

    def to_tasks(self, events: List[Event], today: date, horizon_days: Optional[int] = None) -> List[CalendarTask]:
        """Open events due within the horizon, as tasks"""
        horizon_days = settings.TASK_HORIZON_DAYS if horizon_days is None else horizon_days
        horizon = today + timedelta(days=horizon_days)
        open_events = [e for e in events if e.status in OPEN_STATUSES and e.date <= horizon]
        return [self.to_task(e, today) for e in sorted(open_events, key=sort_key)]

    def task_data(self, events: List[Event], today: date, horizon_days: Optional[int] = None) -> CalendarTaskData:
        """Split tasks into upcoming and overdue"""
        tasks = self.to_tasks(events, today, horizon_days)
        return CalendarTaskData(
            upcoming=[t for t in tasks if t.status != EventStatus.OVERDUE.value],
            overdue=[t for t in tasks if t.status == EventStatus.OVERDUE.value],
            total=len(tasks),
        )

    def today_tasks(self, events: List[Event], today: date, limit: Optional[int] = None) -> List[CalendarTask]:
        """Open tasks due today or earlier"""
        limit = settings.TODAY_TASK_LIMIT if limit is None else limit
        due = [e for e in events if e.status in OPEN_STATUSES and e.date <= today]
        return [self.to_task(e, today) for e in sorted(due, key=sort_key)[:limit]]

    # ------------------------------------------------------------------
    # Tabular export
    # ------------------------------------------------------------------

    @staticmethod
    def to_dataframe(events: List[Event]) -> pd.DataFrame:
        """Get events as a pandas DataFrame"""
        if not events:
            return pd.DataFrame()

        data = []
        for e in events:
            data.append({
                'event_id': e.id,
                'type': e.type.value,
                'title': format_event_title(e),
                'date': e.date,
                'end_date': e.end_date or e.date,
                'time': e.time,
                'all_day': e.all_day,
                'status': e.status.value,
                'icon': e.icon,
                'color': e.border_color,
                'property': e.property.name if e.property else None,
                'unit': e.unit.name if e.unit else None,
                'assignee': e.assignee.name if e.assignee else None,
                'related_type': e.related_type,
                'related_id': e.related_id,
            })

        return pd.DataFrame(data)
