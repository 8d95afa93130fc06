"""
Data models for calendar events
"""
import builtins
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class EventType(str, Enum):
    """Category of a calendar event"""
    LEASE_START = "lease_start"
    LEASE_END = "lease_end"
    LEASE_RENEWAL = "lease_renewal"
    RENT_DUE = "rent_due"
    EXPENSE_DUE = "expense_due"
    INSPECTION = "inspection"
    MAINTENANCE = "maintenance"
    APPLIANCE_CHECK = "appliance_check"
    APPLIANCE_WARRANTY = "appliance_warranty"
    INSURANCE_EXPIRATION = "insurance_expiration"
    CUSTOM = "custom"


class EventStatus(str, Enum):
    """Lifecycle status of a calendar event"""
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (EventStatus.COMPLETED, EventStatus.CANCELLED)


class CalendarViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    AGENDA = "agenda"


ACTION_TYPES = ("view", "edit", "complete", "reschedule", "cancel", "navigate")
ASSIGNEE_TYPES = ("tenant", "team", "vendor")
RECURRING_PATTERNS = ("daily", "weekly", "monthly", "yearly")


@dataclass(frozen=True)
class EventTypeConfig:
    """Display metadata for one event type"""
    label: str
    icon: str
    color: str
    background_color: str
    border_color: str


@dataclass(frozen=True)
class EventAction:
    """Operation a user may perform on an event"""
    id: str
    label: str
    icon: str
    type: str  # view, edit, complete, reschedule, cancel, navigate
    href: Optional[str] = None
    variant: Optional[str] = None  # default, destructive, outline, secondary

    def __post_init__(self):
        if self.type not in ACTION_TYPES:
            raise ValueError(f"Unknown action type: {self.type}")


@dataclass(frozen=True)
class Snapshot:
    """Denormalized {id, name} reference to a property or unit"""
    id: str
    name: str


@dataclass(frozen=True)
class AssigneeSnapshot:
    """Denormalized reference to the person responsible for an event"""
    id: str
    name: str
    type: str  # tenant, team, vendor

    def __post_init__(self):
        if self.type not in ASSIGNEE_TYPES:
            raise ValueError(f"Unknown assignee type: {self.type}")


@dataclass
class Event:
    """Normalized calendar event built from a domain row"""
    id: str
    type: EventType
    title: str
    date: date
    related_id: str
    related_type: str  # lease, transaction, maintenance_request, ...
    status: EventStatus = EventStatus.UPCOMING
    description: Optional[str] = None
    end_date: Optional[date] = None
    time: Optional[str] = None  # HH:MM
    all_day: bool = True

    # Display fields copied from the registry when the event is built
    icon: str = ""
    color: str = ""
    background_color: str = ""
    border_color: str = ""

    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    assignee_id: Optional[str] = None
    property: Optional[Snapshot] = None
    unit: Optional[Snapshot] = None
    assignee: Optional[AssigneeSnapshot] = None

    actions: List[EventAction] = field(default_factory=list)
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Enforce the temporal invariants"""
        if not isinstance(self.date, date) or isinstance(self.date, datetime):
            raise ValueError(f"Event {self.id} needs a calendar date, got {self.date!r}")
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError(
                f"Event {self.id} ends ({self.end_date}) before it starts ({self.date})"
            )
        if self.all_day:
            self.time = None
        if self.recurring_pattern is not None and self.recurring_pattern not in RECURRING_PATTERNS:
            raise ValueError(f"Unknown recurring pattern: {self.recurring_pattern}")

    # "property" is shadowed by the field above
    @builtins.property
    def has_time(self) -> bool:
        return self.time is not None

    @builtins.property
    def action_ids(self) -> List[str]:
        return [a.id for a in self.actions]


@dataclass
class CalendarFilters:
    """Optional filters, AND-combined when several are set"""
    property_ids: List[str] = field(default_factory=list)
    unit_ids: List[str] = field(default_factory=list)
    assignee_ids: List[str] = field(default_factory=list)
    event_types: List[EventType] = field(default_factory=list)
    statuses: List[EventStatus] = field(default_factory=list)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None


@dataclass
class CalendarSummary:
    """Event counts for the summary cards"""
    total_events: int = 0
    upcoming_events: int = 0
    overdue_events: int = 0
    completed_events: int = 0
    events_by_type: Dict[str, int] = field(default_factory=dict)
    events_by_status: Dict[str, int] = field(default_factory=dict)


@dataclass
class CalendarTask:
    """Task-list view of an open event"""
    id: str
    title: str
    description: str
    due_date: date
    priority: str  # low, medium, high, urgent
    status: str
    type: str
    days_overdue: int = 0
    property_name: Optional[str] = None
    unit_name: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class CalendarTaskData:
    upcoming: List[CalendarTask] = field(default_factory=list)
    overdue: List[CalendarTask] = field(default_factory=list)
    total: int = 0


@dataclass
class CustomEventInput:
    """Fields accepted when creating or updating a custom event"""
    title: str
    date: date
    description: Optional[str] = None
    end_date: Optional[date] = None
    time: Optional[str] = None
    all_day: bool = False
    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    reminder_minutes: Optional[int] = None

    def to_row(self) -> dict:
        """Column values for the custom_events table"""
        return {
            'title': self.title,
            'description': self.description,
            'date': self.date,
            'end_date': self.end_date,
            'time': None if self.all_day else self.time,
            'all_day': self.all_day,
            'property_id': self.property_id or None,
            'unit_id': self.unit_id or None,
            'tags': list(self.tags),
            'is_recurring': self.is_recurring,
            'recurring_pattern': self.recurring_pattern if self.is_recurring else None,
            'reminder_minutes': self.reminder_minutes,
        }
