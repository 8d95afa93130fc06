"""
Status resolution for calendar events
"""
from datetime import date, datetime
from typing import Callable, Optional

from models.event import EventStatus
from utils.helpers import parse_time


class StatusResolver:
    """
    Derives upcoming/overdue from the event date against an injected clock.
    Completed and cancelled are terminal and returned unchanged.
    """

    def __init__(self, clock: Callable[[], datetime], compare_time: bool = True):
        self.clock = clock
        self.compare_time = compare_time

    def resolve(
        self,
        event_date: date,
        explicit_status: Optional[EventStatus] = None,
        event_time: Optional[str] = None
    ) -> EventStatus:
        """Resolve the current status of an event"""
        if explicit_status is not None:
            explicit_status = EventStatus(explicit_status)
            if explicit_status.is_terminal:
                return explicit_status

        now = self.clock()

        # Timed events become overdue at their start time, all-day events
        # only once the day is over
        parsed_time = parse_time(event_time) if event_time else None
        if self.compare_time and parsed_time is not None:
            due_at = datetime.combine(event_date, parsed_time)
            if now.tzinfo is not None:
                now = now.astimezone().replace(tzinfo=None)
            return EventStatus.OVERDUE if due_at < now else EventStatus.UPCOMING

        return EventStatus.OVERDUE if event_date < now.date() else EventStatus.UPCOMING
