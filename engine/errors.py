"""
Calendar error types
"""


class CalendarError(Exception):
    """Base class for calendar errors"""


class SourceRecordInvalid(CalendarError):
    """A domain row lacks a usable date; the row is skipped, never surfaced"""

    def __init__(self, source_kind: str, record_id, reason: str):
        self.source_kind = source_kind
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"{source_kind} {record_id}: {reason}")


class UnknownEventTypeError(CalendarError, KeyError):
    """The registry and the EventType enumeration have drifted apart"""


class ActionNotPermitted(CalendarError):
    """Action is not in the resolved action list for the event's current state"""

    def __init__(self, event_id: str, action_id: str, allowed: list):
        self.event_id = event_id
        self.action_id = action_id
        self.allowed = allowed
        super().__init__(
            f"Action '{action_id}' is not permitted for event {event_id} "
            f"(allowed: {', '.join(allowed) or 'none'})"
        )


class UpstreamFetchError(CalendarError):
    """The backend could not be queried or rejected a mutation"""
