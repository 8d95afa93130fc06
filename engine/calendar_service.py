"""
Calendar service - the entry point the UI talks to.

One cycle fetches rows from the source client, normalizes them and
aggregates the result. Any change triggers a full rebuild. A generation
counter lets callers drop the result of a cycle that was superseded
before it finished.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Union

from config import settings
from models.event import CalendarFilters, CustomEventInput, Event, EventAction
from engine.actions import ActionResolver
from engine.aggregator import EventAggregator
from engine.errors import ActionNotPermitted
from engine.normalizer import EventNormalizer, NormalizationReport
from engine.registry import DEFAULT_REGISTRY, EventTypeRegistry
from engine.status import StatusResolver
from ingestion.source_client import SourceClient
from storage.audit_log import AuditLog
from utils.helpers import system_clock
from utils.validations import validate_custom_event

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of an action dispatch or custom event change"""
    ok: bool
    message: str
    href: Optional[str] = None
    record: Optional[dict] = None


class CalendarService:
    """
    Builds the calendar event stream and routes user actions back to the source
    """

    def __init__(
        self,
        source: SourceClient,
        clock: Optional[Callable] = None,
        registry: Optional[EventTypeRegistry] = None,
        aggregator: Optional[EventAggregator] = None,
        audit_log: Optional[AuditLog] = None,
        compare_time: Optional[bool] = None,
        user: str = "System"
    ):
        self.source = source
        self.clock = clock or system_clock
        self.registry = registry or DEFAULT_REGISTRY
        self.status_resolver = StatusResolver(
            self.clock,
            compare_time=settings.STATUS_COMPARE_TIME if compare_time is None else compare_time,
        )
        self.action_resolver = ActionResolver()
        self.normalizer = EventNormalizer(self.registry, self.status_resolver, self.action_resolver)
        self.aggregator = aggregator or EventAggregator()
        self.audit_log = audit_log
        self.user = user

        self.events: List[Event] = []
        self.last_report = NormalizationReport()
        self._generation = 0

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    def build_events(self) -> List[Event]:
        """Fetch every source and normalize; upstream errors propagate"""
        rows_by_kind = self.source.fetch_all()
        events = self.normalizer.normalize_all(rows_by_kind)
        self.last_report = self.normalizer.report
        return events

    def get_events(self, filters: Optional[CalendarFilters] = None) -> List[Event]:
        """The normalized, filtered and sorted event stream"""
        return self.aggregator.aggregate(self.build_events(), filters)

    def begin_cycle(self) -> int:
        """Start a refresh cycle and return its generation token"""
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def commit_cycle(self, token: int, events: List[Event]) -> bool:
        """Apply a cycle's result unless a newer cycle has started since"""
        if not self.is_current(token):
            logger.info("Discarding stale calendar cycle %d (current is %d)", token, self._generation)
            return False
        self.events = events
        return True

    def refresh(self, filters: Optional[CalendarFilters] = None) -> List[Event]:
        """Run a full fetch-normalize-aggregate cycle"""
        token = self.begin_cycle()
        events = self.get_events(filters)

        if self.audit_log is not None:
            self.audit_log.log_data_refresh(
                source=type(self.source).__name__,
                user=self.user,
                events_built=self.last_report.events,
                records_skipped=self.last_report.skipped,
            )

        self.commit_cycle(token, events)
        return self.events

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def allowed_actions(self, event: Event) -> List[EventAction]:
        """Actions legal for the event's current (type, status)"""
        return self.action_resolver.resolve(event.type, event.status, event.related_id)

    def dispatch_action(
        self,
        event: Event,
        action_id: str,
        new_date: Optional[date] = None,
        updates: Optional[CustomEventInput] = None
    ) -> DispatchResult:
        """
        Validate an action against the event's current state and route it
        to the source. Illegal actions are rejected before any mutation;
        upstream failures propagate.
        """
        allowed = self.allowed_actions(event)
        action = next((a for a in allowed if a.id == action_id), None)

        if action is None:
            error = ActionNotPermitted(event.id, action_id, [a.id for a in allowed])
            logger.warning("Rejected action: %s", error)
            self._audit_action(event, action_id, False, str(error))
            return DispatchResult(ok=False, message=str(error))

        result = self._perform(event, action, new_date, updates)
        if result.ok:
            logger.info("Dispatched %s on %s", action_id, event.id)
        self._audit_action(event, action_id, result.ok, result.message)
        return result

    def _perform(
        self,
        event: Event,
        action: EventAction,
        new_date: Optional[date],
        updates: Optional[CustomEventInput]
    ) -> DispatchResult:
        if action.type in ("navigate", "view"):
            return DispatchResult(ok=True, message=f"Open {action.href}", href=action.href)

        if action.type == "complete":
            self.source.complete(event.related_type, event.related_id, now=self.clock())
            return DispatchResult(ok=True, message=f"{event.title} marked complete")

        if action.type == "reschedule":
            if new_date is None:
                return DispatchResult(ok=False, message="A new date is required to reschedule")
            if event.end_date is not None and new_date > event.end_date and event.related_type == "custom_event":
                return DispatchResult(ok=False, message="New date cannot be after the event's end date")
            self.source.reschedule(event.type, event.related_id, new_date)
            return DispatchResult(ok=True, message=f"{event.title} moved to {new_date.isoformat()}")

        if action.type == "edit":
            if updates is None:
                return DispatchResult(ok=False, message="No changes to apply")
            return self.update_custom_event(event.related_id, updates)

        if action.type == "cancel":
            self.source.cancel(event.related_type, event.related_id)
            return DispatchResult(ok=True, message=f"{event.title} cancelled")

        return DispatchResult(ok=False, message=f"Unsupported action type: {action.type}")

    def _audit_action(self, event: Event, action_id: str, accepted: bool, message: str):
        if self.audit_log is not None:
            self.audit_log.log_event_action(event.id, action_id, self.user, accepted, message)

    # ------------------------------------------------------------------
    # Custom events
    # ------------------------------------------------------------------

    def create_custom_event(self, event: CustomEventInput) -> DispatchResult:
        """Validate and store a new custom event"""
        errors = validate_custom_event(event)
        if errors:
            return DispatchResult(ok=False, message="; ".join(errors))

        record = self.source.create_custom_event(event.to_row())
        if self.audit_log is not None:
            self.audit_log.log_custom_event_change('created', str(record.get('id')), self.user, event.title)
        return DispatchResult(ok=True, message="Custom event has been created successfully.", record=record)

    def update_custom_event(self, event_id: str, event: Union[CustomEventInput, dict]) -> DispatchResult:
        """Validate and apply changes to a custom event"""
        if isinstance(event, CustomEventInput):
            errors = validate_custom_event(event)
            if errors:
                return DispatchResult(ok=False, message="; ".join(errors))
            updates = event.to_row()
        else:
            updates = dict(event)

        record = self.source.update_custom_event(event_id, updates)
        if self.audit_log is not None:
            self.audit_log.log_custom_event_change('updated', event_id, self.user, updates.get('title'))
        return DispatchResult(ok=True, message="Event has been updated successfully.", record=record)

    def delete_custom_event(self, event_id: str) -> DispatchResult:
        """Delete a custom event"""
        self.source.delete_custom_event(event_id)
        if self.audit_log is not None:
            self.audit_log.log_custom_event_change('deleted', event_id, self.user)
        return DispatchResult(ok=True, message="Event has been deleted successfully.")
