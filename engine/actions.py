"""
Action resolution - which operations an event offers in its current state
"""
from typing import List

from models.event import EventAction, EventStatus, EventType


LEASE_TYPES = {EventType.LEASE_START, EventType.LEASE_END, EventType.LEASE_RENEWAL}
TRANSACTION_TYPES = {EventType.RENT_DUE, EventType.EXPENSE_DUE}
APPLIANCE_TYPES = {EventType.APPLIANCE_CHECK, EventType.APPLIANCE_WARRANTY}

# Only these types map to a domain row with a completion state
COMPLETABLE_TYPES = {EventType.MAINTENANCE, EventType.INSPECTION, EventType.APPLIANCE_CHECK}
OPEN_STATUSES = {EventStatus.UPCOMING, EventStatus.OVERDUE}


class ActionResolver:
    """
    Builds the ordered action list for an event.
    Rules are additive and always evaluated in the same order:
    view, mark complete, reschedule, edit.
    """

    @staticmethod
    def view_action(event_type: EventType, related_id: str):
        """Navigate action to the originating record, or None"""
        if event_type in LEASE_TYPES:
            return EventAction(
                id="view_lease", label="View Lease", icon="ri-file-text-line",
                type="navigate", href=f"/leases/{related_id}",
            )
        if event_type in TRANSACTION_TYPES:
            return EventAction(
                id="view_transaction", label="View Transaction", icon="ri-money-dollar-circle-line",
                type="navigate", href=f"/finances?transaction={related_id}",
            )
        if event_type == EventType.MAINTENANCE:
            return EventAction(
                id="view_request", label="View Request", icon="ri-tools-line",
                type="navigate", href=f"/maintenance/{related_id}",
            )
        if event_type == EventType.INSPECTION:
            return EventAction(
                id="view_inspection", label="View Inspection", icon="ri-search-eye-line",
                type="navigate", href=f"/inspections/{related_id}",
            )
        if event_type in APPLIANCE_TYPES:
            return EventAction(
                id="view_appliance", label="View Appliance", icon="ri-device-line",
                type="navigate", href=f"/appliances/{related_id}",
            )
        # TODO: custom and insurance_expiration events have no detail page to link to yet
        return None

    def resolve(self, event_type: EventType, status: EventStatus, related_id: str) -> List[EventAction]:
        """Resolve the permitted actions for (type, status)"""
        event_type = EventType(event_type)
        status = EventStatus(status)
        actions: List[EventAction] = []

        view = self.view_action(event_type, related_id)
        if view is not None:
            actions.append(view)

        if status in OPEN_STATUSES and event_type in COMPLETABLE_TYPES:
            actions.append(EventAction(
                id="mark_complete", label="Mark Complete", icon="ri-check-line", type="complete",
            ))

        if not status.is_terminal:
            actions.append(EventAction(
                id="reschedule", label="Reschedule", icon="ri-calendar-line", type="reschedule",
            ))

        if event_type == EventType.CUSTOM:
            actions.append(EventAction(
                id="edit_event", label="Edit Event", icon="ri-edit-line", type="edit",
            ))

        return actions
