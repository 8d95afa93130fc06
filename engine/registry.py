"""
Event type registry - display metadata per event type
"""
from types import MappingProxyType
from typing import Mapping, Optional

from models.event import EventType, EventTypeConfig
from engine.errors import UnknownEventTypeError


DEFAULT_EVENT_TYPE_CONFIG: Mapping[EventType, EventTypeConfig] = MappingProxyType({
    EventType.LEASE_START: EventTypeConfig(
        label="Lease Start", icon="🏠",
        color="#15803d", background_color="#dcfce7", border_color="#22c55e",
    ),
    EventType.LEASE_END: EventTypeConfig(
        label="Lease End", icon="📤",
        color="#b91c1c", background_color="#fee2e2", border_color="#ef4444",
    ),
    EventType.LEASE_RENEWAL: EventTypeConfig(
        label="Lease Renewal", icon="🔄",
        color="#1d4ed8", background_color="#dbeafe", border_color="#3b82f6",
    ),
    EventType.RENT_DUE: EventTypeConfig(
        label="Rent Due", icon="💸",
        color="#4338ca", background_color="#e0e7ff", border_color="#6366f1",
    ),
    EventType.EXPENSE_DUE: EventTypeConfig(
        label="Expense Due", icon="💳",
        color="#7e22ce", background_color="#f3e8ff", border_color="#a855f7",
    ),
    EventType.INSPECTION: EventTypeConfig(
        label="Inspection", icon="📋",
        color="#1d4ed8", background_color="#dbeafe", border_color="#3b82f6",
    ),
    EventType.MAINTENANCE: EventTypeConfig(
        label="Maintenance", icon="🛠️",
        color="#c2410c", background_color="#ffedd5", border_color="#f97316",
    ),
    EventType.APPLIANCE_CHECK: EventTypeConfig(
        label="Equipment Check", icon="🧰",
        color="#0f766e", background_color="#ccfbf1", border_color="#14b8a6",
    ),
    EventType.APPLIANCE_WARRANTY: EventTypeConfig(
        label="Warranty Expiration", icon="⚠️",
        color="#b45309", background_color="#fef3c7", border_color="#f59e0b",
    ),
    EventType.INSURANCE_EXPIRATION: EventTypeConfig(
        label="Insurance Expiration", icon="📑",
        color="#be123c", background_color="#ffe4e6", border_color="#f43f5e",
    ),
    EventType.CUSTOM: EventTypeConfig(
        label="Custom Event", icon="🔔",
        color="#374151", background_color="#f3f4f6", border_color="#6b7280",
    ),
})


class EventTypeRegistry:
    """
    Immutable lookup of display metadata by event type.
    A registry must cover every EventType; a partial table is rejected
    when the registry is built, not when an event is rendered.
    """

    def __init__(self, configs: Optional[Mapping[EventType, EventTypeConfig]] = None):
        configs = DEFAULT_EVENT_TYPE_CONFIG if configs is None else configs
        missing = [t.value for t in EventType if t not in configs]
        if missing:
            raise UnknownEventTypeError(
                f"Event type registry is missing: {', '.join(missing)}"
            )
        self._configs = MappingProxyType(dict(configs))

    def lookup(self, event_type: EventType) -> EventTypeConfig:
        """Get the display config for an event type"""
        try:
            return self._configs[EventType(event_type)]
        except (ValueError, KeyError):
            raise UnknownEventTypeError(f"Unknown event type: {event_type!r}") from None

    def label(self, event_type: EventType) -> str:
        return self.lookup(event_type).label

    def items(self):
        return self._configs.items()

    def __len__(self) -> int:
        return len(self._configs)


DEFAULT_REGISTRY = EventTypeRegistry()
