"""
Tests for the event type registry, status resolver and action resolver.
"""
import pytest
from datetime import date, datetime

from engine.actions import ActionResolver
from engine.errors import UnknownEventTypeError
from engine.registry import DEFAULT_EVENT_TYPE_CONFIG, DEFAULT_REGISTRY, EventTypeRegistry
from engine.status import StatusResolver
from models.event import EventStatus, EventType
from utils.helpers import fixed_clock


# ---------------------------------------------------------------------------
# EventTypeRegistry
# ---------------------------------------------------------------------------

class TestEventTypeRegistry:
    @pytest.mark.parametrize("event_type", list(EventType))
    def test_every_type_has_config(self, event_type):
        config = DEFAULT_REGISTRY.lookup(event_type)
        assert config is not None
        assert config.label
        assert config.icon
        assert config.color.startswith("#")

    def test_lookup_by_string_value(self):
        assert DEFAULT_REGISTRY.lookup("lease_start").label == "Lease Start"
        assert DEFAULT_REGISTRY.label(EventType.APPLIANCE_CHECK) == "Equipment Check"

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownEventTypeError):
            DEFAULT_REGISTRY.lookup("pool_party")

    def test_unknown_type_is_a_key_error(self):
        with pytest.raises(KeyError):
            DEFAULT_REGISTRY.lookup("pool_party")

    def test_partial_registry_rejected_at_construction(self):
        configs = dict(DEFAULT_EVENT_TYPE_CONFIG)
        del configs[EventType.INSURANCE_EXPIRATION]
        with pytest.raises(UnknownEventTypeError) as exc:
            EventTypeRegistry(configs)
        assert "insurance_expiration" in str(exc.value)

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_REGISTRY._configs[EventType.CUSTOM] = None

    def test_covers_enumeration_exactly(self):
        assert len(DEFAULT_REGISTRY) == len(EventType)


# ---------------------------------------------------------------------------
# StatusResolver
# ---------------------------------------------------------------------------

class TestStatusResolver:
    @pytest.fixture
    def resolver(self, midnight_clock):
        return StatusResolver(midnight_clock)

    @pytest.mark.parametrize("explicit", [EventStatus.COMPLETED, EventStatus.CANCELLED])
    @pytest.mark.parametrize("event_date", [date(2020, 1, 1), date(2024, 6, 15), date(2030, 1, 1)])
    def test_terminal_status_never_recomputed(self, resolver, explicit, event_date):
        assert resolver.resolve(event_date, explicit) == explicit

    def test_overdue_boundary(self, resolver):
        assert resolver.resolve(date(2024, 6, 14)) == EventStatus.OVERDUE
        assert resolver.resolve(date(2024, 6, 15)) == EventStatus.UPCOMING
        assert resolver.resolve(date(2024, 6, 16)) == EventStatus.UPCOMING

    def test_non_terminal_explicit_status_is_recomputed(self, resolver):
        assert resolver.resolve(date(2024, 6, 1), EventStatus.UPCOMING) == EventStatus.OVERDUE
        assert resolver.resolve(date(2024, 7, 1), EventStatus.OVERDUE) == EventStatus.UPCOMING

    def test_timed_event_overdue_once_start_has_passed(self, clock):
        resolver = StatusResolver(clock, compare_time=True)
        assert resolver.resolve(date(2024, 6, 15), event_time="09:00") == EventStatus.OVERDUE
        assert resolver.resolve(date(2024, 6, 15), event_time="15:30") == EventStatus.UPCOMING

    def test_timed_event_by_date_only_when_disabled(self, clock):
        resolver = StatusResolver(clock, compare_time=False)
        assert resolver.resolve(date(2024, 6, 15), event_time="09:00") == EventStatus.UPCOMING

    def test_aware_clock_is_compared_as_local_time(self):
        from datetime import timedelta, timezone
        aware = datetime(2024, 6, 15, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
        local = aware.astimezone().replace(tzinfo=None)
        resolver = StatusResolver(fixed_clock(aware))

        before = local - timedelta(minutes=1)
        after = local + timedelta(minutes=1)
        assert resolver.resolve(before.date(), event_time=before.strftime("%H:%M")) == EventStatus.OVERDUE
        assert resolver.resolve(after.date(), event_time=after.strftime("%H:%M")) == EventStatus.UPCOMING


# ---------------------------------------------------------------------------
# ActionResolver
# ---------------------------------------------------------------------------

class TestActionResolver:
    @pytest.fixture
    def resolver(self):
        return ActionResolver()

    @pytest.mark.parametrize("event_type", list(EventType))
    @pytest.mark.parametrize("status", list(EventStatus))
    def test_deterministic(self, resolver, event_type, status):
        first = resolver.resolve(event_type, status, "42")
        second = resolver.resolve(event_type, status, "42")
        assert first == second

    def test_custom_upcoming_cannot_be_completed(self, resolver):
        actions = resolver.resolve(EventType.CUSTOM, EventStatus.UPCOMING, "C1")
        assert "complete" not in [a.type for a in actions]
        assert [a.id for a in actions] == ["reschedule", "edit_event"]

    def test_maintenance_upcoming_can_be_completed(self, resolver):
        actions = resolver.resolve(EventType.MAINTENANCE, EventStatus.UPCOMING, "M1")
        assert "complete" in [a.type for a in actions]
        assert [a.id for a in actions] == ["view_request", "mark_complete", "reschedule"]

    def test_terminal_status_offers_view_only(self, resolver):
        actions = resolver.resolve(EventType.INSPECTION, EventStatus.COMPLETED, "I1")
        assert [a.id for a in actions] == ["view_inspection"]

    def test_overdue_lease_can_be_rescheduled_not_completed(self, resolver):
        actions = resolver.resolve(EventType.LEASE_END, EventStatus.OVERDUE, "L1")
        assert [a.id for a in actions] == ["view_lease", "reschedule"]

    @pytest.mark.parametrize("event_type,href", [
        (EventType.LEASE_RENEWAL, "/leases/9"),
        (EventType.RENT_DUE, "/finances?transaction=9"),
        (EventType.EXPENSE_DUE, "/finances?transaction=9"),
        (EventType.MAINTENANCE, "/maintenance/9"),
        (EventType.INSPECTION, "/inspections/9"),
        (EventType.APPLIANCE_WARRANTY, "/appliances/9"),
    ])
    def test_view_action_targets_source_record(self, resolver, event_type, href):
        view = resolver.resolve(event_type, EventStatus.UPCOMING, "9")[0]
        assert view.type == "navigate"
        assert view.href == href

    def test_no_view_for_custom_or_insurance(self, resolver):
        assert ActionResolver.view_action(EventType.CUSTOM, "1") is None
        assert ActionResolver.view_action(EventType.INSURANCE_EXPIRATION, "1") is None

    def test_cancel_never_offered(self, resolver):
        for event_type in EventType:
            for status in EventStatus:
                assert "cancel" not in [a.type for a in resolver.resolve(event_type, status, "1")]
