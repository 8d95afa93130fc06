"""
Tests for utils.helpers, utils.validations and the event models.
"""
import pytest
from datetime import date, datetime, time

from models.event import AssigneeSnapshot, CustomEventInput, Event, EventAction, EventType, Snapshot
from utils.helpers import (
    days_between,
    fixed_clock,
    format_currency,
    format_time,
    parse_date,
    parse_time,
)
from utils.validations import validate_custom_event, validate_date_range


class TestParsing:
    @pytest.mark.parametrize("value,expected", [
        ("2024-07-01", date(2024, 7, 1)),
        ("07/01/2024", date(2024, 7, 1)),
        ("2024-07-01T09:30:00Z", date(2024, 7, 1)),
        ("Jul 01, 2024", date(2024, 7, 1)),
        (datetime(2024, 7, 1, 9, 30), date(2024, 7, 1)),
        (date(2024, 7, 1), date(2024, 7, 1)),
        ("", None),
        (None, None),
        ("soon", None),
    ])
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected

    def test_parse_time(self):
        assert parse_time("09:30") == time(9, 30)
        assert parse_time("9:30 PM") == time(21, 30)
        assert parse_time("25:00") is None

    def test_format_time(self):
        assert format_time("09:30:00") == "09:30"
        assert format_time(None) is None

    def test_format_currency(self):
        assert format_currency(1200) == "$1,200.00"
        assert format_currency(-5.5) == "-$5.50"

    def test_days_between(self):
        assert days_between(date(2024, 6, 1), date(2024, 6, 15)) == -14

    def test_fixed_clock_from_date(self):
        assert fixed_clock(date(2024, 6, 15))() == datetime(2024, 6, 15, 0, 0)


class TestModels:
    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            Event(id="e", type=EventType.CUSTOM, title="x", date=date(2024, 6, 2),
                  end_date=date(2024, 6, 1), related_id="1", related_type="custom_event")

    def test_datetime_is_not_a_calendar_date(self):
        with pytest.raises(ValueError):
            Event(id="e", type=EventType.CUSTOM, title="x", date=datetime(2024, 6, 2, 9, 0),
                  related_id="1", related_type="custom_event")

    def test_all_day_drops_time(self):
        event = Event(id="e", type=EventType.CUSTOM, title="x", date=date(2024, 6, 2),
                      time="09:00", all_day=True, related_id="1", related_type="custom_event")
        assert event.time is None
        assert not event.has_time

    def test_property_field_and_computed_attributes(self):
        event = Event(id="e", type=EventType.CUSTOM, title="x", date=date(2024, 6, 2), time="09:00",
                      all_day=False, related_id="1", related_type="custom_event",
                      property=Snapshot(id="P1", name="Maple Court"),
                      actions=[EventAction(id="edit_event", label="Edit", icon="", type="edit")])
        assert event.has_time
        assert event.action_ids == ["edit_event"]
        assert event.property.name == "Maple Court"

    def test_unknown_action_type(self):
        with pytest.raises(ValueError):
            EventAction(id="x", label="X", icon="", type="archive")

    def test_unknown_assignee_type(self):
        with pytest.raises(ValueError):
            AssigneeSnapshot(id="1", name="Bob", type="landlord")


class TestValidations:
    def test_date_range(self):
        assert validate_date_range(date(2024, 6, 1), date(2024, 6, 1))
        assert not validate_date_range(date(2024, 6, 2), date(2024, 6, 1))
        assert not validate_date_range(None, date(2024, 6, 1))

    def test_valid_custom_event(self):
        event = CustomEventInput(title="Walkthrough", date=date(2024, 6, 20), time="14:00")
        assert validate_custom_event(event) == []

    def test_invalid_custom_event(self):
        event = CustomEventInput(
            title="", date=date(2024, 6, 20), time="2pm-ish", is_recurring=True, reminder_minutes=-5
        )
        errors = validate_custom_event(event)
        assert len(errors) == 4

    def test_to_row_clears_time_for_all_day(self):
        row = CustomEventInput(title="x", date=date(2024, 6, 20), time="14:00", all_day=True).to_row()
        assert row["time"] is None
        assert row["recurring_pattern"] is None
