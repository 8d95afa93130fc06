"""
Tests for engine.aggregator.EventAggregator.
"""
import pytest
from datetime import date

from engine.aggregator import EventAggregator, format_event_title, sort_key
from models.event import CalendarFilters, CalendarViewMode, Event, EventStatus, EventType

TODAY = date(2024, 6, 15)


def _event(event_id, day, time=None, **kwargs):
    return Event(
        id=event_id, type=kwargs.pop("type", EventType.CUSTOM), title=kwargs.pop("title", event_id),
        date=day, related_id=event_id, related_type="custom_event",
        time=time, all_day=time is None, **kwargs
    )


# ---------------------------------------------------------------------------
# Filtering and sorting
# ---------------------------------------------------------------------------

class TestAggregate:
    def test_no_filters_returns_everything_sorted(self, aggregator, events):
        result = aggregator.aggregate(events)
        assert len(result) == len(events)
        assert result == sorted(events, key=sort_key)

    def test_filter_conjunction(self, aggregator, events):
        filters = CalendarFilters(event_types=[EventType.MAINTENANCE], statuses=[EventStatus.OVERDUE])
        result = aggregator.aggregate(events, filters)
        assert [e.id for e in result] == ["maintenance_M1"]
        # each predicate alone matches more
        assert len(aggregator.aggregate(events, CalendarFilters(event_types=["maintenance"]))) == 2
        assert len(aggregator.aggregate(events, CalendarFilters(statuses=["overdue"]))) == 3

    def test_idempotent(self, aggregator, events):
        filters = CalendarFilters(statuses=[EventStatus.UPCOMING], search="lease")
        once = aggregator.aggregate(events, filters)
        assert aggregator.aggregate(once, filters) == once

    def test_does_not_mutate_input(self, aggregator, events):
        original = list(events)
        aggregator.aggregate(events, CalendarFilters(statuses=["completed"]))
        assert events == original

    def test_empty_list_filter_means_no_filter(self, aggregator, events):
        assert len(aggregator.aggregate(events, CalendarFilters(property_ids=[]))) == len(events)

    def test_property_filter_excludes_events_without_property(self, aggregator, events):
        result = aggregator.aggregate(events, CalendarFilters(property_ids=["P1"]))
        assert all(e.property_id == "P1" for e in result)
        assert "lease_start_L1" not in [e.id for e in result]

    def test_assignee_filter(self, aggregator, events):
        result = aggregator.aggregate(events, CalendarFilters(assignee_ids=["T1"]))
        assert {e.id for e in result} == {
            "lease_start_L1", "lease_end_L1", "lease_renewal_L1", "transaction_R1"
        }

    def test_date_range(self, aggregator, events):
        filters = CalendarFilters(date_from=date(2024, 6, 14), date_to=date(2024, 6, 20))
        result = aggregator.aggregate(events, filters)
        assert [e.id for e in result] == ["maintenance_M1", "custom_C2", "custom_C1", "inspection_I1"]

    def test_search_is_case_insensitive_on_title_and_description(self, aggregator, events):
        assert [e.id for e in aggregator.aggregate(events, CalendarFilters(search="FAUCET"))] == ["maintenance_M1"]
        assert [e.id for e in aggregator.aggregate(events, CalendarFilters(search="landscaping"))] == [
            "transaction_X1"
        ]

    def test_same_day_all_day_before_timed(self, aggregator, events):
        june_15 = [e.id for e in aggregator.aggregate(events) if e.date == TODAY]
        assert june_15 == ["custom_C2", "custom_C1"]

    def test_sort_stability(self, aggregator):
        a = _event("b_event", TODAY, "10:00")
        b = _event("a_event", TODAY, "10:00")
        assert [e.id for e in aggregator.aggregate([a, b])] == ["a_event", "b_event"]
        assert [e.id for e in aggregator.aggregate([b, a])] == ["a_event", "b_event"]


# ---------------------------------------------------------------------------
# Grouping and views
# ---------------------------------------------------------------------------

class TestGrouping:
    def test_group_by_status(self, aggregator, events):
        groups = aggregator.group_by_status(events)
        assert list(groups.keys()) == list(EventStatus)
        assert [e.id for e in groups[EventStatus.OVERDUE]] == ["transaction_R1", "maintenance_M1", "custom_C1"]
        assert len(groups[EventStatus.COMPLETED]) == 2

    def test_bucket_by_date(self, aggregator, events):
        buckets = aggregator.bucket_by_date(events, TODAY)
        assert {k: len(v) for k, v in buckets.items()} == {
            "overdue_past": 4, "today": 2, "this_week": 0, "this_month": 2, "later": 5,
        }

    def test_buckets_are_exclusive(self, aggregator, events):
        buckets = aggregator.bucket_by_date(events, TODAY)
        ids = [e.id for bucket in buckets.values() for e in bucket]
        assert len(ids) == len(set(ids)) == len(events)

    @pytest.mark.parametrize("mode,expected", [
        (CalendarViewMode.MONTH, (date(2024, 6, 1), date(2024, 6, 30))),
        (CalendarViewMode.WEEK, (date(2024, 6, 10), date(2024, 6, 16))),
        (CalendarViewMode.AGENDA, (date(2024, 6, 10), date(2024, 6, 16))),
        (CalendarViewMode.DAY, (date(2024, 6, 15), date(2024, 6, 15))),
    ])
    def test_view_window(self, mode, expected):
        assert EventAggregator.view_window(mode, TODAY) == expected

    def test_view_window_february(self):
        assert EventAggregator.view_window("month", date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_events_in_view(self, aggregator, events):
        june = aggregator.events_in_view(events, CalendarViewMode.MONTH, TODAY)
        assert len(june) == 7

    def test_multi_day_event_overlapping_window(self, aggregator):
        spanning = _event("span", date(2024, 5, 30), end_date=date(2024, 6, 2))
        assert aggregator.events_in_view([spanning], CalendarViewMode.MONTH, TODAY) == [spanning]

    def test_format_event_title(self, events):
        rent = next(e for e in events if e.id == "transaction_R1")
        assert format_event_title(rent) == "Rent Due: Jane Doe - Maple Court, Unit 1"


# ---------------------------------------------------------------------------
# Summary and tasks
# ---------------------------------------------------------------------------

class TestSummaryAndTasks:
    def test_summarize(self, aggregator, events):
        summary = aggregator.summarize(events)
        assert summary.total_events == 13
        assert summary.upcoming_events == 8
        assert summary.overdue_events == 3
        assert summary.completed_events == 2
        assert summary.events_by_type["maintenance"] == 2
        assert "cancelled" not in summary.events_by_status

    def test_summarize_empty(self, aggregator):
        summary = aggregator.summarize([])
        assert summary.total_events == 0
        assert summary.events_by_type == {}

    @pytest.mark.parametrize("tags,days,expected", [
        (["Emergency"], 20, "urgent"),
        (["important"], 20, "high"),
        (["low"], -3, "low"),
        ([], -1, "urgent"),
        ([], 0, "high"),
        ([], 1, "high"),
        ([], 7, "medium"),
        ([], 8, "low"),
    ])
    def test_task_priority(self, aggregator, tags, days, expected):
        assert aggregator.task_priority(tags, days) == expected

    def test_task_data(self, aggregator, events):
        data = aggregator.task_data(events, TODAY)
        assert data.total == 7
        assert [t.id for t in data.overdue] == ["transaction_R1", "maintenance_M1", "custom_C1"]
        assert len(data.upcoming) == 4

    def test_task_fields(self, aggregator, events):
        tasks = {t.id: t for t in aggregator.to_tasks(events, TODAY)}
        rent = tasks["transaction_R1"]
        assert rent.days_overdue == 14
        assert rent.priority == "urgent"
        assert rent.type == "rent"
        assert rent.property_name == "Maple Court"
        assert tasks["custom_C1"].priority == "urgent"  # tagged
        assert tasks["custom_C1"].type == "general"
        assert tasks["inspection_I1"].priority == "medium"

    def test_horizon_excludes_far_events(self, aggregator, events):
        ids = [t.id for t in aggregator.to_tasks(events, TODAY, horizon_days=7)]
        assert "transaction_X1" not in ids
        assert "inspection_I1" in ids

    def test_today_tasks(self, aggregator, events):
        tasks = aggregator.today_tasks(events, TODAY)
        assert [t.id for t in tasks] == ["transaction_R1", "maintenance_M1", "custom_C2", "custom_C1"]
        assert len(aggregator.today_tasks(events, TODAY, limit=2)) == 2

    def test_to_dataframe(self, events):
        df = EventAggregator.to_dataframe(events)
        assert len(df) == 13
        assert {"event_id", "type", "date", "end_date", "status"}.issubset(df.columns)
        assert EventAggregator.to_dataframe([]).empty
