"""
Pytest fixtures for the property calendar test suite.
"""
import pytest
from datetime import date, datetime

from config import settings
from engine.aggregator import EventAggregator
from engine.normalizer import EventNormalizer
from engine.status import StatusResolver
from ingestion.source_client import SourceClient
from storage.audit_log import AuditLog
from storage.database import Database
from utils.helpers import fixed_clock

TODAY = date(2024, 6, 15)  # a Saturday
NOW = datetime(2024, 6, 15, 12, 0)


@pytest.fixture
def clock():
    """Clock frozen at noon on 2024-06-15."""
    return fixed_clock(NOW)


@pytest.fixture
def midnight_clock():
    """Clock frozen at the start of 2024-06-15."""
    return fixed_clock(TODAY)


@pytest.fixture
def normalizer(clock):
    return EventNormalizer(status_resolver=StatusResolver(clock, compare_time=True))


@pytest.fixture
def aggregator():
    return EventAggregator()


@pytest.fixture
def sample_rows():
    """One or more rows for every source kind, with joined display data."""
    maple = {"id": "P1", "name": "Maple Court"}
    unit_1 = {"id": "U1", "name": "Unit 1"}
    return {
        "lease": [
            {
                "id": "L1", "start_date": "2024-01-01", "end_date": "2024-12-31",
                "status": "active", "renewal_status": "not_contacted", "rent_amount": 1200,
                "unit_id": "U1", "unit": unit_1,
                "primary_tenant": {"id": "T1", "first_name": "Jane", "last_name": "Doe"},
            },
        ],
        "transaction": [
            {
                "id": "R1", "type": "income", "status": "pending", "due_date": "2024-06-01",
                "amount": 1200, "property_id": "P1", "property": maple, "unit_id": "U1", "unit": unit_1,
                "tenant": {"id": "T1", "first_name": "Jane", "last_name": "Doe"},
            },
            {
                "id": "X1", "type": "expense", "status": "pending", "transaction_date": "2024-06-10",
                "payment_terms": 15, "amount": 300, "description": "Landscaping",
                "property_id": "P1", "property": maple,
                "vendor": {"id": "V1", "name": "Acme Gardens"},
            },
        ],
        "maintenance_request": [
            {
                "id": "M1", "title": "Leaky faucet", "status": "open", "due_date": "2024-06-14",
                "property_id": "P1", "property": maple, "unit_id": "U1", "unit": unit_1,
                "assigned_to": {"id": "V2", "name": "Fix-It Plumbing", "type": "vendor"},
            },
            {
                "id": "M2", "title": "Broken window", "status": "resolved", "due_date": "2024-06-01",
                "property_id": "P1", "property": maple,
            },
            {"id": "M3", "title": "No date yet", "status": "open"},
        ],
        "inspection": [
            {
                "id": "I1", "type": "move_out", "scheduled_date": "2024-06-20", "status": "scheduled",
                "required_sections": ["kitchen", "living_room"], "property_id": "P1", "property": maple,
            },
        ],
        "appliance": [
            {
                "id": "A1", "name": "Water heater", "brand": "Rheem", "last_maintenance_date": "2024-01-10",
                "warranty_expiration": "2025-01-01", "property_id": "P1", "property": maple,
            },
        ],
        "custom_event": [
            {
                "id": "C1", "title": "Team meeting", "date": "2024-06-15", "time": "09:00",
                "all_day": False, "tags": ["urgent"], "property_id": "P1", "property": maple,
            },
            {"id": "C2", "title": "Fire drill", "date": "2024-06-15", "all_day": True},
        ],
        "property": [
            {"id": "P1", "name": "Maple Court", "insurance_expiration": "2024-08-01",
             "insurance_provider": "Harbor Mutual"},
        ],
    }


@pytest.fixture
def events(normalizer, sample_rows):
    return normalizer.normalize_all(sample_rows)


class FakeSource(SourceClient):
    """In-memory source that records every mutation."""

    def __init__(self, rows_by_kind=None):
        self.rows_by_kind = rows_by_kind or {}
        self.calls = []

    def fetch_rows(self, source_kind):
        return list(self.rows_by_kind.get(source_kind, []))

    def complete(self, related_type, related_id, now=None):
        self.calls.append(("complete", related_type, related_id, now))

    def cancel(self, related_type, related_id):
        self.calls.append(("cancel", related_type, related_id))

    def reschedule(self, event_type, related_id, new_date):
        self.calls.append(("reschedule", event_type, related_id, new_date))

    def create_custom_event(self, row):
        self.calls.append(("create", row))
        return dict(row, id="C9")

    def update_custom_event(self, event_id, updates):
        self.calls.append(("update", event_id, updates))
        return dict(updates, id=event_id)

    def delete_custom_event(self, event_id):
        self.calls.append(("delete", event_id))


@pytest.fixture
def fake_source(sample_rows):
    return FakeSource(sample_rows)


@pytest.fixture
def audit_log(tmp_path):
    return AuditLog(str(tmp_path / "audit_log.jsonl"))


@pytest.fixture
def memory_db(monkeypatch):
    """In-memory DuckDB store."""
    monkeypatch.setattr(settings, "USE_DATABASE", True)
    db = Database(":memory:")
    yield db
    db.close()
