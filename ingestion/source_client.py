"""
Source clients - query and mutation interface to the property backend
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional

import requests

from config import settings
from models.event import EventType
from engine.errors import UpstreamFetchError

logger = logging.getLogger(__name__)

# source kind -> backend table
SOURCE_TABLES: Dict[str, str] = {
    "lease": "leases",
    "transaction": "transactions",
    "maintenance_request": "maintenance_requests",
    "inspection": "inspections",
    "appliance": "appliances",
    "custom_event": "custom_events",
    "property": "properties",
}

# Embedded joins requested with each table (PostgREST select syntax)
SOURCE_SELECTS: Dict[str, str] = {
    "lease": "*,unit:units(id,name),primary_tenant:tenants(id,first_name,last_name,email)",
    "transaction": "*,property:properties(id,name),unit:units(id,name),"
                   "tenant:tenants(id,first_name,last_name),vendor:vendors(id,name)",
    "maintenance_request": "*,property:properties(id,name),unit:units(id,name),"
                           "assigned_to:external_contacts(id,name,type)",
    "inspection": "*,property:properties(id,name)",
    "appliance": "*,property:properties(id,name)",
    "custom_event": "*,property:properties(id,name),unit:units(id,name)",
    "property": "*",
}

# event type -> (table, column) moved by a reschedule
RESCHEDULE_FIELDS: Dict[EventType, tuple] = {
    EventType.LEASE_START: ("leases", "start_date"),
    EventType.LEASE_END: ("leases", "end_date"),
    EventType.LEASE_RENEWAL: ("leases", "renewal_date"),
    EventType.RENT_DUE: ("transactions", "due_date"),
    EventType.EXPENSE_DUE: ("transactions", "due_date"),
    EventType.MAINTENANCE: ("maintenance_requests", "due_date"),
    EventType.INSPECTION: ("inspections", "scheduled_date"),
    EventType.APPLIANCE_CHECK: ("appliances", "next_service_date"),
    EventType.APPLIANCE_WARRANTY: ("appliances", "warranty_expiration"),
    EventType.INSURANCE_EXPIRATION: ("properties", "insurance_expiration"),
    EventType.CUSTOM: ("custom_events", "date"),
}


def completion_update(related_type: str, now: datetime) -> Dict:
    """Column values that mark a domain row as done"""
    if related_type == "maintenance_request":
        return {"status": "resolved", "resolved_at": now}
    if related_type == "inspection":
        return {"status": "completed", "completed_at": now}
    if related_type == "appliance":
        # Next check falls back to last_maintenance_date + service interval
        return {"last_maintenance_date": now.date(), "next_service_date": None}
    if related_type == "custom_event":
        return {"status": "completed"}
    raise ValueError(f"Unsupported event type for completion: {related_type}")


def cancellation_update(related_type: str) -> Dict:
    """Column values that mark a domain row as cancelled"""
    if related_type in ("maintenance_request", "inspection", "custom_event", "transaction"):
        return {"status": "cancelled"}
    raise ValueError(f"Unsupported event type for cancellation: {related_type}")


class SourceClient:
    """
    Query and mutation interface the calendar core consumes.
    Implementations: RestSourceClient (hosted backend) and
    storage.database.Database (local DuckDB store).
    """

    def fetch_rows(self, source_kind: str) -> List[dict]:
        """Raw domain rows for a source kind, with joined display data"""
        raise NotImplementedError

    def fetch_all(self, source_kinds=None) -> Dict[str, List[dict]]:
        """Rows for every source kind"""
        kinds = source_kinds or SOURCE_TABLES.keys()
        return {kind: self.fetch_rows(kind) for kind in kinds}

    def complete(self, related_type: str, related_id: str, now: Optional[datetime] = None):
        raise NotImplementedError

    def cancel(self, related_type: str, related_id: str):
        raise NotImplementedError

    def reschedule(self, event_type: EventType, related_id: str, new_date: date):
        raise NotImplementedError

    def create_custom_event(self, row: dict) -> dict:
        raise NotImplementedError

    def update_custom_event(self, event_id: str, updates: dict) -> dict:
        raise NotImplementedError

    def delete_custom_event(self, event_id: str):
        raise NotImplementedError


def _serialize(values: dict) -> dict:
    """JSON-safe copy of column values"""
    out = {}
    for key, value in values.items():
        if isinstance(value, (date, datetime)):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


class RestSourceClient(SourceClient):
    """
    Client for a PostgREST-style hosted backend
    (tables under {base_url}/rest/v1/{table}, API key in headers)
    """

    def __init__(self, base_url: str = None, api_key: str = None, timeout: float = None, session=None):
        self.base_url = (base_url or settings.BACKEND_URL).rstrip('/')
        self.api_key = api_key or settings.BACKEND_API_KEY
        self.timeout = timeout or settings.BACKEND_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
            'Prefer': 'return=representation',
        })

    def _url(self, table: str) -> str:
        if not self.base_url:
            raise UpstreamFetchError("No backend URL configured")
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, params: dict = None, payload=None):
        """Send a request; network and HTTP errors become UpstreamFetchError"""
        try:
            response = self.session.request(
                method, self._url(table), params=params, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Backend %s %s failed: %s", method, table, e)
            raise UpstreamFetchError(f"{method} {table} failed: {e}") from e

        if not response.content:
            return None
        return response.json()

    def fetch_rows(self, source_kind: str) -> List[dict]:
        table = SOURCE_TABLES.get(source_kind)
        if table is None:
            raise ValueError(f"Unknown source kind: {source_kind}")
        rows = self._request('GET', table, params={'select': SOURCE_SELECTS[source_kind]})
        logger.info("Fetched %d %s row(s)", len(rows or []), source_kind)
        return rows or []

    def _update(self, table: str, row_id: str, values: dict):
        rows = self._request('PATCH', table, params={'id': f"eq.{row_id}"}, payload=_serialize(values))
        return rows[0] if rows else None

    def complete(self, related_type: str, related_id: str, now: Optional[datetime] = None):
        values = completion_update(related_type, now or datetime.now())
        return self._update(SOURCE_TABLES[related_type], related_id, values)

    def cancel(self, related_type: str, related_id: str):
        return self._update(SOURCE_TABLES[related_type], related_id, cancellation_update(related_type))

    def reschedule(self, event_type: EventType, related_id: str, new_date: date):
        table, column = RESCHEDULE_FIELDS[EventType(event_type)]
        return self._update(table, related_id, {column: new_date})

    def create_custom_event(self, row: dict) -> dict:
        values = dict(row)
        values.setdefault('status', 'upcoming')
        rows = self._request('POST', 'custom_events', payload=[_serialize(values)])
        return rows[0] if rows else {}

    def update_custom_event(self, event_id: str, updates: dict) -> dict:
        values = dict(updates)
        values['updated_at'] = datetime.now()
        return self._update('custom_events', event_id, values)

    def delete_custom_event(self, event_id: str):
        self._request('DELETE', 'custom_events', params={'id': f"eq.{event_id}"})
