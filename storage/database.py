"""
Database persistence layer (DuckDB) - local source of domain rows
"""
import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

import duckdb

from config import settings
from engine.errors import UpstreamFetchError
from ingestion.source_client import (
    RESCHEDULE_FIELDS,
    SOURCE_TABLES,
    SourceClient,
    cancellation_update,
    completion_update,
)
from models.event import EventType

logger = logging.getLogger(__name__)

# source kind -> [(alias, foreign key, table, columns)] joined onto each row
SOURCE_JOINS = {
    "lease": [
        ("unit", "unit_id", "units", ("id", "name")),
        ("primary_tenant", "primary_tenant_id", "tenants", ("id", "first_name", "last_name", "email")),
    ],
    "transaction": [
        ("property", "property_id", "properties", ("id", "name")),
        ("unit", "unit_id", "units", ("id", "name")),
        ("tenant", "tenant_id", "tenants", ("id", "first_name", "last_name")),
        ("vendor", "vendor_id", "vendors", ("id", "name")),
    ],
    "maintenance_request": [
        ("property", "property_id", "properties", ("id", "name")),
        ("unit", "unit_id", "units", ("id", "name")),
        ("assigned_to", "assigned_to_id", "external_contacts", ("id", "name", "type")),
    ],
    "inspection": [
        ("property", "property_id", "properties", ("id", "name")),
    ],
    "appliance": [
        ("property", "property_id", "properties", ("id", "name")),
    ],
    "custom_event": [
        ("property", "property_id", "properties", ("id", "name")),
        ("unit", "unit_id", "units", ("id", "name")),
    ],
    "property": [],
}


class Database(SourceClient):
    """
    DuckDB-backed store implementing the source client interface
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path or settings.DATABASE_PATH
        self.conn = None

        if settings.USE_DATABASE:
            self._init_database()

    def _init_database(self):
        """Initialize database and create tables"""
        # Ensure directory exists
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # Connect to database
        self.conn = duckdb.connect(self.db_path)

        # Create tables
        self._create_tables()

    def _create_tables(self):
        """Create database tables"""
        if not self.conn:
            return

        # Lookup tables
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS properties (
                id VARCHAR PRIMARY KEY,
                name VARCHAR,
                address VARCHAR,
                insurance_provider VARCHAR,
                insurance_expiration DATE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS units (
                id VARCHAR PRIMARY KEY,
                property_id VARCHAR,
                name VARCHAR
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS tenants (
                id VARCHAR PRIMARY KEY,
                first_name VARCHAR,
                last_name VARCHAR,
                email VARCHAR
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS vendors (
                id VARCHAR PRIMARY KEY,
                name VARCHAR
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS external_contacts (
                id VARCHAR PRIMARY KEY,
                name VARCHAR,
                type VARCHAR
            )
        """)

        # Event sources
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS leases (
                id VARCHAR PRIMARY KEY,
                unit_id VARCHAR,
                primary_tenant_id VARCHAR,
                start_date DATE,
                end_date DATE,
                rent_amount DECIMAL(10,2),
                status VARCHAR,
                renewal_status VARCHAR,
                renewal_date DATE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS transactions (
                id VARCHAR PRIMARY KEY,
                type VARCHAR,
                subtype VARCHAR,
                property_id VARCHAR,
                unit_id VARCHAR,
                tenant_id VARCHAR,
                vendor_id VARCHAR,
                amount DECIMAL(10,2),
                status VARCHAR,
                due_date DATE,
                transaction_date DATE,
                payment_terms INTEGER,
                paid_date DATE,
                description VARCHAR,
                is_recurring BOOLEAN DEFAULT FALSE,
                recurring_frequency VARCHAR,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS maintenance_requests (
                id VARCHAR PRIMARY KEY,
                title VARCHAR,
                description TEXT,
                status VARCHAR,
                priority VARCHAR,
                property_id VARCHAR,
                unit_id VARCHAR,
                assigned_to_id VARCHAR,
                due_date DATE,
                resolved_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS inspections (
                id VARCHAR PRIMARY KEY,
                property_id VARCHAR,
                type VARCHAR,
                required_sections VARCHAR[],
                scheduled_date DATE,
                expiration_date DATE,
                status VARCHAR,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS appliances (
                id VARCHAR PRIMARY KEY,
                property_id VARCHAR,
                name VARCHAR,
                brand VARCHAR,
                model VARCHAR,
                serial_number VARCHAR,
                status VARCHAR,
                installation_date DATE,
                warranty_expiration DATE,
                last_maintenance_date DATE,
                next_service_date DATE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS custom_events (
                id VARCHAR PRIMARY KEY,
                title VARCHAR,
                description TEXT,
                "date" DATE,
                end_date DATE,
                "time" VARCHAR,
                all_day BOOLEAN DEFAULT FALSE,
                property_id VARCHAR,
                unit_id VARCHAR,
                tags VARCHAR[],
                is_recurring BOOLEAN DEFAULT FALSE,
                recurring_pattern VARCHAR,
                reminder_minutes INTEGER,
                status VARCHAR DEFAULT 'upcoming',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    # ------------------------------------------------------------------
    # Generic row helpers
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: tuple = ()) -> List[dict]:
        cursor = self.conn.execute(sql, params)
        columns = [d[0] for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def insert_row(self, table: str, row: dict):
        """Insert one row; keys are column names"""
        if not self.conn:
            return
        columns = ", ".join(f'"{c}"' for c in row.keys())
        placeholders = ", ".join("?" for _ in row)
        self.conn.execute(
            f"INSERT OR REPLACE INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(row.values())
        )

    def insert_rows(self, table: str, rows: List[dict]):
        """Insert several rows into one table"""
        for row in rows:
            self.insert_row(table, row)

    def get_row(self, table: str, row_id: str) -> Optional[dict]:
        if not self.conn:
            return None
        rows = self._query(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
        return rows[0] if rows else None

    def _update(self, table: str, row_id: str, values: dict) -> dict:
        """Update one row and return it; a missing row is a failed mutation"""
        if not self.conn:
            raise UpstreamFetchError("Database is disabled")
        if self.get_row(table, row_id) is None:
            raise UpstreamFetchError(f"{table} row {row_id} not found")

        assignments = ", ".join(f'"{column}" = ?' for column in values)
        self.conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            tuple(values.values()) + (row_id,)
        )
        return self.get_row(table, row_id)

    # ------------------------------------------------------------------
    # Source client interface
    # ------------------------------------------------------------------

    def fetch_rows(self, source_kind: str) -> List[dict]:
        """Rows for a source kind with their joined display data"""
        table = SOURCE_TABLES.get(source_kind)
        if table is None:
            raise ValueError(f"Unknown source kind: {source_kind}")
        if not self.conn:
            return []

        try:
            rows = self._query(f"SELECT * FROM {table} ORDER BY id")

            for alias, foreign_key, join_table, columns in SOURCE_JOINS[source_kind]:
                lookup = {
                    r['id']: r
                    for r in self._query(f"SELECT {', '.join(columns)} FROM {join_table}")
                }
                for row in rows:
                    joined = lookup.get(row.get(foreign_key))
                    row[alias] = dict(joined) if joined else None
        except duckdb.Error as e:
            raise UpstreamFetchError(f"Could not read {table}: {e}") from e

        return rows

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
        values.setdefault('id', str(uuid4()))
        values.setdefault('status', 'upcoming')
        self.insert_row('custom_events', values)
        return self.get_row('custom_events', values['id'])

    def update_custom_event(self, event_id: str, updates: dict) -> dict:
        values = dict(updates)
        values['updated_at'] = datetime.now()
        return self._update('custom_events', event_id, values)

    def delete_custom_event(self, event_id: str):
        if self.get_row('custom_events', event_id) is None:
            raise UpstreamFetchError(f"custom_events row {event_id} not found")
        self.conn.execute("DELETE FROM custom_events WHERE id = ?", (event_id,))

    # ------------------------------------------------------------------
    # Demo data
    # ------------------------------------------------------------------

    def seed_sample_data(self, today: Optional[date] = None) -> Dict[str, int]:
        """
        Generate a small demo portfolio around today's date
        Returns the number of rows written per table
        """
        today = today or date.today()

        tables = {
            'properties': [
                {'id': 'prop_oak', 'name': 'Oak Street Apartments', 'address': '12 Oak St',
                 'insurance_provider': 'Harbor Mutual', 'insurance_expiration': today + timedelta(days=45)},
                {'id': 'prop_elm', 'name': 'Elm Court', 'address': '3 Elm Ct',
                 'insurance_provider': None, 'insurance_expiration': None},
            ],
            'units': [
                {'id': 'unit_101', 'property_id': 'prop_oak', 'name': 'Unit 101'},
                {'id': 'unit_102', 'property_id': 'prop_oak', 'name': 'Unit 102'},
                {'id': 'unit_a', 'property_id': 'prop_elm', 'name': 'Unit A'},
            ],
            'tenants': [
                {'id': 'ten_victoria', 'first_name': 'Victoria', 'last_name': 'Braden', 'email': 'vb@example.com'},
                {'id': 'ten_sarah', 'first_name': 'Sarah', 'last_name': 'Johnson', 'email': 'sj@example.com'},
            ],
            'vendors': [
                {'id': 'ven_cleanco', 'name': 'CleanCo Services'},
            ],
            'external_contacts': [
                {'id': 'team_maint', 'name': 'Maintenance Team', 'type': 'team'},
                {'id': 'ven_plumb', 'name': 'Rapid Plumbing', 'type': 'vendor'},
            ],
            'leases': [
                {'id': 'lease_101', 'unit_id': 'unit_101', 'primary_tenant_id': 'ten_victoria',
                 'start_date': today - timedelta(days=300), 'end_date': today + timedelta(days=65),
                 'rent_amount': 1150.0, 'status': 'active', 'renewal_status': 'not_contacted'},
                {'id': 'lease_a', 'unit_id': 'unit_a', 'primary_tenant_id': 'ten_sarah',
                 'start_date': today + timedelta(days=10), 'end_date': today + timedelta(days=375),
                 'rent_amount': 1400.0, 'status': 'upcoming'},
            ],
            'transactions': [
                {'id': 'txn_rent_101', 'type': 'income', 'subtype': 'invoice', 'property_id': 'prop_oak',
                 'unit_id': 'unit_101', 'tenant_id': 'ten_victoria', 'amount': 1150.0, 'status': 'pending',
                 'due_date': today.replace(day=1), 'is_recurring': True, 'recurring_frequency': 'monthly',
                 'description': 'Monthly rent'},
                {'id': 'txn_clean', 'type': 'expense', 'subtype': 'invoice', 'property_id': 'prop_oak',
                 'vendor_id': 'ven_cleanco', 'amount': 320.0, 'status': 'pending',
                 'transaction_date': today - timedelta(days=20), 'payment_terms': 30,
                 'description': 'Common area cleaning'},
            ],
            'maintenance_requests': [
                {'id': 'mr_leak', 'title': 'Kitchen sink leak', 'description': 'Slow drip under sink',
                 'status': 'assigned', 'priority': 'high', 'property_id': 'prop_oak', 'unit_id': 'unit_102',
                 'assigned_to_id': 'ven_plumb', 'due_date': today - timedelta(days=2)},
                {'id': 'mr_paint', 'title': 'Repaint hallway', 'description': None, 'status': 'open',
                 'priority': 'low', 'property_id': 'prop_elm', 'assigned_to_id': 'team_maint',
                 'due_date': today + timedelta(days=12)},
            ],
            'inspections': [
                {'id': 'insp_a', 'property_id': 'prop_elm', 'type': 'move_in',
                 'required_sections': ['kitchen', 'bathroom', 'bedroom'],
                 'scheduled_date': today + timedelta(days=9), 'expiration_date': today + timedelta(days=20),
                 'status': 'scheduled'},
            ],
            'appliances': [
                {'id': 'app_hvac', 'property_id': 'prop_oak', 'name': 'Rooftop HVAC', 'brand': 'Carrier',
                 'model': '48TC', 'status': 'active', 'last_maintenance_date': today - timedelta(days=170),
                 'warranty_expiration': today + timedelta(days=120)},
            ],
            'custom_events': [
                {'id': 'ce_meeting', 'title': 'Owner meeting', 'description': 'Quarterly review',
                 'date': today, 'time': '15:00', 'all_day': False, 'property_id': 'prop_oak',
                 'tags': ['important'], 'status': 'upcoming'},
                {'id': 'ce_fire', 'title': 'Fire alarm test', 'description': None,
                 'date': today + timedelta(days=3), 'all_day': True, 'property_id': 'prop_elm',
                 'unit_id': 'unit_a', 'tags': ['inspection'], 'is_recurring': True,
                 'recurring_pattern': 'yearly', 'status': 'upcoming'},
            ],
        }

        counts = {}
        for table, rows in tables.items():
            self.insert_rows(table, rows)
            counts[table] = len(rows)

        logger.info("Seeded sample data: %s", counts)
        return counts

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
