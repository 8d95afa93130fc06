"""
Event normalizer - turns domain rows into calendar events.

Every source kind has one rule. A rule may emit several events for one row
(a lease yields start, end and renewal events). A row, or a single event of a
row, whose required date is missing or malformed is skipped and recorded in
the NormalizationReport; the normalizer never emits an event without a date.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from dateutil.relativedelta import relativedelta

from config import settings
from models.event import (
    AssigneeSnapshot,
    Event,
    EventStatus,
    EventType,
    RECURRING_PATTERNS,
    Snapshot,
)
from engine.actions import ActionResolver
from engine.errors import SourceRecordInvalid
from engine.registry import DEFAULT_REGISTRY, EventTypeRegistry
from engine.status import StatusResolver
from utils.helpers import (
    format_currency,
    format_time,
    parse_date,
    parse_datetime,
    system_clock,
)

logger = logging.getLogger(__name__)

SOURCE_KINDS = (
    "lease",
    "transaction",
    "maintenance_request",
    "inspection",
    "appliance",
    "custom_event",
    "property",
)

COMPLETED_MAINTENANCE_STATUSES = {"resolved", "completed"}
CANCELLED_MAINTENANCE_STATUSES = {"cancelled", "rejected"}
CANCELLED_TRANSACTION_STATUSES = {"cancelled", "void"}
CANCELLED_LEASE_STATUSES = {"cancelled", "terminated"}
OPEN_RENEWAL_STATUSES = {"not_contacted", "contacted"}


@dataclass
class NormalizationReport:
    """Counts of built and skipped events for one normalization pass"""
    events: int = 0
    skipped: int = 0
    reasons: List[Tuple[str, str, str]] = field(default_factory=list)  # (kind, id, reason)

    def record_skip(self, error: SourceRecordInvalid):
        self.skipped += 1
        self.reasons.append((error.source_kind, str(error.record_id), error.reason))

    def skipped_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for kind, _, _ in self.reasons:
            counts[kind] = counts.get(kind, 0) + 1
        return counts


def _snapshot(data) -> Optional[Snapshot]:
    """Build an {id, name} snapshot from joined row data"""
    if not isinstance(data, Mapping) or data.get('id') is None:
        return None
    name = data.get('name') or data.get('unit_number') or ""
    return Snapshot(id=str(data['id']), name=str(name))


def _person_name(data: Mapping) -> str:
    if data.get('name'):
        return str(data['name'])
    if data.get('is_company') and data.get('company_name'):
        return str(data['company_name'])
    full = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    return full or str(data.get('email') or data.get('id'))


def _assignee(data, default_type: str) -> Optional[AssigneeSnapshot]:
    if not isinstance(data, Mapping) or data.get('id') is None:
        return None
    assignee_type = data.get('type') or default_type
    if assignee_type not in ("tenant", "team", "vendor"):
        assignee_type = default_type
    return AssigneeSnapshot(id=str(data['id']), name=_person_name(data), type=assignee_type)


def _optional_id(value) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def _amount(value) -> Optional[float]:
    """Numeric amount for display, None when absent or unparseable"""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class EventNormalizer:
    """
    Converts heterogeneous source rows into uniform Event objects
    """

    def __init__(
        self,
        registry: Optional[EventTypeRegistry] = None,
        status_resolver: Optional[StatusResolver] = None,
        action_resolver: Optional[ActionResolver] = None,
        clock: Optional[Callable] = None
    ):
        self.registry = registry or DEFAULT_REGISTRY
        self.status_resolver = status_resolver or StatusResolver(
            clock or system_clock, compare_time=settings.STATUS_COMPARE_TIME
        )
        self.action_resolver = action_resolver or ActionResolver()
        self.report = NormalizationReport()

        self._rules: Dict[str, Callable[[Mapping], List[Event]]] = {
            "lease": self._from_lease,
            "transaction": self._from_transaction,
            "maintenance_request": self._from_maintenance_request,
            "inspection": self._from_inspection,
            "appliance": self._from_appliance,
            "custom_event": self._from_custom_event,
            "property": self._from_property,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, record: Mapping, source_kind: str) -> List[Event]:
        """Normalize one domain row; invalid rows produce no events"""
        rule = self._rules.get(source_kind)
        if rule is None:
            raise ValueError(
                f"Unknown source kind: {source_kind}. Supported kinds: {', '.join(SOURCE_KINDS)}"
            )

        try:
            if record.get('id') in (None, ""):
                raise SourceRecordInvalid(source_kind, None, "missing id")
            events = rule(record)
        except SourceRecordInvalid as e:
            self._skip(e)
            return []

        self.report.events += len(events)
        return events

    def normalize_all(self, rows_by_kind: Mapping[str, Iterable[Mapping]]) -> List[Event]:
        """Normalize rows from every source into one event list"""
        self.report = NormalizationReport()
        events: List[Event] = []

        for source_kind, rows in rows_by_kind.items():
            for record in rows or []:
                events.extend(self.normalize(record, source_kind))

        if self.report.skipped:
            logger.warning(
                "Skipped %d invalid source record(s): %s",
                self.report.skipped, self.report.skipped_by_kind()
            )
        return events

    # ------------------------------------------------------------------
    # Shared building blocks
    # ------------------------------------------------------------------

    def _skip(self, error: SourceRecordInvalid):
        logger.warning("Skipping %s record %s: %s", error.source_kind, error.record_id, error.reason)
        self.report.record_skip(error)

    @staticmethod
    def _require_date(record: Mapping, field_name: str, source_kind: str) -> date:
        raw = record.get(field_name)
        if raw in (None, ""):
            raise SourceRecordInvalid(source_kind, record.get('id'), f"missing {field_name}")
        value = parse_date(raw)
        if value is None:
            raise SourceRecordInvalid(source_kind, record.get('id'), f"malformed {field_name}: {raw!r}")
        return value

    def _attempt(self, builder: Callable[[], Event]) -> List[Event]:
        """Build one event of a multi-event row, skipping only that event on failure"""
        try:
            return [builder()]
        except SourceRecordInvalid as e:
            self._skip(e)
            return []

    def _build(
        self,
        source_kind: str,
        record: Mapping,
        event_type: EventType,
        event_id: str,
        title: str,
        event_date: date,
        explicit_status: Optional[EventStatus] = None,
        end_date: Optional[date] = None,
        time: Optional[str] = None,
        all_day: bool = True,
        description: Optional[str] = None,
        assignee: Optional[AssigneeSnapshot] = None,
        is_recurring: bool = False,
        recurring_pattern: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Event:
        config = self.registry.lookup(event_type)
        related_id = str(record['id'])
        if all_day:
            time = None

        status = self.status_resolver.resolve(event_date, explicit_status, time)
        actions = self.action_resolver.resolve(event_type, status, related_id)

        if recurring_pattern not in RECURRING_PATTERNS:
            recurring_pattern = None

        property_snapshot = _snapshot(record.get('property'))
        unit_snapshot = _snapshot(record.get('unit'))

        try:
            return Event(
                id=event_id,
                type=event_type,
                title=title,
                description=description,
                date=event_date,
                end_date=end_date,
                time=time,
                all_day=all_day,
                icon=config.icon,
                color=config.color,
                background_color=config.background_color,
                border_color=config.border_color,
                status=status,
                related_id=related_id,
                related_type=source_kind,
                property_id=_optional_id(record.get('property_id')) or (
                    property_snapshot.id if property_snapshot else None
                ),
                unit_id=_optional_id(record.get('unit_id')) or (
                    unit_snapshot.id if unit_snapshot else None
                ),
                assignee_id=assignee.id if assignee else None,
                property=property_snapshot,
                unit=unit_snapshot,
                assignee=assignee,
                actions=actions,
                is_recurring=bool(is_recurring),
                recurring_pattern=recurring_pattern if is_recurring else None,
                tags=list(tags or []),
                created_at=parse_datetime(record.get('created_at')),
                updated_at=parse_datetime(record.get('updated_at')),
            )
        except ValueError as e:
            raise SourceRecordInvalid(source_kind, record.get('id'), str(e)) from e

    # ------------------------------------------------------------------
    # Rules per source kind
    # ------------------------------------------------------------------

    def _from_lease(self, record: Mapping) -> List[Event]:
        """Lease row -> start, end and (optionally) renewal events"""
        lease_id = record['id']
        # The start date anchors the whole lease; without it nothing is emitted
        start_date = self._require_date(record, 'start_date', 'lease')

        lease_status = (record.get('status') or "").lower()
        cancelled = EventStatus.CANCELLED if lease_status in CANCELLED_LEASE_STATUSES else None
        subject = self._lease_subject(record)
        tenant = _assignee(record.get('primary_tenant'), 'tenant')
        description = None
        rent = _amount(record.get('rent_amount'))
        if rent is not None:
            description = f"Monthly rent {format_currency(rent)}"

        events = []

        start_status = cancelled
        if start_status is None and lease_status in ("active", "expired"):
            start_status = EventStatus.COMPLETED
        events.append(self._build(
            'lease', record, EventType.LEASE_START, f"lease_start_{lease_id}",
            f"Lease Start: {subject}", start_date,
            explicit_status=start_status, description=description, assignee=tenant,
        ))

        def build_end():
            end_date = self._require_date(record, 'end_date', 'lease')
            end_status = cancelled
            if end_status is None and lease_status == "expired":
                end_status = EventStatus.COMPLETED
            return self._build(
                'lease', record, EventType.LEASE_END, f"lease_end_{lease_id}",
                f"Lease End: {subject}", end_date,
                explicit_status=end_status, description=description, assignee=tenant,
            )

        events.extend(self._attempt(build_end))

        renewal_status = (record.get('renewal_status') or "").lower()
        if record.get('renewal_date') or renewal_status in OPEN_RENEWAL_STATUSES | {"renewed", "vacating"}:
            def build_renewal():
                if record.get('renewal_date'):
                    renewal_date = self._require_date(record, 'renewal_date', 'lease')
                else:
                    end_date = self._require_date(record, 'end_date', 'lease')
                    renewal_date = end_date - timedelta(days=settings.LEASE_RENEWAL_NOTICE_DAYS)
                renewal_explicit = cancelled
                if renewal_explicit is None and renewal_status == "renewed":
                    renewal_explicit = EventStatus.COMPLETED
                elif renewal_explicit is None and renewal_status == "vacating":
                    renewal_explicit = EventStatus.CANCELLED
                return self._build(
                    'lease', record, EventType.LEASE_RENEWAL, f"lease_renewal_{lease_id}",
                    f"Lease Renewal: {subject}", renewal_date,
                    explicit_status=renewal_explicit, assignee=tenant,
                    description=f"Renewal status: {renewal_status.replace('_', ' ')}" if renewal_status else None,
                )

            events.extend(self._attempt(build_renewal))

        return events

    @staticmethod
    def _lease_subject(record: Mapping) -> str:
        tenant = record.get('primary_tenant')
        if isinstance(tenant, Mapping) and tenant.get('id') is not None:
            return _person_name(tenant)
        unit = _snapshot(record.get('unit'))
        if unit and unit.name:
            return unit.name
        return f"Lease {record['id']}"

    def _from_transaction(self, record: Mapping) -> List[Event]:
        """Transaction row -> one rent_due (income) or expense_due (expense) event"""
        txn_type = (record.get('type') or "").lower()
        if txn_type == "income":
            event_type = EventType.RENT_DUE
        elif txn_type == "expense":
            event_type = EventType.EXPENSE_DUE
        else:
            raise SourceRecordInvalid('transaction', record['id'], f"unknown transaction type {txn_type!r}")

        due_date = self._transaction_due_date(record)

        status = (record.get('status') or "").lower()
        explicit = None
        if status == "paid" or record.get('paid_date'):
            explicit = EventStatus.COMPLETED
        elif status in CANCELLED_TRANSACTION_STATUSES:
            explicit = EventStatus.CANCELLED

        if event_type == EventType.RENT_DUE:
            assignee = _assignee(record.get('tenant'), 'tenant')
            counterparty = assignee.name if assignee else None
            title = f"Rent Due: {counterparty or record.get('description') or 'Rent'}"
        else:
            assignee = _assignee(record.get('vendor'), 'vendor')
            counterparty = assignee.name if assignee else None
            title = f"Expense Due: {counterparty or record.get('description') or 'Expense'}"

        parts = []
        amount = _amount(record.get('amount'))
        if amount is not None:
            parts.append(f"Amount: {format_currency(amount)}")
        if record.get('description'):
            parts.append(str(record['description']))

        pattern = (record.get('recurring_frequency') or "").lower() or None
        return [self._build(
            'transaction', record, event_type, f"transaction_{record['id']}", title, due_date,
            explicit_status=explicit,
            description=" - ".join(parts) or None,
            assignee=assignee,
            is_recurring=bool(record.get('is_recurring')),
            recurring_pattern=pattern,
        )]

    def _transaction_due_date(self, record: Mapping) -> date:
        """Due date as stored, or transaction date plus payment terms"""
        if record.get('due_date'):
            return self._require_date(record, 'due_date', 'transaction')
        if not record.get('transaction_date'):
            raise SourceRecordInvalid('transaction', record['id'], "missing due_date and transaction_date")
        issued = self._require_date(record, 'transaction_date', 'transaction')
        terms = record.get('payment_terms')
        if terms in (None, ""):
            terms = settings.DEFAULT_PAYMENT_TERMS_DAYS
        try:
            days = int(terms)
        except (TypeError, ValueError):
            raise SourceRecordInvalid('transaction', record['id'], f"malformed payment_terms: {terms!r}")
        return issued + timedelta(days=days)

    def _from_maintenance_request(self, record: Mapping) -> List[Event]:
        """Maintenance request -> one maintenance event on its due date"""
        due_date = self._require_date(record, 'due_date', 'maintenance_request')

        status = (record.get('status') or "").lower()
        explicit = None
        if status in COMPLETED_MAINTENANCE_STATUSES:
            explicit = EventStatus.COMPLETED
        elif status in CANCELLED_MAINTENANCE_STATUSES:
            explicit = EventStatus.CANCELLED

        title = record.get('title') or "Request"
        return [self._build(
            'maintenance_request', record, EventType.MAINTENANCE, f"maintenance_{record['id']}",
            f"Maintenance: {title}", due_date,
            explicit_status=explicit,
            description=record.get('description') or title,
            assignee=_assignee(record.get('assigned_to'), 'team'),
        )]

    def _from_inspection(self, record: Mapping) -> List[Event]:
        """Inspection -> one event on its scheduled date (or expiration date)"""
        field_name = 'scheduled_date' if record.get('scheduled_date') else 'expiration_date'
        inspection_date = self._require_date(record, field_name, 'inspection')

        status = (record.get('status') or "").lower()
        explicit = None
        if status == "completed" or record.get('completed_at'):
            explicit = EventStatus.COMPLETED
        elif status == "cancelled":
            explicit = EventStatus.CANCELLED

        kind = (record.get('type') or "").replace('_', ' ').title()
        title = f"{kind} Inspection" if kind else "Inspection"
        sections = record.get('required_sections') or []
        description = f"Sections: {', '.join(s.replace('_', ' ') for s in sections)}" if sections else None

        return [self._build(
            'inspection', record, EventType.INSPECTION, f"inspection_{record['id']}",
            title, inspection_date,
            explicit_status=explicit, description=description,
        )]

    def _from_appliance(self, record: Mapping) -> List[Event]:
        """Appliance -> equipment check and warranty expiration events"""
        name = record.get('name') or "Appliance"
        retired = EventStatus.CANCELLED if (record.get('status') or "").lower() == "retired" else None
        has_check = record.get('next_service_date') or record.get('last_maintenance_date')

        if not has_check and not record.get('warranty_expiration'):
            raise SourceRecordInvalid(
                'appliance', record['id'], "no next_service_date, last_maintenance_date or warranty_expiration"
            )

        events = []

        if has_check:
            def build_check():
                if record.get('next_service_date'):
                    check_date = self._require_date(record, 'next_service_date', 'appliance')
                else:
                    last = self._require_date(record, 'last_maintenance_date', 'appliance')
                    check_date = last + relativedelta(months=settings.APPLIANCE_SERVICE_INTERVAL_MONTHS)
                return self._build(
                    'appliance', record, EventType.APPLIANCE_CHECK, f"appliance_check_{record['id']}",
                    f"Equipment Check: {name}", check_date,
                    explicit_status=retired, description=self._appliance_description(record),
                )

            events.extend(self._attempt(build_check))

        if record.get('warranty_expiration'):
            def build_warranty():
                expires = self._require_date(record, 'warranty_expiration', 'appliance')
                return self._build(
                    'appliance', record, EventType.APPLIANCE_WARRANTY, f"appliance_warranty_{record['id']}",
                    f"Warranty Expires: {name}", expires,
                    explicit_status=retired, description=self._appliance_description(record),
                )

            events.extend(self._attempt(build_warranty))

        return events

    @staticmethod
    def _appliance_description(record: Mapping) -> Optional[str]:
        parts = [str(record[k]) for k in ('brand', 'model') if record.get(k)]
        if record.get('serial_number'):
            parts.append(f"S/N {record['serial_number']}")
        return " ".join(parts) or None

    def _from_custom_event(self, record: Mapping) -> List[Event]:
        """Custom event row -> one custom event"""
        event_date = self._require_date(record, 'date', 'custom_event')
        end_date = self._require_date(record, 'end_date', 'custom_event') if record.get('end_date') else None

        status = (record.get('status') or "").lower()
        explicit = EventStatus(status) if status in ("completed", "cancelled") else None

        return [self._build(
            'custom_event', record, EventType.CUSTOM, f"custom_{record['id']}",
            record.get('title') or "Untitled event", event_date,
            explicit_status=explicit,
            end_date=end_date,
            time=format_time(record.get('time')),
            all_day=bool(record.get('all_day')),
            description=record.get('description'),
            is_recurring=bool(record.get('is_recurring')),
            recurring_pattern=record.get('recurring_pattern'),
            tags=list(record.get('tags') or []),
        )]

    def _from_property(self, record: Mapping) -> List[Event]:
        """Property -> insurance expiration event"""
        if record.get('insurance_expiration') in (None, ""):
            return []  # uninsured or not tracked
        expires = self._require_date(record, 'insurance_expiration', 'property')
        name = record.get('name') or f"Property {record['id']}"
        # The property row is its own property snapshot
        row = dict(record)
        row.setdefault('property_id', record['id'])
        row.setdefault('property', {'id': record['id'], 'name': name})
        description = f"Policy with {record['insurance_provider']}" if record.get('insurance_provider') else None
        return [self._build(
            'property', row, EventType.INSURANCE_EXPIRATION, f"insurance_{record['id']}",
            f"Insurance Expires: {name}", expires, description=description,
        )]
