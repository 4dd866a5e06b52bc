"""
Provider queue ordering.

These helpers work on the wire representation of appointments (the
camelCase dictionaries returned by ``GET /api/appointments``) so that the
server's queue endpoint and :class:`clinic.client.AllCareClient` apply
exactly the same rules.

* An appointment is *paid* when its billing status is ``paid`` or its
  bill's paid amount covers the total.
* Waiting appointments are ordered paid first, then by appointment
  datetime, then by id.
* A provider has at most one ``in_progress`` appointment (the active
  slot).  The next appointment may be started only when the slot is free
  and it heads the queue with its bill paid.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

ACTIVE_STATUS = 'in_progress'
WAITING_STATUSES = ('pending', 'confirmed', 'checked_in', 'waiting')
COMPLETED_STATUS = 'completed'
QUEUE_STAFF_TYPES = ('doctor', 'nurse')


def _amount(value: Any) -> Decimal | None:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _when(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


def _day_of(value: Any) -> date | None:
    when = _when(value)
    return when.date() if when else None


def is_paid(appointment: dict) -> bool:
    if appointment.get('billingStatus') == 'paid':
        return True
    total = _amount(appointment.get('totalAmount'))
    if total is None:
        return False
    paid = _amount(appointment.get('paidAmount')) or Decimal('0')
    return paid >= total


def queue_key(appointment: dict) -> tuple:
    """Sort key: paid first, then arrival, then identifier."""
    when = _when(appointment.get('datetime'))
    return (
        0 if is_paid(appointment) else 1,
        when is None,
        when.timestamp() if when else 0.0,
        appointment.get('id') or 0,
    )


def sort_queue(appointments: Iterable[dict]) -> list[dict]:
    return sorted(appointments, key=queue_key)


def build_provider_queue(appointments: Iterable[dict]) -> dict:
    """Split one provider's appointments for a day into the queue columns."""
    items = list(appointments)
    active = [a for a in items if a.get('status') == ACTIVE_STATUS]
    waiting = sort_queue(a for a in items if a.get('status') in WAITING_STATUSES)
    completed = sum(1 for a in items if a.get('status') == COMPLETED_STATUS)
    current = min(active, key=queue_key) if active else None
    next_up = None
    if current is None and waiting and is_paid(waiting[0]):
        next_up = waiting[0].get('id')
    return {
        'active': current,
        'waiting': waiting,
        'completedCount': completed,
        'nextUpId': next_up,
    }


def build_provider_queues(appointments: Iterable[dict], staff: Iterable[dict], day: date) -> list[dict]:
    """Group ``appointments`` of ``day`` by provider.

    ``staff`` are the wire dictionaries of the medical staff; only doctors
    and nurses with at least one appointment that day get a column.
    """
    by_staff: dict[Any, list[dict]] = {}
    for appt in appointments:
        if _day_of(appt.get('datetime')) != day:
            continue
        by_staff.setdefault(appt.get('staffId'), []).append(appt)
    columns: list[dict] = []
    for member in staff:
        if member.get('type') not in QUEUE_STAFF_TYPES:
            continue
        own = by_staff.get(member.get('id'))
        if not own:
            continue
        column = build_provider_queue(own)
        column['staff'] = {
            'id': member.get('id'),
            'fullName': member.get('fullName'),
            'type': member.get('type'),
            'specialization': member.get('specialization'),
        }
        columns.append(column)
    return columns
