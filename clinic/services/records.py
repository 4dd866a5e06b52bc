"""
Unified records search across patients, appointments, bills and admissions.
"""
from __future__ import annotations

from datetime import date, datetime, time

from django.utils import timezone

from ..models import Admission, Appointment, Bill, Patient

RECORD_TYPES = ('Patient', 'Appointment', 'Bill', 'Admission')


def _records():
    for p in Patient.objects.all():
        yield {
            'id': f'pat-{p.id}', 'originalId': p.id, 'type': 'Patient', 'reference': p.patient_code,
            'date': p.created_at, 'primaryEntity': p.full_name, 'associateEntity': None,
            'status': p.type, 'value': None,
        }
    for a in Appointment.objects.select_related('patient', 'staff'):
        yield {
            'id': f'apt-{a.id}', 'originalId': a.id, 'type': 'Appointment', 'reference': a.appointment_number,
            'date': a.datetime, 'primaryEntity': a.patient.full_name, 'associateEntity': a.staff.full_name,
            'status': a.status, 'value': None,
        }
    for b in Bill.objects.select_related('patient'):
        yield {
            'id': f'bill-{b.id}', 'originalId': b.id, 'type': 'Bill', 'reference': b.bill_number,
            'date': b.bill_date, 'primaryEntity': b.patient.full_name, 'associateEntity': None,
            'status': b.status, 'value': b.total_amount,
        }
    for ad in Admission.objects.select_related('patient', 'bed', 'doctor'):
        yield {
            'id': f'adm-{ad.id}', 'originalId': ad.id, 'type': 'Admission', 'reference': f'BED-{ad.bed.room_number}',
            'date': ad.entry_date, 'primaryEntity': ad.patient.full_name,
            'associateEntity': ad.doctor.full_name if ad.doctor else None,
            'status': ad.status, 'value': None,
        }


def _matches(record: dict, needle: str) -> bool:
    haystack = (record['reference'], record['primaryEntity'], record['associateEntity'] or '')
    return any(needle in (field or '').lower() for field in haystack)


def search_records(*, q: str = '', record_type: str | None = None, status: str | None = None,
                   start: date | None = None, end: date | None = None) -> list[dict]:
    """Return matching records, newest first.

    ``q`` matches reference, primary and associate entity (case
    insensitive); ``status`` is compared case insensitively; ``start`` and
    ``end`` are inclusive calendar days.
    """
    needle = (q or '').strip().lower()
    wanted_status = (status or '').lower()
    tz = timezone.get_current_timezone()
    lower = timezone.make_aware(datetime.combine(start, time.min), tz) if start else None
    upper = timezone.make_aware(datetime.combine(end, time.max), tz) if end else None
    out = []
    for record in _records():
        if record_type and record_type != 'All' and record['type'] != record_type:
            continue
        if wanted_status and wanted_status != 'all' and (record['status'] or '').lower() != wanted_status:
            continue
        if needle and not _matches(record, needle):
            continue
        if lower and record['date'] < lower:
            continue
        if upper and record['date'] > upper:
            continue
        out.append(record)
    out.sort(key=lambda r: r['date'], reverse=True)
    return out
