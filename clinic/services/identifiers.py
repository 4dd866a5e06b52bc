"""
Generators for the human facing identifiers (patient codes, employee ids,
bill and appointment numbers).
"""
from __future__ import annotations

import secrets
from datetime import datetime

from django.db.models.functions import Length
from django.utils import timezone

from ..models import Appointment, Bill, MedicalStaff, Patient

STAFF_PREFIXES = {'doctor': 'DOC', 'nurse': 'NUR'}


def next_patient_code(now: datetime | None = None) -> str:
    """Return the next ``P<YY><MM><seq>`` code; the sequence restarts monthly."""
    now = timezone.localtime(now or timezone.now())
    prefix = f"P{now:%y}{now:%m}"
    latest = (
        Patient.objects.filter(patient_code__startswith=prefix)
        .annotate(code_len=Length('patient_code'))
        .order_by('-code_len', '-patient_code')
        .values_list('patient_code', flat=True)
        .first()
    )
    sequence = 1
    if latest:
        tail = latest[len(prefix):]
        if tail.isdigit():
            sequence = int(tail) + 1
    return f"{prefix}{sequence:02d}"


def _unique(model, field: str, make) -> str:
    while True:
        value = make()
        if not model.objects.filter(**{field: value}).exists():
            return value


def next_employee_id(staff_type: str) -> str:
    prefix = STAFF_PREFIXES.get(staff_type, 'STF')
    return _unique(MedicalStaff, 'employee_id', lambda: f"{prefix}-{secrets.randbelow(10000):04d}")


def new_bill_number() -> str:
    return _unique(Bill, 'bill_number', lambda: f"{10000000 + secrets.randbelow(90000000)}")


def new_appointment_number() -> str:
    return _unique(Appointment, 'appointment_number', lambda: f"APT-{secrets.randbelow(100000):05d}")
