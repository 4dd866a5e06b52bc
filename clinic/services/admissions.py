"""
Admission lifecycle tied to the bed state machine and billing.

    create   -> admission reserved, bed reserved, deposit bill raised
    confirm  -> requires the deposit bill paid; admission active, bed occupied
    cancel   -> reserved only; bed available, pending deposit bill cancelled
    discharge-> no outstanding balance; admission discharged, bed cleaning
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from ..exceptions import BusinessRuleViolation
from ..models import Admission, Bed, InpatientNote, MedicalStaff, Patient
from . import beds
from .billing import activate_admission, create_bill, outstanding_balance

logger = logging.getLogger(__name__)

OPEN_STATUSES = ('reserved', 'active')


def duration_days(start, end=None) -> int:
    """Whole days billed for a stay: partial days count, minimum one."""
    end = end or timezone.now()
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def admit(*, patient: Patient, bed_id: int, doctor: MedicalStaff | None = None, entry_date=None,
          deposit=None, notes: str = '') -> Admission:
    with transaction.atomic():
        bed = get_object_or_404(Bed.objects.select_for_update(), pk=bed_id)
        if Admission.objects.filter(patient=patient, status__in=OPEN_STATUSES).exists():
            raise BusinessRuleViolation(f'{patient.full_name} already has an open admission')
        if patient.type == 'inpatient':
            raise BusinessRuleViolation(f'{patient.full_name} is already an inpatient')
        deposit = Decimal(str(deposit)) if deposit not in (None, '') else bed.cost_per_day
        beds.transition_bed(bed, 'reserved')
        bill = create_bill(
            patient,
            [{'description': f'Admission deposit: Bed {bed.room_number}', 'amount': deposit}],
            status='paid' if deposit == 0 else 'pending',
        )
        admission = Admission.objects.create(
            patient=patient,
            bed=bed,
            doctor=doctor,
            entry_date=entry_date or timezone.now(),
            status='reserved',
            deposit_amount=deposit,
            deposit_bill=bill,
            notes=notes,
        )
    logger.info('Patient %s reserved bed %s', patient.patient_code, bed.room_number)
    return admission


def confirm(admission_id: int) -> Admission:
    with transaction.atomic():
        admission = get_object_or_404(
            Admission.objects.select_for_update().select_related('deposit_bill', 'patient'), pk=admission_id
        )
        if admission.status != 'reserved':
            raise BusinessRuleViolation(f'Admission is {admission.status}')
        bill = admission.deposit_bill
        if bill is not None and bill.status != 'paid':
            raise BusinessRuleViolation('Deposit must be paid before the admission is confirmed')
        return activate_admission(admission)


def cancel(admission_id: int) -> Admission:
    with transaction.atomic():
        admission = get_object_or_404(
            Admission.objects.select_for_update().select_related('deposit_bill'), pk=admission_id
        )
        if admission.status != 'reserved':
            raise BusinessRuleViolation('Only reserved admissions can be cancelled')
        bed = Bed.objects.select_for_update().get(pk=admission.bed_id)
        beds.transition_bed(bed, 'available')
        admission.status = 'cancelled'
        admission.save(update_fields=['status'])
        bill = admission.deposit_bill
        if bill is not None and bill.status == 'pending':
            bill.status = 'cancelled'
            bill.save(update_fields=['status'])
    return admission


def add_note(admission_id: int, *, note: str, vitals: dict | None = None,
             doctor: MedicalStaff | None = None) -> InpatientNote:
    admission = get_object_or_404(Admission, pk=admission_id)
    if admission.status != 'active':
        raise BusinessRuleViolation('Notes can only be added to active admissions')
    return InpatientNote.objects.create(admission=admission, doctor=doctor, note=note, vitals=vitals or {})


def generate_settlement(admission_id: int):
    """Raise the stay bill: billed days x bed rate, less the deposit already billed."""
    with transaction.atomic():
        admission = get_object_or_404(
            Admission.objects.select_for_update().select_related('bed', 'patient'), pk=admission_id
        )
        if admission.status != 'active':
            raise BusinessRuleViolation('Settlement is only available for active admissions')
        if admission.settlement_bill_id:
            raise BusinessRuleViolation('A settlement bill already exists for this admission')
        days = duration_days(admission.entry_date)
        stay = admission.bed.cost_per_day * days
        amount = max(Decimal('0'), stay - admission.deposit_amount)
        bill = create_bill(
            admission.patient,
            [{'description': f'Stay: {days} day(s) in Bed {admission.bed.room_number}', 'amount': amount}],
            is_settlement=True,
            status='paid' if amount == 0 else 'pending',
        )
        admission.settlement_bill = bill
        admission.save(update_fields=['settlement_bill'])
    return bill


def discharge(admission_id: int, *, discharge_notes: str = '', discharge_status: str = 'Recovered') -> Admission:
    tolerance = Decimal(str(settings.DISCHARGE_BALANCE_TOLERANCE))
    with transaction.atomic():
        admission = get_object_or_404(
            Admission.objects.select_for_update().select_related('patient'), pk=admission_id
        )
        if admission.status != 'active':
            raise BusinessRuleViolation('Only active admissions can be discharged')
        balance = outstanding_balance(admission.patient)
        if balance > tolerance:
            raise BusinessRuleViolation(f'Outstanding balance of {balance} must be settled before discharge')
        bed = Bed.objects.select_for_update().get(pk=admission.bed_id)
        beds.transition_bed(bed, 'cleaning')
        now = timezone.now()
        admission.status = 'discharged'
        admission.discharge_date = admission.discharge_date or now
        admission.actual_discharge_date = now
        admission.discharge_notes = discharge_notes
        admission.discharge_status = discharge_status
        admission.save()
        patient = admission.patient
        patient.type = 'outpatient'
        patient.save(update_fields=['type'])
    logger.info('Admission %s discharged; bed %s to cleaning', admission.pk, bed.room_number)
    return admission


def mark_bed_clean(bed_id: int) -> Bed:
    with transaction.atomic():
        bed = get_object_or_404(Bed.objects.select_for_update(), pk=bed_id)
        return beds.transition_bed(bed, 'available')
