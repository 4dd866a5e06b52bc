"""
Billing, payments, refunds and settlement propagation.

Paying a bill in full settles the services it was raised for: the
appointment becomes confirmed/paid, lab requests and operations become
confirmed, and a reserved admission whose deposit bill this is becomes
active with its bed occupied.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from ..exceptions import BusinessRuleViolation
from ..models import Admission, Appointment, Bed, Bill, BillItem, LabRequest, Operation, Transaction
from . import beds
from .identifiers import new_bill_number

logger = logging.getLogger(__name__)

CLOSED_STATUSES = ('cancelled', 'refunded')


def create_bill(patient, items: Iterable[dict], *, is_settlement: bool = False, status: str = 'pending') -> Bill:
    """Create a bill with ``items`` (``{'description', 'amount'}``); the total is their sum."""
    items = [{'description': i['description'], 'amount': Decimal(str(i['amount']))} for i in items]
    if not items:
        raise ValidationError({'items': 'At least one bill item is required'})
    total = sum((i['amount'] for i in items), Decimal('0'))
    bill = Bill.objects.create(
        bill_number=new_bill_number(),
        patient=patient,
        total_amount=total,
        paid_amount=total if status == 'paid' else Decimal('0'),
        status=status,
        is_settlement_bill=is_settlement,
    )
    BillItem.objects.bulk_create([BillItem(bill=bill, **i) for i in items])
    return bill


def service_status(bill: Bill) -> str | None:
    """Status of the first service found for ``bill`` (appointment, lab, operation, admission)."""
    for related in (bill.appointments, bill.lab_requests, bill.operations, bill.deposit_admissions):
        status = related.values_list('status', flat=True).first()
        if status:
            return status
    return None


def _settle(bill: Bill) -> None:
    Appointment.objects.filter(bill=bill).update(billing_status='paid')
    Appointment.objects.filter(bill=bill, status='pending').update(status='confirmed')
    LabRequest.objects.filter(bill=bill, status='pending').update(status='confirmed')
    Operation.objects.filter(bill=bill, status__in=('requested', 'pending_payment')).update(status='confirmed')
    for admission in Admission.objects.select_for_update().filter(deposit_bill=bill, status='reserved'):
        activate_admission(admission)


def activate_admission(admission: Admission) -> Admission:
    """Reserved admission -> active; bed reserved -> occupied; patient becomes an inpatient."""
    bed = Bed.objects.select_for_update().get(pk=admission.bed_id)
    beds.transition_bed(bed, 'occupied')
    admission.status = 'active'
    admission.save(update_fields=['status'])
    patient = admission.patient
    patient.type = 'inpatient'
    patient.save(update_fields=['type'])
    logger.info('Admission %s activated in bed %s', admission.pk, bed.room_number)
    return admission


def record_payment(bill_id: int, *, amount, method: str = 'Cash', details: dict | None = None,
                   date=None) -> Bill:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValidationError({'amount': 'Payment amount must be positive'})
    with transaction.atomic():
        bill = get_object_or_404(Bill.objects.select_for_update(), pk=bill_id)
        if bill.status in CLOSED_STATUSES:
            raise BusinessRuleViolation(f'Bill #{bill.bill_number} is {bill.status}')
        bill.paid_amount += amount
        bill.status = 'paid' if bill.paid_amount >= bill.total_amount else 'partial'
        bill.save(update_fields=['paid_amount', 'status'])
        Transaction.objects.create(
            type='income',
            category='Bill Payment',
            amount=amount,
            method=method or 'Cash',
            bill=bill,
            details=details or {},
            date=date or timezone.now(),
            description=f'Payment for Bill #{bill.bill_number}',
        )
        if bill.status == 'paid':
            _settle(bill)
    logger.info('Payment of %s recorded on bill %s (%s)', amount, bill.bill_number, bill.status)
    return bill


def process_refund(bill_id: int, *, amount, reason: str = '', method: str = 'Cash', date=None) -> Bill:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValidationError({'amount': 'Refund amount must be positive'})
    with transaction.atomic():
        bill = get_object_or_404(Bill.objects.select_for_update(), pk=bill_id)
        if amount > bill.paid_amount:
            raise ValidationError({'amount': 'Refund amount cannot exceed paid amount'})
        bill.paid_amount -= amount
        if bill.paid_amount <= 0:
            bill.status = 'pending'
        elif bill.paid_amount >= bill.total_amount:
            bill.status = 'paid'
        else:
            bill.status = 'partial'
        bill.save(update_fields=['paid_amount', 'status'])
        Transaction.objects.create(
            type='expense',
            category='Refund',
            amount=amount,
            method=method or 'Cash',
            bill=bill,
            details={'reason': reason},
            date=date or timezone.now(),
            description=f'Refund for Bill #{bill.bill_number}: {reason}',
        )
    logger.info('Refund of %s issued on bill %s', amount, bill.bill_number)
    return bill


def cancel_service(bill_id: int) -> Bill:
    """Cancel an unpaid bill together with the service it was raised for."""
    with transaction.atomic():
        bill = get_object_or_404(Bill.objects.select_for_update(), pk=bill_id)
        if bill.paid_amount > 0:
            raise BusinessRuleViolation('Bills with payments must be refunded before cancellation')
        if bill.status == 'cancelled':
            return bill
        bill.status = 'cancelled'
        bill.save(update_fields=['status'])
        Appointment.objects.filter(bill=bill).exclude(status='completed').update(status='cancelled')
        LabRequest.objects.filter(bill=bill).exclude(status='completed').update(status='cancelled')
        Operation.objects.filter(bill=bill).exclude(status='completed').update(status='cancelled')
        for admission in Admission.objects.select_for_update().filter(deposit_bill=bill, status='reserved'):
            bed = Bed.objects.select_for_update().get(pk=admission.bed_id)
            beds.transition_bed(bed, 'available')
            admission.status = 'cancelled'
            admission.save(update_fields=['status'])
    return bill


def outstanding_balance(patient) -> Decimal:
    """Unpaid amount across the patient's open bills."""
    total = Decimal('0')
    for bill in Bill.objects.filter(patient=patient).exclude(status__in=CLOSED_STATUSES):
        if bill.balance > 0:
            total += bill.balance
    return total
