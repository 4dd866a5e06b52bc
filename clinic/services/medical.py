"""
Lab, nursing and operation requests.  Each request raises a bill; the
request is confirmed when that bill is paid (see ``billing._settle``).
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.shortcuts import get_object_or_404

from ..exceptions import BusinessRuleViolation, InvalidTransition
from ..models import LabRequest, NurseRequest, Operation
from .billing import create_bill
from .notifications import notify_role

logger = logging.getLogger(__name__)


def request_lab_tests(*, patient, tests) -> LabRequest:
    tests = list(tests)
    with transaction.atomic():
        bill = create_bill(patient, [{'description': f'Lab: {t.name_en}', 'amount': t.cost} for t in tests])
        lab = LabRequest.objects.create(patient=patient, projected_cost=bill.total_amount, bill=bill)
        lab.tests.set(tests)
    notify_role('technician', 'New lab request', f'{patient.full_name}: {", ".join(t.name_en for t in tests)}')
    return lab


def complete_lab_request(pk: int, results: dict) -> LabRequest:
    with transaction.atomic():
        lab = get_object_or_404(LabRequest.objects.select_for_update(), pk=pk)
        if lab.status != 'confirmed':
            raise InvalidTransition('lab request', lab.status, 'completed')
        lab.results = results
        lab.status = 'completed'
        lab.save(update_fields=['results', 'status'])
    return lab


def confirm_lab_request(pk: int) -> LabRequest:
    """Confirm without payment through billing (e.g. insurance covered)."""
    with transaction.atomic():
        lab = get_object_or_404(LabRequest.objects.select_for_update(), pk=pk)
        if lab.status != 'pending':
            raise InvalidTransition('lab request', lab.status, 'confirmed')
        lab.status = 'confirmed'
        lab.save(update_fields=['status'])
    return lab


def request_nurse_service(*, patient, service, staff=None, notes: str = '') -> NurseRequest:
    with transaction.atomic():
        bill = create_bill(patient, [{'description': f'Nursing: {service.name_en}', 'amount': service.cost}])
        return NurseRequest.objects.create(
            patient=patient, service=service, staff=staff, cost=service.cost, notes=notes, bill=bill,
        )


def complete_nurse_request(pk: int) -> NurseRequest:
    with transaction.atomic():
        req = get_object_or_404(NurseRequest.objects.select_for_update(), pk=pk)
        if req.status != 'pending':
            raise InvalidTransition('nurse request', req.status, 'completed')
        req.status = 'completed'
        req.save(update_fields=['status'])
    return req


def request_operation(*, patient, doctor=None, operation_name: str, notes: str = '') -> Operation:
    return Operation.objects.create(patient=patient, doctor=doctor, operation_name=operation_name, notes=notes)


def process_operation(pk: int, items: list[dict]) -> Operation:
    """Price a requested operation and raise its bill."""
    with transaction.atomic():
        op = get_object_or_404(Operation.objects.select_for_update().select_related('patient'), pk=pk)
        if op.status != 'requested':
            raise InvalidTransition('operation', op.status, 'pending_payment')
        bill = create_bill(op.patient, [
            {'description': f"{op.operation_name}: {i['description']}", 'amount': i['amount']} for i in items
        ])
        op.projected_cost = bill.total_amount
        op.cost_details = {'items': [{'description': i['description'], 'amount': str(Decimal(str(i['amount'])))}
                                     for i in items]}
        op.bill = bill
        op.status = 'pending_payment'
        op.save()
    return op


def confirm_operation(pk: int) -> Operation:
    with transaction.atomic():
        op = get_object_or_404(Operation.objects.select_for_update(), pk=pk)
        if op.status not in ('requested', 'pending_payment'):
            raise InvalidTransition('operation', op.status, 'confirmed')
        op.status = 'confirmed'
        op.save(update_fields=['status'])
    return op


def complete_operation(pk: int) -> Operation:
    with transaction.atomic():
        op = get_object_or_404(Operation.objects.select_for_update().select_related('bill'), pk=pk)
        if op.status != 'confirmed':
            raise InvalidTransition('operation', op.status, 'completed')
        if op.bill and op.bill.status != 'paid':
            raise BusinessRuleViolation('Operation bill must be paid before completion')
        op.status = 'completed'
        op.save(update_fields=['status'])
    logger.info('Operation %s completed', op.pk)
    return op
