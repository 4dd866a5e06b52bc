"""
Appointment booking and status changes.

A provider works one patient at a time: moving an appointment into
``in_progress`` demotes any other in-progress appointment of the same
provider back to ``checked_in`` inside the same transaction.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from ..exceptions import BusinessRuleViolation, InvalidTransition
from ..models import Appointment, AppointmentTransition, MedicalStaff, Patient
from .billing import create_bill
from .identifiers import new_appointment_number
from .queue import is_paid

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, tuple[str, ...]] = {
    'pending': ('confirmed', 'waiting', 'checked_in', 'in_progress', 'cancelled'),
    'confirmed': ('waiting', 'checked_in', 'in_progress', 'cancelled'),
    'waiting': ('checked_in', 'in_progress', 'cancelled'),
    'checked_in': ('waiting', 'in_progress', 'cancelled'),
    'in_progress': ('completed', 'checked_in', 'cancelled'),
    'completed': (),
    'cancelled': (),
}


def _can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, ())


def fee_for(staff: MedicalStaff, appointment_type: str) -> Decimal:
    if appointment_type == 'Follow-up':
        return staff.consultation_fee_followup
    if appointment_type == 'Emergency':
        return staff.consultation_fee_emergency
    return staff.consultation_fee


def daily_token_for(staff: MedicalStaff, when, exclude: int | None = None) -> int:
    day = timezone.localtime(when).date()
    qs = Appointment.objects.filter(staff=staff, datetime__date=day)
    if exclude is not None:
        qs = qs.exclude(pk=exclude)
    return qs.count() + 1


def book_appointment(*, patient: Patient, staff: MedicalStaff, when, appointment_type: str = 'Consultation',
                     reason: str = '', custom_fee=None) -> Appointment:
    """Create a pending appointment together with its pending bill."""
    if staff.status != 'active':
        raise BusinessRuleViolation(f'{staff.full_name} is not accepting appointments')
    if custom_fee is not None:
        fee = Decimal(str(custom_fee))
        description = f'Service: {reason or appointment_type}'
    else:
        fee = fee_for(staff, appointment_type)
        description = f'Appointment: {appointment_type} with {staff.full_name}'
    with transaction.atomic():
        bill = create_bill(patient, [{'description': description, 'amount': fee}])
        appointment = Appointment.objects.create(
            appointment_number=new_appointment_number(),
            patient=patient,
            staff=staff,
            datetime=when,
            type=appointment_type,
            status='pending',
            billing_status='billed',
            reason=reason,
            bill=bill,
            daily_token=daily_token_for(staff, when),
        )
    logger.info('Booked %s for patient %s with %s', appointment.appointment_number,
                patient.patient_code, staff.employee_id)
    return appointment


def _record(appointment: Appointment, old: str, new: str, operator=None, reason: str = '') -> None:
    AppointmentTransition.objects.create(
        appointment=appointment,
        from_status=old,
        to_status=new,
        operator=operator,
        reason=reason,
    )


def _paid(appointment: Appointment) -> bool:
    bill = appointment.bill
    return is_paid({
        'billingStatus': appointment.billing_status,
        'totalAmount': bill.total_amount if bill else None,
        'paidAmount': bill.paid_amount if bill else None,
    })


def change_status(appointment_id: int, new_status: str, *, operator=None, reason: str = '') -> Appointment:
    """Apply a status change, keeping a single active appointment per provider."""
    if new_status not in TRANSITIONS:
        raise BusinessRuleViolation(f'Unknown appointment status {new_status}')
    with transaction.atomic():
        appointment = get_object_or_404(
            Appointment.objects.select_for_update().select_related('bill'), pk=appointment_id
        )
        old = appointment.status
        if old == new_status:
            return appointment
        if not _can_transition(old, new_status):
            raise InvalidTransition('appointment', old, new_status)
        if new_status == 'in_progress':
            if not _paid(appointment):
                raise BusinessRuleViolation('Appointment must be paid before it can start')
            others = (
                Appointment.objects.select_for_update()
                .filter(staff_id=appointment.staff_id, status='in_progress')
                .exclude(pk=appointment.pk)
            )
            for other in others:
                other.status = 'checked_in'
                other.save(update_fields=['status'])
                _record(other, 'in_progress', 'checked_in', operator, 'Another patient started')
                logger.info('Demoted %s to checked_in', other.appointment_number)
        if new_status == 'cancelled' and appointment.bill and appointment.bill.status == 'pending':
            appointment.bill.status = 'cancelled'
            appointment.bill.save(update_fields=['status'])
        appointment.status = new_status
        appointment.save(update_fields=['status'])
        _record(appointment, old, new_status, operator, reason)
    return appointment


def cancel_appointment(appointment_id: int, *, operator=None, reason: str = '') -> Appointment:
    return change_status(appointment_id, 'cancelled', operator=operator, reason=reason or 'Cancelled')


def reschedule_appointment(appointment_id: int, *, staff: MedicalStaff | None = None, when=None,
                           appointment_type: str | None = None, reason: str | None = None) -> Appointment:
    """Move an open appointment to another slot or provider.

    The daily token is reissued when the provider or the local day changes.
    """
    with transaction.atomic():
        appointment = get_object_or_404(
            Appointment.objects.select_for_update().select_related('staff'), pk=appointment_id
        )
        if appointment.status in ('completed', 'cancelled', 'in_progress'):
            raise BusinessRuleViolation(f'A {appointment.status} appointment cannot be rescheduled')
        old_staff_id = appointment.staff_id
        old_day = timezone.localtime(appointment.datetime).date()
        if staff is not None and staff.pk != old_staff_id:
            if staff.status != 'active':
                raise BusinessRuleViolation(f'{staff.full_name} is not accepting appointments')
            appointment.staff = staff
        if when is not None:
            appointment.datetime = when
        if appointment_type is not None:
            appointment.type = appointment_type
        if reason is not None:
            appointment.reason = reason
        if appointment.staff_id != old_staff_id or timezone.localtime(appointment.datetime).date() != old_day:
            appointment.daily_token = daily_token_for(appointment.staff, appointment.datetime,
                                                      exclude=appointment.pk)
        appointment.save()
    logger.info('Rescheduled %s with %s at %s', appointment.appointment_number,
                appointment.staff.employee_id, appointment.datetime)
    return appointment
