"""
Attendance, payroll and financial adjustments.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from rest_framework.exceptions import ValidationError

from ..models import Attendance, FinancialAdjustment, MedicalStaff, PayrollRecord

logger = logging.getLogger(__name__)


def mark_attendance(*, staff: MedicalStaff, day: date, status: str, check_in=None, check_out=None) -> Attendance:
    """Create or replace the attendance row of ``staff`` for ``day``."""
    record, _ = Attendance.objects.update_or_create(
        staff=staff,
        date=day,
        defaults={'status': status, 'check_in': check_in, 'check_out': check_out},
    )
    return record


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month."""
    try:
        year, mon = (int(part) for part in month.split('-'))
        last = calendar.monthrange(year, mon)[1]
    except (ValueError, calendar.IllegalMonthError):
        raise ValidationError({'month': 'Expected YYYY-MM'})
    return date(year, mon, 1), date(year, mon, last)


def generate_payroll(month: str) -> list[PayrollRecord]:
    """Replace the month's draft payroll with a fresh one for every active employee.

    Net salary is base salary plus bonuses minus fines and loans dated in
    the month.  Records already marked paid are left untouched.
    """
    start, end = month_bounds(month)
    records: list[PayrollRecord] = []
    with transaction.atomic():
        PayrollRecord.objects.filter(month=month, status='draft').delete()
        paid_staff = set(PayrollRecord.objects.filter(month=month, status='paid').values_list('staff_id', flat=True))
        for staff in MedicalStaff.objects.filter(status='active').exclude(pk__in=paid_staff):
            bonus = Decimal('0')
            deductions = Decimal('0')
            for adj in FinancialAdjustment.objects.filter(staff=staff, date__range=(start, end)):
                if adj.type == 'bonus':
                    bonus += adj.amount
                else:
                    deductions += adj.amount
            records.append(PayrollRecord.objects.create(
                staff=staff,
                month=month,
                base_salary=staff.base_salary,
                total_bonuses=bonus,
                total_fines=deductions,
                net_salary=staff.base_salary + bonus - deductions,
                status='draft',
            ))
    logger.info('Generated %d payroll drafts for %s', len(records), month)
    return records
