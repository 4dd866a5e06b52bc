"""
Dispensing medicines against stock.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, F, Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from ..models import Medicine, Patient, Transaction
from .billing import create_bill

logger = logging.getLogger(__name__)


def dispense(*, patient: Patient, items: list[dict], payment_method: str | None = None):
    """Deduct stock for ``items`` (``{'id', 'quantity'}``) and bill the patient.

    With a payment method the bill is settled on the spot and the sale is
    booked in the treasury; otherwise it stays pending.
    """
    if not items:
        raise ValidationError({'items': 'Nothing to dispense'})
    with transaction.atomic():
        lines = []
        for item in items:
            quantity = int(item['quantity'])
            if quantity <= 0:
                raise ValidationError({'items': 'Quantity must be positive'})
            drug = Medicine.objects.select_for_update().filter(pk=item['id']).first()
            if drug is None:
                raise ValidationError({'items': f"Drug ID {item['id']} not found."})
            if drug.stock_level < quantity:
                raise ValidationError({'items': f'Insufficient stock for {drug.name}.'})
            drug.stock_level -= quantity
            drug.save(update_fields=['stock_level'])
            lines.append({'description': f'{drug.name} x{quantity}', 'amount': drug.unit_price * quantity})
        bill = create_bill(patient, lines, status='paid' if payment_method else 'pending')
        if payment_method:
            Transaction.objects.create(
                type='income',
                category='Pharmacy Sales',
                amount=bill.total_amount,
                method=payment_method,
                bill=bill,
                description=f'Pharmacy Sale - Bill #{bill.bill_number}',
            )
    logger.info('Dispensed %d line(s) on bill %s', len(lines), bill.bill_number)
    return bill


def inventory_stats(today: date | None = None) -> dict:
    today = today or timezone.localdate()
    qs = Medicine.objects.all()
    value = qs.aggregate(
        total=Sum(F('stock_level') * F('unit_price'), output_field=DecimalField(max_digits=14, decimal_places=2))
    )['total'] or Decimal('0')
    return {
        'totalItems': qs.count(),
        'lowStock': qs.filter(stock_level__lte=F('reorder_level')).count(),
        'expired': qs.filter(expiry_date__lt=today).count(),
        'totalValue': value,
    }
