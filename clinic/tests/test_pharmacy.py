from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from clinic.models import Bill, Medicine, Transaction

pytestmark = pytest.mark.django_db


@pytest.fixture
def drugs(db):
    return (
        Medicine.objects.create(name='Amoxicillin 500mg', stock_level=50, unit_price=Decimal('2.50')),
        Medicine.objects.create(name='Paracetamol 1g', stock_level=3, unit_price=Decimal('1.00'),
                                reorder_level=5),
    )


def test_dispense_with_payment_books_a_pharmacy_sale(api_as, patient, drugs):
    amox, _ = drugs
    r = api_as('pharmacist').post('/api/pharmacy/dispense', {
        'patientId': patient.id,
        'items': [{'id': amox.id, 'quantity': 4}],
        'paymentMethod': 'Cash',
    }, format='json')
    assert r.status_code == 201, r.data
    assert r.data['status'] == 'paid'
    assert Decimal(str(r.data['totalAmount'])) == Decimal('10.00')
    amox.refresh_from_db()
    assert amox.stock_level == 46
    sale = Transaction.objects.get(bill_id=r.data['billId'])
    assert sale.category == 'Pharmacy Sales'
    assert sale.amount == Decimal('10.00')


def test_dispense_without_payment_leaves_bill_pending(api_as, patient, drugs):
    amox, _ = drugs
    r = api_as('accountant').post('/api/pharmacy/dispense', {
        'patientId': patient.id, 'items': [{'id': amox.id, 'quantity': 1}],
    }, format='json')
    assert r.status_code == 201
    assert Bill.objects.get(pk=r.data['billId']).status == 'pending'
    assert not Transaction.objects.filter(bill_id=r.data['billId']).exists()


def test_insufficient_stock_rolls_back_every_line(api_as, patient, drugs):
    amox, paracetamol = drugs
    r = api_as('pharmacist').post('/api/pharmacy/dispense', {
        'patientId': patient.id,
        'items': [{'id': amox.id, 'quantity': 5}, {'id': paracetamol.id, 'quantity': 4}],
        'paymentMethod': 'Cash',
    }, format='json')
    assert r.status_code == 400
    assert 'Insufficient stock' in str(r.data['error']['message'])
    amox.refresh_from_db()
    assert amox.stock_level == 50
    assert not Bill.objects.exists()


def test_unknown_drug_is_rejected(api_as, patient):
    r = api_as('pharmacist').post('/api/pharmacy/dispense', {
        'patientId': patient.id, 'items': [{'id': 9999, 'quantity': 1}],
    }, format='json')
    assert r.status_code == 400


def test_inventory_writes_need_pharmacist_or_billing(api_as):
    payload = {'name': 'Ibuprofen 400mg', 'unitPrice': '0.80', 'stockLevel': 100}
    assert api_as('receptionist').post('/api/pharmacy/inventory/create', payload, format='json').status_code == 403
    r = api_as('pharmacist').post('/api/pharmacy/inventory/create', payload, format='json')
    assert r.status_code == 201
    drug_id = r.data['id']
    r = api_as('accountant').put(f'/api/pharmacy/inventory/{drug_id}', {'stockLevel': 80}, format='json')
    assert r.status_code == 200
    assert Medicine.objects.get(pk=drug_id).stock_level == 80


def test_inventory_filters_and_stats(api_as, drugs):
    Medicine.objects.create(name='Old Syrup', stock_level=20, unit_price=Decimal('3.00'),
                            expiry_date=timezone.localdate() - timedelta(days=1))
    client = api_as('pharmacist')
    assert [m['name'] for m in client.get('/api/pharmacy/inventory?lowStock=1').data] == ['Paracetamol 1g']
    assert [m['name'] for m in client.get('/api/pharmacy/inventory?expired=1').data] == ['Old Syrup']

    stats = client.get('/api/pharmacy/inventory/stats').data
    assert stats['totalItems'] == 3
    assert stats['lowStock'] == 1
    assert stats['expired'] == 1
    # 50 x 2.50 + 3 x 1.00 + 20 x 3.00
    assert Decimal(str(stats['totalValue'])) == Decimal('188.00')
