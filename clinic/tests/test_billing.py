from decimal import Decimal

import pytest
from django.utils import timezone

from clinic.models import Appointment, Bill, LabTest, Transaction
from clinic.services import appointments, medical
from clinic.services.billing import create_bill, outstanding_balance, record_payment

pytestmark = pytest.mark.django_db


def _book(patient, doctor):
    return appointments.book_appointment(patient=patient, staff=doctor, when=timezone.now())


def test_manual_bill_totals_its_items(api_as, patient):
    r = api_as('accountant').post('/api/billing', {
        'patientId': patient.id,
        'items': [{'description': 'X-Ray', 'amount': '30.00'}, {'description': 'Film', 'amount': '5.25'}],
    }, format='json')
    assert r.status_code == 201, r.data
    assert Decimal(str(r.data['totalAmount'])) == Decimal('35.25')
    assert r.data['status'] == 'pending'
    assert len(r.data['items']) == 2


def test_partial_then_full_payment(api_as, patient):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '100.00'}])
    client = api_as('accountant')

    r = client.post(f'/api/billing/{bill.id}/pay', {'amount': '40.00', 'method': 'Card'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'partial'

    r = client.post(f'/api/billing/{bill.id}/pay', {'amount': '60.00'}, format='json')
    assert r.data['status'] == 'paid'

    income = Transaction.objects.filter(bill=bill, type='income')
    assert income.count() == 2
    assert sum(t.amount for t in income) == Decimal('100.00')
    assert set(income.values_list('category', flat=True)) == {'Bill Payment'}


def test_payment_must_be_positive(api_as, patient):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '10.00'}])
    r = api_as('accountant').post(f'/api/billing/{bill.id}/pay', {'amount': '0'}, format='json')
    assert r.status_code == 400


def test_cannot_pay_a_cancelled_bill(patient, api_as):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '10.00'}], status='cancelled')
    r = api_as('accountant').post(f'/api/billing/{bill.id}/pay', {'amount': '10.00'}, format='json')
    assert r.status_code == 409


def test_full_payment_settles_appointment(patient, doctor):
    appt = _book(patient, doctor)
    record_payment(appt.bill_id, amount='40.00')
    appt.refresh_from_db()
    assert appt.billing_status == 'paid'
    assert appt.status == 'confirmed'


def test_partial_payment_does_not_settle(patient, doctor):
    appt = _book(patient, doctor)
    record_payment(appt.bill_id, amount='10.00')
    appt.refresh_from_db()
    assert appt.status == 'pending'
    assert appt.billing_status == 'billed'


def test_payment_keeps_later_appointment_states(patient, doctor):
    appt = _book(patient, doctor)
    Appointment.objects.filter(pk=appt.pk).update(status='checked_in')
    record_payment(appt.bill_id, amount='40.00')
    appt.refresh_from_db()
    assert appt.status == 'checked_in'
    assert appt.billing_status == 'paid'


def test_payment_confirms_lab_requests_and_operations(patient):
    test = LabTest.objects.create(name_en='CBC', cost=Decimal('15.00'))
    lab = medical.request_lab_tests(patient=patient, tests=[test])
    op = medical.request_operation(patient=patient, operation_name='Appendectomy')
    op = medical.process_operation(op.pk, [{'description': 'Surgeon', 'amount': '500.00'},
                                           {'description': 'Theatre', 'amount': '250.00'}])
    assert op.status == 'pending_payment'
    assert op.projected_cost == Decimal('750.00')

    record_payment(lab.bill_id, amount='15.00')
    record_payment(op.bill_id, amount='750.00')
    lab.refresh_from_db()
    op.refresh_from_db()
    assert lab.status == 'confirmed'
    assert op.status == 'confirmed'


def test_refund_rules(api_as, patient):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '100.00'}])
    record_payment(bill.id, amount='100.00')
    client = api_as('accountant')

    r = client.post(f'/api/billing/{bill.id}/refund', {'amount': '150.00'}, format='json')
    assert r.status_code == 400

    r = client.post(f'/api/billing/{bill.id}/refund', {'amount': '30.00', 'reason': 'Overcharged'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'partial'
    assert Decimal(str(r.data['paidAmount'])) == Decimal('70.00')

    r = client.post(f'/api/billing/{bill.id}/refund', {'amount': '70.00'}, format='json')
    assert r.data['status'] == 'pending'

    refunds = Transaction.objects.filter(bill=bill, type='expense', category='Refund')
    assert refunds.count() == 2


def test_cancel_service_needs_an_unpaid_bill(api_as, patient, doctor):
    appt = _book(patient, doctor)
    client = api_as('accountant')
    r = client.post(f'/api/billing/{appt.bill_id}/cancel-service', format='json')
    assert r.status_code == 200
    appt.refresh_from_db()
    assert appt.status == 'cancelled'
    assert Bill.objects.get(pk=appt.bill_id).status == 'cancelled'

    paid_appt = _book(patient, doctor)
    record_payment(paid_appt.bill_id, amount='5.00')
    r = client.post(f'/api/billing/{paid_appt.bill_id}/cancel-service', format='json')
    assert r.status_code == 409


def test_bill_list_shows_service_status(api_as, patient, doctor):
    appt = _book(patient, doctor)
    r = api_as('accountant').get('/api/billing', {'patientId': patient.id})
    assert r.status_code == 200
    assert r.data[0]['id'] == appt.bill_id
    assert r.data[0]['serviceStatus'] == 'pending'


def test_outstanding_balance_ignores_closed_bills(patient):
    create_bill(patient, [{'description': 'A', 'amount': '10.00'}])
    partly = create_bill(patient, [{'description': 'B', 'amount': '20.00'}])
    record_payment(partly.id, amount='5.00')
    create_bill(patient, [{'description': 'C', 'amount': '99.00'}], status='cancelled')
    assert outstanding_balance(patient) == Decimal('25.00')


def test_nurse_cannot_take_payments(api_as, patient):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '10.00'}])
    assert api_as('nurse').post(f'/api/billing/{bill.id}/pay', {'amount': '10.00'}, format='json').status_code == 403


def test_treasury_expenses(api_as):
    client = api_as('accountant')
    r = client.post('/api/treasury/expenses', {'category': 'Utilities', 'amount': '120.00', 'method': 'Bank',
                                               'description': 'Electricity'}, format='json')
    assert r.status_code == 201, r.data
    assert r.data['type'] == 'expense'

    r = client.put(f"/api/treasury/expenses/{r.data['id']}", {'amount': '125.00'}, format='json')
    assert r.status_code == 200
    assert Decimal(str(r.data['amount'])) == Decimal('125.00')

    r = client.get('/api/treasury/transactions', {'type': 'expense'})
    assert [t['category'] for t in r.data] == ['Utilities']


def test_payment_transactions_cannot_be_edited_as_expenses(api_as, patient):
    bill = create_bill(patient, [{'description': 'Consultation', 'amount': '10.00'}])
    record_payment(bill.id, amount='10.00')
    tx = Transaction.objects.get(bill=bill)
    r = api_as('accountant').put(f'/api/treasury/expenses/{tx.id}', {'amount': '1.00'}, format='json')
    assert r.status_code == 409
