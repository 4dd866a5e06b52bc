from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from clinic.models import Bill, Patient
from clinic.services.billing import create_bill
from clinic.services.records import search_records

pytestmark = pytest.mark.django_db


@pytest.fixture
def history(make_patient):
    now = timezone.now()
    omar = make_patient('Omar Khalil')
    lina = make_patient('Lina Haddad')
    Patient.objects.filter(pk=omar.pk).update(created_at=now - timedelta(days=10))
    Patient.objects.filter(pk=lina.pk).update(created_at=now - timedelta(days=5))
    bill = create_bill(omar, [{'description': 'X-ray', 'amount': '30.00'}])
    Bill.objects.filter(pk=bill.pk).update(bill_date=now - timedelta(days=1))
    return omar, lina, bill


def test_records_merge_every_kind_newest_first(history):
    omar, lina, bill = history
    found = search_records()
    assert [r['id'] for r in found] == [f'bill-{bill.id}', f'pat-{lina.id}', f'pat-{omar.id}']
    assert found[0]['value'] == Decimal('30.00')


def test_query_is_case_insensitive_across_names_and_references(history):
    omar, _, bill = history
    assert {r['id'] for r in search_records(q='OMAR')} == {f'pat-{omar.id}', f'bill-{bill.id}'}
    assert [r['id'] for r in search_records(q=bill.bill_number)] == [f'bill-{bill.id}']


def test_type_status_and_date_filters(history):
    omar, lina, bill = history
    assert [r['type'] for r in search_records(record_type='Bill')] == ['Bill']
    assert [r['id'] for r in search_records(status='PENDING')] == [f'bill-{bill.id}']
    today = timezone.localdate()
    window = search_records(start=today - timedelta(days=6), end=today - timedelta(days=2))
    assert [r['id'] for r in window] == [f'pat-{lina.id}']


def test_records_endpoint_paginates(api_as, history):
    client = api_as('receptionist')
    r = client.get('/api/records', {'pageSize': 2, 'page': 2})
    assert r.status_code == 200
    assert r.data['total'] == 3
    assert len(r.data['results']) == 1
    assert r.data['results'][0]['type'] == 'Patient'

    assert client.get('/api/records', {'type': 'Invoice'}).status_code == 400
    assert api_as('hr').get('/api/records').status_code == 403
