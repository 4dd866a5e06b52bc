from datetime import datetime

import pytest
from django.utils import timezone

from clinic.models import Patient
from clinic.services.billing import create_bill
from clinic.services.identifiers import next_patient_code

pytestmark = pytest.mark.django_db


def _code_prefix():
    now = timezone.localtime()
    return f"P{now:%y}{now:%m}"


def test_register_assigns_monthly_patient_codes(api_as):
    client = api_as('receptionist')
    first = client.post('/api/patients', {'fullName': 'Jane Doe', 'age': 34, 'gender': 'female'}, format='json')
    second = client.post('/api/patients', {'fullName': 'John Roe', 'age': 51, 'gender': 'male'}, format='json')
    assert first.status_code == 201, first.data
    assert first.data['patientId'] == f'{_code_prefix()}01'
    assert second.data['patientId'] == f'{_code_prefix()}02'
    assert second.data['type'] == 'outpatient'


def test_next_code_continues_past_two_digits():
    when = timezone.make_aware(datetime(2024, 5, 10, 12, 0))
    Patient.objects.create(patient_code='P240599', full_name='A')
    Patient.objects.create(patient_code='P2405100', full_name='B')
    Patient.objects.create(patient_code='P240498', full_name='Old month')
    assert next_patient_code(when) == 'P2405101'
    assert next_patient_code(timezone.make_aware(datetime(2024, 6, 1, 8, 0))) == 'P240601'


def test_names_are_sanitized_and_validated(api_as):
    client = api_as('receptionist')
    r = client.post('/api/patients', {'fullName': '<script>x</script><b>Mary</b> Major'}, format='json')
    assert r.status_code == 201
    assert '<' not in r.data['fullName']
    assert 'Mary' in r.data['fullName']

    r = client.post('/api/patients', {'fullName': 'Ann Lee', 'address': '<a href="x">12 Main St</a>'}, format='json')
    assert r.data['address'] == '12 Main St'

    r = client.post('/api/patients', {'fullName': ' a '}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False


def test_insurance_details_dropped_without_insurance(api_as):
    client = api_as('receptionist')
    r = client.post('/api/patients', {
        'fullName': 'Ins Ured',
        'hasInsurance': False,
        'insuranceDetails': {'provider': 'Acme', 'policyNumber': 'X1'},
        'emergencyContact': {'name': 'Kin', 'phone': '555'},
    }, format='json')
    assert r.status_code == 201
    patient = Patient.objects.get(pk=r.data['id'])
    assert patient.insurance_details == {}
    assert patient.emergency_contact['name'] == 'Kin'


def test_list_is_newest_first_and_searchable(api_as, make_patient):
    make_patient('Alpha Person', phone='111')
    make_patient('Beta Person', phone='222')
    client = api_as('doctor')
    r = client.get('/api/patients')
    assert [p['fullName'] for p in r.data] == ['Beta Person', 'Alpha Person']
    r = client.get('/api/patients', {'q': 'alpha'})
    assert [p['fullName'] for p in r.data] == ['Alpha Person']
    r = client.get('/api/patients', {'page': 2, 'pageSize': 1})
    assert [p['fullName'] for p in r.data] == ['Alpha Person']


def test_update_patient(api_as, patient):
    r = api_as('nurse').put(f'/api/patients/{patient.id}', {'allergies': 'Penicillin'}, format='json')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.allergies == 'Penicillin'


def test_accountant_can_read_but_not_register(api_as, patient):
    client = api_as('accountant')
    assert client.get(f'/api/patients/{patient.id}').status_code == 200
    assert client.post('/api/patients', {'fullName': 'No Way'}, format='json').status_code == 403


def test_delete_requires_delete_permission(api_as, patient):
    assert api_as('manager').delete(f'/api/patients/{patient.id}').status_code == 403
    assert api_as('admin').delete(f'/api/patients/{patient.id}').status_code == 204
    assert not Patient.objects.filter(pk=patient.id).exists()


def test_patient_with_bills_cannot_be_deleted(api_as, patient):
    create_bill(patient, [{'description': 'Consultation', 'amount': '10.00'}])
    r = api_as('admin').delete(f'/api/patients/{patient.id}')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'conflict'


def test_unknown_patient_is_404(api_as):
    r = api_as('admin').get('/api/patients/999999')
    assert r.status_code == 404
    assert r.data['ok'] is False
