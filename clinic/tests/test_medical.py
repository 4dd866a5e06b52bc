from decimal import Decimal

import pytest

from clinic.models import Bill, LabRequest, LabTest, NurseService, Operation
from clinic.services.billing import record_payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def lab_tests(db):
    return (
        LabTest.objects.create(name_en='CBC', cost=Decimal('15.00')),
        LabTest.objects.create(name_en='Lipid profile', cost=Decimal('25.00')),
    )


def test_lab_request_is_billed_from_the_catalog(api_as, patient, lab_tests):
    r = api_as('technician').post('/api/lab/requests',
                                  {'patientId': patient.id, 'testIds': [t.id for t in lab_tests]}, format='json')
    assert r.status_code == 201, r.data
    assert Decimal(str(r.data['projectedCost'])) == Decimal('40.00')
    assert r.data['status'] == 'pending'
    assert Bill.objects.get(pk=r.data['billId']).items.count() == 2


def test_inactive_lab_test_cannot_be_ordered(api_as, patient, lab_tests):
    LabTest.objects.filter(pk=lab_tests[0].pk).update(is_active=False)
    r = api_as('technician').post('/api/lab/requests', {'patientId': patient.id, 'testIds': [lab_tests[0].id]},
                                  format='json')
    assert r.status_code == 400


def test_results_only_after_confirmation(api_as, patient, lab_tests):
    client = api_as('technician')
    lab_id = client.post('/api/lab/requests', {'patientId': patient.id, 'testIds': [lab_tests[0].id]},
                         format='json').data['id']
    r = client.post(f'/api/lab/requests/{lab_id}/complete', {'results': {'WBC': '6.1'}}, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'invalid_transition'

    assert client.post(f'/api/lab/requests/{lab_id}/confirm').data['status'] == 'confirmed'
    r = client.post(f'/api/lab/requests/{lab_id}/complete', {'results': {'WBC': '6.1'}}, format='json')
    assert r.status_code == 200
    assert LabRequest.objects.get(pk=lab_id).results == {'WBC': '6.1'}
    assert [lab['id'] for lab in client.get('/api/lab/requests?status=completed').data] == [lab_id]


def test_nurse_service_request(api_as, patient):
    service = NurseService.objects.create(name_en='IV line', cost=Decimal('8.00'))
    client = api_as('nurse')
    r = client.post('/api/nurse/requests', {'patientId': patient.id, 'serviceId': service.id}, format='json')
    assert r.status_code == 201
    assert Bill.objects.get(pk=r.data['billId']).total_amount == Decimal('8.00')

    req_id = r.data['id']
    assert client.post(f'/api/nurse/requests/{req_id}/complete').data['status'] == 'completed'
    assert client.post(f'/api/nurse/requests/{req_id}/complete').status_code == 409
    assert api_as('doctor').post('/api/nurse/requests', {'patientId': patient.id, 'serviceId': service.id},
                                 format='json').status_code == 403


def test_operation_lifecycle(api_as, patient, doctor):
    client = api_as('receptionist')
    r = client.post('/api/operations', {'patientId': patient.id, 'doctorId': doctor.id,
                                        'operationName': 'Appendectomy'}, format='json')
    assert r.status_code == 201
    op_id = r.data['id']

    r = client.post(f'/api/operations/{op_id}/process', {'items': [
        {'description': 'Surgeon', 'amount': '500.00'},
        {'description': 'Theatre', 'amount': '250.00'},
    ]}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'pending_payment'
    assert Decimal(str(r.data['projectedCost'])) == Decimal('750.00')
    assert client.post(f'/api/operations/{op_id}/process', {'items': [
        {'description': 'Again', 'amount': '1.00'}]}, format='json').status_code == 409

    record_payment(r.data['billId'], amount='750.00')
    assert Operation.objects.get(pk=op_id).status == 'confirmed'
    r = client.post(f'/api/operations/{op_id}/complete')
    assert r.status_code == 200
    assert r.data['status'] == 'completed'


def test_manually_confirmed_operation_still_needs_payment_to_complete(api_as, patient):
    client = api_as('receptionist')
    op_id = client.post('/api/operations', {'patientId': patient.id, 'operationName': 'Biopsy'},
                        format='json').data['id']
    client.post(f'/api/operations/{op_id}/process', {'items': [{'description': 'Fee', 'amount': '90.00'}]},
                format='json')
    assert client.post(f'/api/operations/{op_id}/confirm').status_code == 200
    r = client.post(f'/api/operations/{op_id}/complete')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'conflict'
