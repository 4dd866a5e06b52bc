from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from clinic.models import Bed, LabTest, Notification, NurseRequest, NurseService, SystemSetting, User

pytestmark = pytest.mark.django_db


# settings -----------------------------------------------------------------
def test_settings_update_refreshes_public_branding(api_as, client):
    SystemSetting.objects.create(key='hospitalName', value='AllCare')
    assert client.get('/api/config/settings/public').json()['hospitalName'] == 'AllCare'

    admin = api_as('admin')
    r = admin.put('/api/config/settings', {'hospitalName': 'AllCare North', 'smtpHost': 'mail.local'},
                  format='json')
    assert r.status_code == 200
    assert r.data['smtpHost'] == 'mail.local'

    public = client.get('/api/config/settings/public').json()
    assert public['hospitalName'] == 'AllCare North'
    assert 'smtpHost' not in public


def test_settings_read_and_write_permissions(api_as):
    doctor = api_as('doctor')
    assert doctor.get('/api/config/settings').status_code == 200
    assert doctor.put('/api/config/settings', {'currency': 'EUR'}, format='json').status_code == 403
    assert api_as('receptionist').get('/api/config/settings').status_code == 403
    assert api_as('manager').put('/api/config/settings', {'currency': 'EUR'}, format='json').status_code == 200


def test_empty_settings_update_is_rejected(api_as):
    assert api_as('admin').put('/api/config/settings', {}, format='json').status_code == 400


# users & permissions ------------------------------------------------------
def test_user_management(api_as):
    admin = api_as('admin')
    r = admin.post('/api/config/users', {'username': 'nurse.maya', 'role': 'nurse'}, format='json')
    assert r.status_code == 400

    r = admin.post('/api/config/users', {'username': 'nurse.maya', 'role': 'nurse', 'password': 'Welcome#2024'},
                   format='json')
    assert r.status_code == 201
    assert 'password' not in r.data
    user = User.objects.get(username='nurse.maya')
    assert user.check_password('Welcome#2024')

    r = admin.delete(f'/api/config/users/{user.id}')
    assert r.status_code == 204
    user.refresh_from_db()
    assert user.is_active is False

    assert api_as('manager').get('/api/config/users').status_code == 403


def test_cannot_delete_own_account(make_user):
    me = make_user('admin')
    client = APIClient()
    client.force_authenticate(user=me)
    r = client.delete(f'/api/config/users/{me.id}')
    assert r.status_code == 409


def test_role_override_and_reset(api_as):
    admin = api_as('admin')
    receptionist = api_as('receptionist')
    assert receptionist.get('/api/patients').status_code == 200

    r = admin.put('/api/config/permissions', {'role': 'receptionist', 'permissions': ['VIEW_DASHBOARD']},
                  format='json')
    assert r.status_code == 200
    assert r.data['receptionist'] == ['VIEW_DASHBOARD']
    assert receptionist.get('/api/patients').status_code == 403

    r = admin.delete('/api/config/permissions/receptionist')
    assert 'VIEW_PATIENTS' in r.data['permissions']
    assert receptionist.get('/api/patients').status_code == 200


def test_admin_and_manager_cannot_be_overridden(api_as):
    r = api_as('admin').put('/api/config/permissions', {'role': 'manager', 'permissions': []}, format='json')
    assert r.status_code == 400


# catalogs -----------------------------------------------------------------
def test_catalog_crud(api_as):
    admin = api_as('admin')
    r = admin.post('/api/config/lab-tests', {'name_en': 'CBC', 'category_en': 'Hematology', 'cost': '15.00'},
                   format='json')
    assert r.status_code == 201
    test_id = r.data['id']

    r = admin.put(f'/api/config/lab-tests/{test_id}', {'cost': '18.00'}, format='json')
    assert r.status_code == 200
    assert LabTest.objects.get(pk=test_id).cost == Decimal('18.00')

    reader = api_as('nurse')
    assert [t['name_en'] for t in reader.get('/api/config/lab-tests').data] == ['CBC']
    assert reader.post('/api/config/lab-tests', {'name_en': 'Lipids'}, format='json').status_code == 403

    assert admin.delete(f'/api/config/lab-tests/{test_id}').status_code == 204
    assert not LabTest.objects.filter(pk=test_id).exists()


def test_catalog_entry_in_use_is_deactivated(api_as, patient):
    service = NurseService.objects.create(name_en='Wound dressing', cost=Decimal('12.00'))
    NurseRequest.objects.create(patient=patient, service=service, cost=service.cost)
    admin = api_as('admin')
    assert admin.delete(f'/api/config/nurse-services/{service.id}').status_code == 204
    service.refresh_from_db()
    assert service.is_active is False
    assert admin.get('/api/config/nurse-services?active=1').data == []


# beds ---------------------------------------------------------------------
def test_bed_maintenance_round_trip(api_as, bed):
    admin = api_as('admin')
    r = admin.put(f'/api/config/beds/{bed.id}/status', {'status': 'maintenance'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'maintenance'
    assert admin.get('/api/config/beds?status=maintenance').data[0]['id'] == bed.id
    r = admin.put(f'/api/config/beds/{bed.id}/status', {'status': 'available'}, format='json')
    assert r.data['status'] == 'available'


def test_bed_status_endpoint_refuses_workflow_states(api_as, bed):
    admin = api_as('admin')
    assert admin.put(f'/api/config/beds/{bed.id}/status', {'status': 'occupied'}, format='json').status_code == 409
    assert admin.put(f'/api/config/beds/{bed.id}/status', {'status': 'broken'}, format='json').status_code == 400

    Bed.objects.filter(pk=bed.pk).update(status='cleaning')
    r = admin.put(f'/api/config/beds/{bed.id}/status', {'status': 'available'}, format='json')
    assert r.status_code == 409
    assert admin.post(f'/api/config/beds/{bed.id}/clean').status_code == 200


def test_bed_create_and_delete(api_as, make_bed):
    admin = api_as('admin')
    r = admin.post('/api/config/beds', {'roomNumber': 'P-201', 'type': 'Private', 'costPerDay': '120.00'},
                   format='json')
    assert r.status_code == 201
    assert r.data['status'] == 'available'
    assert admin.delete(f"/api/config/beds/{r.data['id']}").status_code == 204

    reserved = make_bed(status='reserved')
    assert admin.delete(f'/api/config/beds/{reserved.id}').status_code == 409
    assert api_as('receptionist').post('/api/config/beds', {'roomNumber': 'X-1', 'costPerDay': '1.00'},
                                       format='json').status_code == 403


# health & notifications ---------------------------------------------------
def test_healthz(client):
    r = client.get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True, 'cache': True}


def test_lab_request_notifies_technicians(api_as, make_user, patient):
    tech = make_user('technician')
    make_user('technician', is_active=False)
    cbc = LabTest.objects.create(name_en='CBC', cost=Decimal('15.00'))
    r = api_as('receptionist').post('/api/lab/requests', {'patientId': patient.id, 'testIds': [cbc.id]},
                                    format='json')
    assert r.status_code == 201
    assert Notification.objects.count() == 1

    client = APIClient()
    client.force_authenticate(user=tech)
    inbox = client.get('/api/notifications').data
    assert inbox['unread'] == 1
    assert inbox['results'][0]['title'] == 'New lab request'

    note_id = inbox['results'][0]['id']
    assert client.post(f'/api/notifications/{note_id}/read').data['isRead'] is True
    assert client.get('/api/notifications?unread=1').data['results'] == []


def test_notifications_are_private(api_as, make_user):
    owner = make_user('nurse')
    note = Notification.objects.create(user=owner, title='Shift swap')
    Notification.objects.create(user=owner, title='Ward round')
    assert api_as('nurse').post(f'/api/notifications/{note.id}/read').status_code == 404

    client = APIClient()
    client.force_authenticate(user=owner)
    assert client.post('/api/notifications/read-all').data['updated'] == 2
    assert client.get('/api/notifications').data['unread'] == 0
