import pytest
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd!234'


def login(client, username, password=PASSWORD):
    return client.post('/api/auth/login', {'username': username, 'password': password}, format='json')


def test_login_returns_bearer_token_and_permissions(make_user):
    make_user('accountant', username='acc1')
    client = APIClient()
    r = login(client, 'acc1')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['token'] and r.data['refresh']
    assert r.data['user']['username'] == 'acc1'
    assert r.data['user']['role'] == 'accountant'
    assert 'MANAGE_BILLING' in r.data['user']['permissions']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['token']}")
    me = client.get('/api/auth/me')
    assert me.status_code == 200
    assert me.data['username'] == 'acc1'


def test_bad_credentials_are_401_with_error_envelope(make_user):
    make_user('admin', username='boss')
    r = login(APIClient(), 'boss', 'wrong-password')
    assert r.status_code == 401
    assert r.data['ok'] is False
    assert r.data['error']['message'] == 'Invalid credentials'


def test_role_in_login_body_is_ignored(make_user):
    user = make_user('nurse', username='n1')
    r = APIClient().post('/api/auth/login', {'username': 'n1', 'password': PASSWORD, 'role': 'admin'},
                         format='json')
    assert r.status_code == 200
    assert r.data['user']['role'] == 'nurse'
    user.refresh_from_db()
    assert user.role == 'nurse'


def test_missing_or_invalid_token_is_401_not_403():
    client = APIClient()
    assert client.get('/api/patients').status_code == 401
    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    r = client.get('/api/patients')
    assert r.status_code == 401
    assert r.data['ok'] is False


def test_authenticated_without_permission_is_403(api_as):
    r = api_as('hr').get('/api/patients')
    assert r.status_code == 403
    assert r.data['error']['code'] == 'permission_denied'


def test_change_password_rejects_wrong_current_password_with_400(make_user):
    make_user('doctor', username='doc1')
    client = APIClient()
    token = login(client, 'doc1').data['token']
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

    r = client.put('/api/auth/change-password',
                   {'currentPassword': 'nope', 'newPassword': 'An0ther!Secret'}, format='json')
    assert r.status_code == 400

    r = client.put('/api/auth/change-password',
                   {'currentPassword': PASSWORD, 'newPassword': 'An0ther!Secret'}, format='json')
    assert r.status_code == 200
    assert login(APIClient(), 'doc1', 'An0ther!Secret').status_code == 200


def test_change_password_applies_password_validators(make_user):
    make_user('doctor', username='doc2')
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {login(client, 'doc2').data['token']}")
    r = client.put('/api/auth/change-password', {'currentPassword': PASSWORD, 'newPassword': '123'},
                   format='json')
    assert r.status_code == 400


def test_profile_update(api_as):
    client = api_as('receptionist')
    r = client.put('/api/auth/profile', {'fullName': 'Rita Front', 'phone': '555-0100'}, format='json')
    assert r.status_code == 200
    assert r.data['fullName'] == 'Rita Front'
    assert r.data['phone'] == '555-0100'


def test_refresh_and_logout_blacklists_refresh_token(make_user):
    make_user('manager', username='mgr')
    client = APIClient()
    data = login(client, 'mgr').data

    r = client.post('/api/auth/refresh', {'refresh': data['refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['token']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['token']}")
    assert client.post('/api/auth/logout', {'refresh': data['refresh']}, format='json').status_code == 200

    r = APIClient().post('/api/auth/refresh', {'refresh': data['refresh']}, format='json')
    assert r.status_code == 401


def test_routes_lists_what_the_role_may_open(api_as):
    client = api_as('accountant')
    routes = client.get('/api/auth/routes').data['routes']
    assert '/billing' in routes
    assert '/hr' not in routes
    r = client.get('/api/auth/routes', {'path': '/configuration'})
    assert r.data == {'path': '/configuration', 'allowed': False}
