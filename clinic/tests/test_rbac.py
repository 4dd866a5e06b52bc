import pytest
from django.contrib.auth.models import AnonymousUser

from clinic.models import RolePermission
from clinic.rbac import ROLE_PERMISSIONS, Permissions as P, can_access_route, has_permission, permissions_for_role

pytestmark = pytest.mark.django_db


def test_admin_holds_every_permission(make_user):
    admin = make_user('admin')
    assert all(has_permission(admin, p) for p in P.all())


def test_manager_lacks_configuration_and_delete(make_user):
    manager = make_user('manager')
    assert has_permission(manager, P.MANAGE_BILLING)
    assert has_permission(manager, P.MANAGE_HR)
    assert not has_permission(manager, P.MANAGE_CONFIGURATION)
    assert not any(has_permission(manager, p) for p in P.all() if p.startswith('DELETE_'))


def test_default_matrix_for_receptionist(make_user):
    receptionist = make_user('receptionist')
    assert has_permission(receptionist, P.MANAGE_APPOINTMENTS)
    assert has_permission(receptionist, P.VIEW_BILLING)
    assert not has_permission(receptionist, P.MANAGE_BILLING)
    assert not has_permission(receptionist, P.DELETE_PATIENTS)


def test_stored_override_replaces_defaults(make_user):
    receptionist = make_user('receptionist')
    RolePermission.objects.create(role='receptionist', permissions=[P.VIEW_BILLING, 'NOT_A_PERMISSION'])
    assert permissions_for_role('receptionist') == [P.VIEW_BILLING]
    assert has_permission(receptionist, P.VIEW_BILLING)
    assert not has_permission(receptionist, P.VIEW_PATIENTS)


def test_admin_and_manager_ignore_overrides():
    RolePermission.objects.create(role='manager', permissions=[])
    RolePermission.objects.create(role='admin', permissions=[])
    assert permissions_for_role('manager') == ROLE_PERMISSIONS['manager']
    assert permissions_for_role('admin') == ROLE_PERMISSIONS['admin']


def test_unknown_role_has_no_permissions():
    assert permissions_for_role('janitor') == []


def test_anonymous_has_nothing():
    assert not has_permission(AnonymousUser(), P.VIEW_DASHBOARD)
    assert not has_permission(None, P.VIEW_DASHBOARD)
    assert not can_access_route(AnonymousUser(), '/')


def test_route_gate(make_user):
    accountant = make_user('accountant')
    assert can_access_route(accountant, '/billing')
    assert can_access_route(accountant, '/reports')
    assert not can_access_route(accountant, '/hr')
    assert not can_access_route(accountant, '/configuration')


def test_admin_opens_every_route(make_user):
    admin = make_user('admin')
    assert can_access_route(admin, '/configuration')
    assert can_access_route(admin, '/secret-page')


def test_manager_opens_everything_but_configuration(make_user):
    manager = make_user('manager')
    assert can_access_route(manager, '/hr')
    assert can_access_route(manager, '/secret-page')
    assert not can_access_route(manager, '/configuration')


def test_dashboard_is_open_to_every_role(make_user):
    RolePermission.objects.create(role='pharmacist', permissions=[])
    pharmacist = make_user('pharmacist')
    assert can_access_route(pharmacist, '/')
    assert not can_access_route(pharmacist, '/patients')
    assert not can_access_route(pharmacist, '/secret-page')
