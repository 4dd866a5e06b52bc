"""
Role based access control.

Every role maps to a static list of permissions.  Two roles are handled
before the matrix is consulted: ``admin`` holds every permission and
``manager`` holds everything except configuration management and the
destructive ``DELETE_*`` permissions.  Administrators may store a
per-role override (:class:`clinic.models.RolePermission`) which replaces
the default list for the other roles.
"""
from __future__ import annotations

from typing import Iterable


class Permissions:
    VIEW_DASHBOARD = 'VIEW_DASHBOARD'

    VIEW_PATIENTS = 'VIEW_PATIENTS'
    MANAGE_PATIENTS = 'MANAGE_PATIENTS'
    DELETE_PATIENTS = 'DELETE_PATIENTS'

    VIEW_APPOINTMENTS = 'VIEW_APPOINTMENTS'
    MANAGE_APPOINTMENTS = 'MANAGE_APPOINTMENTS'
    DELETE_APPOINTMENTS = 'DELETE_APPOINTMENTS'

    VIEW_BILLING = 'VIEW_BILLING'
    MANAGE_BILLING = 'MANAGE_BILLING'
    DELETE_BILLING = 'DELETE_BILLING'

    VIEW_HR = 'VIEW_HR'
    MANAGE_HR = 'MANAGE_HR'
    DELETE_HR = 'DELETE_HR'

    VIEW_ADMISSIONS = 'VIEW_ADMISSIONS'
    MANAGE_ADMISSIONS = 'MANAGE_ADMISSIONS'
    DELETE_ADMISSIONS = 'DELETE_ADMISSIONS'

    VIEW_LABORATORY = 'VIEW_LABORATORY'
    MANAGE_LABORATORY = 'MANAGE_LABORATORY'
    DELETE_LABORATORY = 'DELETE_LABORATORY'

    VIEW_OPERATIONS = 'VIEW_OPERATIONS'
    MANAGE_OPERATIONS = 'MANAGE_OPERATIONS'
    DELETE_OPERATIONS = 'DELETE_OPERATIONS'

    VIEW_REPORTS = 'VIEW_REPORTS'
    MANAGE_REPORTS = 'MANAGE_REPORTS'

    VIEW_SETTINGS = 'VIEW_SETTINGS'
    MANAGE_SETTINGS = 'MANAGE_SETTINGS'

    MANAGE_CONFIGURATION = 'MANAGE_CONFIGURATION'

    @classmethod
    def all(cls) -> list[str]:
        return [v for k, v in vars(cls).items() if k.isupper()]


P = Permissions

ROLE_PERMISSIONS: dict[str, list[str]] = {
    'admin': P.all(),
    'manager': [p for p in P.all() if p != P.MANAGE_CONFIGURATION and not p.startswith('DELETE_')],
    'receptionist': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS, P.MANAGE_PATIENTS,
        P.VIEW_APPOINTMENTS, P.MANAGE_APPOINTMENTS,
        P.VIEW_BILLING,
        P.VIEW_ADMISSIONS, P.MANAGE_ADMISSIONS,
        P.VIEW_HR,
        P.VIEW_LABORATORY, P.MANAGE_LABORATORY,
        P.VIEW_OPERATIONS, P.MANAGE_OPERATIONS,
    ],
    'accountant': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS,
        P.VIEW_APPOINTMENTS,
        P.VIEW_BILLING, P.MANAGE_BILLING,
        P.VIEW_REPORTS, P.MANAGE_REPORTS,
    ],
    'technician': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS, P.MANAGE_PATIENTS,
        P.VIEW_APPOINTMENTS, P.MANAGE_APPOINTMENTS,
        P.VIEW_LABORATORY, P.MANAGE_LABORATORY,
        P.VIEW_OPERATIONS,
    ],
    'doctor': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS, P.MANAGE_PATIENTS,
        P.VIEW_APPOINTMENTS, P.MANAGE_APPOINTMENTS,
        P.VIEW_LABORATORY,
        P.VIEW_OPERATIONS,
        P.VIEW_ADMISSIONS,
        P.VIEW_SETTINGS,
    ],
    'nurse': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS, P.MANAGE_PATIENTS,
        P.VIEW_APPOINTMENTS, P.MANAGE_APPOINTMENTS,
        P.VIEW_ADMISSIONS, P.MANAGE_ADMISSIONS,
        P.VIEW_LABORATORY,
        P.VIEW_OPERATIONS,
        P.VIEW_SETTINGS,
    ],
    'pharmacist': [
        P.VIEW_DASHBOARD,
        P.VIEW_PATIENTS,
        P.VIEW_BILLING,
        P.VIEW_LABORATORY,
        P.VIEW_SETTINGS,
    ],
    'hr': [
        P.VIEW_DASHBOARD,
        P.VIEW_HR, P.MANAGE_HR,
        P.VIEW_REPORTS,
        P.VIEW_SETTINGS,
    ],
}

# Front-end route -> permission needed to open it.
ROUTE_PERMISSIONS: dict[str, str] = {
    '/': P.VIEW_DASHBOARD,
    '/patients': P.VIEW_PATIENTS,
    '/appointments': P.VIEW_APPOINTMENTS,
    '/billing': P.VIEW_BILLING,
    '/hr': P.VIEW_HR,
    '/admissions': P.VIEW_ADMISSIONS,
    '/laboratory': P.VIEW_LABORATORY,
    '/operations': P.VIEW_OPERATIONS,
    '/reports': P.VIEW_REPORTS,
    '/settings': P.VIEW_SETTINGS,
    '/configuration': P.MANAGE_CONFIGURATION,
}


def _role_of(user) -> str | None:
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return getattr(user, 'role', None) or None


def permissions_for_role(role: str) -> list[str]:
    """Return the effective permission list of ``role``.

    A stored override wins over the default matrix.  ``admin`` and
    ``manager`` are fixed and cannot be overridden.
    """
    if role in ('admin', 'manager'):
        return list(ROLE_PERMISSIONS[role])
    from .models import RolePermission

    override = RolePermission.objects.filter(role=role).values_list('permissions', flat=True).first()
    if override is not None:
        return [p for p in override if p in ROLE_PERMISSIONS['admin']]
    return list(ROLE_PERMISSIONS.get(role, []))


def has_permission(user, permission: str) -> bool:
    """Return True when ``user`` holds ``permission``."""
    role = _role_of(user)
    if not role:
        return False
    if role == 'admin':
        return True
    if role == 'manager':
        return permission != P.MANAGE_CONFIGURATION and not permission.startswith('DELETE_')
    return permission in permissions_for_role(role)


def has_any_permission(user, permissions: Iterable[str]) -> bool:
    return any(has_permission(user, p) for p in permissions)


def can_access_route(user, path: str) -> bool:
    """Gate for front-end routes.

    ``admin`` opens everything and ``manager`` everything but the
    configuration screen.  The dashboard is open to any role; other
    unknown routes are denied.
    """
    role = _role_of(user)
    if not role:
        return False
    if role == 'admin':
        return True
    if role == 'manager' and path != '/configuration':
        return True
    if path == '/':
        return True
    required = ROUTE_PERMISSIONS.get(path)
    if required is None:
        return False
    return has_permission(user, required)
