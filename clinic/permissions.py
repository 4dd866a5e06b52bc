"""
Permission classes built on the role permission matrix.
"""
from __future__ import annotations

from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

from .rbac import has_any_permission, has_permission


def require(*permissions: str) -> type[BasePermission]:
    """Build a permission class passing when the user holds any of ``permissions``.

    Usage::

        @permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
    """

    class _Required(BasePermission):
        message = 'You do not have permission to perform this action.'

        def has_permission(self, request, view) -> bool:  # type: ignore[override]
            return has_any_permission(getattr(request, 'user', None), permissions)

    _Required.__name__ = 'Require_' + '_'.join(permissions)
    return _Required


class IsPharmacist(BasePermission):
    """Allow access only to users with the pharmacist role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "pharmacist")


def check_permission(user, permission: str) -> None:
    """Raise 403 unless ``user`` holds ``permission``; for views mixing read and write methods."""
    if not has_permission(user, permission):
        raise PermissionDenied(f'{permission} required')
