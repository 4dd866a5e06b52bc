"""
Configuration: system settings, users, role permissions, catalogs and beds.

Catalog and bed lists are readable by every signed-in user because the
booking and admission forms need them; changing them requires
``MANAGE_CONFIGURATION``.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..exceptions import BusinessRuleViolation
from ..models import Bed, RolePermission, SystemSetting, User
from ..permissions import check_permission, require
from ..rbac import ROLE_PERMISSIONS, Permissions, permissions_for_role
from ..serializers import config as cs
from ..serializers.admission import BedSerializer, BedStatusSerializer
from ..services import admissions, beds

logger = logging.getLogger(__name__)

PUBLIC_SETTINGS_CACHE_KEY = 'settings:public'


# ---------------------------------------------------------------------
# System settings
# ---------------------------------------------------------------------
def _all_settings() -> dict:
    return dict(SystemSetting.objects.values_list('key', 'value'))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_SETTINGS, Permissions.MANAGE_CONFIGURATION)])
def system_settings(request):
    """Key/value settings; PUT merges the posted keys."""
    if request.method == 'PUT':
        check_permission(request.user, Permissions.MANAGE_SETTINGS)
        if not isinstance(request.data, dict) or not request.data:
            raise ValidationError({'detail': 'Expected an object of key/value pairs'})
        with transaction.atomic():
            for key, value in request.data.items():
                SystemSetting.objects.update_or_create(key=str(key)[:100], defaults={'value': str(value)})
        cache.delete(PUBLIC_SETTINGS_CACHE_KEY)
        logger.info('%s updated settings: %s', request.user.username, ', '.join(request.data.keys()))
    return Response(_all_settings())


@api_view(['GET'])
@permission_classes([AllowAny])
def public_settings(request):
    """Branding values shown before login."""
    data = cache.get(PUBLIC_SETTINGS_CACHE_KEY)
    if data is None:
        values = _all_settings()
        data = {k: values.get(k, '') for k in settings.PUBLIC_SETTING_KEYS}
        cache.set(PUBLIC_SETTINGS_CACHE_KEY, data, settings.PUBLIC_SETTINGS_CACHE_SECONDS)
    return Response(data)


# ---------------------------------------------------------------------
# Users & role permissions
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
def users(request):
    if request.method == 'POST':
        s = cs.SystemUserSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        user = s.save()
        logger.info('%s created user %s (%s)', request.user.username, user.username, user.role)
        return Response(cs.SystemUserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(cs.SystemUserSerializer(User.objects.order_by('username'), many=True).data)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
def user_detail(request, pk: int):
    user = get_object_or_404(User, pk=pk)
    if request.method == 'DELETE':
        if user.pk == request.user.pk:
            raise BusinessRuleViolation('You cannot delete your own account')
        user.is_active = False
        user.save(update_fields=['is_active'])
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = cs.SystemUserSerializer(user, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
def role_permissions(request):
    """Effective permission list per role; PUT stores an override for one role."""
    if request.method == 'PUT':
        s = cs.RolePermissionsSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        RolePermission.objects.update_or_create(
            role=s.validated_data['role'], defaults={'permissions': sorted(set(s.validated_data['permissions']))}
        )
        logger.info('%s changed permissions of role %s', request.user.username, s.validated_data['role'])
    return Response({role: permissions_for_role(role) for role in ROLE_PERMISSIONS})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
def role_permissions_reset(request, role: str):
    RolePermission.objects.filter(role=role).delete()
    return Response({'role': role, 'permissions': permissions_for_role(role)})


# ---------------------------------------------------------------------
# Catalogs
# ---------------------------------------------------------------------
def catalog_views(serializer_cls):
    """Build the list/create and update/delete views of one catalog."""
    model = serializer_cls.Meta.model

    @api_view(['GET', 'POST'])
    @permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
    def collection(request):
        if request.method == 'POST':
            check_permission(request.user, Permissions.MANAGE_CONFIGURATION)
            s = serializer_cls(data=request.data)
            s.is_valid(raise_exception=True)
            return Response(serializer_cls(s.save()).data, status=status.HTTP_201_CREATED)
        qs = model.objects.all()
        if request.query_params.get('active') in ('1', 'true'):
            qs = qs.filter(is_active=True)
        return Response(serializer_cls(qs, many=True).data)

    @api_view(['PUT', 'DELETE'])
    @permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
    def detail(request, pk: int):
        obj = get_object_or_404(model, pk=pk)
        if request.method == 'DELETE':
            try:
                obj.delete()
            except ProtectedError:
                obj.is_active = False
                obj.save(update_fields=['is_active'])
            return Response(status=status.HTTP_204_NO_CONTENT)
        s = serializer_cls(obj, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        s.save()
        return Response(s.data)

    collection.__name__ = f'{model.__name__.lower()}_list'
    detail.__name__ = f'{model.__name__.lower()}_detail'
    return collection, detail


CATALOGS = {
    'departments': cs.DepartmentSerializer,
    'specializations': cs.SpecializationSerializer,
    'lab-tests': cs.LabTestSerializer,
    'nurse-services': cs.NurseServiceSerializer,
    'operations': cs.OperationCatalogSerializer,
    'insurance-providers': cs.InsuranceProviderSerializer,
    'banks': cs.BankSerializer,
    'tax-rates': cs.TaxRateSerializer,
    'payment-methods': cs.PaymentMethodSerializer,
}


# ---------------------------------------------------------------------
# Beds
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
def bed_list(request):
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_CONFIGURATION)
        s = BedSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return Response(BedSerializer(s.save()).data, status=status.HTTP_201_CREATED)
    qs = Bed.objects.order_by('room_number')
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'])
    return Response(BedSerializer(qs, many=True).data)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_CONFIGURATION)])
def bed_detail(request, pk: int):
    bed = get_object_or_404(Bed, pk=pk)
    if request.method == 'DELETE':
        if bed.status != 'available':
            raise BusinessRuleViolation(f'Bed {bed.room_number} is {bed.status}')
        try:
            bed.delete()
        except ProtectedError:
            raise BusinessRuleViolation(f'Bed {bed.room_number} has admission history and cannot be deleted')
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = BedSerializer(bed, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS, Permissions.MANAGE_CONFIGURATION)])
def bed_status(request, pk: int):
    """Manual moves (maintenance in and out); admission moves are driven by admissions."""
    s = BedStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    new_status = s.validated_data['status']
    if new_status not in ('maintenance', 'available'):
        raise BusinessRuleViolation('Reserved, occupied and cleaning are set by the admission workflow')
    with transaction.atomic():
        bed = get_object_or_404(Bed.objects.select_for_update(), pk=pk)
        if new_status == 'available' and bed.status != 'maintenance':
            raise BusinessRuleViolation('Use the clean action to release a bed after discharge')
        beds.transition_bed(bed, new_status)
    return Response(BedSerializer(bed).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def bed_clean(request, pk: int):
    bed = admissions.mark_bed_clean(pk)
    return Response(BedSerializer(bed).data)
