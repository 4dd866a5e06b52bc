"""
Medical staff registry.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import MedicalStaff
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.staff import STAFF_UPDATABLE, MedicalStaffSerializer
from ..services.identifiers import next_employee_id


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
def staff_list(request):
    """List staff; everyone signed in may read it since appointments need providers.

    ``?type=doctor`` and ``?status=active`` narrow the list.
    """
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_HR)
        s = MedicalStaffSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        staff = s.save(employee_id=next_employee_id(s.validated_data.get('type', 'doctor')))
        return Response(MedicalStaffSerializer(staff).data, status=status.HTTP_201_CREATED)

    qs = MedicalStaff.objects.order_by('full_name')
    if request.query_params.get('type'):
        qs = qs.filter(type=request.query_params['type'])
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'])
    return Response(MedicalStaffSerializer(qs, many=True).data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
def staff_detail(request, pk: int):
    staff = get_object_or_404(MedicalStaff, pk=pk)
    if request.method == 'GET':
        return Response(MedicalStaffSerializer(staff).data)

    check_permission(request.user, Permissions.MANAGE_HR)
    unknown = set(request.data.keys()) - STAFF_UPDATABLE
    if unknown:
        raise ValidationError({'detail': 'Invalid updates', 'fields': sorted(unknown)})
    s = MedicalStaffSerializer(staff, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)
