"""
Patient registry views.

Registration assigns the monthly ``P<YY><MM><seq>`` code.  Reading needs
``VIEW_PATIENTS``; writes need ``MANAGE_PATIENTS`` and deletion
``DELETE_PATIENTS``.
"""
from __future__ import annotations

from django.db.models import ProtectedError, Q
from django.shortcuts import get_object_or_404
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import BusinessRuleViolation
from ..models import Patient
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.patient import PatientSerializer
from ..services.patients import create_patient


class PatientListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=[c for c, _ in Patient.TYPE_CHOICES], required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_PATIENTS)])
def patients(request):
    """List patients (newest first) or register a new one."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_PATIENTS)
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        patient = create_patient(request.user, full_name=data.pop('full_name'), **data)
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Patient.objects.order_by('-created_at', '-id')
    term = (q.validated_data.get('q') or '').strip()
    if term:
        qs = qs.filter(Q(full_name__icontains=term) | Q(patient_code__icontains=term) | Q(phone__icontains=term))
    if q.validated_data.get('type'):
        qs = qs.filter(type=q.validated_data['type'])
    page = q.validated_data.get('page') or 1
    page_size = q.validated_data.get('pageSize') or 0
    if page_size:
        start = (page - 1) * page_size
        qs = qs[start:start + page_size]
    return Response(PatientSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_PATIENTS)])
def patient_detail(request, pk: int):
    patient = get_object_or_404(Patient, pk=pk)
    if request.method == 'GET':
        return Response(PatientSerializer(patient).data)

    if request.method == 'DELETE':
        check_permission(request.user, Permissions.DELETE_PATIENTS)
        try:
            patient.delete()
        except ProtectedError:
            raise BusinessRuleViolation('Patient has appointments, bills or admissions and cannot be deleted')
        return Response(status=status.HTTP_204_NO_CONTENT)

    check_permission(request.user, Permissions.MANAGE_PATIENTS)
    s = PatientSerializer(patient, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)
