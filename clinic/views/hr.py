"""
HR endpoints: attendance, leave, payroll and financial adjustments.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Attendance, FinancialAdjustment, LeaveRequest, PayrollRecord
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.staff import (
    AdjustmentSerializer,
    AttendanceSerializer,
    LeaveRequestSerializer,
    PayrollGenerateSerializer,
    PayrollSerializer,
    StatusSerializer,
)
from ..services import hr


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_HR)])
def attendance(request):
    """List attendance (``?date=`` filters a day) or mark one staff member's day."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_HR)
        s = AttendanceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        record = hr.mark_attendance(
            staff=vd['staff'], day=vd['date'], status=vd['status'],
            check_in=vd.get('check_in'), check_out=vd.get('check_out'),
        )
        return Response(AttendanceSerializer(record).data, status=status.HTTP_201_CREATED)

    qs = Attendance.objects.select_related('staff').order_by('-date', 'staff__full_name')
    if request.query_params.get('date'):
        qs = qs.filter(date=request.query_params['date'])
    return Response(AttendanceSerializer(qs, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_HR)])
def leaves(request):
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_HR)
        s = LeaveRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        leave = s.save()
        return Response(LeaveRequestSerializer(leave).data, status=status.HTTP_201_CREATED)
    qs = LeaveRequest.objects.select_related('staff').order_by('-start_date')
    return Response(LeaveRequestSerializer(qs, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_HR)])
def leave_status(request, pk: int):
    leave = get_object_or_404(LeaveRequest, pk=pk)
    s = StatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    new_status = s.validated_data['status']
    if new_status not in dict(LeaveRequest.STATUS_CHOICES):
        raise ValidationError({'status': f'Unknown leave status {new_status}'})
    leave.status = new_status
    leave.save(update_fields=['status'])
    return Response(LeaveRequestSerializer(leave).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_HR)])
def payroll(request):
    qs = PayrollRecord.objects.select_related('staff').order_by('-month', 'staff__full_name')
    if request.query_params.get('month'):
        qs = qs.filter(month=request.query_params['month'])
    return Response(PayrollSerializer(qs, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_HR)])
def payroll_generate(request):
    s = PayrollGenerateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    records = hr.generate_payroll(s.validated_data['month'])
    return Response({'ok': True, 'count': len(records), 'records': PayrollSerializer(records, many=True).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_HR)])
def payroll_status(request, pk: int):
    record = get_object_or_404(PayrollRecord, pk=pk)
    s = StatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    new_status = s.validated_data['status']
    if new_status not in dict(PayrollRecord.STATUS_CHOICES):
        raise ValidationError({'status': f'Unknown payroll status {new_status}'})
    record.status = new_status
    record.save(update_fields=['status'])
    return Response(PayrollSerializer(record).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_HR)])
def financials(request):
    """Bonuses, fines and loans; ``?type=loan`` narrows the list."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_HR)
        s = AdjustmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        adjustment = s.save()
        return Response(AdjustmentSerializer(adjustment).data, status=status.HTTP_201_CREATED)
    qs = FinancialAdjustment.objects.select_related('staff').order_by('-date', '-id')
    kind = request.query_params.get('type')
    if kind and kind != 'all':
        qs = qs.filter(type=kind)
    return Response(AdjustmentSerializer(qs, many=True).data)
