"""
Appointment endpoints and the per-provider queue board.

Status changes go through :func:`clinic.services.appointments.change_status`
which enforces the transition table and the single active appointment per
provider.  The queue board reuses :mod:`clinic.services.queue` so the
ordering is identical to what the API client computes locally.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment, MedicalStaff
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.appointment import (
    AppointmentCreateSerializer,
    AppointmentStatusSerializer,
    AppointmentUpdateSerializer,
    QueueQuerySerializer,
)
from ..serializers.staff import MedicalStaffSerializer
from ..services import appointments as svc
from ..services.queue import build_provider_queues


def appointment_dict(a: Appointment) -> dict:
    bill = a.bill
    return {
        'id': a.id,
        'appointmentNumber': a.appointment_number,
        'patientId': a.patient_id,
        'patientName': a.patient.full_name,
        'staffId': a.staff_id,
        'staffName': a.staff.full_name,
        'datetime': timezone.localtime(a.datetime).isoformat(),
        'type': a.type,
        'status': a.status,
        'billingStatus': a.billing_status,
        'reason': a.reason,
        'billId': a.bill_id,
        'totalAmount': bill.total_amount if bill else None,
        'paidAmount': bill.paid_amount if bill else None,
        'dailyToken': a.daily_token,
    }


def _queryset():
    return Appointment.objects.select_related('patient', 'staff', 'bill')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_APPOINTMENTS)])
def appointments(request):
    """List appointments (``?date=``, ``?staffId=``, ``?status=``) or book one."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_APPOINTMENTS)
        s = AppointmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        appt = svc.book_appointment(
            patient=vd['patientId'],
            staff=vd['staffId'],
            when=vd['datetime'],
            appointment_type=vd.get('type') or 'Consultation',
            reason=vd.get('reason', ''),
            custom_fee=vd.get('customFee'),
        )
        return Response(appointment_dict(_queryset().get(pk=appt.pk)), status=status.HTTP_201_CREATED)

    qs = _queryset().order_by('-datetime', '-id')
    params = request.query_params
    if params.get('date'):
        q = QueueQuerySerializer(data={'date': params['date']})
        q.is_valid(raise_exception=True)
        qs = qs.filter(datetime__date=q.validated_data['date'])
    if params.get('staffId'):
        qs = qs.filter(staff_id=params['staffId'])
    if params.get('status'):
        qs = qs.filter(status=params['status'])
    if params.get('patientId'):
        qs = qs.filter(patient_id=params['patientId'])
    return Response([appointment_dict(a) for a in qs])


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_APPOINTMENTS)])
def appointment_detail(request, pk: int):
    appt = get_object_or_404(_queryset(), pk=pk)
    if request.method == 'GET':
        data = appointment_dict(appt)
        data['transitionHistory'] = [
            {
                'from': t.from_status,
                'to': t.to_status,
                'operator': t.operator.username if t.operator else '',
                'timestamp': timezone.localtime(t.timestamp).isoformat(),
                'reason': t.reason,
            }
            for t in appt.transitions.select_related('operator').order_by('timestamp', 'id')
        ]
        return Response(data)

    check_permission(request.user, Permissions.MANAGE_APPOINTMENTS)
    s = AppointmentUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    svc.reschedule_appointment(
        appt.pk,
        staff=vd.get('staffId'),
        when=vd.get('datetime'),
        appointment_type=vd.get('type'),
        reason=vd.get('reason'),
    )
    return Response(appointment_dict(_queryset().get(pk=appt.pk)))


@api_view(['PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_APPOINTMENTS)])
def appointment_status(request, pk: int):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appt = svc.change_status(
        pk, s.validated_data['status'], operator=request.user, reason=s.validated_data.get('reason', ''),
    )
    return Response(appointment_dict(_queryset().get(pk=appt.pk)))


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_APPOINTMENTS)])
def appointment_cancel(request, pk: int):
    appt = svc.cancel_appointment(pk, operator=request.user, reason=request.data.get('reason') or '')
    return Response(appointment_dict(_queryset().get(pk=appt.pk)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_APPOINTMENTS)])
def appointment_queue(request):
    """Per-provider queue board for a day (defaults to today)."""
    q = QueueQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data.get('date') or timezone.localdate()
    appts = [appointment_dict(a) for a in _queryset().filter(datetime__date=day)]
    staff = MedicalStaffSerializer(
        MedicalStaff.objects.filter(type__in=('doctor', 'nurse')).order_by('full_name'), many=True
    ).data
    return Response({'date': day.isoformat(), 'queues': build_provider_queues(appts, staff, day)})
