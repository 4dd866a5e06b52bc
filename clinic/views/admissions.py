"""
Inpatient admissions and ward status.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Admission, Bed
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.admission import AdmissionCreateSerializer, DischargeSerializer, NoteSerializer
from ..serializers.patient import PatientSerializer
from ..services import admissions as svc
from ..services import beds
from .billing import bill_dict


def _iso(value):
    return timezone.localtime(value).isoformat() if value else None


def admission_dict(ad: Admission) -> dict:
    return {
        'id': ad.id,
        'patientId': ad.patient_id,
        'patientName': ad.patient.full_name,
        'bedId': ad.bed_id,
        'roomNumber': ad.bed.room_number,
        'bedType': ad.bed.type,
        'costPerDay': ad.bed.cost_per_day,
        'doctorId': ad.doctor_id,
        'doctorName': ad.doctor.full_name if ad.doctor else None,
        'entryDate': _iso(ad.entry_date),
        'dischargeDate': _iso(ad.discharge_date),
        'actualDischargeDate': _iso(ad.actual_discharge_date),
        'status': ad.status,
        'deposit': ad.deposit_amount,
        'depositBillId': ad.deposit_bill_id,
        'billStatus': ad.deposit_bill.status if ad.deposit_bill else None,
        'settlementBillId': ad.settlement_bill_id,
        'notes': ad.notes,
        'dischargeNotes': ad.discharge_notes,
        'dischargeStatus': ad.discharge_status,
        'stayDays': svc.duration_days(ad.entry_date, ad.actual_discharge_date),
    }


def _queryset():
    return Admission.objects.select_related('patient', 'bed', 'doctor', 'deposit_bill')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_ADMISSIONS)])
def admissions(request):
    """Open admissions (reserved and active), or admit a patient into a bed."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_ADMISSIONS)
        s = AdmissionCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        admission = svc.admit(
            patient=vd['patientId'],
            bed_id=vd['bedId'],
            doctor=vd.get('doctorId'),
            entry_date=vd.get('entryDate'),
            deposit=vd.get('deposit'),
            notes=vd.get('notes', ''),
        )
        return Response(admission_dict(_queryset().get(pk=admission.pk)), status=status.HTTP_201_CREATED)

    qs = _queryset().filter(status__in=svc.OPEN_STATUSES).order_by('-entry_date')
    return Response([admission_dict(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_ADMISSIONS)])
def admission_history(request):
    qs = _queryset().filter(status__in=('discharged', 'cancelled')).order_by('-actual_discharge_date', '-id')
    return Response([admission_dict(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_ADMISSIONS)])
def admission_detail(request, pk: int):
    """Inpatient file: admission, patient, clinical notes and unpaid bills."""
    ad = get_object_or_404(_queryset(), pk=pk)
    data = admission_dict(ad)
    data['patient'] = PatientSerializer(ad.patient).data
    data['clinicalNotes'] = [
        {
            'id': n.id,
            'note': n.note,
            'vitals': n.vitals,
            'doctorName': n.doctor.full_name if n.doctor else None,
            'createdAt': _iso(n.created_at),
        }
        for n in ad.clinical_notes.select_related('doctor').order_by('-created_at', '-id')
    ]
    unpaid = ad.patient.bills.select_related('patient').exclude(status__in=('paid', 'cancelled', 'refunded'))
    data['unpaidBills'] = [bill_dict(b) for b in unpaid.order_by('bill_date')]
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def admission_confirm(request, pk: int):
    svc.confirm(pk)
    return Response(admission_dict(_queryset().get(pk=pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def admission_cancel(request, pk: int):
    svc.cancel(pk)
    return Response(admission_dict(_queryset().get(pk=pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def admission_notes(request, pk: int):
    s = NoteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    note = svc.add_note(pk, note=vd['note'], vitals=vd.get('vitals'), doctor=vd.get('doctorId'))
    return Response({'id': note.id, 'note': note.note, 'vitals': note.vitals, 'createdAt': _iso(note.created_at)},
                    status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS, Permissions.MANAGE_BILLING)])
def admission_settlement(request, pk: int):
    bill = svc.generate_settlement(pk)
    return Response(bill_dict(bill), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def admission_discharge(request, pk: int):
    s = DischargeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.discharge(pk, discharge_notes=s.validated_data['dischargeNotes'],
                  discharge_status=s.validated_data['dischargeStatus'])
    return Response(admission_dict(_queryset().get(pk=pk)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_ADMISSIONS)])
def ward_stats(request):
    return Response(beds.ward_stats())


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_ADMISSIONS)])
def ward_board(request):
    """Every bed with the admission holding it, for the ward map."""
    holding = {
        a.bed_id: a for a in _queryset().filter(status__in=svc.OPEN_STATUSES)
    }
    board = []
    for bed in Bed.objects.order_by('room_number'):
        ad = holding.get(bed.id)
        board.append({
            'id': bed.id,
            'roomNumber': bed.room_number,
            'type': bed.type,
            'status': bed.status,
            'costPerDay': bed.cost_per_day,
            'admission': admission_dict(ad) if ad else None,
        })
    return Response(board)
