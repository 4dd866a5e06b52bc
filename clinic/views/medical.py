"""
Laboratory, nursing and operating theatre endpoints.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import LabRequest, NurseRequest, Operation
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.medical import (
    LabRequestCreateSerializer,
    LabResultsSerializer,
    NurseRequestCreateSerializer,
    OperationCreateSerializer,
    OperationProcessSerializer,
)
from ..services import medical


def _iso(value):
    return timezone.localtime(value).isoformat() if value else None


def lab_dict(lab: LabRequest) -> dict:
    tests = list(lab.tests.all())
    return {
        'id': lab.id,
        'patientId': lab.patient_id,
        'patientName': lab.patient.full_name,
        'testIds': [t.id for t in tests],
        'testNames': [t.name_en for t in tests],
        'projectedCost': lab.projected_cost,
        'status': lab.status,
        'results': lab.results,
        'billId': lab.bill_id,
        'billStatus': lab.bill.status if lab.bill else None,
        'createdAt': _iso(lab.created_at),
    }


def nurse_dict(req: NurseRequest) -> dict:
    return {
        'id': req.id,
        'patientId': req.patient_id,
        'patientName': req.patient.full_name,
        'serviceId': req.service_id,
        'serviceName': req.service.name_en,
        'staffId': req.staff_id,
        'staffName': req.staff.full_name if req.staff else None,
        'cost': req.cost,
        'notes': req.notes,
        'status': req.status,
        'billId': req.bill_id,
        'createdAt': _iso(req.created_at),
    }


def operation_dict(op: Operation) -> dict:
    return {
        'id': op.id,
        'patientId': op.patient_id,
        'patientName': op.patient.full_name,
        'doctorId': op.doctor_id,
        'doctorName': op.doctor.full_name if op.doctor else None,
        'operationName': op.operation_name,
        'notes': op.notes,
        'status': op.status,
        'projectedCost': op.projected_cost,
        'costDetails': op.cost_details,
        'billId': op.bill_id,
        'billStatus': op.bill.status if op.bill else None,
        'createdAt': _iso(op.created_at),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_LABORATORY)])
def lab_requests(request):
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_LABORATORY)
        s = LabRequestCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        lab = medical.request_lab_tests(patient=s.validated_data['patientId'], tests=s.validated_data['testIds'])
        return Response(lab_dict(lab), status=status.HTTP_201_CREATED)
    qs = LabRequest.objects.select_related('patient', 'bill').prefetch_related('tests').order_by('-created_at')
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'])
    return Response([lab_dict(lab) for lab in qs])


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_LABORATORY)])
def lab_request_complete(request, pk: int):
    s = LabResultsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    lab = medical.complete_lab_request(pk, s.validated_data['results'])
    return Response(lab_dict(lab))


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_LABORATORY)])
def lab_request_confirm(request, pk: int):
    return Response(lab_dict(medical.confirm_lab_request(pk)))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
def nurse_requests(request):
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_ADMISSIONS)
        s = NurseRequestCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        req = medical.request_nurse_service(patient=vd['patientId'], service=vd['serviceId'],
                                            staff=vd.get('staffId'), notes=vd.get('notes', ''))
        return Response(nurse_dict(req), status=status.HTTP_201_CREATED)
    qs = NurseRequest.objects.select_related('patient', 'service', 'staff').order_by('-created_at')
    return Response([nurse_dict(r) for r in qs])


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_ADMISSIONS)])
def nurse_request_complete(request, pk: int):
    return Response(nurse_dict(medical.complete_nurse_request(pk)))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_OPERATIONS)])
def operations(request):
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_OPERATIONS)
        s = OperationCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        op = medical.request_operation(patient=vd['patientId'], doctor=vd.get('doctorId'),
                                       operation_name=vd['operationName'], notes=vd.get('notes', ''))
        return Response(operation_dict(op), status=status.HTTP_201_CREATED)
    qs = Operation.objects.select_related('patient', 'doctor', 'bill').order_by('-created_at')
    return Response([operation_dict(op) for op in qs])


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_OPERATIONS)])
def operation_process(request, pk: int):
    s = OperationProcessSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(operation_dict(medical.process_operation(pk, s.validated_data['items'])))


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_OPERATIONS)])
def operation_confirm(request, pk: int):
    return Response(operation_dict(medical.confirm_operation(pk)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_OPERATIONS)])
def operation_complete(request, pk: int):
    return Response(operation_dict(medical.complete_operation(pk)))
