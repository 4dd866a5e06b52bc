"""
Billing and treasury endpoints.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import BusinessRuleViolation
from ..models import Bill, Transaction
from ..permissions import check_permission, require
from ..rbac import Permissions
from ..serializers.billing import BillCreateSerializer, PaymentSerializer, RefundSerializer, TransactionSerializer
from ..services import billing


def bill_dict(bill: Bill) -> dict:
    return {
        'id': bill.id,
        'billNumber': bill.bill_number,
        'patientId': bill.patient_id,
        'patientName': bill.patient.full_name,
        'totalAmount': bill.total_amount,
        'paidAmount': bill.paid_amount,
        'balance': bill.balance,
        'status': bill.status,
        'date': timezone.localtime(bill.bill_date).isoformat(),
        'isSettlementBill': bill.is_settlement_bill,
        'items': [{'description': i.description, 'amount': i.amount} for i in bill.items.all()],
        'serviceStatus': billing.service_status(bill),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
def bills(request):
    """List bills newest first (``?status=``, ``?patientId=``) or raise a manual bill."""
    if request.method == 'POST':
        check_permission(request.user, Permissions.MANAGE_BILLING)
        s = BillCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        bill = billing.create_bill(s.validated_data['patientId'], s.validated_data['items'])
        return Response(bill_dict(bill), status=status.HTTP_201_CREATED)

    qs = Bill.objects.select_related('patient').prefetch_related('items').order_by('-bill_date', '-id')
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'])
    if request.query_params.get('patientId'):
        qs = qs.filter(patient_id=request.query_params['patientId'])
    return Response([bill_dict(b) for b in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
def bill_detail(request, pk: int):
    bill = get_object_or_404(Bill.objects.select_related('patient'), pk=pk)
    data = bill_dict(bill)
    data['transactions'] = TransactionSerializer(bill.transactions.order_by('date'), many=True).data
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_BILLING)])
def bill_pay(request, pk: int):
    s = PaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    bill = billing.record_payment(pk, amount=vd['amount'], method=vd.get('method'),
                                  details=vd.get('details'), date=vd.get('date'))
    return Response({'ok': True, 'status': bill.status, 'paidAmount': bill.paid_amount})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_BILLING)])
def bill_refund(request, pk: int):
    s = RefundSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    bill = billing.process_refund(pk, amount=vd['amount'], reason=vd.get('reason', ''),
                                  method=vd.get('method'), date=vd.get('date'))
    return Response({'ok': True, 'status': bill.status, 'paidAmount': bill.paid_amount,
                     'message': 'Refund processed successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_BILLING)])
def bill_cancel_service(request, pk: int):
    bill = billing.cancel_service(pk)
    return Response({'ok': True, 'status': bill.status})


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
def transactions(request):
    """Treasury ledger, newest first; ``?type=income|expense`` narrows it."""
    qs = Transaction.objects.order_by('-date', '-id')
    if request.query_params.get('type'):
        qs = qs.filter(type=request.query_params['type'])
    return Response(TransactionSerializer(qs, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_BILLING)])
def expenses(request):
    s = TransactionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    tx = s.save(type='expense')
    return Response(TransactionSerializer(tx).data, status=status.HTTP_201_CREATED)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, require(Permissions.MANAGE_BILLING)])
def expense_detail(request, pk: int):
    tx = get_object_or_404(Transaction, pk=pk)
    if tx.type != 'expense' or tx.bill_id:
        raise BusinessRuleViolation('Only manually entered expenses can be edited')
    s = TransactionSerializer(tx, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)
