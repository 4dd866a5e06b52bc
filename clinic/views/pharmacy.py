"""
Pharmacy inventory and dispensing.

Pharmacists hold no billing permissions in the role matrix, so the write
endpoints accept either ``MANAGE_BILLING`` or the pharmacist role.
"""
from __future__ import annotations

from django.db.models import F
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Medicine
from ..permissions import IsPharmacist, require
from ..rbac import Permissions
from ..serializers.pharmacy import DispenseSerializer, MedicineSerializer
from ..services import pharmacy
from .billing import bill_dict

CanManagePharmacy = require(Permissions.MANAGE_BILLING) | IsPharmacist


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
def inventory(request):
    """Inventory list; ``?lowStock=1`` and ``?expired=1`` filter it."""
    qs = Medicine.objects.order_by('name')
    if request.query_params.get('lowStock') in ('1', 'true'):
        qs = qs.filter(stock_level__lte=F('reorder_level'))
    if request.query_params.get('expired') in ('1', 'true'):
        qs = qs.filter(expiry_date__lt=timezone.localdate())
    if request.query_params.get('q'):
        qs = qs.filter(name__icontains=request.query_params['q'])
    return Response(MedicineSerializer(qs, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManagePharmacy])
def inventory_create(request):
    s = MedicineSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    drug = s.save()
    return Response(MedicineSerializer(drug).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, CanManagePharmacy])
def inventory_detail(request, pk: int):
    drug = get_object_or_404(Medicine, pk=pk)
    if request.method == 'DELETE':
        drug.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
    s = MedicineSerializer(drug, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    s.save()
    return Response(s.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_BILLING)])
def inventory_stats(request):
    return Response(pharmacy.inventory_stats())


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManagePharmacy])
def dispense(request):
    s = DispenseSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    bill = pharmacy.dispense(patient=vd['patientId'], items=vd['items'], payment_method=vd.get('paymentMethod'))
    data = bill_dict(bill)
    data.update({'ok': True, 'billId': bill.id})
    return Response(data, status=status.HTTP_201_CREATED)
