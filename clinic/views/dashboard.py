"""
Dashboard headline numbers.
"""
from __future__ import annotations

from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Admission, Appointment, Bill, LabRequest, Patient, Transaction
from ..permissions import require
from ..rbac import Permissions
from ..services.beds import ward_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_DASHBOARD)])
def dashboard(request):
    today = timezone.localdate()
    todays = Appointment.objects.filter(datetime__date=today)
    revenue = (
        Transaction.objects.filter(type='income', date__date=today).aggregate(total=Sum('amount'))['total']
        or Decimal('0')
    )
    return Response({
        'patients': Patient.objects.count(),
        'appointmentsToday': todays.count(),
        'waitingToday': todays.filter(status__in=('pending', 'confirmed', 'checked_in', 'waiting')).count(),
        'inProgress': todays.filter(status='in_progress').count(),
        'activeAdmissions': Admission.objects.filter(status='active').count(),
        'pendingBills': Bill.objects.filter(status__in=('pending', 'partial')).count(),
        'pendingLabRequests': LabRequest.objects.filter(status__in=('pending', 'confirmed')).count(),
        'revenueToday': revenue,
        'ward': ward_stats(),
    })
