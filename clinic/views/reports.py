"""
Financial and operational reports.
"""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment, Patient, Transaction
from ..permissions import require
from ..rbac import Permissions

AGE_BANDS = ((0, 17, '0-17'), (18, 35, '18-35'), (36, 55, '36-55'), (56, 200, '56+'))


class ReportQuerySerializer(serializers.Serializer):
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):
        end = attrs.get('end') or timezone.localdate()
        start = attrs.get('start') or end - timedelta(days=29)
        if start > end:
            raise serializers.ValidationError({'start': 'Start date is after end date'})
        attrs['start'], attrs['end'] = start, end
        return attrs


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_REPORTS)])
def summary(request):
    """Treasury totals, appointment outcomes and demographics for a date range (default: last 30 days)."""
    s = ReportQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    start, end = s.validated_data['start'], s.validated_data['end']

    tx = Transaction.objects.filter(date__date__range=(start, end))
    totals = {row['type']: row['total'] for row in tx.values('type').annotate(total=Sum('amount'))}
    income = totals.get('income') or Decimal('0')
    expense = totals.get('expense') or Decimal('0')
    by_category = [
        {'type': row['type'], 'category': row['category'], 'total': row['total']}
        for row in tx.values('type', 'category').annotate(total=Sum('amount')).order_by('type', 'category')
    ]

    appts = Appointment.objects.filter(datetime__date__range=(start, end))
    status_counts = {row['status']: row['n'] for row in appts.values('status').annotate(n=Count('id'))}
    total_appts = sum(status_counts.values())
    completed = status_counts.get('completed', 0)

    patients = Patient.objects.all()
    ages = {label: 0 for _, _, label in AGE_BANDS}
    for age in patients.values_list('age', flat=True):
        for low, high, label in AGE_BANDS:
            if low <= age <= high:
                ages[label] += 1
                break

    return Response({
        'start': start.isoformat(),
        'end': end.isoformat(),
        'finance': {'income': income, 'expense': expense, 'net': income - expense, 'byCategory': by_category},
        'appointments': {
            'total': total_appts,
            'byStatus': status_counts,
            'completionRate': round(completed * 100 / total_appts, 1) if total_appts else 0,
        },
        'demographics': {
            'gender': {row['gender']: row['n'] for row in patients.values('gender').annotate(n=Count('id'))},
            'type': {row['type']: row['n'] for row in patients.values('type').annotate(n=Count('id'))},
            'ageBands': ages,
        },
    })
