"""
Unified records search.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import require
from ..rbac import Permissions
from ..services.records import RECORD_TYPES, search_records


class RecordQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, default='')
    type = serializers.ChoiceField(choices=('All',) + RECORD_TYPES, required=False, default='All')
    status = serializers.CharField(required=False, allow_blank=True, default='')
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=500, default=50)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require(Permissions.VIEW_PATIENTS)])
def records(request):
    """Search patients, appointments, bills and admissions in one list, newest first."""
    s = RecordQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    found = search_records(q=vd['q'], record_type=vd['type'], status=vd['status'],
                           start=vd.get('start'), end=vd.get('end'))
    start = (vd['page'] - 1) * vd['pageSize']
    page = found[start:start + vd['pageSize']]
    for record in page:
        record['date'] = timezone.localtime(record['date']).isoformat()
    return Response({'total': len(found), 'page': vd['page'], 'pageSize': vd['pageSize'], 'results': page})
