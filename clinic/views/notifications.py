"""
In-app notifications of the signed-in user.
"""
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Notification


def notification_dict(n: Notification) -> dict:
    return {
        'id': n.id,
        'title': n.title,
        'message': n.message,
        'type': n.type,
        'isRead': n.is_read,
        'createdAt': timezone.localtime(n.created_at).isoformat(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications(request):
    qs = request.user.notifications.order_by('-created_at', '-id')
    if request.query_params.get('unread') in ('1', 'true'):
        qs = qs.filter(is_read=False)
    return Response({
        'unread': request.user.notifications.filter(is_read=False).count(),
        'results': [notification_dict(n) for n in qs[:100]],
    })


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def notification_read(request, pk: int):
    n = get_object_or_404(Notification, pk=pk, user=request.user)
    if not n.is_read:
        n.is_read = True
        n.save(update_fields=['is_read'])
    return Response(notification_dict(n))


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def notifications_read_all(request):
    updated = request.user.notifications.filter(is_read=False).update(is_read=True)
    return Response({'ok': True, 'updated': updated})
