"""
Authentication views.

Login exchanges username/password for a JWT pair; the access token is
sent back as ``Authorization: Bearer <token>`` on every later request.
By isolating these views from the authentication class (see
``clinic.authentication``) we prevent circular imports when Django REST
framework initialises authentication classes.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .rbac import ROUTE_PERMISSIONS, can_access_route, permissions_for_role
from .serializers.auth import ChangePasswordSerializer, LoginSerializer, ProfileUpdateSerializer, user_payload

logger = logging.getLogger(__name__)


def _session_payload(user) -> dict:
    payload = user_payload(user)
    payload['permissions'] = permissions_for_role(user.role)
    return payload


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Exchange credentials for an access/refresh token pair."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    user = authenticate(request, username=username, password=s.validated_data['password'])
    if not user:
        logger.warning('Failed login for %s from %s', username, request.META.get('REMOTE_ADDR'))
        raise AuthenticationFailed('Invalid credentials')
    refresh = RefreshToken.for_user(user)
    logger.info('User %s logged in', user.username)
    return Response({
        'ok': True,
        'token': str(refresh.access_token),
        'refresh': str(refresh),
        'user': _session_payload(user),
    })

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    raw = request.data.get('refresh')
    if not raw:
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': 'refresh is required'}},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        refresh = RefreshToken(raw)
    except TokenError as e:
        raise AuthenticationFailed(str(e))
    return Response({'ok': True, 'token': str(refresh.access_token)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the refresh token; the client drops its access token."""
    raw = request.data.get('refresh')
    if raw:
        try:
            RefreshToken(raw).blacklist()
        except TokenError:
            logger.info('Logout with an already invalid refresh token for %s', request.user.username)
    return Response({'ok': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(_session_payload(request.user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    s = ProfileUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = request.user
    for attr, value in s.validated_data.items():
        setattr(user, attr, value)
    user.save()
    return Response(_session_payload(user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    user = request.user
    s = ChangePasswordSerializer(data=request.data, context={'user': user})
    s.is_valid(raise_exception=True)
    if not user.check_password(s.validated_data['currentPassword']):
        raise ValidationError({'currentPassword': 'Current password is incorrect'})
    user.set_password(s.validated_data['newPassword'])
    user.save()
    logger.info('User %s changed password', user.username)
    return Response({'ok': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def routes_view(request):
    """Front-end routes the caller may open; ``?path=`` checks a single one."""
    path = request.query_params.get('path')
    if path is not None:
        return Response({'path': path, 'allowed': can_access_route(request.user, path)})
    return Response({'routes': [r for r in ROUTE_PERMISSIONS if can_access_route(request.user, r)]})
