"""
Domain exceptions and the unified API exception handler.

Every error leaves the API as ``{"ok": false, "error": {"code", "message"}}``.
Keys sent next to ``detail`` are kept under ``error["details"]``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class InvalidTransition(APIException):
    """A status change not allowed by a state machine."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'

    def __init__(self, entity: str, current: str, new: str):
        super().__init__(f'Cannot move {entity} from {current} to {new}')
        self.current = current
        self.new = new


class BusinessRuleViolation(APIException):
    """A request that is well formed but conflicts with the current state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state.'
    default_code = 'conflict'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', getattr(view, '__class__', type(view)).__name__, exc_info=exc)
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    extra = {}
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
        if 'detail' in resp.data:
            extra = {k: v for k, v in resp.data.items() if k != 'detail'}
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            code = codes
    error = {'code': code, 'message': detail}
    if extra:
        error['details'] = extra
    headers = {h: resp[h] for h in ('WWW-Authenticate', 'Retry-After') if resp.has_header(h)}
    return Response({'ok': False, 'error': error}, status=resp.status_code, headers=headers)
