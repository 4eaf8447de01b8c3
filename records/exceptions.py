"""
Error rendering for the clinic API.

Every failure leaves the API as ``{"success": false, "message": ...}``
so that the mobile client can show ``message`` verbatim.  Business rule
violations raised from the service layer use :class:`BusinessError`.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BusinessError(APIException):
    """A clinic rule refused the request (restricted account, time clash...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be completed'
    default_code = 'business_error'

    def __init__(self, message: str | None = None, *, status_code: int | None = None, extra: dict | None = None):
        super().__init__(detail=message)
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}


def _first_message(detail) -> str:
    """Flatten DRF error details into one readable line."""
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else ''
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for field, value in detail.items():
            text = _first_message(value)
            if field == 'non_field_errors':
                return text
            return f"{field}: {text}"
        return ''
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view').__class__.__name__, exc_info=exc)
        return Response({'success': False, 'message': 'Server error'}, status=500)
    payload = {'success': False, 'message': _first_message(resp.data)}
    if isinstance(exc, BusinessError):
        payload.update(exc.extra)
    resp.data = payload
    return resp
