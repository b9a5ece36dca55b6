"""DRF exception handler rendering every error as {"error": {code, message, details}}."""
import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import CanteenError


logger = logging.getLogger(__name__)


def _error_body(code, message, details=None):
    return {
        'error': {
            'code': code,
            'message': message,
            'details': details or {},
        }
    }


def canteen_exception_handler(exc, context):
    """
    Render expected errors with their stable code; hide everything else.

    CanteenError carries its own code and details. Other DRF exceptions
    (serializer validation, authentication, 404) keep their status and use
    DRF's code. Unknown exceptions are logged with the view and path and
    surfaced as an opaque 500.
    """
    if isinstance(exc, CanteenError):
        return Response(
            _error_body(exc.default_code, str(exc.detail), exc.extra),
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = _error_body('validation_error', 'Invalid input.', response.data)
        elif isinstance(exc, Http404):
            response.data = _error_body('not_found', 'Not found.')
        elif isinstance(exc, APIException):
            code = exc.get_codes()
            response.data = _error_body(code if isinstance(code, str) else exc.default_code, str(exc.detail))
        return response

    request = context.get('request')
    view = context.get('view')
    logger.exception(
        'Unhandled error in %s for %s %s',
        view.__class__.__name__ if view else 'unknown view',
        getattr(request, 'method', '-'),
        getattr(request, 'path', '-'),
    )
    return Response(
        _error_body('internal_error', 'An unexpected error occurred.'),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
