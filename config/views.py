import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """Liveness probe that also touches the database."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        database = 'ok'
    except DatabaseError as exc:
        logger.warning('Health check database probe failed: %s', exc)
        database = 'unavailable'

    healthy = database == 'ok'
    return JsonResponse({
        'status': 'ok' if healthy else 'degraded',
        'database': database,
    }, status=200 if healthy else 503)


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': {'code': 'not_found', 'message': 'Not found'},
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': {'code': 'internal_error', 'message': 'Internal server error'},
    }, status=500)
