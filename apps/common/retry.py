"""
Retry decorator for units of work that lost a write race.

A transition whose conditional UPDATE matched no row, or a transaction the
database aborted (deadlock, serialization failure, lock timeout), is safe to
run again from the start. Business failures such as insufficient balance or
a failed precondition propagate immediately.
"""
import functools
import logging
import random
import time

from django.conf import settings
from django.db import OperationalError

from .exceptions import ConcurrentTransitionError


logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ConcurrentTransitionError, OperationalError)


def retry_on_conflict(func=None, *, attempts=None, base_delay=0.05):
    """
    Re-run the wrapped callable when it fails with a retryable conflict.

    The callable must open its own transaction so that every attempt starts
    from freshly read rows.

    Usage:
        @retry_on_conflict
        def update_status(self, ...):
            ...

    Args:
        attempts: Extra attempts after the first one. Defaults to
            settings.CONFLICT_RETRY_ATTEMPTS.
        base_delay: Seconds to wait before the first retry, doubled per retry.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            retries = attempts if attempts is not None else getattr(settings, 'CONFLICT_RETRY_ATTEMPTS', 1)
            for attempt in range(retries + 1):
                try:
                    return fn(*args, **kwargs)
                except RETRYABLE_ERRORS as exc:
                    if attempt == retries:
                        logger.error(
                            'Conflict unresolved after %d retries for %s: %s',
                            retries, fn.__name__, exc,
                        )
                        raise
                    delay = base_delay * (2 ** attempt) + random.uniform(0, base_delay)
                    logger.warning(
                        '%s on attempt %d/%d of %s, retrying in %.3fs',
                        exc.__class__.__name__, attempt + 1, retries + 1, fn.__name__, delay,
                    )
                    time.sleep(delay)
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
