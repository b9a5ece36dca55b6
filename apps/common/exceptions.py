"""
Domain exceptions shared by the canteen apps.

Every expected, caller-facing failure is a CanteenError: a DRF APIException
with an HTTP status, a stable machine-readable code and optional structured
details. Anything that is not a CanteenError is treated as an internal error
by the exception handler.
"""
from rest_framework.exceptions import APIException


class CanteenError(APIException):
    """Base class for expected canteen errors."""
    status_code = 400
    default_detail = 'Request could not be processed.'
    default_code = 'canteen_error'
    retryable = False

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class ValidationFailedError(CanteenError):
    """Malformed input, rejected before any mutation."""
    status_code = 400
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class NotFoundError(CanteenError):
    status_code = 404
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class PermissionDeniedError(CanteenError):
    status_code = 403
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'permission_denied'


class PreconditionFailedError(CanteenError):
    """Current state does not allow the requested action."""
    status_code = 409
    default_detail = 'The resource is not in a state that allows this action.'
    default_code = 'precondition_failed'


class InsufficientBalanceError(CanteenError):
    status_code = 400
    default_detail = 'Insufficient wallet balance.'
    default_code = 'insufficient_balance'


class InsufficientBalanceOnCompletionError(InsufficientBalanceError):
    """Balance dropped between placing the order and completing it."""
    default_detail = 'Insufficient wallet balance to complete the order.'
    default_code = 'insufficient_balance_on_completion'


class AlreadyPaidError(CanteenError):
    status_code = 409
    default_detail = 'This payment has already been made.'
    default_code = 'already_paid'


class AlreadyApprovedError(CanteenError):
    status_code = 409
    default_detail = 'User is already approved.'
    default_code = 'already_approved'


class InvalidTransitionError(CanteenError):
    status_code = 409
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


class ConcurrentTransitionError(CanteenError):
    """Another transaction changed the row between our read and write."""
    status_code = 409
    default_detail = 'The resource was modified concurrently. Please retry.'
    default_code = 'concurrent_modification'
    retryable = True


class ItemsUnavailableError(CanteenError):
    status_code = 400
    default_detail = 'Some items are not available.'
    default_code = 'items_unavailable'


# =============================================================================
# Pickup verification
# =============================================================================

class InvalidPickupPayloadError(CanteenError):
    status_code = 400
    default_detail = 'Invalid QR code.'
    default_code = 'invalid_qr'


class ShopMismatchError(CanteenError):
    status_code = 400
    default_detail = 'This order belongs to a different shop.'
    default_code = 'shop_mismatch'


class TokenMismatchError(CanteenError):
    status_code = 400
    default_detail = 'Pickup token does not match.'
    default_code = 'token_mismatch'


class NotReadyError(CanteenError):
    status_code = 400
    default_detail = 'Order is not ready for pickup.'
    default_code = 'not_ready'


# =============================================================================
# Ad-hoc payments
# =============================================================================

class NoEligibleTargetsError(CanteenError):
    status_code = 400
    default_detail = 'No eligible students found for the selected target.'
    default_code = 'no_target_students'


class InvalidTargetsError(CanteenError):
    status_code = 400
    default_detail = 'Some selected students are invalid or not eligible.'
    default_code = 'invalid_students'


class RequestInactiveError(CanteenError):
    status_code = 409
    default_detail = 'This payment request is no longer active.'
    default_code = 'request_inactive'


class NotEligibleError(CanteenError):
    status_code = 403
    default_detail = 'You are not eligible for this payment request.'
    default_code = 'not_eligible'
