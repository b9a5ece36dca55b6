"""Domain-specific exceptions for accounts services."""
from apps.common.exceptions import CanteenError


class UserRegistrationError(CanteenError):
    """Raised when user registration fails."""
    status_code = 400
    default_detail = 'Registration failed.'
    default_code = 'registration_failed'


class InvalidCredentialsError(CanteenError):
    """Raised when authentication credentials are invalid."""
    status_code = 401
    default_detail = 'Invalid email or password.'
    default_code = 'invalid_credentials'


class InactiveAccountError(CanteenError):
    """Raised when account is deactivated."""
    status_code = 403
    default_detail = 'Account is deactivated.'
    default_code = 'account_inactive'


class PendingApprovalError(CanteenError):
    """Raised when a student logs in before being approved."""
    status_code = 403
    default_detail = 'Account is awaiting approval.'
    default_code = 'pending_approval'
