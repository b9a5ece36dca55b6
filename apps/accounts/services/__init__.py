"""Services for accounts business logic."""

from .exceptions import (
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
    PendingApprovalError,
)
from .user_registration import register_student
from .user_authentication import authenticate_user
from .approval import pending_approvals, approve_student, reject_student

__all__ = [
    # Exceptions
    'UserRegistrationError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'PendingApprovalError',
    # Services
    'register_student',
    'authenticate_user',
    'pending_approvals',
    'approve_student',
    'reject_student',
]
