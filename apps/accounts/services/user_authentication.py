"""User authentication service."""

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import UserRole
from .exceptions import InvalidCredentialsError, InactiveAccountError, PendingApprovalError

User = get_user_model()


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        email: User's email
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
        PendingApprovalError: If a student has not been approved yet
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(email__iexact=email)
        )
    except User.DoesNotExist:
        raise InvalidCredentialsError()

    if not user.check_password(password):
        raise InvalidCredentialsError()

    if not user.is_active:
        raise InactiveAccountError()

    if user.role == UserRole.STUDENT and not user.is_approved:
        raise PendingApprovalError()

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return user
