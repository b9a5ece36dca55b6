"""Student approval service."""

import logging
from decimal import Decimal

from django.db import transaction
from django.contrib.auth import get_user_model

from apps.accounts.models import UserRole
from apps.common.exceptions import AlreadyApprovedError, NotFoundError, ValidationFailedError

User = get_user_model()
logger = logging.getLogger(__name__)


def pending_approvals():
    """Active students waiting for approval, oldest first."""
    return User.objects.filter(
        role=UserRole.STUDENT,
        is_approved=False,
        is_active=True,
    ).order_by('created_at')


@transaction.atomic
def approve_student(*, user_id, ledger, actor=None, initial_balance=Decimal('0')) -> User:
    """
    Approve a pending student, optionally seeding the wallet.

    The initial balance is posted as an `adjustment` credit through the
    ledger so that the cached balance always has a justifying entry.

    Raises:
        NotFoundError: If the user does not exist
        AlreadyApprovedError: If the user is already approved
        ValidationFailedError: If initial_balance is negative
    """
    initial_balance = Decimal(initial_balance)
    if initial_balance < 0:
        raise ValidationFailedError('Initial balance cannot be negative.')

    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise NotFoundError('User not found.')

    if user.is_approved:
        raise AlreadyApprovedError()

    user.is_approved = True
    user.save(update_fields=['is_approved', 'updated_at'])

    if initial_balance > 0:
        ledger.post_entry(
            user,
            'credit',
            initial_balance,
            'Initial wallet balance on account approval',
            actor=actor,
            source='adjustment',
        )
        user.refresh_from_db(fields=['balance'])

    logger.info('User %s approved with initial balance %s', user.id, initial_balance)
    return user


@transaction.atomic
def reject_student(*, user_id) -> None:
    """
    Delete a registration that was never approved.

    Raises:
        NotFoundError: If the user does not exist
        AlreadyApprovedError: If the user was already approved
    """
    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise NotFoundError('User not found.')

    if user.is_approved:
        raise AlreadyApprovedError('Cannot reject an already approved user.')

    user.delete()
    logger.info('User %s rejected and deleted', user_id)
