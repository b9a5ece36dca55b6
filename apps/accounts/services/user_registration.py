"""Student registration service."""

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model
from typing import Optional

from apps.accounts.models import UserRole
from .exceptions import UserRegistrationError

User = get_user_model()


@transaction.atomic
def register_student(
    *,
    email: str,
    password: str,
    name: str = "",
    roll_number: Optional[str] = None,
    department: str = "",
    year: Optional[int] = None,
) -> User:
    """
    Register a new student account awaiting approval.

    New students start unapproved with a zero balance; they cannot be billed
    or topped up until an administrator approves them.

    Args:
        email: Student's email address
        password: Password (will be hashed)
        name: Full name
        roll_number: College roll number, unique when given
        department: Department code
        year: Year of study (1-4)

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email or roll number is already taken
    """
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError('Email is already registered.', field='email')
    if roll_number and User.objects.filter(roll_number=roll_number).exists():
        raise UserRegistrationError('Roll number is already registered.', field='roll_number')

    try:
        return User.objects.create_user(
            email=email,
            password=password,
            name=name,
            roll_number=roll_number or None,
            department=department,
            year=year,
            role=UserRole.STUDENT,
            is_approved=False,
        )
    except IntegrityError:
        raise UserRegistrationError('Email or roll number is already registered.')
