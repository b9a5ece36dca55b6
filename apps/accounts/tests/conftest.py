import pytest
from decimal import Decimal
from apps.accounts.models import User, UserRole


@pytest.fixture
def pending_student(db):
    """Create and return a student waiting for approval."""
    return User.objects.create_user(
        email='pending@example.com',
        password='TestPass123!',
        name='Pending Student',
        roll_number='21ECE042',
        department='ECE',
        year=2,
        role=UserRole.STUDENT,
        is_approved=False,
    )


@pytest.fixture
def inactive_student(db):
    """Create and return a deactivated student."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        name='Inactive Student',
        role=UserRole.STUDENT,
        is_approved=True,
        is_active=False,
    )


@pytest.fixture
def authenticated_client(client_for, student):
    """Return an API client authenticated as the student."""
    return client_for(student)


@pytest.fixture
def superadmin_client(client_for, superadmin):
    return client_for(superadmin)


@pytest.fixture
def owner_client(client_for, owner):
    return client_for(owner)


@pytest.fixture
def initial_balance():
    return Decimal('250.00')
