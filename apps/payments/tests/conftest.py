import pytest
from decimal import Decimal
from apps.payments.services import TargetSelector


@pytest.fixture
def second_years(make_student):
    """Three funded second-year students across two departments."""
    return [
        make_student(Decimal('200.00'), year=2, department='CSE', name='Anil Kumar'),
        make_student(Decimal('200.00'), year=2, department='CSE', name='Bhavana Rao'),
        make_student(Decimal('20.00'), year=2, department='ECE', name='Chitra Das'),
    ]


@pytest.fixture
def year_two_request(payments, superadmin, second_years):
    """Return a 50.00 request billed to every second-year student."""
    return payments.create_request(
        superadmin,
        'Symposium fee',
        'Registration for the department symposium',
        Decimal('50.00'),
        TargetSelector(target_type='year', year=2),
    )


@pytest.fixture
def superadmin_client(client_for, superadmin):
    return client_for(superadmin)


@pytest.fixture
def student_client(client_for, student):
    return client_for(student)
