import pytest
from decimal import Decimal


@pytest.fixture
def student_client(client_for, student):
    return client_for(student)


@pytest.fixture
def accountant_client(client_for, accountant):
    return client_for(accountant)


@pytest.fixture
def quarter_history(ledger, clock, student):
    """
    One entry per month from January to March 2025 on top of the opening
    deposit, so history spans three partitions.

    Balances: 500 opening (March) plus 100 (Jan) - 30 (Feb) + 20 (Mar).
    """
    march = clock.now
    clock.set(2025, 1, 10, 9, 0)
    ledger.post_entry(student, 'credit', Decimal('100.00'), 'January top-up', source='cash_deposit')
    clock.set(2025, 2, 12, 9, 0)
    ledger.post_entry(student, 'debit', Decimal('30.00'), 'February snacks')
    clock.now = march
    clock.advance(hours=1)
    ledger.post_entry(student, 'credit', Decimal('20.00'), 'March refund of change', source='online_payment')
    return student
