"""
Service layer tests for the wallet ledger.

Tests cover:
- Posting credits, debits and refunds with balance snapshots
- Rejection of overdrafts and malformed postings
- Reads that fan out across monthly partitions
- Balance reconciliation
"""

import pytest
from datetime import date
from decimal import Decimal

from apps.accounts.models import User
from apps.common.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from apps.wallet.models import EntrySource, EntryType, LedgerEntry, LedgerPartition


# =============================================================================
# Posting
# =============================================================================

@pytest.mark.django_db
class TestPostEntry:

    def test_credit_updates_cached_balance(self, ledger, make_student):
        user = make_student()

        entry = ledger.post_entry(user, 'credit', Decimal('150.00'), 'Cash at counter', source='cash_deposit')

        assert entry.balance_before == Decimal('0.00')
        assert entry.balance_after == Decimal('150.00')
        assert entry.partition == 'transactions_2025_03'
        assert user.balance == Decimal('150.00')
        user.refresh_from_db()
        assert user.balance == Decimal('150.00')

    def test_debit_snapshots_balance(self, ledger, student):
        entry = ledger.post_entry(student, 'debit', Decimal('120.50'), 'Canteen bill')

        assert entry.entry_type == EntryType.DEBIT
        assert entry.source == EntrySource.ADJUSTMENT
        assert entry.balance_before == Decimal('500.00')
        assert entry.balance_after == Decimal('379.50')

    def test_debit_to_exactly_zero(self, ledger, student):
        entry = ledger.post_entry(student, 'debit', Decimal('500.00'), 'Everything')

        assert entry.balance_after == Decimal('0.00')

    def test_overdraft_rejected_without_side_effects(self, ledger, student):
        entries_before = LedgerEntry.objects.count()

        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.post_entry(student, 'debit', Decimal('500.01'), 'Too much')

        assert exc_info.value.extra['balance'] == '500.00'
        assert LedgerEntry.objects.count() == entries_before
        student.refresh_from_db()
        assert student.balance == Decimal('500.00')

    def test_refund_defaults_to_refund_source(self, ledger, student):
        entry = ledger.post_entry(student, 'refund', '25', 'Refund')

        assert entry.source == EntrySource.REFUND
        assert entry.amount == Decimal('25.00')
        assert entry.balance_after == Decimal('525.00')

    def test_accepts_user_id(self, ledger, student):
        ledger.post_entry(student.pk, 'credit', Decimal('10.00'), 'By id')

        student.refresh_from_db()
        assert student.balance == Decimal('510.00')

    @pytest.mark.parametrize('amount', ['0', '-5', 'abc', None])
    def test_invalid_amount(self, ledger, student, amount):
        with pytest.raises(ValidationFailedError):
            ledger.post_entry(student, 'credit', amount, 'Bad amount')

    def test_unknown_entry_type(self, ledger, student):
        with pytest.raises(ValidationFailedError):
            ledger.post_entry(student, 'withdrawal', Decimal('5.00'), 'Unknown')

    def test_unknown_source(self, ledger, student):
        with pytest.raises(ValidationFailedError):
            ledger.post_entry(student, 'credit', Decimal('5.00'), 'Unknown', source='lottery')

    def test_missing_user(self, ledger, db):
        with pytest.raises(NotFoundError):
            ledger.post_entry('00000000-0000-0000-0000-000000000000', 'credit', Decimal('5.00'))

    def test_entry_lands_in_partition_of_clock_month(self, ledger, clock, student):
        clock.set(2025, 4, 2, 8, 0)

        entry = ledger.post_entry(student, 'credit', Decimal('5.00'), 'April')

        assert entry.partition == 'transactions_2025_04'
        assert entry.created_at == clock.now
        assert LedgerPartition.objects.filter(name='transactions_2025_04').exists()

    def test_long_description_truncated(self, ledger, student):
        entry = ledger.post_entry(student, 'credit', Decimal('5.00'), 'x' * 400)

        assert len(entry.description) == 255


@pytest.mark.django_db
class TestCreditDebit:

    def test_credit_cash_deposit(self, ledger, student, accountant):
        entry = ledger.credit(
            user_id=student.pk,
            amount=Decimal('200.00'),
            source=EntrySource.CASH_DEPOSIT,
            actor=accountant,
        )

        assert entry.description == 'Wallet credited via cash deposit'
        assert entry.processed_by == accountant
        assert entry.balance_after == Decimal('700.00')

    def test_credit_rejects_non_topup_source(self, ledger, student, accountant):
        with pytest.raises(ValidationFailedError):
            ledger.credit(user_id=student.pk, amount=10, source=EntrySource.REFUND, actor=accountant)

    def test_credit_unapproved_student(self, ledger, make_student, accountant):
        user = make_student(is_approved=False)

        with pytest.raises(PermissionDeniedError):
            ledger.credit(user_id=user.pk, amount=10, source=EntrySource.CASH_DEPOSIT, actor=accountant)

    def test_credit_inactive_student(self, ledger, make_student, accountant):
        user = make_student(is_active=False)

        with pytest.raises(PermissionDeniedError):
            ledger.credit(user_id=user.pk, amount=10, source=EntrySource.ONLINE_PAYMENT, actor=accountant)

    def test_debit_by_accountant(self, ledger, student, accountant):
        entry = ledger.debit(user_id=student.pk, amount=Decimal('50.00'), actor=accountant, description='Cash out')

        assert entry.entry_type == EntryType.DEBIT
        assert entry.balance_after == Decimal('450.00')

    def test_get_balance(self, ledger, student):
        assert ledger.get_balance(student.pk) == Decimal('500.00')

    def test_get_balance_inactive(self, ledger, make_student):
        user = make_student(is_active=False)

        with pytest.raises(PermissionDeniedError):
            ledger.get_balance(user.pk)


# =============================================================================
# Reading across partitions
# =============================================================================

@pytest.mark.django_db
class TestQueries:

    def test_history_merges_partitions_newest_first(self, ledger, quarter_history):
        page = ledger.query_user(quarter_history)

        descriptions = [entry.description for entry in page['results']]
        assert descriptions == [
            'March refund of change',
            'Opening balance',
            'February snacks',
            'January top-up',
        ]
        assert page['pagination']['total'] == 4
        assert {entry.partition for entry in page['results']} == {
            'transactions_2025_01',
            'transactions_2025_02',
            'transactions_2025_03',
        }

    def test_history_pagination_spans_partitions(self, ledger, quarter_history):
        page = ledger.query_user(quarter_history, pagination={'page': 2, 'limit': 3})

        assert [entry.description for entry in page['results']] == ['January top-up']
        assert page['pagination'] == {
            'page': 2,
            'limit': 3,
            'total': 4,
            'total_pages': 2,
            'has_next_page': False,
            'has_prev_page': True,
        }

    def test_history_date_range(self, ledger, quarter_history):
        page = ledger.query_user(quarter_history, date_range=(date(2025, 2, 1), date(2025, 2, 28)))

        assert [entry.description for entry in page['results']] == ['February snacks']

    def test_history_filter_by_type(self, ledger, quarter_history):
        page = ledger.query_user(quarter_history, filters={'entry_type': 'debit'})

        assert [entry.amount for entry in page['results']] == [Decimal('30.00')]

    def test_history_is_per_user(self, ledger, quarter_history, other_student):
        page = ledger.query_user(other_student)

        assert page['pagination']['total'] == 1
        assert page['results'][0].user_id == other_student.pk

    def test_query_all_filters_by_user(self, ledger, quarter_history, other_student):
        everything = ledger.query_all()
        mine = ledger.query_all(filters={'user_id': quarter_history.pk})

        assert everything['pagination']['total'] == 5
        assert mine['pagination']['total'] == 4

    def test_query_all_filters_by_source(self, ledger, quarter_history):
        page = ledger.query_all(filters={'source': 'online_payment'})

        assert [entry.description for entry in page['results']] == ['March refund of change']

    def test_limit_is_capped(self, ledger, quarter_history):
        page = ledger.query_user(quarter_history, pagination={'page': 1, 'limit': 10_000})

        assert page['pagination']['limit'] == 100


# =============================================================================
# Reconciliation
# =============================================================================

@pytest.mark.django_db
class TestReconciliation:

    def test_consistent_after_postings(self, ledger, quarter_history):
        report = ledger.reconcile_balance(quarter_history)

        assert report['consistent'] is True
        assert report['cached_balance'] == Decimal('590.00')
        assert report['replayed_balance'] == Decimal('590.00')

    def test_detects_drift_without_fixing_it(self, ledger, student):
        User.objects.filter(pk=student.pk).update(balance=Decimal('999.00'))

        report = ledger.reconcile_balance(student)

        assert report['consistent'] is False
        assert report['drift'] == Decimal('499.00')
        student.refresh_from_db()
        assert student.balance == Decimal('999.00')

    def test_replay_counts_refunds_as_credits(self, ledger, student):
        ledger.post_entry(student, 'debit', Decimal('100.00'), 'Order')
        ledger.post_entry(student, 'refund', Decimal('100.00'), 'Refund')

        assert ledger.replayed_balance(student) == Decimal('500.00')
