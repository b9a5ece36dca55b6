"""
Wallet ledger service.

WalletLedger is the only code allowed to change User.balance. Each posting
locks the user row, reads the balance inside the same transaction, writes the
new balance and appends one LedgerEntry to the partition of the current
calendar month. Readers fan out over the monthly partitions and merge.

Example:
    Posting an order payment::

        ledger = WalletLedger(registry=PartitionRegistry())
        entry = ledger.post_entry(
            student, 'debit', Decimal('120.00'), 'Payment for order ORD-20250314-0007',
            order=order, actor=staff, source='order_payment',
        )
        entry.balance_after  # Decimal('380.00')
"""
import heapq
import logging
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from itertools import islice
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from apps.common.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from apps.common.pagination import clamp_page, page_meta
from apps.wallet.models import EntrySource, EntryStatus, EntryType, LedgerEntry
from .partitions import PartitionRegistry

User = get_user_model()
logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

TOP_UP_SOURCES = (EntrySource.CASH_DEPOSIT, EntrySource.ONLINE_PAYMENT)

DEFAULT_SOURCE = {
    EntryType.CREDIT: EntrySource.ADJUSTMENT,
    EntryType.DEBIT: EntrySource.ADJUSTMENT,
    EntryType.REFUND: EntrySource.REFUND,
}


def to_amount(value) -> Decimal:
    """Coerce to a two-decimal positive amount or raise ValidationFailedError."""
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationFailedError('Amount must be a number.', amount=str(value))
    if amount <= 0:
        raise ValidationFailedError('Amount must be greater than zero.', amount=str(amount))
    return amount


def _as_datetime(value, end_of_day=False):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        moment = datetime.combine(value, time.max if end_of_day else time.min)
        return timezone.make_aware(moment)
    raise ValidationFailedError('Invalid date.', value=str(value))


class WalletLedger:
    """
    Month-partitioned wallet ledger.

    Args:
        registry: PartitionRegistry deciding where entries are written and
            which partitions a range query visits.
        clock: Callable returning the current aware datetime. Determines both
            created_at and the partition of new entries.
    """

    def __init__(self, registry: Optional[PartitionRegistry] = None, clock=None):
        self.registry = registry or PartitionRegistry()
        self.clock = clock or timezone.now

    # =========================================================================
    # Posting
    # =========================================================================

    @transaction.atomic
    def post_entry(
        self,
        user,
        entry_type,
        amount,
        description='',
        *,
        order=None,
        actor=None,
        source=None,
        metadata=None,
    ) -> LedgerEntry:
        """
        Apply one balance change and record it.

        Args:
            user: User instance or id whose wallet changes.
            entry_type: 'credit', 'debit' or 'refund'.
            amount: Positive amount.
            description: Human-readable reason.
            order: Order the posting settles, if any.
            actor: Staff member who triggered the posting.
            source: EntrySource value; defaults by entry type.
            metadata: Extra JSON stored on the entry.

        Returns:
            The created LedgerEntry. If `user` is a User instance its
            balance attribute is refreshed to the new value.

        Raises:
            ValidationFailedError: Bad entry type, source or amount.
            NotFoundError: User does not exist.
            InsufficientBalanceError: A debit would make the balance negative.
        """
        if entry_type not in EntryType.values:
            raise ValidationFailedError(f'Unknown entry type: {entry_type}')
        amount = to_amount(amount)
        source = source or DEFAULT_SOURCE[entry_type]
        if source not in EntrySource.values:
            raise ValidationFailedError(f'Unknown source: {source}')

        user_id = getattr(user, 'pk', user)
        try:
            locked = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise NotFoundError('User not found.')

        balance_before = locked.balance
        if entry_type == EntryType.DEBIT:
            if balance_before < amount:
                raise InsufficientBalanceError(
                    f'Insufficient balance. Current balance: {balance_before}, Required: {amount}',
                    balance=str(balance_before),
                    required=str(amount),
                )
            balance_after = balance_before - amount
        else:
            balance_after = balance_before + amount

        now = self.clock()
        partition = self.registry.ensure(now)

        locked.balance = balance_after
        locked.save(update_fields=['balance', 'updated_at'])

        entry = LedgerEntry.objects.create(
            partition=partition,
            user=locked,
            entry_type=entry_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            source=source,
            status=EntryStatus.COMPLETED,
            description=description[:255],
            order=order,
            processed_by=actor,
            metadata=metadata or {},
            created_at=now,
        )

        if isinstance(user, User):
            user.balance = balance_after

        logger.info(
            'Posted %s of %s for user %s (%s -> %s) in %s, source=%s order=%s',
            entry_type, amount, locked.pk, balance_before, balance_after,
            partition, source, getattr(order, 'pk', None),
        )
        return entry

    def _eligible_wallet(self, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFoundError('User not found.')
        if not user.is_active:
            raise PermissionDeniedError('User account is deactivated.')
        if not user.is_approved:
            raise PermissionDeniedError('User is not approved.')
        return user

    def credit(self, *, user_id, amount, source, actor, description='') -> LedgerEntry:
        """
        Top up a wallet from a cash deposit or online payment.

        Raises:
            ValidationFailedError: Source is not a top-up source.
            NotFoundError: User does not exist.
            PermissionDeniedError: User is inactive or not approved.
        """
        if source not in TOP_UP_SOURCES:
            raise ValidationFailedError('Credit source must be cash_deposit or online_payment.')
        user = self._eligible_wallet(user_id)
        label = 'cash deposit' if source == EntrySource.CASH_DEPOSIT else 'online payment'
        return self.post_entry(
            user,
            EntryType.CREDIT,
            amount,
            description or f'Wallet credited via {label}',
            actor=actor,
            source=source,
        )

    def debit(self, *, user_id, amount, actor, description) -> LedgerEntry:
        """Withdraw from a wallet on behalf of the student (accountant action)."""
        user = self._eligible_wallet(user_id)
        return self.post_entry(
            user,
            EntryType.DEBIT,
            amount,
            description,
            actor=actor,
            source=EntrySource.ADJUSTMENT,
        )

    # =========================================================================
    # Reading
    # =========================================================================

    def get_balance(self, user_id) -> Decimal:
        try:
            user = User.objects.only('balance', 'is_active').get(pk=user_id)
        except User.DoesNotExist:
            raise NotFoundError('User not found.')
        if not user.is_active:
            raise PermissionDeniedError('User account is deactivated.')
        return user.balance

    def _partition_querysets(self, base_filter: Q, start=None, end=None):
        start = _as_datetime(start)
        end = _as_datetime(end, end_of_day=True)
        range_filter = Q()
        if start:
            range_filter &= Q(created_at__gte=start)
        if end:
            range_filter &= Q(created_at__lte=end)

        for name in self.registry.overlapping(start, end or self.clock()):
            yield (
                LedgerEntry.objects
                .filter(base_filter, range_filter, partition=name)
                .select_related('order', 'processed_by')
                .order_by('-created_at', '-id')
            )

    def _fan_out(self, base_filter: Q, start=None, end=None, page=None, limit=None):
        """
        Query every overlapping partition and merge into one page.

        Each partition is already sorted newest first, so only the first
        offset + limit rows of each are needed; heapq.merge keeps the global
        order without sorting everything.
        """
        page, limit = clamp_page(page, limit)
        offset = (page - 1) * limit

        total = 0
        streams = []
        for queryset in self._partition_querysets(base_filter, start, end):
            count = queryset.count()
            if not count:
                continue
            total += count
            streams.append(list(queryset[:offset + limit]))

        merged = heapq.merge(*streams, key=lambda e: e.created_at, reverse=True)
        return {
            'results': list(islice(merged, offset, offset + limit)),
            'pagination': page_meta(page, limit, total),
        }

    def query_user(self, user, filters=None, date_range=None, pagination=None):
        """
        Transaction history for one user across monthly partitions.

        Args:
            user: User instance or id.
            filters: Optional dict with 'entry_type' and/or 'source'.
            date_range: Optional (start, end) pair of dates or datetimes;
                either side may be None.
            pagination: Optional dict with 'page' and 'limit'.

        Returns:
            dict with 'results' (LedgerEntry list, newest first) and
            'pagination' meta.
        """
        filters = filters or {}
        start, end = date_range or (None, None)
        pagination = pagination or {}

        base = Q(user_id=getattr(user, 'pk', user))
        if filters.get('entry_type'):
            base &= Q(entry_type=filters['entry_type'])
        if filters.get('source'):
            base &= Q(source=filters['source'])

        return self._fan_out(base, start, end, pagination.get('page'), pagination.get('limit'))

    def query_all(self, filters=None, date_range=None, pagination=None):
        """Accountant view across all users; filters may include 'user_id'."""
        filters = filters or {}
        start, end = date_range or (None, None)
        pagination = pagination or {}

        base = Q()
        for field in ('user_id', 'entry_type', 'source', 'status'):
            if filters.get(field):
                base &= Q(**{field: filters[field]})

        return self._fan_out(base, start, end, pagination.get('page'), pagination.get('limit'))

    def order_entries(self, order):
        """Every entry referencing an order, oldest first."""
        order_id = getattr(order, 'pk', order)
        entries = []
        for queryset in self._partition_querysets(Q(order_id=order_id)):
            entries.extend(queryset)
        return sorted(entries, key=lambda e: e.created_at)

    # =========================================================================
    # Audit
    # =========================================================================

    def replayed_balance(self, user) -> Decimal:
        """Credits plus refunds minus debits over every partition."""
        user_id = getattr(user, 'pk', user)
        totals = (
            LedgerEntry.objects
            .filter(
                user_id=user_id,
                status=EntryStatus.COMPLETED,
                partition__in=self.registry.all(),
            )
            .values('entry_type')
            .annotate(total=Sum('amount'))
        )
        balance = Decimal('0.00')
        for row in totals:
            if row['entry_type'] == EntryType.DEBIT:
                balance -= row['total']
            else:
                balance += row['total']
        return balance

    def reconcile_balance(self, user) -> dict:
        """
        Compare the cached balance with the ledger replay.

        Audit only: nothing is written. A correction has to be posted as an
        explicit adjustment entry.
        """
        user_id = getattr(user, 'pk', user)
        try:
            cached = User.objects.only('balance').get(pk=user_id).balance
        except User.DoesNotExist:
            raise NotFoundError('User not found.')

        replayed = self.replayed_balance(user_id)
        drift = cached - replayed
        if drift:
            logger.warning('Balance drift for user %s: cached=%s replayed=%s', user_id, cached, replayed)
        return {
            'user_id': str(user_id),
            'cached_balance': cached,
            'replayed_balance': replayed,
            'drift': drift,
            'consistent': drift == 0,
        }
