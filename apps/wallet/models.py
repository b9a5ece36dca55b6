from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class EntryType(models.TextChoices):
    CREDIT = 'credit', 'Credit'
    DEBIT = 'debit', 'Debit'
    REFUND = 'refund', 'Refund'


class EntrySource(models.TextChoices):
    CASH_DEPOSIT = 'cash_deposit', 'Cash Deposit'
    ONLINE_PAYMENT = 'online_payment', 'Online Payment'
    ORDER_PAYMENT = 'order_payment', 'Order Payment'
    REFUND = 'refund', 'Refund'
    ADJUSTMENT = 'adjustment', 'Adjustment'
    ADHOC_PAYMENT = 'adhoc_payment', 'Ad-hoc Payment'
    COMPLEMENTARY = 'complementary', 'Complementary'


class EntryStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'
    CANCELLED = 'cancelled', 'Cancelled'


class LedgerPartition(models.Model):
    """
    Registry row for one calendar-month ledger partition.

    A partition is registered the first time an entry is posted in its month;
    range queries only visit registered partitions.
    """

    name = models.CharField(max_length=40, unique=True)
    year = models.PositiveSmallIntegerField()
    month = models.PositiveSmallIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ledger_partitions'
        ordering = ['-year', '-month']
        constraints = [
            models.UniqueConstraint(fields=['year', 'month'], name='unique_ledger_partition_month'),
        ]

    def __str__(self):
        return self.name


class LedgerEntry(models.Model):
    """
    Immutable record of one wallet balance change.

    balance_before/balance_after are snapshots taken under the user row lock
    in the same transaction that wrote User.balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    partition = models.CharField(max_length=40, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='ledger_entries',
    )
    entry_type = models.CharField(max_length=10, choices=EntryType.choices)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    balance_before = models.DecimalField(max_digits=10, decimal_places=2)
    balance_after = models.DecimalField(max_digits=10, decimal_places=2)
    source = models.CharField(max_length=20, choices=EntrySource.choices)
    status = models.CharField(max_length=10, choices=EntryStatus.choices, default=EntryStatus.COMPLETED)
    description = models.CharField(max_length=255, blank=True)
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger_entries',
    )
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='processed_ledger_entries',
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField()

    class Meta:
        db_table = 'ledger_entries'
        ordering = ['-created_at']
        verbose_name_plural = 'ledger entries'
        indexes = [
            models.Index(fields=['partition', 'user', 'created_at'], name='ledger_part_user_idx'),
            models.Index(fields=['partition', 'created_at'], name='ledger_part_created_idx'),
            models.Index(fields=['order'], name='ledger_order_idx'),
            models.Index(fields=['source'], name='ledger_source_idx'),
        ]

    def __str__(self):
        return f"{self.entry_type} {self.amount} for {self.user_id} ({self.partition})"

    @property
    def signed_amount(self):
        return -self.amount if self.entry_type == EntryType.DEBIT else self.amount
