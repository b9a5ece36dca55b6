"""
Monthly ledger partitions.

Every ledger entry belongs to the partition of the calendar month it was
created in. The name is a pure function of that date, so writes and range
reads agree on where an entry lives:

    >>> partition_name_for(datetime(2025, 3, 14))
    'transactions_2025_03'

PartitionRegistry records which partitions exist (one LedgerPartition row
per month) and answers "which partitions overlap this date range".
"""
import re
import threading
from datetime import datetime
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone

from apps.wallet.models import LedgerPartition


DEFAULT_PREFIX = 'transactions'


def _local_month(moment) -> tuple[int, int]:
    if isinstance(moment, datetime) and timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.year, moment.month


def partition_name_for(moment, prefix: str = DEFAULT_PREFIX) -> str:
    """Partition name for a date or datetime, in the local calendar month."""
    year, month = _local_month(moment)
    return f'{prefix}_{year:04d}_{month:02d}'


def parse_partition_name(name: str, prefix: str = DEFAULT_PREFIX) -> Optional[tuple[int, int]]:
    """Return (year, month) for a partition name, or None if it is not one."""
    match = re.fullmatch(rf'{re.escape(prefix)}_(\d{{4}})_(\d{{2}})', name)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def parse_month(value: str) -> tuple[int, int]:
    """Parse 'YYYY-MM'."""
    year, month = value.split('-')
    return int(year), int(month)


def months_between(start: tuple[int, int], end: tuple[int, int]) -> Iterable[tuple[int, int]]:
    """Yield (year, month) from start to end inclusive."""
    year, month = start
    while (year, month) <= end:
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


class PartitionRegistry:
    """
    Registry of ledger partitions backed by LedgerPartition rows.

    Known names are cached in process once the transaction that registered
    them has committed, so steady-state posting does not touch the registry
    table.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, epoch: str = '2024-01'):
        self.prefix = prefix
        self.epoch = parse_month(epoch)
        self._known: set[str] = set()
        self._lock = threading.Lock()

    def name_for(self, moment) -> str:
        return partition_name_for(moment, self.prefix)

    def ensure(self, moment) -> str:
        """Register the partition for `moment` if needed and return its name."""
        name = self.name_for(moment)
        if name in self._known:
            return name

        year, month = _local_month(moment)
        LedgerPartition.objects.get_or_create(name=name, defaults={'year': year, 'month': month})
        transaction.on_commit(lambda: self._remember(name))
        return name

    def _remember(self, name: str) -> None:
        with self._lock:
            self._known.add(name)

    def clear_cache(self) -> None:
        with self._lock:
            self._known.clear()

    def overlapping(self, start=None, end=None) -> list[str]:
        """
        Registered partitions overlapping [start, end], newest first.

        A missing start falls back to the epoch month; a missing end means
        the current month.
        """
        first = _local_month(start) if start else self.epoch
        last = _local_month(end) if end else _local_month(timezone.now())
        if first > last:
            return []

        candidates = [f'{self.prefix}_{y:04d}_{m:02d}' for y, m in months_between(first, last)]
        return list(
            LedgerPartition.objects
            .filter(name__in=candidates)
            .order_by('-year', '-month')
            .values_list('name', flat=True)
        )

    def all(self) -> list[str]:
        """Every registered partition, newest first."""
        return list(
            LedgerPartition.objects
            .filter(name__startswith=f'{self.prefix}_')
            .order_by('-year', '-month')
            .values_list('name', flat=True)
        )
