"""
Wallet services - ledger and monthly partitions.
"""

from .partitions import (
    PartitionRegistry,
    partition_name_for,
    parse_partition_name,
)
from .ledger import WalletLedger, to_amount

__all__ = [
    'PartitionRegistry',
    'partition_name_for',
    'parse_partition_name',
    'WalletLedger',
    'to_amount',
]
