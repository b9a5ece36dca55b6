"""
Service container.

The canteen services are built once when Django starts (see
CommonConfig.ready) and handed to views through get_container(). Tests build
their own instances with fake clocks and publishers instead.
"""
from django.apps import apps
from django.conf import settings


class Container:
    """Holds the wired service instances for the running process."""

    def __init__(self, *, partitions, ledger, pickup, orders, payments, analytics, publisher):
        self.partitions = partitions
        self.ledger = ledger
        self.pickup = pickup
        self.orders = orders
        self.payments = payments
        self.analytics = analytics
        self.publisher = publisher


def build_container(clock=None):
    """Construct every service with its collaborators."""
    from django.utils import timezone

    from apps.analytics.analytics import ShopAnalyticsAggregator
    from apps.orders.services import OrderLifecycleManager, PickupVerifier
    from apps.orders.signals import OrderEventPublisher
    from apps.payments.services import AdhocPaymentDispatcher
    from apps.wallet.services import PartitionRegistry, WalletLedger

    clock = clock or timezone.now

    partitions = PartitionRegistry(
        prefix=settings.LEDGER_PARTITION_PREFIX,
        epoch=settings.LEDGER_EPOCH,
    )
    ledger = WalletLedger(registry=partitions, clock=clock)
    pickup = PickupVerifier(clock=clock)
    publisher = OrderEventPublisher()

    return Container(
        partitions=partitions,
        ledger=ledger,
        pickup=pickup,
        orders=OrderLifecycleManager(ledger=ledger, pickup=pickup, publisher=publisher, clock=clock),
        payments=AdhocPaymentDispatcher(ledger=ledger, clock=clock),
        analytics=ShopAnalyticsAggregator(clock=clock),
        publisher=publisher,
    )


def get_container():
    """Return the container built at startup."""
    return apps.get_app_config('common').container
