"""
Order events.

Receivers (push notifications, dashboards) subscribe to these signals. They
are sent only after the transaction that changed the order has committed,
and a failing receiver never affects the order itself.

Every signal is sent with sender=Order and an `order` keyword argument.
order_status_changed also carries `previous_status`.
"""
import logging

from django.db import transaction
from django.dispatch import Signal

from .models import Order, OrderStatus


logger = logging.getLogger(__name__)

order_placed = Signal()
order_status_changed = Signal()
order_ready = Signal()
order_cancelled = Signal()
order_completed = Signal()

STATUS_SIGNALS = {
    OrderStatus.READY: order_ready,
    OrderStatus.CANCELLED: order_cancelled,
    OrderStatus.COMPLETED: order_completed,
}


class OrderEventPublisher:
    """Sends order signals once the surrounding transaction commits."""

    def _send(self, signal, order, **kwargs):
        responses = signal.send_robust(sender=Order, order=order, **kwargs)
        for receiver, result in responses:
            if isinstance(result, Exception):
                logger.error(
                    'Order event receiver %r failed for order %s: %s',
                    receiver, order.order_number, result,
                    exc_info=(type(result), result, result.__traceback__),
                )

    def publish(self, signal, order, **kwargs):
        transaction.on_commit(lambda: self._send(signal, order, **kwargs))

    def placed(self, order):
        self.publish(order_placed, order)

    def status_changed(self, order, previous_status):
        self.publish(order_status_changed, order, previous_status=previous_status)
        specific = STATUS_SIGNALS.get(order.status)
        if specific is not None:
            self.publish(specific, order)
