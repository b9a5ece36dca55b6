from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PREPARING = 'preparing', 'Preparing'
    READY = 'ready', 'Ready'
    PARTIALLY_DELIVERED = 'partially_delivered', 'Partially Delivered'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    FAILED = 'failed', 'Failed'
    REFUNDED = 'refunded', 'Refunded'


class ServiceType(models.TextChoices):
    FOOD = 'food', 'Food'
    LAUNDRY = 'laundry', 'Laundry'
    XEROX = 'xerox', 'Xerox'


# Allowed status moves; completed and cancelled are terminal.
STATUS_TRANSITIONS = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (OrderStatus.PARTIALLY_DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    OrderStatus.PARTIALLY_DELIVERED: (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

STATUS_TIMESTAMP_FIELDS = {
    OrderStatus.PREPARING: 'preparing_at',
    OrderStatus.READY: 'ready_at',
    OrderStatus.PARTIALLY_DELIVERED: 'partially_delivered_at',
    OrderStatus.COMPLETED: 'completed_at',
    OrderStatus.CANCELLED: 'cancelled_at',
}

ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY)


def allowed_transitions(status):
    return STATUS_TRANSITIONS.get(status, ())


class Order(models.Model):
    """
    One food purchase or laundry/xerox service request.

    Item prices and the total are fixed when the order is placed. After that
    only shop staff move the order along STATUS_TRANSITIONS until it reaches
    a terminal status.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='orders',
    )
    shop = models.ForeignKey(
        'shops.Shop',
        on_delete=models.PROTECT,
        related_name='orders',
    )
    total = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    service_type = models.CharField(max_length=10, choices=ServiceType.choices, default=ServiceType.FOOD)
    service_details = models.JSONField(default=dict, blank=True)

    pickup_token = models.CharField(max_length=8)
    qr_data = models.TextField()

    handled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='handled_orders',
    )
    cancellation_reason = models.CharField(max_length=500, blank=True)
    notes = models.CharField(max_length=500, blank=True)

    # One timestamp per transition
    placed_at = models.DateTimeField()
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    partially_delivered_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-placed_at']
        indexes = [
            models.Index(fields=['user', 'placed_at'], name='orders_user_placed_idx'),
            models.Index(fields=['shop', 'status'], name='orders_shop_status_idx'),
            models.Index(fields=['shop', 'placed_at'], name='orders_shop_placed_idx'),
            models.Index(fields=['status', 'completed_at'], name='orders_status_done_idx'),
        ]

    def __str__(self):
        return self.order_number

    @property
    def is_terminal(self):
        return not allowed_transitions(self.status)

    def can_transition_to(self, new_status):
        return new_status in allowed_transitions(self.status)


class OrderItem(models.Model):
    """Snapshot of a menu item at the time the order was placed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    menu_item = models.ForeignKey(
        'shops.MenuItem',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items',
    )
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=50, blank=True)
    image_url = models.URLField(blank=True)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    offer_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    delivered = models.BooleanField(default=False)

    class Meta:
        db_table = 'order_items'
        ordering = ['name']

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    @property
    def charged_price(self):
        return self.offer_price if self.offer_price is not None else self.unit_price
