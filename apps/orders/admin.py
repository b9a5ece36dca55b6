# ==========================================
# apps/orders/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Order, OrderItem, OrderStatus


class OrderItemInline(admin.TabularInline):
    """Item snapshots of an order."""
    model = OrderItem
    extra = 0
    fields = ['name', 'category', 'unit_price', 'offer_price', 'quantity', 'subtotal', 'delivered']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin interface for Orders.

    Status and payment fields are read-only: transitions must go through the
    order service so the wallet is charged or refunded with them.
    """

    list_display = [
        'order_number',
        'user',
        'shop',
        'service_type',
        'total',
        'status_badge',
        'payment_status',
        'placed_at',
    ]
    list_filter = ['status', 'payment_status', 'service_type', 'shop']
    search_fields = ['order_number', 'user__email', 'user__roll_number']
    list_select_related = ['user', 'shop']
    date_hierarchy = 'placed_at'
    inlines = [OrderItemInline]
    readonly_fields = [
        'order_number',
        'user',
        'shop',
        'total',
        'status',
        'payment_status',
        'service_type',
        'service_details',
        'pickup_token',
        'qr_data',
        'handled_by',
        'cancellation_reason',
        'placed_at',
        'preparing_at',
        'ready_at',
        'partially_delivered_at',
        'completed_at',
        'cancelled_at',
    ]

    def status_badge(self, obj):
        """Display order status as colored badge."""
        colors = {
            OrderStatus.PENDING: ('#E5C49A', '#2C1810'),
            OrderStatus.PREPARING: ('#A47449', 'white'),
            OrderStatus.READY: ('#5E7F8E', 'white'),
            OrderStatus.PARTIALLY_DELIVERED: ('#8E7F5E', 'white'),
            OrderStatus.COMPLETED: ('#6B8E5E', 'white'),
            OrderStatus.CANCELLED: ('#B85C5C', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        """Orders are placed through the API."""
        return False
