from rest_framework import serializers
from django.conf import settings

from apps.wallet.serializers import PaginationSerializer
from .models import Order, OrderItem, OrderStatus


# =============================================================================
# Input Serializers
# =============================================================================

class OrderLineSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)

    def validate_quantity(self, value):
        if value > settings.ORDER_ITEM_MAX_QUANTITY:
            raise serializers.ValidationError(
                f'Quantity cannot exceed {settings.ORDER_ITEM_MAX_QUANTITY}.'
            )
        return value


class CreateOrderSerializer(serializers.Serializer):
    """
    Validate a food order.

    Body:
        shop_id (uuid): Shop to order from
        items (list): [{menu_item_id, quantity}]
        notes (str): Optional note for the kitchen
    """

    shop_id = serializers.UUIDField()
    items = OrderLineSerializer(many=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('Order must have at least one item.')
        if len(value) > settings.ORDER_MAX_ITEMS:
            raise serializers.ValidationError(
                f'Order cannot have more than {settings.ORDER_MAX_ITEMS} items.'
            )
        return value


class LaundryLineSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=[])
    count = serializers.IntegerField(min_value=1, max_value=100)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['category'].choices = list(settings.LAUNDRY_PRICES)


class CreateLaundryOrderSerializer(serializers.Serializer):
    shop_id = serializers.UUIDField()
    items = LaundryLineSerializer(many=True, allow_empty=False)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class CreateXeroxOrderSerializer(serializers.Serializer):
    shop_id = serializers.UUIDField()
    page_count = serializers.IntegerField(min_value=1, max_value=1000)
    copies = serializers.IntegerField(min_value=1, max_value=100, default=1)
    color_type = serializers.ChoiceField(choices=['bw', 'color'], default='bw')
    paper_size = serializers.ChoiceField(choices=['A4', 'A3', 'Letter', 'Legal'], default='A4')
    double_sided = serializers.BooleanField(default=False)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class DeliverItemsSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class VerifyPickupSerializer(serializers.Serializer):
    qr_data = serializers.CharField()


class OrderFilterSerializer(serializers.Serializer):
    """
    Query parameters for order lists.

    Query Parameters:
        status (str): Order status
        start_date (date): Placed on or after
        end_date (date): Placed on or before
        page (int): Page number
        limit (int): Page size
    """

    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)

    def validate(self, attrs):
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'end_date': 'End date must be after start date'
            })
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class OrderItemSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id',
            'menu_item_id',
            'name',
            'category',
            'image_url',
            'unit_price',
            'offer_price',
            'quantity',
            'subtotal',
            'delivered',
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    shop_name = serializers.CharField(source='shop.name', read_only=True)
    user_name = serializers.CharField(source='user.name', read_only=True)
    roll_number = serializers.CharField(source='user.roll_number', read_only=True, default=None)
    handled_by_name = serializers.CharField(source='handled_by.name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id',
            'order_number',
            'user',
            'user_name',
            'roll_number',
            'shop',
            'shop_name',
            'total',
            'status',
            'payment_status',
            'service_type',
            'service_details',
            'pickup_token',
            'qr_data',
            'handled_by',
            'handled_by_name',
            'cancellation_reason',
            'notes',
            'items',
            'placed_at',
            'preparing_at',
            'ready_at',
            'partially_delivered_at',
            'completed_at',
            'cancelled_at',
        ]
        read_only_fields = fields


class StaffOrderSerializer(OrderSerializer):
    """Order as seen by shop staff; the pickup token stays with the student."""

    class Meta(OrderSerializer.Meta):
        fields = [f for f in OrderSerializer.Meta.fields if f not in ('pickup_token', 'qr_data')]
        read_only_fields = fields


class OrderPageSerializer(serializers.Serializer):
    orders = OrderSerializer(many=True, source='results')
    pagination = PaginationSerializer()


class StaffOrderPageSerializer(serializers.Serializer):
    orders = StaffOrderSerializer(many=True, source='results')
    pagination = PaginationSerializer()
