"""
Serializers for analytics app.

This module contains:
1. Input serializers - Query parameter validation
2. Response serializers - API documentation and output formatting

Input Serializers:
    ShopQuerySerializer - Optional shop selector for superadmins

Response Serializers:
    ShopStatsSerializer - Owner / captain dashboard counters
    ShopSummarySerializer - Month-over-month summary with top items
    ErrorSerializer - Error envelope
"""

from rest_framework import serializers


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class ShopQuerySerializer(serializers.Serializer):
    """
    Validate the shop selector.

    Query Parameters:
        shop_id (uuid): Shop to aggregate. Only superadmins may pass it;
            shop staff always see their own shop. Omitted by a superadmin
            means every shop.
    """

    shop_id = serializers.UUIDField(required=False)


# =============================================================================
# Response Serializers
# =============================================================================

class ShopStatsSerializer(serializers.Serializer):
    """Dashboard counters for today, this month and all time."""
    today_orders = serializers.IntegerField()
    today_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    completed_today = serializers.IntegerField()
    month_orders = serializers.IntegerField()
    month_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    month_profit = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_orders = serializers.IntegerField()
    preparing_orders = serializers.IntegerField()
    ready_orders = serializers.IntegerField()
    in_progress = serializers.IntegerField()
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_menu_items = serializers.IntegerField()


class TopItemSerializer(serializers.Serializer):
    """One entry of the top selling items list."""
    id = serializers.CharField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)


class ShopSummarySerializer(serializers.Serializer):
    """Month-over-month summary."""
    this_month_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    this_month_profit = serializers.IntegerField()
    this_month_orders = serializers.IntegerField()
    last_month_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    revenue_growth = serializers.IntegerField(help_text='Percent change against last month')
    unique_customers = serializers.IntegerField()
    avg_order_value = serializers.IntegerField()
    total_completed_orders = serializers.IntegerField()
    profit_margin = serializers.IntegerField(help_text='Estimated profit as percent of revenue')
    top_items = TopItemSerializer(many=True)


class ErrorDetailSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()
    details = serializers.DictField(required=False)


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = ErrorDetailSerializer()
