"""
Analytics Module
=================

Read-only rollups over orders for the shop dashboards. Nothing here writes
to the database; every figure is derived from Order and OrderItem rows with
database aggregation.

Classes:
    ShopAnalyticsAggregator: Dashboard statistics for one shop or all shops.

Key Features:
    - Today / this month / all-time order counts and revenue
    - Live kitchen counts (pending, preparing, ready)
    - Month-over-month revenue growth
    - Estimated profit at a fixed cost ratio of the list price
    - Top selling items by revenue

Example:
    Owner dashboard::

        from apps.common.container import get_container

        analytics = get_container().analytics
        stats = analytics.shop_stats(shop.id)
        print(f"Today: {stats['today_orders']} orders, {stats['today_revenue']} revenue")

        summary = analytics.shop_summary(shop.id)
        print(f"Growth vs last month: {summary['revenue_growth']}%")

Note:
    Revenue only counts completed orders, because only completion charges
    the wallet. Month boundaries follow the local TIME_ZONE.
"""
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.orders.models import Order, OrderItem, OrderStatus
from apps.shops.models import MenuItem

# Estimated cost of goods as a share of the list price.
ESTIMATED_COST_RATIO = Decimal('0.6')
TOP_ITEMS_LIMIT = 5

ZERO = Decimal('0.00')
MONEY = DecimalField(max_digits=14, decimal_places=2)


def _round(value):
    """Round half up to a whole number, the way the dashboards display it."""
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class ShopAnalyticsAggregator:
    """
    Dashboard statistics for shop owners, captains and superadmins.

    Every method takes an optional shop_id; None aggregates over all shops
    (superadmin view).

    Args:
        clock: Callable returning the current aware datetime. Decides what
            "today" and "this month" mean.

    Methods:
        shop_stats: Counts and revenue for today, this month and all time.
        shop_summary: Month-over-month comparison, profit and top items.

    Example:
        Testing with a fixed clock::

            aggregator = ShopAnalyticsAggregator(clock=lambda: fixed_now)
            assert aggregator.shop_stats(shop.id)['today_orders'] == 2
    """

    def __init__(self, clock=None):
        self.clock = clock or timezone.now

    # =========================================================================
    # Helpers
    # =========================================================================

    def _boundaries(self):
        """Start of today, this month and last month in local time."""
        now = timezone.localtime(self.clock())
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        month = today.replace(day=1)
        if month.month == 1:
            last_month = month.replace(year=month.year - 1, month=12)
        else:
            last_month = month.replace(month=month.month - 1)
        return today, month, last_month

    @staticmethod
    def _orders(shop_id):
        queryset = Order.objects.all()
        if shop_id:
            queryset = queryset.filter(shop_id=shop_id)
        return queryset

    @staticmethod
    def _items(shop_id):
        queryset = OrderItem.objects.filter(order__status=OrderStatus.COMPLETED)
        if shop_id:
            queryset = queryset.filter(order__shop_id=shop_id)
        return queryset

    @staticmethod
    def _by_status(queryset):
        """{status: (count, revenue)} for a queryset of orders."""
        rows = queryset.values('status').annotate(
            count=Count('id'),
            revenue=Coalesce(Sum('total'), Value(ZERO), output_field=MONEY),
        )
        return {row['status']: (row['count'], row['revenue']) for row in rows}

    @staticmethod
    def _estimated_profit(items):
        """
        Sum of (charged price - cost) * quantity over order items.

        Cost is ESTIMATED_COST_RATIO of the list price, so an item sold on
        offer earns less than the same item at list price.
        """
        profit_per_line = ExpressionWrapper(
            (Coalesce('offer_price', 'unit_price') - F('unit_price') * Value(ESTIMATED_COST_RATIO)) * F('quantity'),
            output_field=MONEY,
        )
        total = items.aggregate(profit=Sum(profit_per_line))['profit']
        return Decimal(total or 0).quantize(ZERO)

    # =========================================================================
    # Public API
    # =========================================================================

    def shop_stats(self, shop_id=None):
        """
        Counts and revenue for the owner and captain dashboards.

        Args:
            shop_id: Shop to aggregate, or None for every shop.

        Returns:
            dict: Statistics with keys:
                - today_orders (int): Orders placed today, any status
                - today_revenue (Decimal): Completed orders placed today
                - completed_today (int)
                - month_orders (int): Orders placed this month, any status
                - month_revenue (Decimal): Completed orders placed this month
                - month_profit (Decimal): Estimated, never below zero
                - pending_orders / preparing_orders / ready_orders (int)
                - in_progress (int): Pending plus preparing
                - total_orders (int): All time, any status
                - total_revenue (Decimal): All completed orders
                - total_menu_items (int): Available menu items
        """
        today, month, _ = self._boundaries()
        orders = self._orders(shop_id)

        all_time = self._by_status(orders)
        today_stats = self._by_status(orders.filter(placed_at__gte=today))
        month_completed = orders.filter(placed_at__gte=month, status=OrderStatus.COMPLETED)

        month_revenue = month_completed.aggregate(
            revenue=Coalesce(Sum('total'), Value(ZERO), output_field=MONEY),
        )['revenue']
        month_cost = (self._items(shop_id).filter(order__placed_at__gte=month).aggregate(
            cost=Sum(
                ExpressionWrapper(F('unit_price') * F('quantity') * Value(ESTIMATED_COST_RATIO), output_field=MONEY),
            ),
        )['cost'] or ZERO)

        menu_items = MenuItem.objects.available()
        if shop_id:
            menu_items = menu_items.filter(shop_id=shop_id)

        def count(stats, status):
            return stats.get(status, (0, ZERO))[0]

        pending = count(all_time, OrderStatus.PENDING)
        preparing = count(all_time, OrderStatus.PREPARING)

        return {
            'today_orders': sum(c for c, _ in today_stats.values()),
            'today_revenue': today_stats.get(OrderStatus.COMPLETED, (0, ZERO))[1],
            'completed_today': count(today_stats, OrderStatus.COMPLETED),
            'month_orders': orders.filter(placed_at__gte=month).count(),
            'month_revenue': month_revenue,
            'month_profit': max(ZERO, Decimal(month_revenue - month_cost).quantize(ZERO)),
            'pending_orders': pending,
            'preparing_orders': preparing,
            'ready_orders': count(all_time, OrderStatus.READY),
            'in_progress': pending + preparing,
            'total_orders': sum(c for c, _ in all_time.values()),
            'total_revenue': all_time.get(OrderStatus.COMPLETED, (0, ZERO))[1],
            'total_menu_items': menu_items.count(),
        }

    def shop_summary(self, shop_id=None):
        """
        Month-over-month summary for the owner analytics page.

        Months are counted by completion time. Growth is rounded to whole
        percent; with no revenue last month it is 100 if there is revenue
        this month and 0 otherwise.

        Args:
            shop_id: Shop to aggregate, or None for every shop.

        Returns:
            dict: Summary with keys:
                - this_month_revenue (Decimal)
                - this_month_profit (int): Estimated, rounded
                - this_month_orders (int)
                - last_month_revenue (Decimal)
                - revenue_growth (int): Percent
                - unique_customers (int): Over all completed orders
                - avg_order_value (int): Over all completed orders, rounded
                - total_completed_orders (int)
                - profit_margin (int): Percent of this month's revenue
                - top_items (list): Up to 5 dicts with id, name, quantity,
                  revenue; highest revenue first
        """
        _, month, last_month = self._boundaries()
        completed = self._orders(shop_id).filter(status=OrderStatus.COMPLETED)

        this_month = completed.filter(completed_at__gte=month).aggregate(
            revenue=Coalesce(Sum('total'), Value(ZERO), output_field=MONEY),
            orders=Count('id'),
        )
        last_month_revenue = completed.filter(
            completed_at__gte=last_month,
            completed_at__lt=month,
        ).aggregate(
            revenue=Coalesce(Sum('total'), Value(ZERO), output_field=MONEY),
        )['revenue']
        overall = completed.aggregate(
            revenue=Coalesce(Sum('total'), Value(ZERO), output_field=MONEY),
            orders=Count('id'),
            customers=Count('user', distinct=True),
        )

        this_month_revenue = this_month['revenue']
        this_month_profit = self._estimated_profit(
            self._items(shop_id).filter(order__completed_at__gte=month)
        )

        if last_month_revenue > 0:
            growth = _round((this_month_revenue - last_month_revenue) / last_month_revenue * 100)
        else:
            growth = 100 if this_month_revenue > 0 else 0

        avg_order_value = _round(overall['revenue'] / overall['orders']) if overall['orders'] else 0
        profit_margin = _round(this_month_profit / this_month_revenue * 100) if this_month_revenue > 0 else 0

        return {
            'this_month_revenue': this_month_revenue,
            'this_month_profit': _round(this_month_profit),
            'this_month_orders': this_month['orders'],
            'last_month_revenue': last_month_revenue,
            'revenue_growth': growth,
            'unique_customers': overall['customers'],
            'avg_order_value': avg_order_value,
            'total_completed_orders': overall['orders'],
            'profit_margin': profit_margin,
            'top_items': self.top_items(shop_id),
        }

    def top_items(self, shop_id=None, limit=TOP_ITEMS_LIMIT):
        """
        Best selling items by revenue over all completed orders.

        Items are grouped by menu item; snapshots whose menu item was deleted
        are grouped by name.
        """
        rows = (
            self._items(shop_id)
            .values('menu_item_id', 'name')
            .annotate(quantity=Sum('quantity'), revenue=Sum('subtotal'))
            .order_by('-revenue', 'name')
        )
        merged = {}
        for row in rows:
            key = str(row['menu_item_id'] or row['name'])
            entry = merged.setdefault(key, {'id': key, 'name': row['name'], 'quantity': 0, 'revenue': ZERO})
            entry['quantity'] += row['quantity']
            entry['revenue'] += row['revenue']
        return sorted(merged.values(), key=lambda e: e['revenue'], reverse=True)[:limit]
