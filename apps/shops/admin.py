# ==========================================
# apps/shops/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import Shop, Category, MenuItem


class CategoryInline(admin.TabularInline):
    model = Category
    extra = 0
    fields = ['name', 'sort_order', 'is_active']


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'is_active', 'created_at']
    list_filter = ['category', 'is_active']
    search_fields = ['name']
    inlines = [CategoryInline]


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    """
    Catalog management for shop owners and admins.

    Price changes only affect new orders; existing orders keep the price
    snapshotted when they were placed.
    """

    list_display = [
        'name',
        'shop',
        'category',
        'price',
        'offer_badge',
        'is_available',
    ]
    list_filter = ['shop', 'is_available', 'is_offer', 'is_vegetarian']
    search_fields = ['name', 'shop__name']
    list_select_related = ['shop', 'category']

    fieldsets = (
        ('Item', {
            'fields': ('shop', 'category', 'name', 'description', 'image_url'),
        }),
        ('Pricing', {
            'fields': ('price', 'cost_price', 'is_available', 'is_vegetarian', 'preparation_time'),
        }),
        ('Offer', {
            'fields': ('is_offer', 'offer_price', 'offer_start', 'offer_end'),
            'classes': ('collapse',),
        }),
    )

    def offer_badge(self, obj):
        """Show the offer price while the offer is running."""
        if obj.is_offer_active:
            return format_html(
                '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">{}</span>',
                obj.offer_price,
            )
        return '-'
    offer_badge.short_description = 'Offer'
