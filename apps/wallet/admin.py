# ==========================================
# apps/wallet/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import LedgerEntry, LedgerPartition, EntryType


@admin.register(LedgerPartition)
class LedgerPartitionAdmin(admin.ModelAdmin):
    list_display = ['name', 'year', 'month', 'created_at']
    ordering = ['-year', '-month']

    def has_add_permission(self, request):
        """Partitions are registered by the ledger on first posting."""
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """
    Read-only view of the wallet ledger.

    Entries are immutable; corrections are posted as adjustment entries
    through the ledger service.
    """

    list_display = [
        'created_at',
        'user',
        'type_badge',
        'amount',
        'balance_before',
        'balance_after',
        'source',
        'partition',
    ]
    list_filter = ['entry_type', 'source', 'status', 'partition']
    search_fields = ['user__email', 'user__roll_number', 'description', 'order__order_number']
    list_select_related = ['user', 'order']
    date_hierarchy = 'created_at'

    def type_badge(self, obj):
        """Display entry type as colored badge."""
        colors = {
            EntryType.CREDIT: ('#6B8E5E', 'white'),
            EntryType.DEBIT: ('#B85C5C', 'white'),
            EntryType.REFUND: ('#A47449', 'white'),
        }
        bg, fg = colors.get(obj.entry_type, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_entry_type_display()
        )
    type_badge.short_description = 'Type'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
