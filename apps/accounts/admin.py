# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for campus users.

    The wallet balance is read-only here: it may only change through a
    ledger posting, never by editing the user row.
    """

    list_display = [
        'email',
        'name',
        'role',
        'roll_number',
        'department',
        'year',
        'balance',
        'is_approved_badge',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_approved',
        'department',
        'year',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
        'roll_number',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'name', 'password', 'role')
        }),
        ('Student Profile', {
            'fields': ('roll_number', 'department', 'year'),
        }),
        ('Shop Staff', {
            'fields': ('shop',),
        }),
        ('Wallet', {
            'fields': ('balance',),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_approved', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'name', 'role', 'password1', 'password2'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_approved', 'is_staff', 'is_superuser'),
        }),
    )

    readonly_fields = [
        'balance',
        'created_at',
        'updated_at',
        'last_login',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    def is_approved_badge(self, obj):
        """Display approval status as colored badge."""
        if obj.is_approved:
            return format_html(
                '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
                'border-radius: 10px; font-size: 11px;">Approved</span>'
            )
        return format_html(
            '<span style="background: #E5C49A; color: #2C1810; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">Pending</span>'
        )
    is_approved_badge.short_description = 'Approval'
    is_approved_badge.admin_order_field = 'is_approved'

    actions = ['activate_users', 'deactivate_users']

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'Activated {count} user(s).')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        """Deactivate selected users (excludes superusers for safety)."""
        safe_queryset = queryset.filter(is_superuser=False)
        count = safe_queryset.update(is_active=False)
        skipped = queryset.count() - count
        msg = f'Deactivated {count} user(s).'
        if skipped:
            msg += f' Skipped {skipped} superuser(s) for safety.'
        self.message_user(request, msg)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('shop')
