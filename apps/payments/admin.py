# ==========================================
# apps/payments/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import PaymentRequest, PaymentSubmission, SubmissionStatus


class PaymentSubmissionInline(admin.TabularInline):
    """Inline admin for submissions within a payment request."""
    model = PaymentSubmission
    extra = 0
    fields = ['student', 'amount', 'status_badge', 'paid_at']
    readonly_fields = fields

    def status_badge(self, obj):
        """Display submission status as colored badge."""
        colors = {
            SubmissionStatus.PENDING: ('#E5C49A', '#2C1810'),
            SubmissionStatus.PAID: ('#6B8E5E', 'white'),
            SubmissionStatus.FAILED: ('#B85C5C', 'white'),
            SubmissionStatus.REFUNDED: ('#A47449', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request, obj=None):
        """Submissions are created by the dispatcher."""
        return False


@admin.register(PaymentRequest)
class PaymentRequestAdmin(admin.ModelAdmin):
    list_display = [
        'title',
        'amount',
        'target_type',
        'status',
        'paid_count',
        'total_target_count',
        'total_collected',
        'created_at',
    ]
    list_filter = ['status', 'target_type', 'is_visible_on_dashboard']
    search_fields = ['title', 'description']
    readonly_fields = ['total_target_count', 'paid_count', 'total_collected', 'created_by', 'created_at']
    filter_horizontal = ['target_students']
    inlines = [PaymentSubmissionInline]

    def has_add_permission(self, request):
        """Requests must be created through the API so submissions exist."""
        return False
