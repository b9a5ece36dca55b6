from rest_framework import serializers
from decimal import Decimal

from .models import LedgerEntry, EntrySource, EntryType, EntryStatus


# =============================================================================
# Input Serializers
# =============================================================================

class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction history.

    Query Parameters:
        type (str): credit / debit / refund
        source (str): Entry source
        start_date (date): From this date (inclusive)
        end_date (date): Up to this date (inclusive)
        page (int): Page number
        limit (int): Page size
    """

    type = serializers.ChoiceField(choices=EntryType.choices, required=False)
    source = serializers.ChoiceField(choices=EntrySource.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)

    def validate(self, attrs):
        """Validate date range."""
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')

        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'end_date': 'End date must be after start date'
            })

        return attrs


class AccountantTransactionFilterSerializer(TransactionFilterSerializer):
    user_id = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=EntryStatus.choices, required=False)


class CreditInputSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('1'))
    source = serializers.ChoiceField(choices=[
        EntrySource.CASH_DEPOSIT,
        EntrySource.ONLINE_PAYMENT,
    ])
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class DebitInputSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('1'))
    description = serializers.CharField(max_length=255)


# =============================================================================
# Output Serializers
# =============================================================================

class LedgerEntrySerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='entry_type')
    order_number = serializers.CharField(source='order.order_number', default=None)
    processed_by = serializers.CharField(source='processed_by.get_display_name', default=None)

    class Meta:
        model = LedgerEntry
        fields = [
            'id',
            'type',
            'amount',
            'balance_before',
            'balance_after',
            'source',
            'status',
            'description',
            'order',
            'order_number',
            'processed_by',
            'partition',
            'metadata',
            'created_at',
        ]
        read_only_fields = fields


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    has_next_page = serializers.BooleanField()
    has_prev_page = serializers.BooleanField()


class TransactionPageSerializer(serializers.Serializer):
    transactions = LedgerEntrySerializer(many=True, source='results')
    pagination = PaginationSerializer()


class BalanceSerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()


class PostingResultSerializer(serializers.Serializer):
    transaction = LedgerEntrySerializer()
    new_balance = serializers.DecimalField(max_digits=10, decimal_places=2)


class ReconciliationSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    cached_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    replayed_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    drift = serializers.DecimalField(max_digits=12, decimal_places=2)
    consistent = serializers.BooleanField()
