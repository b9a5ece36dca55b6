from rest_framework import serializers
from decimal import Decimal

from apps.accounts.models import Department
from apps.wallet.serializers import LedgerEntrySerializer, PaginationSerializer
from .models import PaymentRequest, PaymentSubmission, RequestStatus, TargetType


# =============================================================================
# Input Serializers
# =============================================================================

class CreatePaymentRequestSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=3, max_length=100)
    description = serializers.CharField(min_length=10, max_length=500)
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('1'),
        max_value=Decimal('100000'),
    )
    target_type = serializers.ChoiceField(choices=TargetType.choices)
    target_students = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    target_department = serializers.ChoiceField(choices=Department.choices, required=False)
    target_year = serializers.IntegerField(min_value=1, max_value=4, required=False)
    due_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    is_visible_on_dashboard = serializers.BooleanField(default=True)

    def validate(self, attrs):
        """Each target type needs its own selector field."""
        target_type = attrs['target_type']
        if target_type == TargetType.SELECTED and not attrs.get('target_students'):
            raise serializers.ValidationError({
                'target_students': 'Target students are required when target type is "selected"'
            })
        if target_type == TargetType.DEPARTMENT and not attrs.get('target_department'):
            raise serializers.ValidationError({
                'target_department': 'Target department is required when target type is "department"'
            })
        if target_type == TargetType.YEAR and not attrs.get('target_year'):
            raise serializers.ValidationError({
                'target_year': 'Target year is required when target type is "year"'
            })
        return attrs


class UpdatePaymentRequestSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=3, max_length=100, required=False)
    description = serializers.CharField(min_length=10, max_length=500, required=False)
    is_visible_on_dashboard = serializers.BooleanField(required=False)
    due_date = serializers.DateTimeField(required=False, allow_null=True)


class ClosePaymentRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[RequestStatus.CLOSED, RequestStatus.CANCELLED])


class PaymentRequestFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RequestStatus.choices, required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)


class StudentPaymentFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['paid', 'pending', 'all'], default='all')
    search = serializers.CharField(required=False, allow_blank=True)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)


class HistoryFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['paid', 'pending', 'all'], default='all')
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=50, required=False, default=20)


# =============================================================================
# Output Serializers
# =============================================================================

class PaymentRequestSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.name', read_only=True)
    pending_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = PaymentRequest
        fields = [
            'id',
            'title',
            'description',
            'amount',
            'target_type',
            'target_department',
            'target_year',
            'due_date',
            'status',
            'is_visible_on_dashboard',
            'created_by',
            'created_by_name',
            'total_target_count',
            'paid_count',
            'pending_count',
            'total_collected',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PaymentRequestPageSerializer(serializers.Serializer):
    requests = PaymentRequestSerializer(many=True, source='results')
    pagination = PaginationSerializer()


class StudentPaymentStatusSerializer(serializers.ModelSerializer):
    """A submission flattened into the student it belongs to."""

    id = serializers.UUIDField(source='student.id', read_only=True)
    name = serializers.CharField(source='student.name', read_only=True)
    email = serializers.EmailField(source='student.email', read_only=True)
    roll_number = serializers.CharField(source='student.roll_number', read_only=True, default=None)
    department = serializers.CharField(source='student.department', read_only=True)
    year = serializers.IntegerField(source='student.year', read_only=True, default=None)

    class Meta:
        model = PaymentSubmission
        fields = ['id', 'name', 'email', 'roll_number', 'department', 'year', 'status', 'paid_at', 'amount']
        read_only_fields = fields


class StudentPaymentPageSerializer(serializers.Serializer):
    students = StudentPaymentStatusSerializer(many=True, source='results')
    pagination = PaginationSerializer()


class PendingPaymentSerializer(serializers.ModelSerializer):
    """Pending submission as shown on the student dashboard (keyed by request)."""

    id = serializers.UUIDField(source='payment_request.id', read_only=True)
    title = serializers.CharField(source='payment_request.title', read_only=True)
    description = serializers.CharField(source='payment_request.description', read_only=True)
    due_date = serializers.DateTimeField(source='payment_request.due_date', read_only=True)
    request_created_at = serializers.DateTimeField(source='payment_request.created_at', read_only=True)

    class Meta:
        model = PaymentSubmission
        fields = ['id', 'title', 'description', 'amount', 'due_date', 'status', 'request_created_at']
        read_only_fields = fields


class PaymentHistorySerializer(serializers.ModelSerializer):
    payment_request = serializers.UUIDField(source='payment_request.id', read_only=True)
    title = serializers.CharField(source='payment_request.title', read_only=True)
    description = serializers.CharField(source='payment_request.description', read_only=True)

    class Meta:
        model = PaymentSubmission
        fields = ['id', 'payment_request', 'title', 'description', 'amount', 'status', 'paid_at', 'created_at']
        read_only_fields = fields


class PaymentHistoryPageSerializer(serializers.Serializer):
    payments = PaymentHistorySerializer(many=True, source='results')
    pagination = PaginationSerializer()


class PaymentResultSerializer(serializers.Serializer):
    transaction = LedgerEntrySerializer()
    new_balance = serializers.DecimalField(max_digits=10, decimal_places=2)


class UnpaidStudentSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    roll_number = serializers.CharField(allow_null=True)
