from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from decimal import Decimal

from .models import User, Department


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'role',
            'roll_number',
            'department',
            'year',
            'balance',
            'is_approved',
            'shop',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class StudentRegistrationSerializer(serializers.Serializer):
    """Serializer for student self-registration."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )
    name = serializers.CharField(max_length=100)
    roll_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    department = serializers.ChoiceField(choices=Department.choices, required=False, allow_blank=True)
    year = serializers.IntegerField(min_value=1, max_value=4, required=False)

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class ApproveUserSerializer(serializers.Serializer):
    initial_balance = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        default=Decimal('0'),
    )


class UserPublicSerializer(serializers.ModelSerializer):
    """Student info shown to shop staff and accountants."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'roll_number', 'department', 'year']
        read_only_fields = fields
