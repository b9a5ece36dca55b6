from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
import uuid

from apps.accounts.models import Department


class TargetType(models.TextChoices):
    ALL = 'all', 'All students'
    SELECTED = 'selected', 'Selected students'
    DEPARTMENT = 'department', 'Department'
    YEAR = 'year', 'Year'


class RequestStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    CLOSED = 'closed', 'Closed'
    CANCELLED = 'cancelled', 'Cancelled'


class SubmissionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    FAILED = 'failed', 'Failed'
    REFUNDED = 'refunded', 'Refunded'


class PaymentRequest(models.Model):
    """
    A one-off charge billed to a group of students (event fee, fine, ...).

    Students pay from their wallet. paid_count and total_collected are
    denormalised counters maintained by the dispatcher when a submission is
    paid; they always match the paid submissions.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)
    description = models.CharField(max_length=500)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('1')), MaxValueValidator(Decimal('100000'))],
    )

    target_type = models.CharField(max_length=12, choices=TargetType.choices)
    target_students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='targeted_payment_requests',
    )
    target_department = models.CharField(max_length=10, choices=Department.choices, blank=True)
    target_year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(4)],
    )
    due_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=10, choices=RequestStatus.choices, default=RequestStatus.ACTIVE)
    is_visible_on_dashboard = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_payment_requests',
    )

    # Denormalised stats
    total_target_count = models.PositiveIntegerField(default=0)
    paid_count = models.PositiveIntegerField(default=0)
    total_collected = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_requests'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_visible_on_dashboard'], name='payreq_status_visible_idx'),
            models.Index(fields=['created_by', 'created_at'], name='payreq_creator_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.amount})"

    @property
    def is_active(self):
        return self.status == RequestStatus.ACTIVE

    @property
    def pending_count(self):
        return self.total_target_count - self.paid_count


class PaymentSubmission(models.Model):
    """One student's obligation under a payment request."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment_request = models.ForeignKey(
        PaymentRequest,
        on_delete=models.CASCADE,
        related_name='submissions',
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payment_submissions',
    )
    status = models.CharField(max_length=10, choices=SubmissionStatus.choices, default=SubmissionStatus.PENDING)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    ledger_entry = models.ForeignKey(
        'wallet.LedgerEntry',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_submissions',
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_submissions'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['payment_request', 'student'],
                name='unique_submission_per_student',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'status'], name='paysub_student_status_idx'),
            models.Index(fields=['payment_request', 'status'], name='paysub_request_status_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.payment_request.title} ({self.status})"
