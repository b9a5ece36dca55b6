"""
Ad-hoc payment requests.

A superadmin bills a group of students once (all students, a department, a
year, or an explicit list). Creating the request fans out into one pending
PaymentSubmission per targeted student in the same transaction. Each student
then pays from their wallet; paying debits the wallet, marks the submission
paid and bumps the request counters atomically.

Example:
    Bill every third-year student::

        request = dispatcher.create_request(
            admin, 'Industrial visit', 'Bus fare for the plant visit', Decimal('350'),
            TargetSelector(target_type='year', year=3),
        )
        dispatcher.pay(student, request.id)
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Sequence

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.accounts.capabilities import require_role
from apps.accounts.models import UserRole
from apps.common.exceptions import (
    AlreadyPaidError,
    InvalidTargetsError,
    NoEligibleTargetsError,
    NotEligibleError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    RequestInactiveError,
    ValidationFailedError,
)
from apps.common.pagination import paginate_queryset
from apps.common.retry import retry_on_conflict
from apps.payments.models import (
    PaymentRequest,
    PaymentSubmission,
    RequestStatus,
    SubmissionStatus,
    TargetType,
)
from apps.wallet.models import EntrySource, EntryType
from apps.wallet.services import to_amount

User = get_user_model()
logger = logging.getLogger(__name__)

SUBMISSION_BATCH_SIZE = 500
UPDATABLE_FIELDS = ('title', 'description', 'is_visible_on_dashboard', 'due_date')
LOCKED_AFTER_PAYMENT = ('title', 'description')


@dataclass(frozen=True)
class TargetSelector:
    """Which students a payment request bills."""

    target_type: str
    student_ids: Sequence = field(default_factory=tuple)
    department: Optional[str] = None
    year: Optional[int] = None

    def validate(self):
        if self.target_type not in TargetType.values:
            raise ValidationFailedError(f'Unknown target type: {self.target_type}')
        if self.target_type == TargetType.SELECTED and not self.student_ids:
            raise ValidationFailedError('Target students are required when target type is "selected".')
        if self.target_type == TargetType.DEPARTMENT and not self.department:
            raise ValidationFailedError('Target department is required when target type is "department".')
        if self.target_type == TargetType.YEAR and not self.year:
            raise ValidationFailedError('Target year is required when target type is "year".')


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class AdhocPaymentDispatcher:
    """
    Creates payment requests and collects payments against them.

    Args:
        ledger: WalletLedger used to debit students.
        clock: Callable returning the current aware datetime.
    """

    def __init__(self, ledger, clock=None):
        self.ledger = ledger
        self.clock = clock or timezone.now

    # =========================================================================
    # Superadmin
    # =========================================================================

    def resolve_targets(self, selector: TargetSelector):
        """
        Eligible (active, approved) students matched by the selector.

        Raises:
            InvalidTargetsError: An explicit id is unknown or not eligible.
            NoEligibleTargetsError: Nobody matches.
        """
        selector.validate()
        students = User.objects.eligible_students()

        if selector.target_type == TargetType.SELECTED:
            requested = {_as_uuid(student_id) for student_id in selector.student_ids}
            if None in requested:
                raise InvalidTargetsError()
            students = list(students.filter(pk__in=requested))
            if len(students) != len(requested):
                found = {s.pk for s in students}
                raise InvalidTargetsError(invalid_ids=sorted(str(pk) for pk in requested - found))
        elif selector.target_type == TargetType.DEPARTMENT:
            students = list(students.filter(department=selector.department))
        elif selector.target_type == TargetType.YEAR:
            students = list(students.filter(year=selector.year))
        else:
            students = list(students)

        if not students:
            raise NoEligibleTargetsError()
        return students

    @transaction.atomic
    def create_request(
        self,
        admin,
        title,
        description,
        amount,
        selector: TargetSelector,
        due_date=None,
        is_visible_on_dashboard=True,
    ) -> PaymentRequest:
        """
        Create a request and one pending submission per targeted student.

        Returns:
            The PaymentRequest with total_target_count set.

        Raises:
            PermissionDeniedError: Admin is not a superadmin.
            ValidationFailedError: Selector is incomplete.
            InvalidTargetsError: Explicit list contains ineligible students.
            NoEligibleTargetsError: The selector matched nobody.
        """
        require_role(admin, UserRole.SUPERADMIN)
        amount = to_amount(amount)
        students = self.resolve_targets(selector)
        now = self.clock()

        request = PaymentRequest.objects.create(
            title=title,
            description=description,
            amount=amount,
            target_type=selector.target_type,
            target_department=selector.department or '',
            target_year=selector.year,
            due_date=due_date,
            is_visible_on_dashboard=is_visible_on_dashboard,
            created_by=admin,
            total_target_count=len(students),
            created_at=now,
        )
        if selector.target_type == TargetType.SELECTED:
            request.target_students.set(students)

        PaymentSubmission.objects.bulk_create(
            [
                PaymentSubmission(
                    payment_request=request,
                    student=student,
                    status=SubmissionStatus.PENDING,
                    amount=request.amount,
                    created_at=now,
                )
                for student in students
            ],
            batch_size=SUBMISSION_BATCH_SIZE,
        )

        logger.info(
            'Payment request %s created by %s: target=%s students=%d amount=%s',
            request.pk, admin.pk, selector.target_type, len(students), amount,
        )
        return request

    def list_requests(self, status=None, page=None, limit=None):
        queryset = PaymentRequest.objects.select_related('created_by').order_by('-created_at')
        if status:
            queryset = queryset.filter(status=status)
        return paginate_queryset(queryset, page, limit)

    def get_request(self, request_id) -> PaymentRequest:
        try:
            return PaymentRequest.objects.select_related('created_by').get(pk=_as_uuid(request_id))
        except PaymentRequest.DoesNotExist:
            raise NotFoundError('Payment request not found.')

    @transaction.atomic
    def update_request(self, request_id, **changes) -> PaymentRequest:
        """
        Change title, description, due date or dashboard visibility.

        Title and description are frozen once anyone has paid.

        Raises:
            NotFoundError: Request does not exist.
            ValidationFailedError: Unknown field.
            PreconditionFailedError: Title/description change after payments.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationFailedError('Unknown fields: ' + ', '.join(sorted(unknown)))

        try:
            request = PaymentRequest.objects.select_for_update().get(pk=_as_uuid(request_id))
        except PaymentRequest.DoesNotExist:
            raise NotFoundError('Payment request not found.')

        if request.paid_count and any(changes.get(name) for name in LOCKED_AFTER_PAYMENT):
            raise PreconditionFailedError(
                'Cannot modify title or description after payments have been received.',
                reason='payments_exist',
            )

        for name, value in changes.items():
            setattr(request, name, value)
        request.save(update_fields=[*changes, 'updated_at'])

        logger.info('Payment request %s updated: %s', request.pk, sorted(changes))
        return request

    @transaction.atomic
    def close(self, request_id, status=RequestStatus.CLOSED) -> PaymentRequest:
        """
        Stop collecting on an active request.

        Raises:
            ValidationFailedError: status is not closed/cancelled.
            NotFoundError: Request does not exist.
            PreconditionFailedError: Request is not active.
        """
        if status not in (RequestStatus.CLOSED, RequestStatus.CANCELLED):
            raise ValidationFailedError('Status must be either "closed" or "cancelled".')

        try:
            request = PaymentRequest.objects.select_for_update().get(pk=_as_uuid(request_id))
        except PaymentRequest.DoesNotExist:
            raise NotFoundError('Payment request not found.')

        if not request.is_active:
            raise PreconditionFailedError('Payment request is not active.', current_status=request.status)

        request.status = status
        request.save(update_fields=['status', 'updated_at'])

        logger.info('Payment request %s %s', request.pk, status)
        return request

    def students_for_request(self, request_id, status='all', search=None, page=None, limit=None):
        """Targeted students with their submission status, by name."""
        request = self.get_request(request_id)
        queryset = (
            PaymentSubmission.objects
            .filter(payment_request=request)
            .select_related('student')
            .order_by('student__name')
        )
        if status and status != 'all':
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(student__name__icontains=search) |
                Q(student__email__icontains=search) |
                Q(student__roll_number__icontains=search)
            )
        return paginate_queryset(queryset, page, limit)

    def unpaid_students(self, request_id):
        """Active students who still owe on the request."""
        request = self.get_request(request_id)
        owing = (
            PaymentSubmission.objects
            .filter(payment_request=request)
            .exclude(status=SubmissionStatus.PAID)
            .values('student_id')
        )
        return list(User.objects.filter(is_active=True, pk__in=owing).order_by('name'))

    # =========================================================================
    # Student
    # =========================================================================

    def pending_for_student(self, student):
        """Unpaid submissions of active, visible requests, newest first."""
        return list(
            PaymentSubmission.objects
            .filter(
                student=student,
                status=SubmissionStatus.PENDING,
                payment_request__status=RequestStatus.ACTIVE,
                payment_request__is_visible_on_dashboard=True,
            )
            .select_related('payment_request')
            .order_by('-created_at')
        )

    def history_for_student(self, student, status='all', page=None, limit=None):
        queryset = (
            PaymentSubmission.objects
            .filter(student=student)
            .select_related('payment_request')
            .order_by('-created_at')
        )
        if status and status != 'all':
            queryset = queryset.filter(status=status)
        return paginate_queryset(queryset, page, limit)

    @retry_on_conflict
    @transaction.atomic
    def pay(self, student, request_id) -> dict:
        """
        Pay a request from the student's wallet.

        Returns:
            dict with 'transaction' (the LedgerEntry), 'new_balance' and
            'submission'.

        Raises:
            NotFoundError: Request does not exist.
            RequestInactiveError: Request was closed or cancelled.
            NotEligibleError: Student was not targeted.
            AlreadyPaidError: Student already paid this request.
            PermissionDeniedError: Student account is deactivated.
            InsufficientBalanceError: Wallet does not cover the amount.
        """
        try:
            request = PaymentRequest.objects.select_for_update().get(pk=_as_uuid(request_id))
        except PaymentRequest.DoesNotExist:
            raise NotFoundError('Payment request not found.')

        if not request.is_active:
            raise RequestInactiveError()

        submission = (
            PaymentSubmission.objects
            .select_for_update()
            .filter(payment_request=request, student_id=student.pk)
            .first()
        )
        if submission is None:
            raise NotEligibleError()
        if submission.status == SubmissionStatus.PAID:
            raise AlreadyPaidError('You have already paid this request.')
        if not student.is_active:
            raise PermissionDeniedError('Student account is deactivated.')

        entry = self.ledger.post_entry(
            student,
            EntryType.DEBIT,
            submission.amount,
            f'Payment for: {request.title}',
            actor=student,
            source=EntrySource.ADHOC_PAYMENT,
            metadata={
                'payment_request_id': str(request.pk),
                'payment_request_title': request.title,
            },
        )

        submission.status = SubmissionStatus.PAID
        submission.paid_at = entry.created_at
        submission.ledger_entry = entry
        submission.save(update_fields=['status', 'paid_at', 'ledger_entry', 'updated_at'])

        PaymentRequest.objects.filter(pk=request.pk).update(
            paid_count=F('paid_count') + 1,
            total_collected=F('total_collected') + submission.amount,
        )

        logger.info(
            'Ad-hoc payment of %s by %s for request %s, new balance %s',
            submission.amount, student.pk, request.pk, entry.balance_after,
        )
        return {
            'transaction': entry,
            'new_balance': entry.balance_after,
            'submission': submission,
        }
