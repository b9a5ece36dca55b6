import pytest
import uuid
from decimal import Decimal

from apps.common.exceptions import (
    AlreadyPaidError,
    InsufficientBalanceError,
    InvalidTargetsError,
    NoEligibleTargetsError,
    NotEligibleError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    RequestInactiveError,
    ValidationFailedError,
)
from apps.payments.models import PaymentRequest, PaymentSubmission, RequestStatus, SubmissionStatus
from apps.payments.services import TargetSelector
from apps.wallet.models import EntrySource, LedgerEntry


def _request(payments, admin, selector, amount='50.00', **kwargs):
    return payments.create_request(
        admin, 'Lab coat', 'Lab coat for the chemistry practicals', Decimal(amount), selector, **kwargs
    )


# =============================================================================
# Targeting
# =============================================================================

@pytest.mark.django_db
class TestResolveTargets:

    def test_year(self, payments, second_years, student):
        targets = payments.resolve_targets(TargetSelector(target_type='year', year=2))

        assert {s.pk for s in targets} == {s.pk for s in second_years}

    def test_department(self, payments, second_years, student):
        targets = payments.resolve_targets(TargetSelector(target_type='department', department='ECE'))

        assert [s.name for s in targets] == ['Chitra Das']

    def test_all_skips_staff_and_unapproved(self, payments, student, make_student, owner, superadmin):
        make_student(is_approved=False)
        make_student(is_active=False)

        targets = payments.resolve_targets(TargetSelector(target_type='all'))

        assert [s.pk for s in targets] == [student.pk]

    def test_selected(self, payments, student, other_student):
        targets = payments.resolve_targets(TargetSelector(target_type='selected', student_ids=[str(student.pk)]))

        assert [s.pk for s in targets] == [student.pk]

    def test_selected_with_unknown_id(self, payments, student):
        missing = uuid.uuid4()

        with pytest.raises(InvalidTargetsError) as exc_info:
            payments.resolve_targets(TargetSelector(target_type='selected', student_ids=[student.pk, missing]))

        assert exc_info.value.extra['invalid_ids'] == [str(missing)]

    def test_selected_with_staff(self, payments, student, owner):
        with pytest.raises(InvalidTargetsError):
            payments.resolve_targets(TargetSelector(target_type='selected', student_ids=[student.pk, owner.pk]))

    def test_selected_with_garbage_id(self, payments, student):
        with pytest.raises(InvalidTargetsError):
            payments.resolve_targets(TargetSelector(target_type='selected', student_ids=['not-a-uuid']))

    def test_nobody_matches(self, payments, student):
        with pytest.raises(NoEligibleTargetsError):
            payments.resolve_targets(TargetSelector(target_type='year', year=1))

    @pytest.mark.parametrize('selector', [
        TargetSelector(target_type='everyone'),
        TargetSelector(target_type='selected'),
        TargetSelector(target_type='department'),
        TargetSelector(target_type='year'),
    ])
    def test_incomplete_selector(self, payments, selector):
        with pytest.raises(ValidationFailedError):
            payments.resolve_targets(selector)


# =============================================================================
# Creating and managing requests
# =============================================================================

@pytest.mark.django_db
class TestCreateRequest:

    def test_fans_out_submissions(self, year_two_request, second_years, clock):
        assert year_two_request.total_target_count == 3
        assert year_two_request.paid_count == 0
        assert year_two_request.total_collected == Decimal('0.00')
        assert year_two_request.status == RequestStatus.ACTIVE
        assert year_two_request.created_at == clock.now

        submissions = PaymentSubmission.objects.filter(payment_request=year_two_request)
        assert submissions.count() == 3
        assert {s.status for s in submissions} == {SubmissionStatus.PENDING}
        assert {s.amount for s in submissions} == {Decimal('50.00')}

    def test_whole_year_in_batches(self, payments, superadmin, make_student, monkeypatch):
        monkeypatch.setattr('apps.payments.services.dispatcher.SUBMISSION_BATCH_SIZE', 50)
        payer = make_student(Decimal('100.00'), year=2)
        classmates = [make_student(year=2) for _ in range(119)]
        make_student(year=3)

        request = payments.create_request(
            superadmin,
            'Symposium fee',
            'Registration for the department symposium',
            Decimal('50.00'),
            TargetSelector(target_type='year', year=2),
        )

        assert request.total_target_count == 120
        assert request.paid_count == 0
        submissions = PaymentSubmission.objects.filter(payment_request=request)
        assert submissions.count() == 120
        assert set(submissions.values_list('student_id', flat=True)) == {
            s.pk for s in [payer, *classmates]
        }

        payments.pay(payer, request.pk)

        request.refresh_from_db()
        assert request.paid_count == 1
        assert request.pending_count == 119
        assert request.total_collected == Decimal('50.00')

        with pytest.raises(AlreadyPaidError):
            payments.pay(payer, request.pk)

    def test_selected_records_targets(self, payments, superadmin, student):
        request = _request(payments, superadmin, TargetSelector(target_type='selected', student_ids=[student.pk]))

        assert list(request.target_students.all()) == [student]

    def test_requires_superadmin(self, payments, accountant, student):
        with pytest.raises(PermissionDeniedError):
            _request(payments, accountant, TargetSelector(target_type='all'))

        assert not PaymentRequest.objects.exists()

    def test_nobody_targeted_creates_nothing(self, payments, superadmin, student):
        with pytest.raises(NoEligibleTargetsError):
            _request(payments, superadmin, TargetSelector(target_type='department', department='MECH'))

        assert not PaymentRequest.objects.exists()

    def test_invalid_amount(self, payments, superadmin, student):
        with pytest.raises(ValidationFailedError):
            _request(payments, superadmin, TargetSelector(target_type='all'), amount='-5')


@pytest.mark.django_db
class TestManageRequest:

    def test_get_unknown(self, payments):
        with pytest.raises(NotFoundError):
            payments.get_request(uuid.uuid4())

    def test_list_newest_first(self, payments, superadmin, student, clock):
        first = _request(payments, superadmin, TargetSelector(target_type='all'))
        clock.advance(hours=1)
        second = _request(payments, superadmin, TargetSelector(target_type='all'))

        page = payments.list_requests()

        assert [r.pk for r in page['results']] == [second.pk, first.pk]
        assert page['pagination']['total'] == 2

    def test_list_by_status(self, payments, year_two_request):
        payments.close(year_two_request.pk)

        assert payments.list_requests(status='active')['results'] == []
        assert payments.list_requests(status='closed')['pagination']['total'] == 1

    def test_update_before_payments(self, payments, year_two_request):
        updated = payments.update_request(year_two_request.pk, title='Symposium fee 2025')

        assert updated.title == 'Symposium fee 2025'

    def test_update_unknown_field(self, payments, year_two_request):
        with pytest.raises(ValidationFailedError):
            payments.update_request(year_two_request.pk, amount=Decimal('10'))

    def test_title_locked_after_payment(self, payments, year_two_request, second_years):
        payments.pay(second_years[0], year_two_request.pk)

        with pytest.raises(PreconditionFailedError) as exc_info:
            payments.update_request(year_two_request.pk, title='Something else')

        assert exc_info.value.extra['reason'] == 'payments_exist'

    def test_visibility_still_editable_after_payment(self, payments, year_two_request, second_years):
        payments.pay(second_years[0], year_two_request.pk)

        updated = payments.update_request(year_two_request.pk, is_visible_on_dashboard=False)

        assert updated.is_visible_on_dashboard is False

    def test_close(self, payments, year_two_request):
        closed = payments.close(year_two_request.pk, RequestStatus.CANCELLED)

        assert closed.status == RequestStatus.CANCELLED

    def test_close_twice(self, payments, year_two_request):
        payments.close(year_two_request.pk)

        with pytest.raises(PreconditionFailedError):
            payments.close(year_two_request.pk)

    def test_close_to_active_rejected(self, payments, year_two_request):
        with pytest.raises(ValidationFailedError):
            payments.close(year_two_request.pk, RequestStatus.ACTIVE)


# =============================================================================
# Paying
# =============================================================================

@pytest.mark.django_db
class TestPay:

    def test_pay_updates_counters(self, payments, year_two_request, second_years):
        payer = second_years[0]

        result = payments.pay(payer, year_two_request.pk)

        assert result['new_balance'] == Decimal('150.00')
        assert result['submission'].status == SubmissionStatus.PAID
        assert result['submission'].ledger_entry == result['transaction']

        request = PaymentRequest.objects.get(pk=year_two_request.pk)
        assert request.paid_count == 1
        assert request.pending_count == 2
        assert request.total_collected == Decimal('50.00')

    def test_pay_posts_adhoc_debit(self, payments, year_two_request, second_years):
        entry = payments.pay(second_years[0], year_two_request.pk)['transaction']

        assert entry.entry_type == 'debit'
        assert entry.source == EntrySource.ADHOC_PAYMENT
        assert entry.description == 'Payment for: Symposium fee'
        assert entry.metadata['payment_request_id'] == str(year_two_request.pk)

    def test_pay_twice(self, payments, year_two_request, second_years):
        payer = second_years[0]
        payments.pay(payer, year_two_request.pk)

        with pytest.raises(AlreadyPaidError):
            payments.pay(payer, year_two_request.pk)

        payer.refresh_from_db()
        assert payer.balance == Decimal('150.00')
        assert LedgerEntry.objects.filter(user=payer, source=EntrySource.ADHOC_PAYMENT).count() == 1
        assert PaymentRequest.objects.get(pk=year_two_request.pk).paid_count == 1

    def test_not_targeted(self, payments, year_two_request, student):
        with pytest.raises(NotEligibleError):
            payments.pay(student, year_two_request.pk)

    def test_closed_request(self, payments, year_two_request, second_years):
        payments.close(year_two_request.pk)

        with pytest.raises(RequestInactiveError):
            payments.pay(second_years[0], year_two_request.pk)

    def test_insufficient_balance(self, payments, year_two_request, second_years):
        broke = second_years[2]

        with pytest.raises(InsufficientBalanceError):
            payments.pay(broke, year_two_request.pk)

        submission = PaymentSubmission.objects.get(payment_request=year_two_request, student=broke)
        assert submission.status == SubmissionStatus.PENDING
        assert PaymentRequest.objects.get(pk=year_two_request.pk).paid_count == 0

    def test_deactivated_student(self, payments, year_two_request, second_years):
        payer = second_years[0]
        payer.is_active = False
        payer.save(update_fields=['is_active'])

        with pytest.raises(PermissionDeniedError):
            payments.pay(payer, year_two_request.pk)

    def test_unknown_request(self, payments, student):
        with pytest.raises(NotFoundError):
            payments.pay(student, uuid.uuid4())


# =============================================================================
# Listings
# =============================================================================

@pytest.mark.django_db
class TestListings:

    def test_students_for_request(self, payments, year_two_request, second_years):
        payments.pay(second_years[1], year_two_request.pk)

        everyone = payments.students_for_request(year_two_request.pk)
        paid = payments.students_for_request(year_two_request.pk, status='paid')
        found = payments.students_for_request(year_two_request.pk, search='chitra')

        assert [s.student.name for s in everyone['results']] == ['Anil Kumar', 'Bhavana Rao', 'Chitra Das']
        assert [s.student.name for s in paid['results']] == ['Bhavana Rao']
        assert [s.student.name for s in found['results']] == ['Chitra Das']

    def test_unpaid_students(self, payments, year_two_request, second_years):
        payments.pay(second_years[0], year_two_request.pk)
        second_years[1].is_active = False
        second_years[1].save(update_fields=['is_active'])

        unpaid = payments.unpaid_students(year_two_request.pk)

        assert [s.pk for s in unpaid] == [second_years[2].pk]

    def test_pending_for_student(self, payments, year_two_request, second_years):
        payer = second_years[0]

        assert [s.payment_request_id for s in payments.pending_for_student(payer)] == [year_two_request.pk]

        payments.pay(payer, year_two_request.pk)
        assert payments.pending_for_student(payer) == []

    def test_pending_hides_invisible_and_closed(self, payments, year_two_request, second_years):
        payments.update_request(year_two_request.pk, is_visible_on_dashboard=False)

        assert payments.pending_for_student(second_years[0]) == []

    def test_history(self, payments, superadmin, year_two_request, second_years, clock):
        payer = second_years[0]
        clock.advance(days=1)
        later = _request(payments, superadmin, TargetSelector(target_type='selected', student_ids=[payer.pk]))
        payments.pay(payer, year_two_request.pk)

        history = payments.history_for_student(payer)
        paid = payments.history_for_student(payer, status='paid')

        assert [s.payment_request_id for s in history['results']] == [later.pk, year_two_request.pk]
        assert [s.payment_request_id for s in paid['results']] == [year_two_request.pk]
