import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status
from apps.payments.models import PaymentRequest


def _url(name, payment_request=None):
    if payment_request is None:
        return reverse(f'payments:{name}')
    return reverse(f'payments:{name}', kwargs={'request_id': payment_request.pk})


# =============================================================================
# Superadmin
# =============================================================================

@pytest.mark.django_db
class TestCreateRequest:
    """Tests for POST /api/payments/requests/"""

    def test_create_for_year(self, superadmin_client, second_years, student):
        response = superadmin_client.post(_url('requests'), {
            'title': 'Symposium fee',
            'description': 'Registration for the department symposium',
            'amount': '50.00',
            'target_type': 'year',
            'target_year': 2,
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['total_target_count'] == 3
        assert response.data['paid_count'] == 0
        assert response.data['pending_count'] == 3
        assert response.data['created_by_name'] == 'Admin'

    def test_create_selected(self, superadmin_client, student, other_student):
        response = superadmin_client.post(_url('requests'), {
            'title': 'Library fine',
            'description': 'Overdue books returned late',
            'amount': '25.00',
            'target_type': 'selected',
            'target_students': [str(student.pk)],
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['total_target_count'] == 1

    def test_selected_without_students(self, superadmin_client, student):
        response = superadmin_client.post(_url('requests'), {
            'title': 'Library fine',
            'description': 'Overdue books returned late',
            'amount': '25.00',
            'target_type': 'selected',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'target_students' in response.data['error']['details']

    def test_no_students_match(self, superadmin_client, student):
        response = superadmin_client.post(_url('requests'), {
            'title': 'Workshop',
            'description': 'Hands-on workshop for first years',
            'amount': '100.00',
            'target_type': 'year',
            'target_year': 1,
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'no_target_students'
        assert not PaymentRequest.objects.exists()

    def test_requires_superadmin(self, client_for, accountant, student):
        response = client_for(accountant).post(_url('requests'), {
            'title': 'Symposium fee',
            'description': 'Registration for the department symposium',
            'amount': '50.00',
            'target_type': 'all',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestManageRequest:

    def test_list(self, superadmin_client, year_two_request):
        response = superadmin_client.get(_url('requests'), {'status': 'active'})

        assert response.status_code == status.HTTP_200_OK
        assert [r['id'] for r in response.data['requests']] == [str(year_two_request.pk)]
        assert response.data['pagination']['total'] == 1

    def test_detail(self, superadmin_client, year_two_request):
        response = superadmin_client.get(_url('request-detail', year_two_request))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['title'] == 'Symposium fee'

    def test_patch_locked_after_payment(self, superadmin_client, payments, year_two_request, second_years):
        payments.pay(second_years[0], year_two_request.pk)

        response = superadmin_client.patch(
            _url('request-detail', year_two_request),
            {'title': 'Renamed fee'},
            format='json',
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['details']['reason'] == 'payments_exist'

    def test_close(self, superadmin_client, year_two_request):
        response = superadmin_client.post(_url('request-close', year_two_request), {'status': 'closed'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'closed'

    def test_close_with_active_status_rejected(self, superadmin_client, year_two_request):
        response = superadmin_client.post(_url('request-close', year_two_request), {'status': 'active'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_students(self, superadmin_client, payments, year_two_request, second_years):
        payments.pay(second_years[0], year_two_request.pk)

        response = superadmin_client.get(_url('request-students', year_two_request), {'status': 'pending'})

        assert response.status_code == status.HTTP_200_OK
        assert [s['name'] for s in response.data['students']] == ['Bhavana Rao', 'Chitra Das']

    def test_unpaid(self, superadmin_client, year_two_request, second_years):
        response = superadmin_client.get(_url('request-unpaid', year_two_request))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 3


# =============================================================================
# Student
# =============================================================================

@pytest.mark.django_db
class TestStudentPayments:

    def test_pending(self, client_for, year_two_request, second_years):
        response = client_for(second_years[0]).get(_url('pending'))

        assert response.status_code == status.HTTP_200_OK
        assert [p['id'] for p in response.data] == [str(year_two_request.pk)]
        assert response.data[0]['amount'] == '50.00'

    def test_pay(self, client_for, year_two_request, second_years):
        payer = second_years[0]

        response = client_for(payer).post(_url('request-pay', year_two_request))

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['new_balance'] == '150.00'
        assert response.data['transaction']['type'] == 'debit'
        assert response.data['transaction']['source'] == 'adhoc_payment'

        request = PaymentRequest.objects.get(pk=year_two_request.pk)
        assert request.paid_count == 1
        assert request.total_collected == Decimal('50.00')

    def test_pay_twice(self, client_for, year_two_request, second_years):
        client = client_for(second_years[0])
        client.post(_url('request-pay', year_two_request))

        response = client.post(_url('request-pay', year_two_request))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'already_paid'

    def test_pay_not_targeted(self, student_client, year_two_request):
        response = student_client.post(_url('request-pay', year_two_request))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'not_eligible'

    def test_pay_insufficient_balance(self, client_for, year_two_request, second_years):
        response = client_for(second_years[2]).post(_url('request-pay', year_two_request))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'insufficient_balance'

    def test_staff_cannot_pay(self, superadmin_client, year_two_request):
        response = superadmin_client.post(_url('request-pay', year_two_request))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_history(self, client_for, year_two_request, second_years):
        client = client_for(second_years[0])
        client.post(_url('request-pay', year_two_request))

        response = client.get(_url('history'), {'status': 'paid'})

        assert response.status_code == status.HTTP_200_OK
        assert [p['title'] for p in response.data['payments']] == ['Symposium fee']
        assert response.data['payments'][0]['status'] == 'paid'
