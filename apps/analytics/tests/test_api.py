import pytest
from django.urls import reverse
from rest_framework import status


@pytest.mark.django_db
class TestShopStatsApi:
    """Tests for GET /api/analytics/shop/stats/"""

    def test_owner_sees_own_shop(self, owner_client, sales):
        response = owner_client.get(reverse('analytics:shop-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 5
        assert response.data['total_revenue'] == '165.00'
        assert response.data['pending_orders'] == 1

    def test_owner_cannot_pick_another_shop(self, other_owner_client, sales, canteen):
        response = other_owner_client.get(reverse('analytics:shop-stats'), {'shop_id': str(canteen.id)})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 0

    def test_captain_allowed(self, client_for, captain, sales):
        response = client_for(captain).get(reverse('analytics:shop-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 5

    def test_superadmin_all_shops(self, superadmin_client, sales):
        response = superadmin_client.get(reverse('analytics:shop-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_orders'] == 5

    def test_superadmin_picks_shop(self, superadmin_client, sales, other_canteen):
        response = superadmin_client.get(reverse('analytics:shop-stats'), {'shop_id': str(other_canteen.id)})

        assert response.data['total_orders'] == 0

    def test_superadmin_bad_shop_id(self, superadmin_client, db):
        response = superadmin_client.get(reverse('analytics:shop-stats'), {'shop_id': 'canteen'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_student_forbidden(self, client_for, student):
        response = client_for(student).get(reverse('analytics:shop-stats'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'permission_denied'

    def test_anonymous(self, api_client):
        response = api_client.get(reverse('analytics:shop-stats'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestShopSummaryApi:
    """Tests for GET /api/analytics/shop/summary/"""

    def test_summary(self, owner_client, sales):
        response = owner_client.get(reverse('analytics:shop-summary'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_completed_orders'] == 3
        assert response.data['unique_customers'] == 2
        assert [item['name'] for item in response.data['top_items']] == ['Masala Dosa', 'Samosa', 'Filter Coffee']
        assert response.data['top_items'][0]['revenue'] == '120.00'
