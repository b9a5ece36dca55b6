import pytest
from datetime import timedelta
from decimal import Decimal

from apps.shops.models import MenuItem


@pytest.mark.django_db
class TestOfferWindow:

    def test_active_inside_window(self, samosa_on_offer, clock):
        assert samosa_on_offer.offer_active_at(clock.now) is True
        assert samosa_on_offer.price_at(clock.now) == Decimal('15.00')

    def test_window_edges_are_inclusive(self, samosa_on_offer):
        assert samosa_on_offer.offer_active_at(samosa_on_offer.offer_start) is True
        assert samosa_on_offer.offer_active_at(samosa_on_offer.offer_end) is True

    @pytest.mark.parametrize('shift', [timedelta(days=-2), timedelta(days=2)])
    def test_list_price_outside_window(self, samosa_on_offer, clock, shift):
        at = clock.now + shift

        assert samosa_on_offer.offer_active_at(at) is False
        assert samosa_on_offer.price_at(at) == Decimal('20.00')

    def test_open_ended_offer(self, canteen, clock):
        item = MenuItem.objects.create(
            shop=canteen, name='Vada Pav', price=Decimal('18.00'),
            is_offer=True, offer_price=Decimal('12.00'),
        )

        assert item.price_at(clock.now - timedelta(days=365)) == Decimal('12.00')
        assert item.price_at(clock.now + timedelta(days=365)) == Decimal('12.00')

    def test_flag_without_offer_price(self, canteen, clock):
        item = MenuItem.objects.create(shop=canteen, name='Lassi', price=Decimal('25.00'), is_offer=True)

        assert item.offer_active_at(clock.now) is False
        assert item.price_at(clock.now) == Decimal('25.00')

    def test_no_offer(self, dosa, clock):
        assert dosa.offer_active_at(clock.now) is False
        assert dosa.price_at(clock.now) == Decimal('40.00')


@pytest.mark.django_db
class TestMenuItemQuerySet:

    def test_available_hides_sold_out(self, dosa, coffee, sold_out):
        names = set(MenuItem.objects.available().values_list('name', flat=True))

        assert names == {'Masala Dosa', 'Filter Coffee'}

    def test_active_offers_at(self, samosa_on_offer, dosa, clock):
        assert list(MenuItem.objects.active_offers(at=clock.now)) == [samosa_on_offer]
        assert not MenuItem.objects.active_offers(at=clock.now + timedelta(days=2)).exists()
