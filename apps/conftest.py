"""
Fixtures shared by every app's tests.

Services are built per test with a FakeClock so that partitions, order
numbers and analytics boundaries are deterministic. App-specific fixtures
live in each app's tests/conftest.py.
"""
import pytest
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole
from apps.analytics.analytics import ShopAnalyticsAggregator
from apps.orders.services import OrderLifecycleManager, PickupVerifier
from apps.orders.signals import OrderEventPublisher
from apps.payments.services import AdhocPaymentDispatcher
from apps.shops.models import Category, MenuItem, Shop, ShopCategory
from apps.wallet.services import PartitionRegistry, WalletLedger


class FakeClock:
    """Callable clock the services read instead of timezone.now."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, *args):
        self.now = datetime(*args, tzinfo=dt_timezone.utc)
        return self.now


# =============================================================================
# Clients
# =============================================================================

@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for():
    """Return a factory building an API client authenticated with a JWT."""
    def make(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client
    return make


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def clock():
    """Mid-March 2025, well away from any month boundary."""
    return FakeClock(datetime(2025, 3, 14, 6, 30, tzinfo=dt_timezone.utc))


@pytest.fixture
def partitions():
    return PartitionRegistry(prefix='transactions', epoch='2024-01')


@pytest.fixture
def ledger(partitions, clock):
    return WalletLedger(registry=partitions, clock=clock)


@pytest.fixture
def pickup(clock):
    return PickupVerifier(clock=clock)


@pytest.fixture
def publisher():
    return OrderEventPublisher()


@pytest.fixture
def orders(ledger, pickup, publisher, clock):
    return OrderLifecycleManager(ledger=ledger, pickup=pickup, publisher=publisher, clock=clock)


@pytest.fixture
def payments(ledger, clock):
    return AdhocPaymentDispatcher(ledger=ledger, clock=clock)


@pytest.fixture
def analytics(clock):
    return ShopAnalyticsAggregator(clock=clock)


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def make_student(db, ledger):
    """
    Factory for approved students.

    A starting balance is posted as a cash deposit so the cached balance
    always matches the ledger.
    """
    counter = {'n': 0}

    def make(balance=Decimal('0'), **fields):
        counter['n'] += 1
        n = counter['n']
        defaults = {
            'email': f'student{n}@example.com',
            'name': f'Student {n}',
            'roll_number': f'21CSE{n:03d}',
            'department': 'CSE',
            'year': 3,
            'role': UserRole.STUDENT,
            'is_approved': True,
        }
        defaults.update(fields)
        user = User.objects.create_user(password='TestPass123!', **defaults)
        if Decimal(balance) > 0:
            ledger.post_entry(user, 'credit', balance, 'Opening balance', source='cash_deposit')
        return user
    return make


@pytest.fixture
def student(make_student):
    """Approved student with 500.00 in the wallet."""
    return make_student(Decimal('500.00'), email='student@example.com', name='Test Student')


@pytest.fixture
def other_student(make_student):
    return make_student(Decimal('500.00'), email='other@example.com', name='Other Student')


@pytest.fixture
def make_staff(db):
    def make(email, role, shop=None, **fields):
        return User.objects.create_user(
            email=email,
            password='TestPass123!',
            name=email.split('@')[0].title(),
            role=role,
            shop=shop,
            is_approved=True,
            **fields,
        )
    return make


@pytest.fixture
def owner(make_staff, canteen):
    return make_staff('owner@example.com', UserRole.OWNER, canteen)


@pytest.fixture
def captain(make_staff, canteen):
    return make_staff('captain@example.com', UserRole.CAPTAIN, canteen)


@pytest.fixture
def other_owner(make_staff, other_canteen):
    return make_staff('other.owner@example.com', UserRole.OWNER, other_canteen)


@pytest.fixture
def accountant(make_staff):
    return make_staff('accounts@example.com', UserRole.ACCOUNTANT)


@pytest.fixture
def superadmin(db):
    return User.objects.create_superuser(email='admin@example.com', password='TestPass123!', name='Admin')


# =============================================================================
# Shops and menu
# =============================================================================

@pytest.fixture
def canteen(db):
    return Shop.objects.create(name='Main Canteen', category=ShopCategory.CANTEEN)


@pytest.fixture
def other_canteen(db):
    return Shop.objects.create(name='Juice Corner', category=ShopCategory.CANTEEN)


@pytest.fixture
def laundry_shop(db):
    return Shop.objects.create(name='Campus Laundry', category=ShopCategory.LAUNDRY)


@pytest.fixture
def xerox_shop(db):
    return Shop.objects.create(name='Print Hub', category=ShopCategory.XEROX)


@pytest.fixture
def snacks(canteen):
    return Category.objects.create(shop=canteen, name='Snacks')


@pytest.fixture
def dosa(canteen, snacks):
    return MenuItem.objects.create(shop=canteen, category=snacks, name='Masala Dosa', price=Decimal('40.00'))


@pytest.fixture
def coffee(canteen):
    return MenuItem.objects.create(shop=canteen, name='Filter Coffee', price=Decimal('15.00'))


@pytest.fixture
def samosa_on_offer(canteen, snacks, clock):
    """Samosa listed at 20.00, on offer for 15.00 around the fixed clock."""
    return MenuItem.objects.create(
        shop=canteen,
        category=snacks,
        name='Samosa',
        price=Decimal('20.00'),
        is_offer=True,
        offer_price=Decimal('15.00'),
        offer_start=clock.now - timedelta(days=1),
        offer_end=clock.now + timedelta(days=1),
    )


@pytest.fixture
def sold_out(canteen):
    return MenuItem.objects.create(shop=canteen, name='Biryani', price=Decimal('90.00'), is_available=False)


@pytest.fixture
def juice(other_canteen):
    return MenuItem.objects.create(shop=other_canteen, name='Orange Juice', price=Decimal('30.00'))
