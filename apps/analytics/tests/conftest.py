import pytest
from decimal import Decimal


def _complete(orders, order, owner):
    for status in ('preparing', 'ready'):
        orders.update_status(order.id, status, owner)
    return orders.complete(order.id, owner)


@pytest.fixture
def sales(orders, clock, owner, student, other_student, canteen, dosa, coffee, samosa_on_offer):
    """
    A small sales history for the canteen, seen from 2025-03-14.

    February: one dosa (40.00), completed.
    Early March: two dosas and a coffee (95.00), completed.
    Today: two samosas on offer (30.00) completed, a coffee pending and a
    dosa being prepared.
    """
    now = clock.now

    clock.set(2025, 2, 10, 6, 30)
    february = orders.create_order(
        actor=student, shop_id=canteen.id, items=[{'menu_item_id': dosa.id, 'quantity': 1}],
    )
    _complete(orders, february, owner)

    clock.set(2025, 3, 5, 6, 30)
    early_march = orders.create_order(
        actor=student,
        shop_id=canteen.id,
        items=[{'menu_item_id': dosa.id, 'quantity': 2}, {'menu_item_id': coffee.id, 'quantity': 1}],
    )
    _complete(orders, early_march, owner)

    clock.now = now
    samosas = orders.create_order(
        actor=other_student, shop_id=canteen.id, items=[{'menu_item_id': samosa_on_offer.id, 'quantity': 2}],
    )
    _complete(orders, samosas, owner)
    pending = orders.create_order(
        actor=student, shop_id=canteen.id, items=[{'menu_item_id': coffee.id, 'quantity': 1}],
    )
    preparing = orders.create_order(
        actor=other_student, shop_id=canteen.id, items=[{'menu_item_id': dosa.id, 'quantity': 1}],
    )
    orders.update_status(preparing.id, 'preparing', owner)

    return {
        'february': february,
        'early_march': early_march,
        'samosas': samosas,
        'pending': pending,
        'preparing': preparing,
        'revenue': Decimal('165.00'),
    }


@pytest.fixture
def owner_client(client_for, owner):
    return client_for(owner)


@pytest.fixture
def other_owner_client(client_for, other_owner):
    return client_for(other_owner)


@pytest.fixture
def superadmin_client(client_for, superadmin):
    return client_for(superadmin)
