import pytest

from apps.orders import signals


@pytest.fixture
def student_client(client_for, student):
    return client_for(student)


@pytest.fixture
def owner_client(client_for, owner):
    return client_for(owner)


@pytest.fixture
def other_owner_client(client_for, other_owner):
    return client_for(other_owner)


@pytest.fixture
def placed_order(orders, student, canteen, dosa, coffee):
    """Two dosas and a coffee: 95.00, pending and unpaid."""
    return orders.create_order(
        actor=student,
        shop_id=canteen.id,
        items=[
            {'menu_item_id': dosa.id, 'quantity': 2},
            {'menu_item_id': coffee.id, 'quantity': 1},
        ],
        notes='Less spicy',
    )


@pytest.fixture
def ready_order(orders, placed_order, owner):
    orders.update_status(placed_order.id, 'preparing', owner)
    return orders.update_status(placed_order.id, 'ready', owner)


@pytest.fixture
def captured_events():
    """Collect every order signal sent during a test."""
    events = []
    names = {
        signals.order_placed: 'placed',
        signals.order_status_changed: 'status_changed',
        signals.order_ready: 'ready',
        signals.order_cancelled: 'cancelled',
        signals.order_completed: 'completed',
    }
    receivers = []
    for signal, name in names.items():
        def receiver(sender, order, name=name, **kwargs):
            events.append((name, order.order_number, kwargs.get('previous_status')))
        signal.connect(receiver, weak=False)
        receivers.append((signal, receiver))

    yield events

    for signal, receiver in receivers:
        signal.disconnect(receiver)
