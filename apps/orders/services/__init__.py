from .lifecycle import OrderLifecycleManager
from .pickup import PickupPayload, PickupVerifier

__all__ = [
    'OrderLifecycleManager',
    'PickupPayload',
    'PickupVerifier',
]
