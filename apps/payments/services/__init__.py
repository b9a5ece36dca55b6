from .dispatcher import AdhocPaymentDispatcher, TargetSelector

__all__ = [
    'AdhocPaymentDispatcher',
    'TargetSelector',
]
