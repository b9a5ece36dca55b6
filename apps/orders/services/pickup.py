"""
Pickup QR payloads.

The payload shown as a QR code is base64 of a JSON object:

    {"order_id": "...", "pickup_token": "4821", "shop_id": "...", "timestamp": 1741939200000}

Staff scan it at the counter; verify() checks it against the order without
changing anything. Completion is a separate call.
"""
import base64
import json
import logging
import uuid
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import qrcode
from django.utils import timezone

from apps.common.exceptions import (
    InvalidPickupPayloadError,
    NotFoundError,
    NotReadyError,
    ShopMismatchError,
    TokenMismatchError,
)
from apps.orders.models import Order, OrderStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('order_id', 'pickup_token', 'shop_id')


@dataclass(frozen=True)
class PickupPayload:
    order_id: str
    pickup_token: str
    shop_id: str
    timestamp: Optional[int] = None


class PickupVerifier:
    """Encodes, decodes and verifies pickup payloads."""

    def __init__(self, clock=None):
        self.clock = clock or timezone.now

    def encode(self, order_id, pickup_token, shop_id) -> str:
        payload = {
            'order_id': str(order_id),
            'pickup_token': str(pickup_token),
            'shop_id': str(shop_id),
            'timestamp': int(self.clock().timestamp() * 1000),
        }
        return base64.b64encode(json.dumps(payload).encode('utf-8')).decode('ascii')

    def decode(self, token) -> Optional[PickupPayload]:
        """Return the payload, or None for anything that is not a valid one."""
        if not isinstance(token, (str, bytes)):
            return None
        try:
            data = json.loads(base64.b64decode(token, validate=True).decode('utf-8'))
        except (ValueError, TypeError, RecursionError):
            return None

        if not isinstance(data, dict):
            return None
        if not all(isinstance(data.get(field), str) and data.get(field) for field in REQUIRED_FIELDS):
            return None

        timestamp = data.get('timestamp')
        return PickupPayload(
            order_id=data['order_id'],
            pickup_token=data['pickup_token'],
            shop_id=data['shop_id'],
            timestamp=timestamp if isinstance(timestamp, int) else None,
        )

    def verify(self, token, presenting_shop_id) -> Order:
        """
        Check a scanned payload against its order.

        Args:
            token: Scanned QR payload.
            presenting_shop_id: Shop of the staff member scanning it.

        Returns:
            The order, which is in the `ready` status.

        Raises:
            InvalidPickupPayloadError: Payload cannot be decoded.
            ShopMismatchError: Order belongs to another shop.
            NotFoundError: Order does not exist.
            TokenMismatchError: Pickup token differs from the order's.
            NotReadyError: Order is not ready for pickup.
        """
        payload = self.decode(token)
        if payload is None:
            raise InvalidPickupPayloadError()

        if payload.shop_id != str(presenting_shop_id):
            raise ShopMismatchError()

        try:
            order_id = uuid.UUID(payload.order_id)
        except ValueError:
            raise NotFoundError('Order not found.')

        order = (
            Order.objects
            .select_related('user', 'shop')
            .prefetch_related('items')
            .filter(pk=order_id)
            .first()
        )
        if order is None:
            raise NotFoundError('Order not found.')

        if order.pickup_token != payload.pickup_token:
            raise TokenMismatchError()

        if order.status != OrderStatus.READY:
            raise NotReadyError(
                f'Order is not ready for pickup. Current status: {order.status}',
                current_status=order.status,
            )

        logger.info('Pickup verified for order %s at shop %s', order.order_number, presenting_shop_id)
        return order

    def render_qr(self, token) -> bytes:
        """PNG image of the payload."""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = BytesIO()
        img.save(buffer)
        return buffer.getvalue()
