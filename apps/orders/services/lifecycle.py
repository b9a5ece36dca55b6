"""
Order lifecycle service.

Placing an order checks the wallet but does not touch it. The wallet is
charged when shop staff complete the order, and refunded if a paid order is
cancelled afterwards. Every transition runs as one transaction: the order
row is locked, the ledger posting (if any) happens, and the status is
written with a conditional UPDATE on the status that was read. If another
transaction got there first the UPDATE matches nothing and the unit fails
with ConcurrentTransitionError, which retry_on_conflict runs once more.

Example:
    Scenario: place, prepare, complete::

        order = manager.create_order(actor=student, shop_id=shop.id, items=[
            {'menu_item_id': dosa.id, 'quantity': 2},
        ])
        manager.update_status(order.id, 'preparing', actor=owner)
        manager.update_status(order.id, 'ready', actor=owner)
        manager.complete(order.id, actor=owner)   # debits order.total
"""
import logging
import secrets
import uuid
from datetime import datetime, time, timezone as dt_timezone
from decimal import Decimal, ROUND_CEILING

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone

from apps.accounts.capabilities import can_manage_shop, require_shop_staff
from apps.accounts.models import UserRole
from apps.common.exceptions import (
    ConcurrentTransitionError,
    InsufficientBalanceError,
    InsufficientBalanceOnCompletionError,
    InvalidTransitionError,
    ItemsUnavailableError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    ValidationFailedError,
)
from apps.common.pagination import paginate_queryset
from apps.common.retry import retry_on_conflict
from apps.orders.models import (
    ACTIVE_STATUSES,
    STATUS_TIMESTAMP_FIELDS,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    ServiceType,
    allowed_transitions,
)
from apps.shops.models import MenuItem, Shop, ShopCategory
from apps.wallet.models import EntrySource, EntryType

User = get_user_model()
logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 3


class OrderLifecycleManager:
    """
    Creates orders and drives them through their status transitions.

    Args:
        ledger: WalletLedger used for completion debits and refunds.
        pickup: PickupVerifier that builds the pickup payload.
        publisher: OrderEventPublisher notified after each commit.
        clock: Callable returning the current aware datetime.
    """

    def __init__(self, ledger, pickup, publisher=None, clock=None):
        self.ledger = ledger
        self.pickup = pickup
        self.publisher = publisher
        self.clock = clock or timezone.now

    # =========================================================================
    # Creation
    # =========================================================================

    def _ordering_student(self, actor):
        user = User.objects.filter(
            pk=getattr(actor, 'pk', actor),
            is_active=True,
            role=UserRole.STUDENT,
        ).first()
        if user is None:
            raise NotFoundError('User not found or not active.')
        return user

    def _active_shop(self, shop_id, category=None):
        shops = Shop.objects.filter(is_active=True)
        if category:
            shops = shops.filter(category=category)
        shop_uuid = _as_uuid(shop_id)
        shop = shops.filter(pk=shop_uuid).first() if shop_uuid else None
        if shop is None:
            label = f'{category.capitalize()} shop' if category else 'Shop'
            raise NotFoundError(f'{label} not found or not active.')
        return shop

    @staticmethod
    def _check_balance(user, total):
        if user.balance < total:
            raise InsufficientBalanceError(
                f'Insufficient balance. Required: {total}, Available: {user.balance}',
                required=str(total),
                available=str(user.balance),
            )

    @staticmethod
    def _pickup_token():
        digits = settings.PICKUP_TOKEN_DIGITS
        low = 10 ** (digits - 1)
        return str(low + secrets.randbelow(9 * low))

    @staticmethod
    def _next_order_number(now):
        """ORD-YYYYMMDD-NNNN, continuing from the highest number issued today."""
        day = now.astimezone(dt_timezone.utc).strftime('%Y%m%d')
        prefix = f'{settings.ORDER_NUMBER_PREFIX}-{day}-'
        last = (
            Order.objects
            .filter(order_number__startswith=prefix)
            .order_by(Length('order_number').desc(), '-order_number')
            .values_list('order_number', flat=True)
            .first()
        )
        sequence = int(last.rsplit('-', 1)[1]) + 1 if last else 1
        return f'{prefix}{sequence:04d}'

    def _persist(self, *, user, shop, total, service_type, service_details=None, notes='', items=()):
        """Allocate number and pickup token, then save the order and its items."""
        now = self.clock()
        order_id = uuid.uuid4()
        pickup_token = self._pickup_token()

        for attempt in range(ORDER_NUMBER_ATTEMPTS):
            order_number = self._next_order_number(now)
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        id=order_id,
                        order_number=order_number,
                        user=user,
                        shop=shop,
                        total=total,
                        status=OrderStatus.PENDING,
                        payment_status=PaymentStatus.PENDING,
                        service_type=service_type,
                        service_details=service_details or {},
                        pickup_token=pickup_token,
                        qr_data=self.pickup.encode(order_id, pickup_token, shop.pk),
                        notes=notes or '',
                        placed_at=now,
                    )
                break
            except IntegrityError:
                # Another order took this number; read the sequence again.
                if attempt == ORDER_NUMBER_ATTEMPTS - 1:
                    raise ConcurrentTransitionError('Could not allocate an order number.')

        for item in items:
            item.order = order
        OrderItem.objects.bulk_create(items)

        logger.info(
            'Order %s placed by %s at shop %s, %s total %s',
            order.order_number, user.pk, shop.pk, service_type, total,
        )
        if self.publisher:
            self.publisher.placed(order)
        return order

    @staticmethod
    def _normalise_lines(items):
        """Merge duplicate lines and validate quantities."""
        if not items:
            raise ValidationFailedError('Order must have at least one item.')

        quantities = {}
        invalid = []
        for line in items:
            raw_id = line.get('menu_item_id')
            try:
                item_id = str(uuid.UUID(str(raw_id)))
            except ValueError:
                invalid.append(str(raw_id))
                continue
            quantity = _as_count(line.get('quantity', 1), 'quantity')
            if quantity < 1:
                raise ValidationFailedError('Quantity must be at least 1.', menu_item_id=item_id)
            quantities[item_id] = quantities.get(item_id, 0) + quantity

        if len(quantities) + len(invalid) > settings.ORDER_MAX_ITEMS:
            raise ValidationFailedError(f'Order cannot have more than {settings.ORDER_MAX_ITEMS} items.')
        for item_id, quantity in quantities.items():
            if quantity > settings.ORDER_ITEM_MAX_QUANTITY:
                raise ValidationFailedError(
                    f'Quantity cannot exceed {settings.ORDER_ITEM_MAX_QUANTITY}.',
                    menu_item_id=item_id,
                )
        return quantities, invalid

    @transaction.atomic
    def create_order(self, *, actor, shop_id, items, notes='') -> Order:
        """
        Place a food order.

        Args:
            actor: Student placing the order.
            shop_id: Shop the items belong to.
            items: List of {'menu_item_id', 'quantity'}.
            notes: Free text for the kitchen.

        Returns:
            The pending Order. The wallet is not charged yet.

        Raises:
            NotFoundError: Student or shop missing or inactive.
            ValidationFailedError: Empty order or bad quantities.
            ItemsUnavailableError: Items missing, unavailable or from another
                shop; `missing_ids` lists them.
            InsufficientBalanceError: Balance does not cover the total.
        """
        user = self._ordering_student(actor)
        shop = self._active_shop(shop_id)
        quantities, invalid = self._normalise_lines(items)

        menu = {
            str(item.pk): item
            for item in MenuItem.objects.select_related('category').filter(
                pk__in=list(quantities),
                shop=shop,
                is_available=True,
            )
        }
        missing = invalid + [item_id for item_id in quantities if item_id not in menu]
        if missing:
            raise ItemsUnavailableError(
                'Some items are not available or not found.',
                missing_ids=missing,
            )

        now = self.clock()
        total = Decimal('0.00')
        snapshots = []
        for item_id, quantity in quantities.items():
            menu_item = menu[item_id]
            offer_price = menu_item.offer_price if menu_item.offer_active_at(now) else None
            charged = offer_price if offer_price is not None else menu_item.price
            subtotal = charged * quantity
            total += subtotal
            snapshots.append(OrderItem(
                menu_item=menu_item,
                name=menu_item.name,
                category=menu_item.category.name if menu_item.category else '',
                image_url=menu_item.image_url,
                unit_price=menu_item.price,
                offer_price=offer_price,
                quantity=quantity,
                subtotal=subtotal,
            ))

        self._check_balance(user, total)
        return self._persist(
            user=user,
            shop=shop,
            total=total,
            service_type=ServiceType.FOOD,
            notes=notes,
            items=snapshots,
        )

    @transaction.atomic
    def create_laundry_order(self, *, actor, shop_id, items, special_instructions='') -> Order:
        """
        Place a laundry order priced per piece by category.

        items is a list of {'category', 'count'}; see settings.LAUNDRY_PRICES.
        """
        user = self._ordering_student(actor)
        shop = self._active_shop(shop_id, ShopCategory.LAUNDRY)
        if not items:
            raise ValidationFailedError('Laundry order must have at least one item.')

        prices = settings.LAUNDRY_PRICES
        total = Decimal('0.00')
        total_clothes = 0
        lines = []
        for item in items:
            category = item.get('category')
            count = _as_count(item.get('count', 0), 'count')
            if category not in prices:
                raise ValidationFailedError(f'Unknown laundry category: {category}', category=category)
            if count < 1:
                raise ValidationFailedError('Count must be at least 1.', category=category)
            price = prices[category]
            total += price * count
            total_clothes += count
            lines.append({'category': category, 'count': count, 'price_per_item': str(price)})

        self._check_balance(user, total)
        return self._persist(
            user=user,
            shop=shop,
            total=total,
            service_type=ServiceType.LAUNDRY,
            service_details={
                'type': ServiceType.LAUNDRY,
                'laundry': {
                    'items': lines,
                    'total_clothes': total_clothes,
                    'special_instructions': special_instructions or '',
                },
            },
        )

    @staticmethod
    def xerox_total(*, page_count, copies, color_type, paper_size, double_sided) -> Decimal:
        """Price per page times pages times copies, rounded up to a whole rupee."""
        pricing = settings.XEROX_PRICING
        if color_type not in pricing['color']:
            raise ValidationFailedError(f'Unknown colour type: {color_type}')
        if paper_size not in pricing['paper_size']:
            raise ValidationFailedError(f'Unknown paper size: {paper_size}')
        if page_count < 1 or copies < 1:
            raise ValidationFailedError('Page count and copies must be at least 1.')

        per_page = pricing['color'][color_type] * pricing['paper_size'][paper_size]
        if double_sided:
            per_page *= pricing['double_sided']
        return (per_page * page_count * copies).to_integral_value(rounding=ROUND_CEILING).quantize(Decimal('0.01'))

    @transaction.atomic
    def create_xerox_order(
        self,
        *,
        actor,
        shop_id,
        page_count,
        copies=1,
        color_type='bw',
        paper_size='A4',
        double_sided=False,
        special_instructions='',
    ) -> Order:
        """Place a xerox order."""
        user = self._ordering_student(actor)
        shop = self._active_shop(shop_id, ShopCategory.XEROX)
        total = self.xerox_total(
            page_count=page_count,
            copies=copies,
            color_type=color_type,
            paper_size=paper_size,
            double_sided=double_sided,
        )

        self._check_balance(user, total)
        return self._persist(
            user=user,
            shop=shop,
            total=total,
            service_type=ServiceType.XEROX,
            service_details={
                'type': ServiceType.XEROX,
                'xerox': {
                    'page_count': page_count,
                    'copies': copies,
                    'color_type': color_type,
                    'paper_size': paper_size,
                    'double_sided': bool(double_sided),
                    'special_instructions': special_instructions or '',
                },
            },
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    @staticmethod
    def _locked_order(order_id):
        try:
            return Order.objects.select_for_update().get(pk=_as_uuid(order_id))
        except Order.DoesNotExist:
            raise NotFoundError('Order not found.')

    def _charge(self, order, actor):
        if order.total <= 0:
            return
        try:
            self.ledger.post_entry(
                order.user_id,
                EntryType.DEBIT,
                order.total,
                f'Order payment - {order.order_number}',
                order=order,
                actor=actor,
                source=EntrySource.ORDER_PAYMENT,
            )
        except InsufficientBalanceError as exc:
            raise InsufficientBalanceOnCompletionError(
                f'Insufficient balance. Required: {order.total}, Available: {exc.extra.get("balance")}',
                required=str(order.total),
                available=exc.extra.get('balance'),
            )

    def _refund(self, order, actor, reason):
        if order.total <= 0:
            return
        suffix = f': {reason}' if reason else ''
        self.ledger.post_entry(
            order.user_id,
            EntryType.REFUND,
            order.total,
            f'Refund for cancelled order {order.order_number}{suffix}',
            order=order,
            actor=actor,
            source=EntrySource.REFUND,
        )

    def _apply(self, order, new_status, actor, reason=None):
        """
        Move a locked order to new_status with its wallet effect.

        Must run inside the transaction that locked the order.
        """
        previous = order.status
        if not order.can_transition_to(new_status):
            raise InvalidTransitionError(
                f'Cannot transition from {previous} to {new_status}',
                current_status=previous,
                allowed_transitions=list(allowed_transitions(previous)),
            )

        now = self.clock()
        changes = {
            'status': new_status,
            'handled_by': actor,
            STATUS_TIMESTAMP_FIELDS[new_status]: now,
            'updated_at': now,
        }

        if new_status == OrderStatus.COMPLETED and order.payment_status != PaymentStatus.PAID:
            self._charge(order, actor)
            changes['payment_status'] = PaymentStatus.PAID

        if new_status == OrderStatus.CANCELLED:
            if order.payment_status == PaymentStatus.PAID:
                self._refund(order, actor, reason)
                changes['payment_status'] = PaymentStatus.REFUNDED
            if reason:
                changes['cancellation_reason'] = reason[:500]

        updated = Order.objects.filter(pk=order.pk, status=previous).update(**changes)
        if updated != 1:
            raise ConcurrentTransitionError(
                'Order was modified by another request.',
                order_id=str(order.pk),
            )

        for field, value in changes.items():
            setattr(order, field, value)

        logger.info(
            'Order %s: %s -> %s by %s (payment %s)',
            order.order_number, previous, new_status, getattr(actor, 'pk', None), order.payment_status,
        )
        if self.publisher:
            self.publisher.status_changed(order, previous)
        return order

    @transaction.atomic
    def _transition(self, order_id, new_status, actor, reason=None):
        order = self._locked_order(order_id)
        require_shop_staff(actor, order.shop_id)
        return self._apply(order, new_status, actor, reason)

    @retry_on_conflict
    def update_status(self, order_id, new_status, actor, reason=None) -> Order:
        """
        Move an order to new_status as shop staff.

        Completing an unpaid order debits its total; cancelling a paid order
        refunds it. Both happen in the same transaction as the status write.

        Raises:
            NotFoundError: Order does not exist.
            PermissionDeniedError: Actor is not staff of the order's shop.
            InvalidTransitionError: Move not allowed from the current status.
            InsufficientBalanceOnCompletionError: Balance no longer covers
                the total; the order keeps its status.
            ConcurrentTransitionError: Lost a race after the automatic retry.
        """
        if new_status not in OrderStatus.values:
            raise ValidationFailedError(f'Unknown status: {new_status}')
        return self._transition(order_id, new_status, actor, reason)

    def complete(self, order_id, actor) -> Order:
        """Mark a picked-up order completed, charging the wallet."""
        return self.update_status(order_id, OrderStatus.COMPLETED, actor)

    @transaction.atomic
    def _cancel_own(self, order_id, student, reason=None):
        order = self._locked_order(order_id)
        if order.user_id != getattr(student, 'pk', student):
            raise PermissionDeniedError('You do not have access to this order.')
        if order.status != OrderStatus.PENDING:
            raise PreconditionFailedError(
                'You can only cancel orders that are still pending.',
                current_status=order.status,
            )
        return self._apply(order, OrderStatus.CANCELLED, student, reason)

    @retry_on_conflict
    def cancel_by_owner(self, order_id, student, reason=None) -> Order:
        """
        Cancel an order as the student who placed it.

        Raises:
            NotFoundError: Order does not exist.
            PermissionDeniedError: Order belongs to someone else.
            PreconditionFailedError: Order is no longer pending.
        """
        return self._cancel_own(order_id, student, reason)

    @transaction.atomic
    def _deliver(self, order_id, item_ids, actor):
        order = self._locked_order(order_id)
        require_shop_staff(actor, order.shop_id)
        if order.status not in (OrderStatus.READY, OrderStatus.PARTIALLY_DELIVERED):
            raise PreconditionFailedError(
                'Items can only be delivered once the order is ready.',
                current_status=order.status,
            )

        items = {str(item.pk): item for item in order.items.all()}
        wanted = [str(item_id) for item_id in item_ids]
        unknown = [item_id for item_id in wanted if item_id not in items]
        if not wanted or unknown:
            raise ValidationFailedError('Unknown order items.', unknown_ids=unknown)

        OrderItem.objects.filter(order=order, pk__in=wanted).update(delivered=True)
        remaining = OrderItem.objects.filter(order=order, delivered=False).count()

        if remaining and order.status == OrderStatus.READY:
            self._apply(order, OrderStatus.PARTIALLY_DELIVERED, actor)

        logger.info('Order %s: %d item(s) delivered, %d remaining', order.order_number, len(wanted), remaining)
        return order

    @retry_on_conflict
    def mark_items_delivered(self, order_id, item_ids, actor) -> Order:
        """
        Flag order items as handed over.

        A ready order with items still outstanding becomes
        partially_delivered. Completion (and the charge) stays an explicit
        call once everything is handed over.
        """
        return self._deliver(order_id, item_ids, actor)

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def _detail_queryset():
        return Order.objects.select_related('user', 'shop', 'handled_by').prefetch_related('items')

    def get_order(self, order_id, actor=None) -> Order:
        """
        Fetch one order. With an actor, students only see their own orders
        and shop staff only orders of their shop.
        """
        try:
            order = self._detail_queryset().get(pk=_as_uuid(order_id))
        except Order.DoesNotExist:
            raise NotFoundError('Order not found.')

        if actor is not None and order.user_id != actor.pk and not can_manage_shop(actor, order.shop_id):
            raise PermissionDeniedError('You do not have access to this order.')
        return order

    @staticmethod
    def _filtered(queryset, status=None, start_date=None, end_date=None):
        if status:
            queryset = queryset.filter(status=status)
        if start_date:
            queryset = queryset.filter(placed_at__gte=_day_start(start_date))
        if end_date:
            queryset = queryset.filter(placed_at__lte=_day_end(end_date))
        return queryset

    def list_user_orders(self, user, status=None, start_date=None, end_date=None, page=None, limit=None):
        queryset = self._detail_queryset().filter(user=user).order_by('-placed_at')
        return paginate_queryset(self._filtered(queryset, status, start_date, end_date), page, limit)

    def list_shop_orders(self, shop_id=None, status=None, start_date=None, end_date=None, page=None, limit=None):
        """Orders of one shop, or of every shop when shop_id is None."""
        queryset = self._detail_queryset().order_by('-placed_at')
        if shop_id:
            queryset = queryset.filter(shop_id=shop_id)
        return paginate_queryset(self._filtered(queryset, status, start_date, end_date), page, limit)

    def active_shop_orders(self, shop_id=None):
        """Pending, preparing and ready orders, oldest first (the kitchen queue)."""
        queryset = self._detail_queryset().filter(status__in=ACTIVE_STATUSES)
        if shop_id:
            queryset = queryset.filter(shop_id=shop_id)
        return list(queryset.order_by('placed_at'))


def _as_uuid(value):
    """UUID for a lookup, or None when the value is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _as_count(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailedError(f'{field} must be an integer.', **{field: str(value)})


def _day_start(value):
    if isinstance(value, datetime):
        return value
    return timezone.make_aware(datetime.combine(value, time.min))


def _day_end(value):
    if isinstance(value, datetime):
        return value
    return timezone.make_aware(datetime.combine(value, time.max))
