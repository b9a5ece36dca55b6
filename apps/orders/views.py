from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.http import HttpResponse
from drf_spectacular.utils import extend_schema, OpenApiResponse

from apps.accounts.models import UserRole
from apps.accounts.permissions import IsShopStaff, IsStudent
from apps.common.container import get_container
from apps.common.exceptions import PermissionDeniedError
from .serializers import (
    CreateOrderSerializer,
    CreateLaundryOrderSerializer,
    CreateXeroxOrderSerializer,
    UpdateStatusSerializer,
    CancelOrderSerializer,
    DeliverItemsSerializer,
    VerifyPickupSerializer,
    OrderFilterSerializer,
    OrderSerializer,
    StaffOrderSerializer,
    OrderPageSerializer,
    StaffOrderPageSerializer,
)


def _staff_shop(user):
    """Shop scope of a staff member; superadmins see every shop."""
    return None if user.role == UserRole.SUPERADMIN else user.shop_id


class OrderViewSet(viewsets.ViewSet):
    """
    Orders and their lifecycle.

    create: Place a food order (student)
    list: Own orders (student) or shop orders (staff)
    retrieve: One order
    laundry / xerox: Place a service order (student)
    cancel: Cancel own pending order (student)
    update_status / complete / deliver_items: Shop staff transitions
    verify_pickup: Check a scanned pickup QR (shop staff)
    active: Kitchen queue of the staff member's shop
    """

    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        """Use different permissions for different actions."""
        if self.action in ['create', 'laundry', 'xerox', 'cancel']:
            return [IsAuthenticated(), IsStudent()]
        if self.action in ['update_status', 'complete', 'deliver_items', 'verify_pickup', 'active']:
            return [IsAuthenticated(), IsShopStaff()]
        return super().get_permissions()

    @property
    def orders(self):
        return get_container().orders

    def _serialize(self, order, http_status=status.HTTP_200_OK):
        serializer_class = OrderSerializer if order.user_id == self.request.user.pk else StaffOrderSerializer
        return Response(serializer_class(order).data, status=http_status)

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer}, tags=['orders'])
    def create(self, request):
        """
        Place a food order. The wallet is charged on completion.

        POST /api/orders/
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.orders.create_order(actor=request.user, **serializer.validated_data)
        order = self.orders.get_order(order.id)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CreateLaundryOrderSerializer, responses={201: OrderSerializer}, tags=['orders'])
    @action(detail=False, methods=['post'])
    def laundry(self, request):
        serializer = CreateLaundryOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.orders.create_laundry_order(actor=request.user, **serializer.validated_data)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CreateXeroxOrderSerializer, responses={201: OrderSerializer}, tags=['orders'])
    @action(detail=False, methods=['post'])
    def xerox(self, request):
        serializer = CreateXeroxOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.orders.create_xerox_order(actor=request.user, **serializer.validated_data)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(parameters=[OrderFilterSerializer], responses={200: OrderPageSerializer}, tags=['orders'])
    def list(self, request):
        """
        Students get their own orders, shop staff the orders of their shop.

        GET /api/orders/?status=ready&page=1&limit=20
        """
        filter_serializer = OrderFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        user = request.user
        if IsShopStaff().has_permission(request, self):
            page = self.orders.list_shop_orders(_staff_shop(user), **params)
            return Response(StaffOrderPageSerializer(page).data)

        page = self.orders.list_user_orders(user, **params)
        return Response(OrderPageSerializer(page).data)

    @extend_schema(responses={200: OrderSerializer}, tags=['orders'])
    def retrieve(self, request, pk=None):
        order = self.orders.get_order(pk, request.user)
        return self._serialize(order)

    @extend_schema(request=CancelOrderSerializer, responses={200: OrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel own order while it is still pending.

        POST /api/orders/{id}/cancel/
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.orders.cancel_by_owner(pk, request.user, serializer.validated_data.get('reason'))
        return self._serialize(order)

    @extend_schema(request=UpdateStatusSerializer, responses={200: StaffOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        """
        Move an order along its lifecycle.

        POST /api/orders/{id}/status/
        Body: {"status": "preparing"}
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.orders.update_status(
            pk,
            serializer.validated_data['status'],
            request.user,
            serializer.validated_data.get('reason'),
        )
        return self._serialize(order)

    @extend_schema(request=None, responses={200: StaffOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """
        Complete a picked-up order and charge the student's wallet.

        POST /api/orders/{id}/complete/
        """
        order = self.orders.complete(pk, request.user)
        return self._serialize(order)

    @extend_schema(request=DeliverItemsSerializer, responses={200: StaffOrderSerializer}, tags=['orders'])
    @action(detail=True, methods=['post'], url_path='deliver-items')
    def deliver_items(self, request, pk=None):
        serializer = DeliverItemsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        self.orders.mark_items_delivered(pk, serializer.validated_data['item_ids'], request.user)
        return self._serialize(self.orders.get_order(pk))

    @extend_schema(request=VerifyPickupSerializer, responses={200: StaffOrderSerializer}, tags=['orders'])
    @action(detail=False, methods=['post'], url_path='verify-pickup')
    def verify_pickup(self, request):
        """
        Check a scanned pickup QR. Nothing changes; call complete afterwards.

        POST /api/orders/verify-pickup/
        Body: {"qr_data": "eyJvcmRlcl9pZCI6..."}
        """
        serializer = VerifyPickupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = get_container().pickup.verify(serializer.validated_data['qr_data'], request.user.shop_id)
        return Response(StaffOrderSerializer(order).data)

    @extend_schema(responses={200: StaffOrderSerializer(many=True)}, tags=['orders'])
    @action(detail=False, methods=['get'], url_path='shop/active')
    def active(self, request):
        """Pending, preparing and ready orders of the shop, oldest first."""
        orders = self.orders.active_shop_orders(_staff_shop(request.user))
        return Response(StaffOrderSerializer(orders, many=True).data)

    @extend_schema(
        responses={(200, 'image/png'): OpenApiResponse(description='PNG image of the pickup QR code')},
        tags=['orders'],
    )
    @action(detail=True, methods=['get'], url_path='pickup-qr')
    def pickup_qr(self, request, pk=None):
        """
        Pickup QR of an own order as PNG.

        GET /api/orders/{id}/pickup-qr/
        """
        order = self.orders.get_order(pk, request.user)
        if order.user_id != request.user.pk:
            raise PermissionDeniedError('Only the student who placed the order can show its QR.')
        png = get_container().pickup.render_qr(order.qr_data)
        return HttpResponse(png, content_type='image/png')
