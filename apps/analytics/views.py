from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.models import UserRole
from apps.accounts.permissions import IsShopStaff
from apps.common.container import get_container
from .serializers import (
    # Input serializers
    ShopQuerySerializer,
    # Response serializers
    ShopStatsSerializer,
    ShopSummarySerializer,
    ErrorSerializer,
)


def _shop_scope(request):
    """Shop the caller may aggregate: own shop for staff, any (or all) for superadmins."""
    if request.user.role != UserRole.SUPERADMIN:
        return request.user.shop_id

    query_serializer = ShopQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    return query_serializer.validated_data.get('shop_id')


@extend_schema(
    parameters=[ShopQuerySerializer],
    responses={
        200: ShopStatsSerializer,
        403: ErrorSerializer,
    },
    description="Order counts and revenue for today, this month and all time.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsShopStaff])
def shop_stats(request):
    """Dashboard counters - thin HTTP handler."""
    data = get_container().analytics.shop_stats(_shop_scope(request))
    return Response(ShopStatsSerializer(data).data)


@extend_schema(
    parameters=[ShopQuerySerializer],
    responses={
        200: ShopSummarySerializer,
        403: ErrorSerializer,
    },
    description="This month against last month, estimated profit and top selling items.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsShopStaff])
def shop_summary(request):
    """Owner analytics page - thin HTTP handler."""
    data = get_container().analytics.shop_summary(_shop_scope(request))
    return Response(ShopSummarySerializer(data).data)
