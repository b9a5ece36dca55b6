from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.conf import settings
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsAccountant
from apps.common.container import get_container
from .serializers import (
    TransactionFilterSerializer,
    AccountantTransactionFilterSerializer,
    CreditInputSerializer,
    DebitInputSerializer,
    TransactionPageSerializer,
    BalanceSerializer,
    PostingResultSerializer,
    ReconciliationSerializer,
)


def _history_args(params):
    filters = {
        'entry_type': params.get('type'),
        'source': params.get('source'),
    }
    date_range = (params.get('start_date'), params.get('end_date'))
    pagination = {'page': params.get('page'), 'limit': params.get('limit')}
    return filters, date_range, pagination


@extend_schema(
    responses={200: BalanceSerializer},
    description="Current wallet balance of the authenticated user.",
    tags=['wallet'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def balance(request):
    value = get_container().ledger.get_balance(request.user.id)
    return Response(BalanceSerializer({'balance': value, 'currency': settings.CANTEEN_CURRENCY}).data)


@extend_schema(
    parameters=[TransactionFilterSerializer],
    responses={200: TransactionPageSerializer},
    description="Transaction history of the authenticated user across monthly partitions.",
    tags=['wallet'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transactions(request):
    query_serializer = TransactionFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    filters, date_range, pagination = _history_args(query_serializer.validated_data)
    page = get_container().ledger.query_user(request.user, filters, date_range, pagination)
    return Response(TransactionPageSerializer(page).data)


@extend_schema(
    parameters=[AccountantTransactionFilterSerializer],
    responses={200: TransactionPageSerializer},
    description="All wallet transactions (accountant view).",
    tags=['wallet'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAccountant])
def all_transactions(request):
    query_serializer = AccountantTransactionFilterSerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    filters, date_range, pagination = _history_args(params)
    filters.update(user_id=params.get('user_id'), status=params.get('status'))
    page = get_container().ledger.query_all(filters, date_range, pagination)
    return Response(TransactionPageSerializer(page).data)


@extend_schema(
    request=CreditInputSerializer,
    responses={201: PostingResultSerializer},
    description="Credit a student's wallet from a cash deposit or online payment.",
    tags=['wallet'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAccountant])
def credit(request):
    serializer = CreditInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    entry = get_container().ledger.credit(actor=request.user, **serializer.validated_data)
    return Response(
        PostingResultSerializer({'transaction': entry, 'new_balance': entry.balance_after}).data,
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    request=DebitInputSerializer,
    responses={201: PostingResultSerializer},
    description="Withdraw from a student's wallet.",
    tags=['wallet'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAccountant])
def debit(request):
    serializer = DebitInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    entry = get_container().ledger.debit(actor=request.user, **serializer.validated_data)
    return Response(
        PostingResultSerializer({'transaction': entry, 'new_balance': entry.balance_after}).data,
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    responses={200: ReconciliationSerializer},
    description="Compare a user's cached balance with the replayed ledger. Read-only.",
    tags=['wallet'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAccountant])
def reconcile(request, user_id):
    report = get_container().ledger.reconcile_balance(user_id)
    return Response(ReconciliationSerializer(report).data)
