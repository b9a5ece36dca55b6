from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsStudent, IsSuperAdmin
from apps.common.container import get_container
from .services import TargetSelector
from .serializers import (
    CreatePaymentRequestSerializer,
    UpdatePaymentRequestSerializer,
    ClosePaymentRequestSerializer,
    PaymentRequestFilterSerializer,
    StudentPaymentFilterSerializer,
    HistoryFilterSerializer,
    PaymentRequestSerializer,
    PaymentRequestPageSerializer,
    StudentPaymentPageSerializer,
    PendingPaymentSerializer,
    PaymentHistoryPageSerializer,
    PaymentResultSerializer,
    UnpaidStudentSerializer,
)


# =============================================================================
# Superadmin
# =============================================================================

@extend_schema(
    methods=['GET'],
    parameters=[PaymentRequestFilterSerializer],
    responses={200: PaymentRequestPageSerializer},
    description="List payment requests, newest first.",
    tags=['payments'],
)
@extend_schema(
    methods=['POST'],
    request=CreatePaymentRequestSerializer,
    responses={201: PaymentRequestSerializer},
    description="Create a payment request and bill every targeted student.",
    tags=['payments'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def payment_requests(request):
    dispatcher = get_container().payments

    if request.method == 'GET':
        filter_serializer = PaymentRequestFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        page = dispatcher.list_requests(**filter_serializer.validated_data)
        return Response(PaymentRequestPageSerializer(page).data)

    serializer = CreatePaymentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    payment_request = dispatcher.create_request(
        request.user,
        data['title'],
        data['description'],
        data['amount'],
        TargetSelector(
            target_type=data['target_type'],
            student_ids=tuple(data.get('target_students', ())),
            department=data.get('target_department'),
            year=data.get('target_year'),
        ),
        due_date=data.get('due_date'),
        is_visible_on_dashboard=data['is_visible_on_dashboard'],
    )
    return Response(PaymentRequestSerializer(payment_request).data, status=status.HTTP_201_CREATED)


@extend_schema(
    methods=['GET'],
    responses={200: PaymentRequestSerializer},
    tags=['payments'],
)
@extend_schema(
    methods=['PATCH'],
    request=UpdatePaymentRequestSerializer,
    responses={200: PaymentRequestSerializer},
    description="Update a request. Title and description are locked once payments exist.",
    tags=['payments'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def payment_request_detail(request, request_id):
    dispatcher = get_container().payments

    if request.method == 'GET':
        return Response(PaymentRequestSerializer(dispatcher.get_request(request_id)).data)

    serializer = UpdatePaymentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payment_request = dispatcher.update_request(request_id, **serializer.validated_data)
    return Response(PaymentRequestSerializer(payment_request).data)


@extend_schema(
    request=ClosePaymentRequestSerializer,
    responses={200: PaymentRequestSerializer},
    description="Close or cancel an active payment request.",
    tags=['payments'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def close_payment_request(request, request_id):
    serializer = ClosePaymentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    payment_request = get_container().payments.close(request_id, serializer.validated_data['status'])
    return Response(PaymentRequestSerializer(payment_request).data)


@extend_schema(
    parameters=[StudentPaymentFilterSerializer],
    responses={200: StudentPaymentPageSerializer},
    description="Targeted students with their payment status.",
    tags=['payments'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def request_students(request, request_id):
    filter_serializer = StudentPaymentFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    page = get_container().payments.students_for_request(request_id, **filter_serializer.validated_data)
    return Response(StudentPaymentPageSerializer(page).data)


@extend_schema(
    responses={200: UnpaidStudentSerializer(many=True)},
    description="Active students who have not paid the request yet.",
    tags=['payments'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def unpaid_students(request, request_id):
    students = get_container().payments.unpaid_students(request_id)
    return Response(UnpaidStudentSerializer(students, many=True).data)


# =============================================================================
# Student
# =============================================================================

@extend_schema(
    responses={200: PendingPaymentSerializer(many=True)},
    description="Payment requests the student still has to pay.",
    tags=['payments'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def pending_payments(request):
    submissions = get_container().payments.pending_for_student(request.user)
    return Response(PendingPaymentSerializer(submissions, many=True).data)


@extend_schema(
    request=None,
    responses={201: PaymentResultSerializer},
    description="Pay a request from the wallet.",
    tags=['payments'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def pay_request(request, request_id):
    result = get_container().payments.pay(request.user, request_id)
    return Response(PaymentResultSerializer(result).data, status=status.HTTP_201_CREATED)


@extend_schema(
    parameters=[HistoryFilterSerializer],
    responses={200: PaymentHistoryPageSerializer},
    description="The student's ad-hoc payment history.",
    tags=['payments'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def payment_history(request):
    filter_serializer = HistoryFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    page = get_container().payments.history_for_student(request.user, **filter_serializer.validated_data)
    return Response(PaymentHistoryPageSerializer(page).data)
