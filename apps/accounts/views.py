from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from apps.common.container import get_container
from .permissions import IsSuperAdmin
from .serializers import (
    StudentRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
    UserPublicSerializer,
    ApproveUserSerializer,
)
from .services import (
    register_student,
    authenticate_user,
    pending_approvals,
    approve_student,
    reject_student,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@extend_schema(
    request=StudentRegistrationSerializer,
    responses={201: UserSerializer},
    description="Register a student account. The account must be approved before login.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new student account."""
    serializer = StudentRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data.copy()
    data.pop('password_confirm', None)
    user = register_student(**data)

    return Response({
        'message': 'Registration successful. Your account is awaiting approval.',
        'user': UserSerializer(user).data,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=UserLoginSerializer,
    responses={200: AuthResponseSerializer},
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = authenticate_user(**serializer.validated_data)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': _tokens_for(user),
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    responses={200: UserPublicSerializer(many=True)},
    description="List students waiting for approval.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def list_pending_approvals(request):
    return Response(UserPublicSerializer(pending_approvals(), many=True).data)


@extend_schema(
    request=ApproveUserSerializer,
    responses={200: UserSerializer},
    description="Approve a student, optionally crediting an initial wallet balance.",
    tags=['admin'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def approve_user(request, user_id):
    serializer = ApproveUserSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = approve_student(
        user_id=user_id,
        ledger=get_container().ledger,
        actor=request.user,
        initial_balance=serializer.validated_data['initial_balance'],
    )
    return Response(UserSerializer(user).data)


@extend_schema(
    request=None,
    responses={200: MessageResponseSerializer},
    description="Reject and delete a pending registration.",
    tags=['admin'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def reject_user(request, user_id):
    reject_student(user_id=user_id)
    return Response({'message': 'User rejected'})
