"""
Accounts views with JWT-based auth.

Registration issues SimpleJWT tokens (access + refresh); login/refresh/verify
use the stock SimpleJWT views wired in urls.py.
"""
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema, OpenApiResponse

from .models import User
from .serializers import UserSerializer, UserCreateSerializer
from . import services


def issue_tokens_for_user(user: User) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
        "token_type": "Bearer",
    }


@extend_schema(
    summary="Register a new account (returns JWT)",
    description="Create user and return access/refresh JWT tokens plus user payload.",
    request=UserCreateSerializer,
    responses={201: OpenApiResponse(response=UserSerializer)},
    tags=["Auth"],
)
class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = services.register_user(
            username=data["username"],
            password=data["password"],
            email=data.get("email"),
            name=data.get("name", ""),
        )
        payload = UserSerializer(user, context={"request": request}).data
        return Response({**payload, **issue_tokens_for_user(user)}, status=status.HTTP_201_CREATED)


@extend_schema(summary="Current user", responses={200: UserSerializer}, tags=["Auth"])
class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user, context={"request": request}).data)
