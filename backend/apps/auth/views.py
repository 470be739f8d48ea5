from dataclasses import asdict

from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger
from apps.users.dtos import user_to_dto
from .container import build_registration_service, build_session_service
from .serializers import (
    AuthResponseSerializer,
    LoginRequestSerializer,
    ProfileResponseSerializer,
    RegisterRequestSerializer,
)

logger = get_logger(__name__).bind(component="auth", layer="view")


def _auth_payload(message: str, result) -> dict:
    return {"message": message, "token": result.token, "user": asdict(result.user)}


@extend_schema(tags=["Auth"])
class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    service = build_registration_service()
    log = logger.bind(view="RegisterView")

    @extend_schema(
        summary="Register user",
        request=RegisterRequestSerializer,
        responses={
            201: AuthResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        self.log.info("Processing registration request", email=data["email"])
        result = self.service.register(data["email"], data["password"], data["name"])
        payload = _auth_payload("User registered successfully", result)
        return Response(
            AuthResponseSerializer(payload).data, status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Auth"])
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    service = build_session_service()
    log = logger.bind(view="LoginView")

    @extend_schema(
        summary="Login with email and password",
        request=LoginRequestSerializer,
        responses={
            200: AuthResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = self.service.login(data["email"], data["password"])
        self.log.info("Login succeeded", user_id=result.user.id)
        return Response(AuthResponseSerializer(_auth_payload("Login successful", result)).data)


@extend_schema(tags=["Auth"])
class ProfileView(APIView):
    permission_classes = [IsAuthenticated]
    log = logger.bind(view="ProfileView")

    @extend_schema(
        summary="Get current user",
        responses={
            200: ProfileResponseSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        self.log.debug("Returning current user profile", user_id=request.user.id)
        payload = {"message": "Authenticated user profile", "user": asdict(user_to_dto(request.user))}
        return Response(ProfileResponseSerializer(payload).data)
