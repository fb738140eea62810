"""Users app API views.

Endpoints include:
- profile: returns the current authenticated user's profile.
- register: creates a new user.
- signin: issues JWTs for email/phone + password and fires the login hook
  (which carries the guest cart over to the user).
- refresh / verify: standard JWT maintenance.
- signout: blacklists the refresh token.
"""

from django.contrib.auth.signals import user_logged_in
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from .logging import log_auth_event, log_login_hook_failure
from .serializers import ProfileSerializer, RegistrationSerializer, SignInSerializer, SignOutSerializer


@extend_schema(
    operation_id="users_current_user",
    summary="Get current user profile",
    description=(
        "Returns the current authenticated user's profile.\n\n"
        "Auth: Requires JWT (Authorization: Bearer <token>) or session auth.\n\n"
        "Errors: 401 if authentication credentials are missing or invalid."
    ),
    tags=["User Endpoints"],
    responses={
        200: OpenApiResponse(description="User profile", response=ProfileSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def current_user(request):
    """Return the authenticated user's basic profile fields."""
    log_auth_event("profile", request, user=request.user)
    serializer = ProfileSerializer(request.user)
    return Response(serializer.data)


current_user.throttle_scope = "profile"


@extend_schema(tags=["User Endpoints"], request=RegistrationSerializer, responses={201: ProfileSerializer})
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def register(request):
    """Register a new user."""
    serializer = RegistrationSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        log_auth_event("register", request, user=user, status="success")
        return Response(ProfileSerializer(user).data, status=status.HTTP_201_CREATED)
    log_auth_event("register", request, status="invalid")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


register.throttle_scope = "register"


class SignOutView(APIView):
    """Blacklist the posted refresh token."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signout"
    permission_classes = [AllowAny]

    @extend_schema(tags=["User Endpoints"], request=SignOutSerializer)
    def post(self, request):
        serializer = SignOutSerializer(data=request.data)
        if not serializer.is_valid():
            log_auth_event("signout", request, status="invalid_token")
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        log_auth_event("signout", request, status="success")
        return Response({"detail": "Signed out."}, status=status.HTTP_205_RESET_CONTENT)


class SignInView(TokenObtainPairView):
    """Issue JWTs and announce the login so the guest cart is merged."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"
    serializer_class = SignInSerializer

    @extend_schema(tags=["User Endpoints"])
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            log_auth_event("signin", request, status="failed")
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.user
        # Receivers (last_login, guest cart merge) run robustly; a failing one is logged
        for receiver, result in user_logged_in.send_robust(sender=user.__class__, request=request, user=user):
            if isinstance(result, Exception):
                log_login_hook_failure(receiver, result, request, user)
        data = dict(serializer.validated_data)
        report = getattr(request, "cart_merge_report", None)
        if report is not None:
            data["cart_merge"] = report.as_dict()
        log_auth_event("signin", request, user=user, status="success")
        return Response(data, status=status.HTTP_200_OK)


class RefreshView(TokenRefreshView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_refresh"

    @extend_schema(tags=["User Endpoints"])
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        status_label = "success" if resp.status_code == 200 else "failed"
        log_auth_event("token_refresh", request, status=status_label)
        return resp


class VerifyView(TokenVerifyView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_verify"

    @extend_schema(tags=["User Endpoints"])
    def post(self, request, *args, **kwargs):
        resp = super().post(request, *args, **kwargs)
        status_label = "success" if resp.status_code == 200 else "failed"
        log_auth_event("token_verify", request, status=status_label)
        return resp
