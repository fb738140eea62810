"""User routes under /api/v1/: JWT auth and account management."""

from django.urls import path

from .views import RefreshView, SignInView, SignOutView, VerifyView, current_user, register

urlpatterns = [
    # Sign-in also carries the guest cart over to the user
    path("auth/signin/", SignInView.as_view(), name="signin"),
    path("auth/refresh/", RefreshView.as_view(), name="token_refresh"),
    path("auth/verify/", VerifyView.as_view(), name="token_verify"),
    path("auth/signout/", SignOutView.as_view(), name="signout"),
    path("account/profile/", current_user, name="profile"),
    path("account/register/", register, name="register"),
]
