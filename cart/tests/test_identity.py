import pytest
from cart.identity import IdentityResolver, OptionalJWTAuthentication, set_session_cookie
from cart.owners import GuestOwner, UserOwner
from cart.tests.factories import UserFactory
from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse
from django.test import RequestFactory
from rest_framework.test import APIRequestFactory
from rest_framework_simplejwt.tokens import AccessToken


def _request(user=None, cookie=None, header=None):
    factory = RequestFactory()
    extra = {}
    if header is not None:
        extra["HTTP_X_SESSION_ID"] = header
    request = factory.get("/api/v1/cart/", **extra)
    if cookie is not None:
        request.COOKIES["cart_session"] = cookie
    request.user = user or AnonymousUser()
    return request


@pytest.mark.django_db
def test_authenticated_user_resolves_to_user_owner():
    user = UserFactory()
    resolution = IdentityResolver().resolve(_request(user=user, cookie="s1"))
    assert resolution.owner == UserOwner(user.id)
    assert resolution.session_id == "s1"
    assert resolution.minted is False


def test_cookie_wins_over_header():
    resolution = IdentityResolver().resolve(_request(cookie="from-cookie", header="from-header"))
    assert resolution.owner == GuestOwner("from-cookie")


def test_header_used_when_cookie_missing():
    resolution = IdentityResolver().resolve(_request(header="from-header"))
    assert resolution.owner == GuestOwner("from-header")
    assert resolution.minted is False


@pytest.mark.parametrize("bad", ["", "has space", "x" * 65, "semi;colon"])
def test_malformed_session_id_is_replaced(bad):
    resolution = IdentityResolver().resolve(_request(cookie=bad))
    assert resolution.minted is True
    assert resolution.owner == GuestOwner(resolution.session_id)
    assert resolution.session_id != bad
    assert len(resolution.session_id) == 32


def test_minted_ids_are_unique():
    resolver = IdentityResolver()
    first = resolver.resolve(_request()).session_id
    second = resolver.resolve(_request()).session_id
    assert first != second


def test_session_cookie_attributes(settings):
    settings.CART_SESSION_COOKIE_SECURE = True
    response = HttpResponse()
    set_session_cookie(response, "abc123")
    morsel = response.cookies["cart_session"]
    assert morsel.value == "abc123"
    assert morsel["httponly"] is True
    assert morsel["samesite"] == "Lax"
    assert morsel["secure"] is True
    assert morsel["max-age"] == settings.CART_SESSION_COOKIE_AGE


def test_invalid_token_downgrades_to_guest():
    request = APIRequestFactory().get("/api/v1/cart/", HTTP_AUTHORIZATION="Bearer not-a-token")
    assert OptionalJWTAuthentication().authenticate(request) is None


@pytest.mark.django_db
def test_token_for_deleted_user_downgrades_to_guest():
    user = UserFactory()
    token = str(AccessToken.for_user(user))
    user.delete()
    request = APIRequestFactory().get("/api/v1/cart/", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert OptionalJWTAuthentication().authenticate(request) is None


@pytest.mark.django_db
def test_valid_token_authenticates():
    user = UserFactory()
    token = str(AccessToken.for_user(user))
    request = APIRequestFactory().get("/api/v1/cart/", HTTP_AUTHORIZATION=f"Bearer {token}")
    authenticated_user, _ = OptionalJWTAuthentication().authenticate(request)
    assert authenticated_user.id == user.id
