"""Resolve the cart owner for an incoming request.

A request with a valid access token belongs to a `UserOwner`. Anything
else, including a malformed or expired token, is a guest: the guest
session id comes from the `cart_session` cookie, then the `X-Session-Id`
header, and is minted fresh when neither carries a usable value.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import DatabaseError
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from .owners import CartOwner, GuestOwner, UserOwner, is_valid_session_id, new_session_id

logger = logging.getLogger("storefront.cart")

SESSION_HEADER = "X-Session-Id"


class OptionalJWTAuthentication(JWTAuthentication):
    """JWT authentication that treats a bad token as no token.

    Cart endpoints serve guests too, so an unverifiable token downgrades
    the request to a guest instead of failing it with 401.
    """

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except (InvalidToken, AuthenticationFailed) as exc:
            logger.warning(
                "cart.identity_invalid_token",
                extra={"event": "cart.identity_invalid_token", "reason": str(exc.detail)},
            )
        except DatabaseError:
            logger.warning(
                "cart.identity_lookup_failed",
                exc_info=True,
                extra={"event": "cart.identity_lookup_failed"},
            )
        return None


@dataclass(frozen=True)
class Resolution:
    owner: CartOwner
    session_id: Optional[str]
    minted: bool = False


class IdentityResolver:
    """Map a DRF request to a `CartOwner`."""

    def __init__(self, cookie_name: Optional[str] = None):
        self.cookie_name = cookie_name or settings.CART_SESSION_COOKIE_NAME

    def read_session_id(self, request) -> Optional[str]:
        """Return the guest session id carried by the request, if valid."""

        for candidate in (request.COOKIES.get(self.cookie_name), request.headers.get(SESSION_HEADER)):
            if is_valid_session_id(candidate):
                return candidate
        return None

    def resolve(self, request) -> Resolution:
        session_id = self.read_session_id(request)
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            return Resolution(owner=UserOwner(user.id), session_id=session_id)
        if session_id is None:
            session_id = new_session_id()
            return Resolution(owner=GuestOwner(session_id), session_id=session_id, minted=True)
        return Resolution(owner=GuestOwner(session_id), session_id=session_id)


def set_session_cookie(response, session_id: str) -> None:
    response.set_cookie(
        settings.CART_SESSION_COOKIE_NAME,
        session_id,
        max_age=settings.CART_SESSION_COOKIE_AGE,
        httponly=True,
        samesite="Lax",
        secure=settings.CART_SESSION_COOKIE_SECURE,
    )
