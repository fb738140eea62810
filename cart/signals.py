"""Signal receivers for the cart app."""

import logging

from django.contrib.auth.signals import user_logged_in
from django.dispatch import receiver

from .context import get_cart_context
from .identity import IdentityResolver
from .local import parse_items

logger = logging.getLogger("storefront.cart")


@receiver(user_logged_in, dispatch_uid="cart.merge_guest_cart_on_login")
def merge_guest_cart_on_login(sender, request, user, **kwargs):
    """Carry the request's guest cart over to the user who just signed in.

    Sign-in must succeed even when the merge does not, so every failure is
    logged here and goes no further. The report is left on the request for
    the sign-in response.
    """

    if request is None:
        return
    session_id = IdentityResolver().read_session_id(request)
    try:
        data = getattr(request, "data", None)
        extra_items = parse_items(data.get("cart_items")) if hasattr(data, "get") else []
        if session_id is None and not extra_items:
            return
        report = get_cart_context().engine().merge_on_login(
            session_id=session_id, user_id=user.id, extra_items=extra_items
        )
    except Exception:
        logger.exception(
            "cart.merge_failed",
            extra={"event": "cart.merge_failed", "owner": f"user:{user.id}", "session_id": session_id},
        )
        return
    request.cart_merge_report = report
