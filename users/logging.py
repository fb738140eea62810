import logging

logger = logging.getLogger("auth")


def log_auth_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Emit an `auth.<action>` event; context travels in `extra` for the JSON formatter."""
    event = f"auth.{action}"
    payload = {
        "event": event,
        "status": status,
        "ip": request.META.get("REMOTE_ADDR"),
    }
    if user is not None:
        payload["user_id"] = getattr(user, "id", None)
    if getattr(request, "cart_merge_report", None) is not None:
        payload["cart_merge"] = request.cart_merge_report.summary
    if extra:
        payload.update(extra)
    level = logging.INFO if status == "success" else logging.WARNING
    logger.log(level, event, extra=payload)


def log_login_hook_failure(receiver, exc: Exception, request, user):
    """Record a `user_logged_in` receiver that raised; the sign-in itself goes on."""
    name = getattr(receiver, "__qualname__", repr(receiver))
    logger.error(
        "auth.login_hook_failed",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={
            "event": "auth.login_hook_failed",
            "receiver": name,
            "ip": request.META.get("REMOTE_ADDR"),
            "user_id": getattr(user, "id", None),
        },
    )
