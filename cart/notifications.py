"""In-process notification bus for cart mutations.

Anything that shows cart state (badge counts, cached summaries) subscribes
to the bus owned by its cart context and re-reads the active store when a
mutation is published. Subscribers are independent: one failing handler
is logged and does not prevent the others from running, and no ordering
between them is promised.
"""

import logging
from typing import Callable

from django.dispatch import Signal

from .owners import CartOwner

logger = logging.getLogger("storefront.cart")

Handler = Callable[[CartOwner, str], None]


class CartNotificationBus:
    """Publish/subscribe signal scoped to one cart context."""

    def __init__(self):
        self._signal = Signal()

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register `handler(owner, action)`; returns an unsubscribe callable."""

        def deliver(sender, owner, action, **kwargs):
            handler(owner, action)

        self._signal.connect(deliver, weak=False)

        def unsubscribe() -> None:
            self._signal.disconnect(deliver)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._signal.receivers)

    def publish(self, owner: CartOwner, action: str) -> int:
        """Notify every subscriber; returns how many handled it cleanly."""

        delivered = 0
        for receiver, result in self._signal.send_robust(sender=self.__class__, owner=owner, action=action):
            if isinstance(result, Exception):
                logger.warning(
                    "cart.subscriber_failed",
                    exc_info=result,
                    extra={"event": "cart.subscriber_failed", "owner": owner.key, "action": action},
                )
                continue
            delivered += 1
        return delivered
