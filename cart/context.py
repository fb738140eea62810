"""Process-level cart context.

`CartContext` owns the pieces a cart engine needs: the notification bus,
the local store backend and the badge cache subscribed to the bus. Views
read it from a class attribute so tests can hand in their own instance.
"""

from typing import Callable, Optional

from django.conf import settings
from django.core.cache import cache as default_cache

from .local import CacheStorage, LocalCartStore, LocalStorage
from .notifications import CartNotificationBus
from .owners import CartOwner, GuestOwner
from .services import CartEngine


class CartBadgeCache:
    """Cached item count per owner, dropped whenever the owner's cart changes."""

    def __init__(self, cache=None, timeout: Optional[int] = None):
        self.cache = cache if cache is not None else default_cache
        self.timeout = timeout if timeout is not None else settings.CART_BADGE_CACHE_TTL

    def key_for(self, owner: CartOwner) -> str:
        return f"cart:badge:{owner.key}"

    def get_or_compute(self, owner: CartOwner, compute: Callable[[], int]) -> int:
        key = self.key_for(owner)
        value = self.cache.get(key)
        if value is None:
            value = compute()
            self.cache.set(key, value, timeout=self.timeout)
        return value

    def invalidate(self, owner: CartOwner, action: str) -> None:
        self.cache.delete(self.key_for(owner))


class CartContext:
    def __init__(
        self,
        *,
        storage: Optional[LocalStorage] = None,
        bus: Optional[CartNotificationBus] = None,
        badges: Optional[CartBadgeCache] = None,
        mirror_guest_items: Optional[bool] = None,
    ):
        self.storage = storage if storage is not None else CacheStorage()
        self.bus = bus if bus is not None else CartNotificationBus()
        self.badges = badges if badges is not None else CartBadgeCache()
        self.mirror_guest_items = mirror_guest_items
        self._unsubscribe = self.bus.subscribe(self.badges.invalidate)

    def local_store(self, owner: GuestOwner) -> LocalCartStore:
        return LocalCartStore(self.storage, f"{settings.CART_LOCAL_STORE_PREFIX}:{owner.session_id}")

    def engine(self) -> CartEngine:
        return CartEngine(
            local_store_factory=self.local_store,
            bus=self.bus,
            mirror_guest_items=self.mirror_guest_items,
        )

    def close(self) -> None:
        self._unsubscribe()


_default_context: Optional[CartContext] = None


def get_cart_context() -> CartContext:
    """Return the process-wide context, creating it on first use."""

    global _default_context
    if _default_context is None:
        _default_context = CartContext()
    return _default_context


def reset_cart_context() -> None:
    global _default_context
    if _default_context is not None:
        _default_context.close()
    _default_context = None
