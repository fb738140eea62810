"""Local (pre-login) cart store.

A guest's cart lives in a small key-value store addressed only by the
guest session id. It has no durability guarantee: if the backing storage
is cleared or evicts the key, the cart is simply gone. Stored data is
treated as untrusted; anything that does not parse into well-formed line
items is dropped instead of raising.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Callable, Optional, Protocol

from django.utils import timezone
from redis.exceptions import RedisError

from .models import CartItem

logger = logging.getLogger("storefront.cart")

# Raised by the cache backends when the store cannot be reached
STORAGE_ERRORS = (RedisError, OSError)


class LocalStoreUnavailable(Exception):
    """The backing storage could not be read or written."""


class LocalStorage(Protocol):
    """Minimal key-value interface the local cart store needs."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage, used in tests and scripts."""

    def __init__(self, initial: Optional[dict] = None):
        self.data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class CacheStorage:
    """Storage on top of Django's cache framework (Redis in production)."""

    def __init__(self, cache=None, timeout: Optional[int] = None):
        if cache is None:
            from django.core.cache import cache as default_cache

            cache = default_cache
        if timeout is None:
            from django.conf import settings

            timeout = settings.CART_SESSION_COOKIE_AGE
        self.cache = cache
        self.timeout = timeout

    def get(self, key: str) -> Optional[str]:
        return self.cache.get(key)

    def set(self, key: str, value: str) -> None:
        self.cache.set(key, value, timeout=self.timeout)

    def delete(self, key: str) -> None:
        self.cache.delete(key)


@dataclass
class LocalLineItem:
    product_variant_id: int
    quantity: int
    added_at: str

    def to_dict(self) -> dict:
        return asdict(self)


def _now_iso() -> str:
    return timezone.now().isoformat()


def _clamp(quantity: int) -> int:
    return max(1, min(CartItem.MAX_QUANTITY, quantity))


def _as_positive_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        # isdigit() also accepts superscripts and other non-ASCII digits
        if not (text.isascii() and text.isdigit()):
            return None
        number = int(text)
        return number if number > 0 else None
    return None


def _parse_entry(entry) -> Optional[LocalLineItem]:
    if not isinstance(entry, dict):
        return None
    variant_id = _as_positive_int(entry.get("product_variant_id", entry.get("variant_id")))
    quantity = _as_positive_int(entry.get("quantity"))
    if variant_id is None or quantity is None:
        return None
    added_at = entry.get("added_at")
    if not isinstance(added_at, str) or not added_at:
        added_at = _now_iso()
    return LocalLineItem(product_variant_id=variant_id, quantity=_clamp(quantity), added_at=added_at)


def parse_items(payload) -> list[LocalLineItem]:
    """Validate an untrusted payload into line items.

    Malformed entries are skipped; repeated variants are folded into one
    entry with their quantities summed and clamped.
    """

    if not isinstance(payload, list):
        return []
    items: dict[int, LocalLineItem] = {}
    for entry in payload:
        item = _parse_entry(entry)
        if item is None:
            continue
        existing = items.get(item.product_variant_id)
        if existing is None:
            items[item.product_variant_id] = item
        else:
            existing.quantity = _clamp(existing.quantity + item.quantity)
    return list(items.values())


class LocalCartStore:
    """Ordered list of guest line items kept in a `LocalStorage`."""

    def __init__(self, storage: LocalStorage, key: str, clock: Callable[[], str] = _now_iso):
        self.storage = storage
        self.key = key
        self.clock = clock

    def read(self) -> list[LocalLineItem]:
        try:
            raw = self.storage.get(self.key)
        except STORAGE_ERRORS as exc:
            raise LocalStoreUnavailable(f"Local cart store unreachable for {self.key}") from exc
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("cart.local_store_corrupt", extra={"event": "cart.local_store_corrupt", "key": self.key})
            return []
        return parse_items(payload)

    def write(self, items: list[LocalLineItem]) -> None:
        try:
            if items:
                self.storage.set(self.key, json.dumps([item.to_dict() for item in items]))
            else:
                self.storage.delete(self.key)
        except STORAGE_ERRORS as exc:
            raise LocalStoreUnavailable(f"Local cart store unreachable for {self.key}") from exc

    def clear(self) -> None:
        self.write([])

    def add_or_merge(self, product_variant_id: int, quantity: int) -> list[LocalLineItem]:
        """Increment the entry for the variant, or append a new one."""

        items = self.read()
        for item in items:
            if item.product_variant_id == product_variant_id:
                item.quantity = _clamp(item.quantity + quantity)
                break
        else:
            items.append(
                LocalLineItem(product_variant_id=product_variant_id, quantity=_clamp(quantity), added_at=self.clock())
            )
        self.write(items)
        return items

    def set_quantity(self, product_variant_id: int, quantity: int) -> list[LocalLineItem]:
        """Set an explicit quantity; zero removes the entry."""

        items = [item for item in self.read() if item.product_variant_id != product_variant_id or quantity > 0]
        if quantity > 0:
            for item in items:
                if item.product_variant_id == product_variant_id:
                    item.quantity = _clamp(quantity)
                    break
            else:
                items.append(
                    LocalLineItem(
                        product_variant_id=product_variant_id, quantity=_clamp(quantity), added_at=self.clock()
                    )
                )
        self.write(items)
        return items

    def remove(self, product_variant_id: int) -> list[LocalLineItem]:
        return self.set_quantity(product_variant_id, 0)
