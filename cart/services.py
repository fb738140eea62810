"""Cart services: server-side cart mutations and the guest/user cart engine.

Server rows are mutated with single-statement increments so concurrent
adds for the same owner and variant both land. `CartEngine` is the one
entry point views, signals and admin actions use; it routes guests to the
local store (optionally mirrored into server rows) and users to the
server store, merges guest carts at login, and publishes every successful
mutation on the notification bus.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from catalog.models import ProductVariant
from catalog.selectors import get_purchasable_variant
from common.choices import CartAction
from django.conf import settings
from django.db import DatabaseError, IntegrityError, models, transaction
from django.db.models import F, Value
from django.db.models.functions import Least
from django.utils import timezone

from .local import LocalCartStore, LocalLineItem
from .models import CartItem
from .notifications import CartNotificationBus
from .owners import CartOwner, GuestOwner, UserOwner
from .selectors import CartLine, line_from_item, lines_for_owner, lines_from_local, server_item_count


class CartError(Exception):
    """Raised for cart mutation failures."""


class InvalidQuantity(CartError):
    pass


class VariantUnavailable(CartError):
    pass


class ItemNotInCart(CartError):
    pass


logger = logging.getLogger("storefront.cart")


def validate_quantity(quantity, *, allow_zero: bool = False) -> int:
    low = 0 if allow_zero else 1
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity("Quantity must be a whole number")
    if quantity < low or quantity > CartItem.MAX_QUANTITY:
        raise InvalidQuantity(f"Quantity must be between {low} and {CartItem.MAX_QUANTITY}")
    return quantity


def require_variant(variant_id: int) -> ProductVariant:
    variant = get_purchasable_variant(variant_id)
    if variant is None:
        raise VariantUnavailable(f"Product variant {variant_id} is not available")
    return variant


def _owner_items(owner: CartOwner):
    return CartItem.objects.filter(**owner.filter_kwargs())


def _increment(*, owner: CartOwner, variant_id: int, quantity: int) -> Optional[CartItem]:
    """Atomically add to an existing row, clamped at the maximum."""

    qs = _owner_items(owner).filter(variant_id=variant_id)
    updated = qs.update(
        quantity=Least(
            F("quantity") + quantity,
            Value(CartItem.MAX_QUANTITY),
            output_field=models.PositiveIntegerField(),
        ),
        updated_at=timezone.now(),
    )
    if not updated:
        return None
    return qs.select_related("variant", "variant__product").get()


@transaction.atomic
def upsert_item(*, owner: CartOwner, variant_id: int, quantity: int) -> CartItem:
    """Insert the (owner, variant) row or add `quantity` to it.

    The quantity accumulates and is clamped to `CartItem.MAX_QUANTITY`.
    """

    validate_quantity(quantity)
    variant = require_variant(variant_id)

    item = _increment(owner=owner, variant_id=variant.id, quantity=quantity)
    event = "cart.item_updated"
    if item is None:
        try:
            with transaction.atomic():
                item = CartItem.objects.create(variant=variant, quantity=quantity, **owner.filter_kwargs())
            event = "cart.item_added"
        except IntegrityError:
            # A concurrent request inserted the row first; add on top of it
            item = _increment(owner=owner, variant_id=variant.id, quantity=quantity)
            if item is None:
                raise
    logger.info(
        event,
        extra={
            "event": event,
            "owner": owner.key,
            "variant_id": variant.id,
            "quantity": int(item.quantity),
            "guest": owner.is_guest,
        },
    )
    return item


@transaction.atomic
def set_item_quantity(*, owner: CartOwner, variant_id: int, quantity: int) -> Optional[CartItem]:
    """Set an explicit quantity on a server row; zero deletes it."""

    validate_quantity(quantity, allow_zero=True)
    qs = _owner_items(owner).filter(variant_id=variant_id)
    if quantity == 0:
        if not remove_item(owner=owner, variant_id=variant_id):
            raise ItemNotInCart(f"Product variant {variant_id} is not in the cart")
        return None
    if not qs.update(quantity=quantity, updated_at=timezone.now()):
        raise ItemNotInCart(f"Product variant {variant_id} is not in the cart")
    return qs.select_related("variant", "variant__product").get()


@transaction.atomic
def put_item(*, owner: CartOwner, variant_id: int, quantity: int) -> CartItem:
    """Create or overwrite a server row with exactly `quantity`."""

    validate_quantity(quantity)
    item, _ = CartItem.objects.update_or_create(
        variant_id=variant_id,
        **owner.filter_kwargs(),
        defaults={"quantity": quantity, "updated_at": timezone.now()},
    )
    return item


@transaction.atomic
def remove_item(*, owner: CartOwner, variant_id: int) -> bool:
    deleted, _ = _owner_items(owner).filter(variant_id=variant_id).delete()
    if deleted:
        logger.info(
            "cart.item_removed",
            extra={"event": "cart.item_removed", "owner": owner.key, "variant_id": variant_id, "guest": owner.is_guest},
        )
    return bool(deleted)


@transaction.atomic
def clear_items(*, owner: CartOwner) -> int:
    deleted, _ = _owner_items(owner).delete()
    logger.info(
        "cart.cleared",
        extra={"event": "cart.cleared", "owner": owner.key, "items": deleted, "guest": owner.is_guest},
    )
    return deleted


@dataclass
class MergeFailure:
    product_variant_id: int
    quantity: int
    reason: str


@dataclass
class MergeReport:
    """Outcome of carrying a guest cart over to a user."""

    session_id: Optional[str]
    user_id: int
    migrated: list[int] = field(default_factory=list)
    failed: list[MergeFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.migrated) + len(self.failed)

    @property
    def summary(self) -> str:
        return f"{len(self.migrated)} of {self.total} items carried over"

    def as_dict(self) -> dict:
        return {
            "migrated": list(self.migrated),
            "failed": [
                {"product_variant_id": f.product_variant_id, "quantity": f.quantity, "reason": f.reason}
                for f in self.failed
            ],
            "total": self.total,
            "summary": self.summary,
        }


class CartEngine:
    """Single entry point for cart reads and mutations of either owner type."""

    def __init__(
        self,
        *,
        local_store_factory: Callable[[GuestOwner], LocalCartStore],
        bus: CartNotificationBus,
        mirror_guest_items: Optional[bool] = None,
    ):
        self.local_store_factory = local_store_factory
        self.bus = bus
        if mirror_guest_items is None:
            mirror_guest_items = settings.CART_MIRROR_GUEST_ITEMS
        self.mirror_guest_items = mirror_guest_items

    def local_store(self, owner: GuestOwner) -> LocalCartStore:
        return self.local_store_factory(owner)

    def _guest_quantities(
        self, owner: Optional[GuestOwner], extra_items: Iterable[LocalLineItem] = ()
    ) -> dict[int, LocalLineItem]:
        """Collapse every replica of a guest cart into one item per variant.

        The local store, mirrored server rows and a client-supplied list all
        describe the same cart, so the largest quantity seen wins rather
        than the sum.
        """

        merged: dict[int, LocalLineItem] = {}

        def take(item: LocalLineItem) -> None:
            current = merged.get(item.product_variant_id)
            if current is None:
                merged[item.product_variant_id] = LocalLineItem(
                    product_variant_id=item.product_variant_id, quantity=item.quantity, added_at=item.added_at
                )
            elif item.quantity > current.quantity:
                current.quantity = item.quantity

        if owner is not None:
            for item in self.local_store(owner).read():
                take(item)
            for row in _owner_items(owner).order_by("added_at", "id"):
                take(
                    LocalLineItem(
                        product_variant_id=row.variant_id, quantity=int(row.quantity), added_at=row.added_at.isoformat()
                    )
                )
        for item in extra_items:
            take(item)
        return merged

    def get_cart(self, owner: CartOwner) -> list[CartLine]:
        if owner.is_guest:
            return lines_from_local(self._guest_quantities(owner).values())
        return lines_for_owner(owner)

    def item_count(self, owner: CartOwner) -> int:
        if owner.is_guest:
            return sum(item.quantity for item in self._guest_quantities(owner).values())
        return server_item_count(owner)

    def _line_for(self, owner: CartOwner, variant_id: int) -> Optional[CartLine]:
        for line in self.get_cart(owner):
            if line.product_variant_id == variant_id:
                return line
        return None

    def add_to_cart(self, owner: CartOwner, variant_id: int, quantity: int) -> CartLine:
        """Add `quantity` of a variant to the owner's active store."""

        validate_quantity(quantity)
        if owner.is_guest:
            require_variant(variant_id)
            # A failed local write rolls the mirrored row back with it
            with transaction.atomic():
                if self.mirror_guest_items:
                    upsert_item(owner=owner, variant_id=variant_id, quantity=quantity)
                self.local_store(owner).add_or_merge(variant_id, quantity)
            logger.info(
                "cart.local_item_added",
                extra={
                    "event": "cart.local_item_added",
                    "owner": owner.key,
                    "variant_id": variant_id,
                    "quantity": quantity,
                    "guest": True,
                },
            )
            line = self._line_for(owner, variant_id)
        else:
            line = line_from_item(upsert_item(owner=owner, variant_id=variant_id, quantity=quantity))
        self.bus.publish(owner, CartAction.ADDED)
        return line

    def set_quantity(self, owner: CartOwner, variant_id: int, quantity: int) -> Optional[CartLine]:
        """Set an explicit quantity; zero removes the line. Returns the line or None."""

        validate_quantity(quantity, allow_zero=True)
        if owner.is_guest:
            if variant_id not in self._guest_quantities(owner):
                raise ItemNotInCart(f"Product variant {variant_id} is not in the cart")
            with transaction.atomic():
                if self.mirror_guest_items:
                    if quantity:
                        put_item(owner=owner, variant_id=variant_id, quantity=quantity)
                    else:
                        remove_item(owner=owner, variant_id=variant_id)
                self.local_store(owner).set_quantity(variant_id, quantity)
            line = self._line_for(owner, variant_id) if quantity else None
        else:
            item = set_item_quantity(owner=owner, variant_id=variant_id, quantity=quantity)
            line = line_from_item(item) if item is not None else None
        self.bus.publish(owner, CartAction.UPDATED if quantity else CartAction.REMOVED)
        return line

    def remove_item(self, owner: CartOwner, variant_id: int) -> bool:
        if owner.is_guest:
            present = variant_id in self._guest_quantities(owner)
            with transaction.atomic():
                remove_item(owner=owner, variant_id=variant_id)
                self.local_store(owner).remove(variant_id)
        else:
            present = remove_item(owner=owner, variant_id=variant_id)
        if present:
            self.bus.publish(owner, CartAction.REMOVED)
        return present

    def clear(self, owner: CartOwner) -> None:
        with transaction.atomic():
            clear_items(owner=owner)
            if owner.is_guest:
                self.local_store(owner).clear()
        self.bus.publish(owner, CartAction.CLEARED)

    def merge_on_login(
        self, *, session_id: Optional[str], user_id: int, extra_items: Iterable[LocalLineItem] = ()
    ) -> MergeReport:
        """Carry the guest cart for `session_id` over to `user_id`.

        Quantities add onto what the user already has, clamped at the
        maximum. Items that cannot be migrated are skipped and reported.
        The server-side work is one transaction with a savepoint per item;
        the local store is cleared only after it commits, so an interrupted
        merge can simply be run again. Once a merge has completed there are
        no guest items left, which makes a second run a no-op.

        Without a session id only `extra_items` are merged.
        """

        guest = GuestOwner(session_id) if session_id else None
        user = UserOwner(user_id)
        report = MergeReport(session_id=session_id, user_id=user_id)
        guest_items = self._guest_quantities(guest, extra_items)
        if not guest_items:
            return report

        with transaction.atomic():
            for item in guest_items.values():
                try:
                    upsert_item(
                        owner=user,
                        variant_id=item.product_variant_id,
                        quantity=min(item.quantity, CartItem.MAX_QUANTITY),
                    )
                except (CartError, DatabaseError) as exc:
                    report.failed.append(
                        MergeFailure(product_variant_id=item.product_variant_id, quantity=item.quantity, reason=str(exc))
                    )
                    continue
                report.migrated.append(item.product_variant_id)
            if guest is not None:
                _owner_items(guest).delete()
        if guest is not None:
            self.local_store(guest).clear()

        logger.info(
            "cart.merged",
            extra={
                "event": "cart.merged",
                "owner": user.key,
                "session_id": session_id,
                "migrated": len(report.migrated),
                "failed": len(report.failed),
                "summary": report.summary,
            },
        )
        self.bus.publish(user, CartAction.MERGED)
        if guest is not None:
            self.bus.publish(guest, CartAction.CLEARED)
        return report
