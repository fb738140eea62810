"""Selectors for read-only cart queries.

Cart reads always join the live variant (price, SKU) and product (title);
nothing display-related is stored on the cart rows themselves.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from catalog.selectors import variants_by_id
from django.db.models import QuerySet, Sum
from django.utils.dateparse import parse_datetime

from .local import LocalLineItem
from .models import CartItem
from .owners import CartOwner


@dataclass
class CartLine:
    """One cart line with display fields joined in."""

    product_variant_id: int
    quantity: int
    sku: str
    title: str
    unit_price: Optional[Decimal]
    added_at: Optional[datetime]
    updated_at: Optional[datetime] = None

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(self.quantity)


def items_for_owner(owner: CartOwner) -> QuerySet[CartItem]:
    """Server rows for the owner, oldest first, with variant data joined."""

    return (
        CartItem.objects.filter(**owner.filter_kwargs())
        .select_related("variant", "variant__product")
        .order_by("added_at", "id")
    )


def line_from_item(item: CartItem) -> CartLine:
    return CartLine(
        product_variant_id=item.variant_id,
        quantity=int(item.quantity),
        sku=item.variant.sku,
        title=item.variant.product.title,
        unit_price=item.variant.price,
        added_at=item.added_at,
        updated_at=item.updated_at,
    )


def lines_for_owner(owner: CartOwner) -> list[CartLine]:
    return [line_from_item(item) for item in items_for_owner(owner)]


def lines_from_local(items: Iterable[LocalLineItem]) -> list[CartLine]:
    """Join local line items with live variant data.

    Items whose variant no longer exists are left out of the read.
    """

    items = list(items)
    variants = variants_by_id(item.product_variant_id for item in items)
    lines = []
    for item in items:
        variant = variants.get(item.product_variant_id)
        if variant is None:
            continue
        lines.append(
            CartLine(
                product_variant_id=item.product_variant_id,
                quantity=item.quantity,
                sku=variant.sku,
                title=variant.product.title,
                unit_price=variant.price,
                added_at=_parse_added_at(item.added_at),
            )
        )
    return lines


def _parse_added_at(value: str) -> Optional[datetime]:
    try:
        return parse_datetime(value)
    except ValueError:
        return None


def cart_totals(lines: Iterable[CartLine]) -> dict:
    """Compute item count and subtotal for a set of lines."""

    lines = list(lines)
    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    # Taxes, shipping and discounts belong to checkout, not the cart
    return {
        "item_count": sum(line.quantity for line in lines),
        "subtotal": subtotal,
    }


def server_item_count(owner: CartOwner) -> int:
    agg = CartItem.objects.filter(**owner.filter_kwargs()).aggregate(total=Sum("quantity"))
    return int(agg.get("total") or 0)
