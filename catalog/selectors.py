"""Selectors for the catalog domain.

Read-only query helpers the cart uses to validate variants and to join
live price, SKU and title into cart reads.
"""

from typing import Iterable, Optional

from django.db.models import Prefetch, QuerySet

from .models import Product, ProductVariant


def published_products() -> QuerySet[Product]:
    """Published products with their active variants prefetched as `active_variants`."""

    return Product.objects.filter(status=Product.STATUS_PUBLISHED).prefetch_related(
        Prefetch(
            "variants",
            queryset=ProductVariant.objects.filter(status=ProductVariant.STATUS_ACTIVE).order_by("sku"),
            to_attr="active_variants",
        )
    )


def purchasable_variants() -> QuerySet[ProductVariant]:
    """Active variants of published products, with their product joined."""

    return ProductVariant.objects.select_related("product").filter(
        status=ProductVariant.STATUS_ACTIVE,
        product__status=Product.STATUS_PUBLISHED,
    )


def get_purchasable_variant(variant_id: int) -> Optional[ProductVariant]:
    """Return the variant if it can be added to a cart, else None."""

    try:
        return purchasable_variants().get(id=variant_id)
    except ProductVariant.DoesNotExist:
        return None


def variants_by_id(variant_ids: Iterable[int]) -> dict[int, ProductVariant]:
    """Map ids to variants (any status) with products joined, for display."""

    ids = {int(v) for v in variant_ids}
    if not ids:
        return {}
    return {v.id: v for v in ProductVariant.objects.select_related("product").filter(id__in=ids)}
