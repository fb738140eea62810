"""Cart app models.

A cart is the set of `CartItem` rows sharing one owner: either a user or a
guest session id, never both. Each owner has at most one row per product
variant; repeated adds increment the quantity on that row.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class CartItem(models.Model):
    """Line item in a shopping cart for a product variant.

    Price, SKU and title are read from the variant at query time; the row
    only records who owns it, which variant, and how many.
    """

    MAX_QUANTITY = 99

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="cart_items",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
    )
    session_id = models.CharField(max_length=64, null=True, blank=True)
    variant = models.ForeignKey("catalog.ProductVariant", related_name="cart_items", on_delete=models.CASCADE)
    quantity = models.PositiveIntegerField(default=1)
    added_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at", "id"]
        constraints = [
            # NULL owners never collide, so guest rows do not clash with user rows
            models.UniqueConstraint(fields=["user", "variant"], name="unique_variant_per_user_cart"),
            models.UniqueConstraint(fields=["session_id", "variant"], name="unique_variant_per_guest_cart"),
            models.CheckConstraint(
                name="cart_item_single_owner",
                condition=(
                    models.Q(user__isnull=False, session_id__isnull=True)
                    | models.Q(user__isnull=True, session_id__isnull=False)
                ),
            ),
            models.CheckConstraint(
                name="cart_item_quantity_range",
                condition=models.Q(quantity__gte=1, quantity__lte=99),
            ),
        ]
        indexes = [
            models.Index(fields=["user", "added_at"], name="cart_item_user_added_idx"),
            models.Index(fields=["session_id", "updated_at"], name="cart_item_guest_idle_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        owner = f"user={self.user_id}" if self.user_id else f"session={self.session_id}"
        return f"CartItem#{self.id} {owner} variant={self.variant_id} qty={self.quantity}"

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def line_total(self) -> Decimal:
        return (self.variant.price or Decimal("0.00")) * Decimal(int(self.quantity))
