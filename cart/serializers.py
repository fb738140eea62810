"""Cart serializers for read and write operations."""

from rest_framework import serializers

from .local import parse_items
from .models import CartItem
from .selectors import cart_totals


class CartLineSerializer(serializers.Serializer):
    """Read serializer for a cart line with live variant fields."""

    product_variant_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    sku = serializers.CharField()
    title = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    added_at = serializers.DateTimeField(allow_null=True)


class CartOwnerSerializer(serializers.Serializer):
    type = serializers.SerializerMethodField()
    key = serializers.CharField()

    def get_type(self, owner) -> str:
        return "guest" if owner.is_guest else "user"


class CartReadSerializer(serializers.Serializer):
    """Read serializer for the cart contents and totals."""

    owner = CartOwnerSerializer()
    items = CartLineSerializer(many=True)
    item_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)

    @classmethod
    def from_lines(cls, *, owner, lines):
        totals = cart_totals(lines)
        return cls(
            {
                "owner": owner,
                "items": list(lines),
                "item_count": totals["item_count"],
                "subtotal": totals["subtotal"],
            }
        )


class AddItemSerializer(serializers.Serializer):
    """Write serializer for adding a variant to the resolved owner's cart."""

    product_variant_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=CartItem.MAX_QUANTITY)

    def create(self, validated_data):  # type: ignore[override]
        engine = self.context["engine"]
        return engine.add_to_cart(self.context["owner"], validated_data["product_variant_id"], validated_data["quantity"])


class UpdateItemQuantitySerializer(serializers.Serializer):
    """Write serializer for setting a line's quantity; zero removes the line."""

    quantity = serializers.IntegerField(min_value=0, max_value=CartItem.MAX_QUANTITY)


class MergeRequestSerializer(serializers.Serializer):
    """Optional browser-held cart sent along with an explicit merge."""

    items = serializers.ListField(child=serializers.DictField(), required=False, max_length=200)

    def validate_items(self, value):
        # Untrusted client data: malformed entries are dropped, not rejected
        return parse_items(value)
