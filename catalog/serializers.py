"""Serializers for the catalog app (read-only variant lookup)."""

from rest_framework import serializers

from .models import Product, ProductVariant


class VariantSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = ["id", "sku", "price"]


class ProductVariantSerializer(serializers.ModelSerializer):
    title = serializers.CharField(source="product.title", read_only=True)
    product_slug = serializers.CharField(source="product.slug", read_only=True)

    class Meta:
        model = ProductVariant
        fields = ["id", "sku", "price", "title", "product_slug"]


class ProductSerializer(serializers.ModelSerializer):
    # Populated by selectors.published_products() with active variants only
    variants = VariantSummarySerializer(many=True, source="active_variants")

    class Meta:
        model = Product
        fields = ["id", "title", "slug", "description", "variants"]
