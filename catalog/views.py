"""Read-only catalog endpoints used to find variants to put in a cart."""

from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets

from . import selectors
from .models import ProductVariant
from .serializers import ProductSerializer, ProductVariantSerializer


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description="Returns published products with their active variants. Supports search via `search`.",
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search products by text"),
            OpenApiParameter("ordering", OpenApiTypes.STR, location="query", description="Order by `title`"),
        ],
        examples=[
            OpenApiExample(
                "Product list",
                value={
                    "count": 1,
                    "next": None,
                    "previous": None,
                    "results": [
                        {
                            "id": 1,
                            "title": "Linen Shirt",
                            "slug": "linen-shirt",
                            "description": "Breathable summer shirt",
                            "variants": [{"id": 42, "sku": "SHIRT-LINEN-M", "price": "49.00"}],
                        }
                    ],
                },
                response_only=True,
            )
        ],
    ),
    retrieve=extend_schema(
        summary="Get product by slug",
        description="Returns a published product with its active variants",
        tags=["Catalog Endpoints"],
    ),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    lookup_field = "slug"
    lookup_value_regex = "[^/]+"
    throttle_scope = "catalog"
    filter_backends = [drf_filters.OrderingFilter, drf_filters.SearchFilter]
    ordering_fields = ["title"]
    search_fields = ["title", "description", "variants__sku"]

    def get_queryset(self):
        return selectors.published_products().order_by("title")


class VariantFilterSet(filters.FilterSet):
    product = filters.CharFilter(field_name="product__slug")
    sku = filters.CharFilter(field_name="sku", lookup_expr="iexact")

    class Meta:
        model = ProductVariant
        fields = ["product", "sku"]


@extend_schema_view(
    list=extend_schema(
        summary="List purchasable variants",
        description="Active variants of published products. Filter by `product` slug or exact `sku`.",
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("product", OpenApiTypes.STR, location="query", description="Filter by product slug"),
            OpenApiParameter("sku", OpenApiTypes.STR, location="query", description="Filter by SKU"),
        ],
    ),
    retrieve=extend_schema(
        summary="Get variant",
        description="Returns a purchasable variant by id",
        tags=["Catalog Endpoints"],
        examples=[
            OpenApiExample(
                "Variant",
                value={
                    "id": 42,
                    "sku": "SHIRT-LINEN-M",
                    "price": "49.00",
                    "title": "Linen Shirt",
                    "product_slug": "linen-shirt",
                },
                response_only=True,
            )
        ],
    ),
)
class VariantViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductVariantSerializer
    throttle_scope = "catalog"
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = VariantFilterSet

    def get_queryset(self):
        return selectors.purchasable_variants().order_by("sku")
