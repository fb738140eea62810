"""DRF views for cart operations.

Every view serves both owner types: the identity resolver runs once per
request and the resolved `CartOwner` is passed to the cart engine.
"""

import logging

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.authentication import SessionAuthentication
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .context import get_cart_context
from .identity import SESSION_HEADER, IdentityResolver, OptionalJWTAuthentication, set_session_cookie
from .local import LocalStoreUnavailable
from .serializers import (
    AddItemSerializer,
    CartLineSerializer,
    CartReadSerializer,
    MergeRequestSerializer,
    UpdateItemQuantitySerializer,
)
from .services import CartError, InvalidQuantity, ItemNotInCart, VariantUnavailable

logger = logging.getLogger("storefront.cart")

SESSION_PARAMETER = OpenApiParameter(
    name=SESSION_HEADER,
    location=OpenApiParameter.HEADER,
    required=False,
    description="Guest session identifier; used when the cart_session cookie is not sent",
    type=str,
)
ERROR_RESPONSE = inline_serializer(name="CartMutationError", fields={"detail": rf_serializers.CharField()})
NOT_FOUND_RESPONSE = inline_serializer(name="NotFoundError", fields={"detail": rf_serializers.CharField()})
UNAVAILABLE_RESPONSE = inline_serializer(name="CartUnavailableError", fields={"detail": rf_serializers.CharField()})

LINE_EXAMPLE = {
    "product_variant_id": 42,
    "quantity": 2,
    "sku": "SHIRT-LINEN-M",
    "title": "Linen Shirt",
    "unit_price": "49.00",
    "line_total": "98.00",
    "added_at": "2024-05-01T10:00:00Z",
}


class CartAPIView(APIView):
    """Base view: resolves the cart owner and translates cart errors."""

    authentication_classes = [OptionalJWTAuthentication, SessionAuthentication]
    permission_classes = [AllowAny]
    cart_context = None
    resolver_class = IdentityResolver

    def get_cart_context(self):
        return self.cart_context if self.cart_context is not None else get_cart_context()

    def get_engine(self):
        return self.get_cart_context().engine()

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.resolution = self.resolver_class().resolve(request)
        self.owner = self.resolution.owner

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        resolution = getattr(self, "resolution", None)
        if resolution is not None and resolution.minted:
            set_session_cookie(response, resolution.session_id)
        return response

    def handle_exception(self, exc):
        if isinstance(exc, InvalidQuantity):
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, (VariantUnavailable, ItemNotInCart)):
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, CartError):
            return Response({"detail": "Unable to update cart."}, status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, (DatabaseError, LocalStoreUnavailable)):
            logger.error("cart.storage_unavailable", exc_info=exc, extra={"event": "cart.storage_unavailable"})
            return Response(
                {"detail": "Cart temporarily unavailable, please retry."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return super().handle_exception(exc)


class CartDetailView(CartAPIView):
    """Return the resolved owner's cart."""

    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description="Returns the cart of the signed-in user, or of the guest session when not signed in.",
        parameters=[SESSION_PARAMETER],
        responses={200: CartReadSerializer, 503: UNAVAILABLE_RESPONSE},
        examples=[
            OpenApiExample(
                "Cart",
                value={
                    "owner": {"type": "user", "key": "user:7"},
                    "items": [LINE_EXAMPLE],
                    "item_count": 2,
                    "subtotal": "98.00",
                },
            )
        ],
    )
    def get(self, request):
        lines = self.get_engine().get_cart(self.owner)
        data = CartReadSerializer.from_lines(owner=self.owner, lines=lines).data
        return Response(data, status=status.HTTP_200_OK)


class CartSummaryView(CartAPIView):
    """Item count for the cart badge."""

    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart item count",
        description="Total quantity across the cart, cached until the cart changes.",
        parameters=[SESSION_PARAMETER],
        responses={
            200: inline_serializer(name="CartSummary", fields={"item_count": rf_serializers.IntegerField()}),
            503: UNAVAILABLE_RESPONSE,
        },
        examples=[OpenApiExample("Summary", value={"item_count": 3})],
    )
    def get(self, request):
        context = self.get_cart_context()
        engine = context.engine()
        count = context.badges.get_or_compute(self.owner, lambda: engine.item_count(self.owner))
        return Response({"item_count": count}, status=status.HTTP_200_OK)


class CartItemsView(CartAPIView):
    """Add a variant to the cart."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description=(
            "Adds a product variant to the cart. Adding a variant already in the cart increases its "
            "quantity, capped at 99."
        ),
        request=AddItemSerializer,
        parameters=[SESSION_PARAMETER],
        responses={
            201: CartLineSerializer,
            400: ERROR_RESPONSE,
            404: NOT_FOUND_RESPONSE,
            503: UNAVAILABLE_RESPONSE,
        },
        examples=[
            OpenApiExample("Add", value={"product_variant_id": 42, "quantity": 1}, request_only=True),
            OpenApiExample("Added", value=LINE_EXAMPLE, response_only=True, status_codes=["201"]),
        ],
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data, context={"engine": self.get_engine(), "owner": self.owner})
        serializer.is_valid(raise_exception=True)
        line = serializer.save()
        return Response(CartLineSerializer(line).data, status=status.HTTP_201_CREATED)


class CartItemView(CartAPIView):
    """Update or remove one line, addressed by product variant id."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Set cart item quantity",
        description="Sets the quantity of a line already in the cart. A quantity of 0 removes the line.",
        request=UpdateItemQuantitySerializer,
        parameters=[SESSION_PARAMETER],
        responses={
            200: CartLineSerializer,
            204: None,
            400: ERROR_RESPONSE,
            404: NOT_FOUND_RESPONSE,
            503: UNAVAILABLE_RESPONSE,
        },
        examples=[OpenApiExample("Update", value={"quantity": 3}, request_only=True)],
    )
    def patch(self, request, variant_id: int):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = self.get_engine().set_quantity(self.owner, variant_id, serializer.validated_data["quantity"])
        if line is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(CartLineSerializer(line).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Remove cart item",
        description="Removes the line for this product variant.",
        parameters=[SESSION_PARAMETER],
        responses={204: None, 404: NOT_FOUND_RESPONSE, 503: UNAVAILABLE_RESPONSE},
        examples=[OpenApiExample("No Content", value=None)],
    )
    def delete(self, request, variant_id: int):
        if not self.get_engine().remove_item(self.owner, variant_id):
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartClearView(CartAPIView):
    """Remove every line from the cart."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        description="Deletes every line in the resolved owner's cart.",
        parameters=[SESSION_PARAMETER],
        responses={
            200: inline_serializer(name="CartStatusCleared", fields={"status": rf_serializers.CharField()}),
            503: UNAVAILABLE_RESPONSE,
        },
        examples=[OpenApiExample("Cleared", value={"status": "cleared"})],
    )
    def post(self, request):
        self.get_engine().clear(self.owner)
        return Response({"status": "cleared"}, status=status.HTTP_200_OK)


class CartMergeView(CartAPIView):
    """Merge a guest cart into the signed-in user's cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Merge guest cart into user cart",
        description=(
            "Carries the guest cart named by the cart_session cookie or X-Session-Id header over to the "
            "signed-in user, together with any items held by the client. Quantities add up, capped at 99. "
            "Running the merge again is harmless."
        ),
        request=MergeRequestSerializer,
        parameters=[SESSION_PARAMETER],
        responses={
            200: inline_serializer(
                name="CartMergeReport",
                fields={
                    "migrated": rf_serializers.ListField(child=rf_serializers.IntegerField()),
                    "failed": rf_serializers.ListField(child=rf_serializers.DictField()),
                    "total": rf_serializers.IntegerField(),
                    "summary": rf_serializers.CharField(),
                },
            ),
            400: ERROR_RESPONSE,
            503: UNAVAILABLE_RESPONSE,
        },
        examples=[
            OpenApiExample(
                "Merge",
                value={"items": [{"product_variant_id": 42, "quantity": 2}]},
                request_only=True,
            ),
            OpenApiExample(
                "Merged",
                value={"migrated": [42], "failed": [], "total": 1, "summary": "1 of 1 items carried over"},
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = MergeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = self.get_engine().merge_on_login(
            session_id=self.resolution.session_id,
            user_id=request.user.id,
            extra_items=serializer.validated_data.get("items", []),
        )
        return Response(report.as_dict(), status=status.HTTP_200_OK)
