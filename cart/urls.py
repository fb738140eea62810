"""Cart URL routes (v1)."""

from django.urls import path

from .views import (
    CartClearView,
    CartDetailView,
    CartItemsView,
    CartItemView,
    CartMergeView,
    CartSummaryView,
)

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart-detail"),
    path("summary/", CartSummaryView.as_view(), name="cart-summary"),
    path("items/", CartItemsView.as_view(), name="cart-add-item"),
    path("items/<int:variant_id>/", CartItemView.as_view(), name="cart-item"),
    path("clear/", CartClearView.as_view(), name="cart-clear"),
    path("merge/", CartMergeView.as_view(), name="cart-merge"),
]
