import pytest
from cart.context import CartContext
from cart.models import CartItem
from cart.services import CartEngine
from cart.tests.factories import CartItemFactory, UserFactory
from catalog.models import ProductVariant
from catalog.tests.factories import ProductVariantFactory
from django.db import DatabaseError
from rest_framework.test import APIClient


def _auth_client():
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client


@pytest.mark.parametrize("quantity", [0, -2, 100])
@pytest.mark.django_db
def test_add_item_out_of_range_quantity_returns_400(quantity):
    variant = ProductVariantFactory()
    resp = _auth_client().post(
        "/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": quantity}, format="json"
    )
    assert resp.status_code == 400
    assert "quantity" in resp.json()
    assert not CartItem.objects.exists()


@pytest.mark.django_db
def test_add_item_missing_fields_returns_400():
    resp = _auth_client().post("/api/v1/cart/items/", {}, format="json")
    assert resp.status_code == 400
    body = resp.json()
    assert "product_variant_id" in body
    assert "quantity" in body


@pytest.mark.django_db
def test_add_item_unknown_variant_returns_404():
    resp = _auth_client().post("/api/v1/cart/items/", {"product_variant_id": 999999, "quantity": 1}, format="json")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Product variant 999999 is not available"


@pytest.mark.django_db
def test_guest_add_inactive_variant_returns_404():
    variant = ProductVariantFactory(status=ProductVariant.STATUS_INACTIVE)
    resp = APIClient().post(
        "/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 1}, format="json"
    )
    assert resp.status_code == 404
    assert not CartItem.objects.exists()


@pytest.mark.django_db
def test_update_quantity_out_of_range_returns_400():
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=2)
    client = APIClient()
    client.force_authenticate(user=user)

    resp = client.patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 100}, format="json")

    assert resp.status_code == 400
    assert CartItem.objects.get(user=user).quantity == 2


@pytest.mark.django_db
def test_update_item_not_in_cart_returns_404():
    variant = ProductVariantFactory()
    resp = _auth_client().patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 1}, format="json")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_guest_update_item_not_in_cart_returns_404():
    variant = ProductVariantFactory()
    resp = APIClient().patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 1}, format="json")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_cannot_touch_another_users_line():
    owner = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=owner, variant=variant, quantity=2)
    intruder = _auth_client()

    assert intruder.patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 9}, format="json").status_code == 404
    assert intruder.delete(f"/api/v1/cart/items/{variant.id}/").status_code == 404
    assert CartItem.objects.get(user=owner).quantity == 2


@pytest.mark.django_db
def test_database_failure_returns_503(monkeypatch):
    def broken(self, owner):
        raise DatabaseError("connection refused")

    monkeypatch.setattr(CartEngine, "get_cart", broken)

    resp = _auth_client().get("/api/v1/cart/")

    assert resp.status_code == 503
    assert resp.json() == {"detail": "Cart temporarily unavailable, please retry."}


@pytest.mark.django_db
def test_database_failure_on_write_leaves_cart_unchanged(monkeypatch):
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=2)
    client = APIClient()
    client.force_authenticate(user=user)

    def broken(self, owner, variant_id, quantity):
        raise DatabaseError("server closed the connection")

    monkeypatch.setattr(CartEngine, "add_to_cart", broken)

    resp = client.post("/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 1}, format="json")

    assert resp.status_code == 503
    assert CartItem.objects.get(user=user).quantity == 2


@pytest.mark.django_db
def test_merge_payload_must_be_a_list():
    resp = _auth_client().post("/api/v1/cart/merge/", {"items": "nope"}, format="json")
    assert resp.status_code == 400
    assert "items" in resp.json()


@pytest.mark.django_db
def test_local_store_outage_returns_503_without_partial_write(flaky_storage, monkeypatch):
    context = CartContext(storage=flaky_storage)
    monkeypatch.setattr("cart.views.get_cart_context", lambda: context)
    variant = ProductVariantFactory()
    flaky_storage.down = True

    resp = APIClient().post(
        "/api/v1/cart/items/",
        {"product_variant_id": variant.id, "quantity": 2},
        format="json",
        HTTP_X_SESSION_ID="s1",
    )

    assert resp.status_code == 503
    assert resp.json() == {"detail": "Cart temporarily unavailable, please retry."}
    assert not CartItem.objects.filter(session_id="s1").exists()
    context.close()


@pytest.mark.django_db
def test_merge_drops_entries_with_non_ascii_digits():
    variant = ProductVariantFactory()
    resp = _auth_client().post(
        "/api/v1/cart/merge/",
        {"items": [{"product_variant_id": variant.id, "quantity": "¹"}, {"product_variant_id": "²", "quantity": 1}]},
        format="json",
    )
    assert resp.status_code == 200
    assert resp.json()["total"] == 0
    assert not CartItem.objects.exists()
