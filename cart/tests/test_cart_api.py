from decimal import Decimal

import pytest
from cart.models import CartItem
from cart.tests.factories import CartItemFactory, UserFactory
from catalog.tests.factories import ProductVariantFactory
from rest_framework.test import APIClient


def _client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_cart_detail_initial_empty():
    user = UserFactory()
    resp = _client(user).get("/api/v1/cart/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["owner"] == {"type": "user", "key": f"user:{user.id}"}
    assert body["items"] == []
    assert body["item_count"] == 0
    assert body["subtotal"] == "0.00"


@pytest.mark.django_db
def test_add_item_returns_line_and_cart_reflects_it():
    user = UserFactory()
    variant = ProductVariantFactory(price=Decimal("19.99"))
    client = _client(user)

    resp = client.post("/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 2}, format="json")
    assert resp.status_code == 201
    line = resp.json()
    assert line["product_variant_id"] == variant.id
    assert line["quantity"] == 2
    assert line["sku"] == variant.sku
    assert line["title"] == variant.product.title
    assert line["line_total"] == "39.98"

    body = client.get("/api/v1/cart/").json()
    assert len(body["items"]) == 1
    assert body["item_count"] == 2
    assert Decimal(body["subtotal"]) == Decimal("39.98")


@pytest.mark.django_db
def test_adding_same_variant_twice_keeps_one_line():
    user = UserFactory()
    variant = ProductVariantFactory()
    client = _client(user)

    client.post("/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 2}, format="json")
    resp = client.post("/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 3}, format="json")

    assert resp.status_code == 201
    assert resp.json()["quantity"] == 5
    assert CartItem.objects.filter(user=user).count() == 1


@pytest.mark.django_db
def test_add_clamps_at_ninety_nine():
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=98)

    resp = _client(user).post(
        "/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 5}, format="json"
    )

    assert resp.status_code == 201
    assert resp.json()["quantity"] == 99


@pytest.mark.django_db
def test_update_item_quantity_endpoint():
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=2)

    resp = _client(user).patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 3}, format="json")

    assert resp.status_code == 200
    assert resp.json()["quantity"] == 3
    assert CartItem.objects.get(user=user).quantity == 3


@pytest.mark.django_db
def test_update_to_zero_removes_line():
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=2)

    resp = _client(user).patch(f"/api/v1/cart/items/{variant.id}/", {"quantity": 0}, format="json")

    assert resp.status_code == 204
    assert not CartItem.objects.filter(user=user).exists()


@pytest.mark.django_db
def test_delete_item_endpoint():
    user = UserFactory()
    variant = ProductVariantFactory()
    CartItemFactory(user=user, variant=variant, quantity=2)
    client = _client(user)

    assert client.delete(f"/api/v1/cart/items/{variant.id}/").status_code == 204
    assert client.delete(f"/api/v1/cart/items/{variant.id}/").status_code == 404


@pytest.mark.django_db
def test_clear_endpoint_only_clears_own_cart():
    user = UserFactory()
    other = UserFactory()
    CartItemFactory(user=user)
    CartItemFactory(user=user)
    CartItemFactory(user=other)

    resp = _client(user).post("/api/v1/cart/clear/")

    assert resp.status_code == 200
    assert resp.json() == {"status": "cleared"}
    assert not CartItem.objects.filter(user=user).exists()
    assert CartItem.objects.filter(user=other).count() == 1


@pytest.mark.django_db
def test_summary_tracks_mutations():
    user = UserFactory()
    variant = ProductVariantFactory()
    client = _client(user)

    assert client.get("/api/v1/cart/summary/").json() == {"item_count": 0}
    client.post("/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 4}, format="json")
    assert client.get("/api/v1/cart/summary/").json() == {"item_count": 4}
    client.delete(f"/api/v1/cart/items/{variant.id}/")
    assert client.get("/api/v1/cart/summary/").json() == {"item_count": 0}


@pytest.mark.django_db
def test_items_are_listed_oldest_first():
    user = UserFactory()
    first = ProductVariantFactory()
    second = ProductVariantFactory()
    client = _client(user)
    client.post("/api/v1/cart/items/", {"product_variant_id": first.id, "quantity": 1}, format="json")
    client.post("/api/v1/cart/items/", {"product_variant_id": second.id, "quantity": 1}, format="json")
    client.post("/api/v1/cart/items/", {"product_variant_id": first.id, "quantity": 1}, format="json")

    items = client.get("/api/v1/cart/").json()["items"]

    assert [i["product_variant_id"] for i in items] == [first.id, second.id]


@pytest.mark.django_db
def test_authenticated_requests_do_not_mint_guest_cookie():
    user = UserFactory()
    resp = _client(user).get("/api/v1/cart/")
    assert "cart_session" not in resp.cookies
