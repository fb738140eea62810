from cart.context import reset_cart_context
from cart.models import CartItem
from catalog.tests.factories import ProductVariantFactory
from django.contrib.auth import get_user_model
from django.contrib.auth.signals import user_logged_in
from django.core.cache import cache
from rest_framework import status
from rest_framework.test import APITestCase

SIGNIN_URL = "/api/v1/auth/signin/"


def _refuse_login(sender, **kwargs):
    raise RuntimeError("loyalty service down")


class SignInTests(APITestCase):
    def setUp(self):
        cache.clear()
        reset_cart_context()
        self.addCleanup(reset_cart_context)
        self.password = "StrongPass123!"
        self.user = get_user_model().objects.create_user(
            username="ana",
            email="ana@example.com",
            password=self.password,
            phone="+14155552671",
        )

    def signin(self, identifier, password=None, **extra):
        payload = {"identifier": identifier, "password": password or self.password, **extra}
        return self.client.post(SIGNIN_URL, payload, format="json")

    def test_email_is_matched_case_insensitively(self):
        resp = self.signin("  ANA@Example.com ")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(set(resp.data), {"access", "refresh"})

    def test_phone_signs_in_and_records_last_login(self):
        resp = self.signin("+14155552671")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_bad_credentials_and_inactive_accounts_are_rejected(self):
        self.assertEqual(self.signin("ana@example.com", "nope").status_code, status.HTTP_400_BAD_REQUEST)
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        resp = self.signin("ana@example.com")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("access", resp.data)

    def test_cookie_guest_cart_is_reported_in_signin_response(self):
        variant = ProductVariantFactory()
        added = self.client.post(
            "/api/v1/cart/items/", {"product_variant_id": variant.id, "quantity": 2}, format="json"
        )
        self.assertEqual(added.status_code, status.HTTP_201_CREATED)

        resp = self.signin("ana@example.com")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["cart_merge"]["migrated"], [variant.id])
        self.assertEqual(CartItem.objects.get(user=self.user).quantity, 2)
        self.assertFalse(CartItem.objects.filter(user__isnull=True).exists())

    def test_device_cart_items_join_the_cookie_cart(self):
        stored = ProductVariantFactory()
        held = ProductVariantFactory()
        self.client.post("/api/v1/cart/items/", {"product_variant_id": stored.id, "quantity": 1}, format="json")

        resp = self.signin("ana@example.com", cart_items=[{"product_variant_id": held.id, "quantity": 3}])

        self.assertEqual(resp.data["cart_merge"]["total"], 2)
        quantities = dict(CartItem.objects.filter(user=self.user).values_list("variant_id", "quantity"))
        self.assertEqual(quantities, {stored.id: 1, held.id: 3})

    def test_failing_login_receiver_is_logged_and_signin_goes_on(self):
        user_logged_in.connect(_refuse_login, dispatch_uid="users.tests.refuse_login")
        self.addCleanup(user_logged_in.disconnect, dispatch_uid="users.tests.refuse_login")

        with self.assertLogs("auth", level="ERROR") as logs:
            resp = self.signin("ana@example.com")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("access", resp.data)
        self.assertEqual([r.getMessage() for r in logs.records], ["auth.login_hook_failed"])


class SignOutTests(APITestCase):
    def setUp(self):
        get_user_model().objects.create_user(username="ben", email="ben@example.com", password="StrongPass123!")
        tokens = self.client.post(
            SIGNIN_URL, {"identifier": "ben@example.com", "password": "StrongPass123!"}, format="json"
        ).data
        self.refresh = tokens["refresh"]
        self.access = tokens["access"]

    def test_signout_blacklists_refresh_token(self):
        resp = self.client.post("/api/v1/auth/signout/", {"refresh": self.refresh}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_205_RESET_CONTENT)
        again = self.client.post("/api/v1/auth/refresh/", {"refresh": self.refresh}, format="json")
        self.assertEqual(again.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_signout_rejects_missing_or_garbage_token(self):
        missing = self.client.post("/api/v1/auth/signout/", {}, format="json")
        garbage = self.client.post("/api/v1/auth/signout/", {"refresh": "not-a-jwt"}, format="json")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(garbage.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("refresh", garbage.data)

    def test_profile_needs_a_bearer_token(self):
        self.assertEqual(self.client.get("/api/v1/account/profile/").status_code, status.HTTP_401_UNAUTHORIZED)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.access}")
        resp = self.client.get("/api/v1/account/profile/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["email"], "ben@example.com")
        self.assertEqual(resp.data["phone"], "")
