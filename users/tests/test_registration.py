from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase


class RegistrationTests(APITestCase):
    def test_register_creates_user(self):
        payload = {
            "username": "newuser",
            "email": "NewUser@Example.com ",
            "password": "StrongPass123!",
            "first_name": "New",
            "last_name": "User",
        }
        resp = self.client.post("/api/v1/account/register/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["email"], "newuser@example.com")

        User = get_user_model()
        user = User.objects.get(username="newuser")
        self.assertTrue(user.check_password("StrongPass123!"))

    def test_register_rejects_duplicate_email(self):
        get_user_model().objects.create_user(username="taken", email="taken@example.com", password="StrongPass123!")
        resp = self.client.post(
            "/api/v1/account/register/",
            {"username": "other", "email": "taken@example.com", "password": "StrongPass123!"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", resp.data)
