"""Django app configuration for the users app."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Shopper accounts; signing in is what turns a guest cart into a user cart."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Accounts"
