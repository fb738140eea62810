"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Products and variants referenced by cart line items."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
