"""URL routes for the catalog app."""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ProductViewSet, VariantViewSet

router = SimpleRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"variants", VariantViewSet, basename="variant")

urlpatterns = [path("", include(router.urls))]
