import factory
from cart.models import CartItem
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory, Password


class UserFactory(DjangoModelFactory):
    class Meta:
        model = get_user_model()

    username = factory.Sequence(lambda n: f"shopper{n}")
    email = factory.Sequence(lambda n: f"shopper{n}@example.com")
    password = Password("pass")


class CartItemFactory(DjangoModelFactory):
    """User-owned line item; pass `user=None, session_id=...` for a guest row."""

    class Meta:
        model = CartItem

    user = factory.SubFactory(UserFactory)
    session_id = None
    variant = factory.SubFactory("catalog.tests.factories.ProductVariantFactory")
    quantity = 1
