import pytest
from cart.context import CartContext, reset_cart_context
from cart.local import MemoryStorage
from django.core.cache import cache


@pytest.fixture(autouse=True)
def fresh_cart_state():
    cache.clear()
    reset_cart_context()
    yield
    reset_cart_context()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart_context(storage):
    context = CartContext(storage=storage)
    yield context
    context.close()


@pytest.fixture
def engine(cart_context):
    return cart_context.engine()


class FlakyStorage(MemoryStorage):
    """Memory storage that starts refusing writes once `down` is set."""

    down = False

    def set(self, key, value):
        if self.down:
            raise ConnectionError("cache node unreachable")
        super().set(key, value)

    def delete(self, key):
        if self.down:
            raise ConnectionError("cache node unreachable")
        super().delete(key)


@pytest.fixture
def flaky_storage():
    return FlakyStorage()
