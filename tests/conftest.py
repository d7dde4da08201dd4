"""Shared fixtures for the storecart test suite."""
from decimal import Decimal

import pytest

from storecart.app import create_app
from storecart.common.services.cart_aggregate import CartAggregate
from storecart.common.services.cart_storage import CartStorage, CartStorageError, MemoryCartStorage
from storecart.config import CartConfig


class FailingCartStorage(CartStorage):
    """Storage whose writes (and optionally reads) always fail."""

    def __init__(self, fail_load: bool = False):
        self.fail_load = fail_load
        self.save_attempts = 0

    def load(self, key):
        if self.fail_load:
            raise CartStorageError("storage offline")
        return None

    def save(self, key, items):
        self.save_attempts += 1
        raise CartStorageError("disk full")

    def delete(self, key):
        raise CartStorageError("storage offline")


@pytest.fixture
def memory_storage() -> MemoryCartStorage:
    return MemoryCartStorage()


@pytest.fixture
def failing_storage() -> FailingCartStorage:
    return FailingCartStorage()


@pytest.fixture
def cart(memory_storage) -> CartAggregate:
    return CartAggregate("cart-storage:test", memory_storage)


@pytest.fixture
def config(tmp_path) -> CartConfig:
    return CartConfig(
        secret_key="test-secret",
        storage_backend="json",
        data_dir=tmp_path,
        database_url="sqlite:///:memory:",
        key_prefix="cart-storage",
        tax_rate=Decimal("0.10"),
        currency="VND",
        log_level="WARNING",
    )


@pytest.fixture
def app(config):
    flask_app = create_app(config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
