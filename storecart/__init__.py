"""Shopping cart aggregation and pricing service."""

from .common.models.line_item import LineItem
from .common.services.cart_aggregate import CartAggregate
from .common.services.cart_storage import CartStorage, CartStorageError, DatabaseCartStorage, MemoryCartStorage
from .common.services.checkout_service import CheckoutService

__all__ = [
    "CartAggregate",
    "CartStorage",
    "CartStorageError",
    "CheckoutService",
    "DatabaseCartStorage",
    "LineItem",
    "MemoryCartStorage",
]
