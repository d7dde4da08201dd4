"""File-backed storage and per-session cart lookup."""

from .cart_registry import CartRegistry
from .cart_repository import JsonFileCartStorage

__all__ = [
    "CartRegistry",
    "JsonFileCartStorage",
]
