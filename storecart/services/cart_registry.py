"""Per-session cart instances."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from ..common.services.cart_aggregate import CartAggregate
from ..common.services.cart_storage import CartStorage, CartStorageError
from ..common.services.logging import log_event


class CartRegistry:
    """Hands out one CartAggregate per session id.

    A cart is restored from storage the first time its session asks for it.
    Carts untouched for `idle_seconds` are dropped from memory, and at most
    `max_carts` are held (least recently used go first); a dropped cart is
    restored from storage on its next access. Idle carts whose last write
    failed are kept until the size cap forces them out.
    """

    def __init__(
        self,
        storage: CartStorage,
        key_prefix: str = "cart-storage",
        *,
        max_carts: int = 1000,
        idle_seconds: Optional[float] = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_carts < 1:
            raise ValueError("max_carts must be >= 1")
        self._storage = storage
        self._key_prefix = key_prefix
        self._max_carts = max_carts
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._carts: "OrderedDict[str, Tuple[CartAggregate, float]]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def storage(self) -> CartStorage:
        return self._storage

    def key_for(self, session_id: str) -> str:
        if not session_id:
            raise ValueError("session_id required")
        return f"{self._key_prefix}:{session_id}"

    def get(self, session_id: str) -> CartAggregate:
        key = self.key_for(session_id)
        now = self._clock()
        with self._lock:
            entry = self._carts.pop(key, None)
            cart = entry[0] if entry is not None else CartAggregate(key, self._storage)
            self._carts[key] = (cart, now)
            self._evict(now)
            return cart

    def discard(self, session_id: str) -> None:
        key = self.key_for(session_id)
        with self._lock:
            self._carts.pop(key, None)
        try:
            self._storage.delete(key)
        except CartStorageError as exc:
            log_event("warning", "cart.discard_failed", session_key=key, error=str(exc))

    def __len__(self) -> int:
        with self._lock:
            return len(self._carts)

    def _evict(self, now: float) -> None:
        if self._idle_seconds is not None:
            idle = [
                key
                for key, (cart, last_seen) in self._carts.items()
                if now - last_seen > self._idle_seconds and cart.last_persist_error is None
            ]
            for key in idle:
                del self._carts[key]
                log_event("debug", "cart.evicted", session_key=key, reason="idle")
        while len(self._carts) > self._max_carts:
            key, _ = self._carts.popitem(last=False)
            log_event("debug", "cart.evicted", session_key=key, reason="capacity")
