import logging
import threading
from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..models.line_item import LineItem
from ..utils.dto import to_line_item_dto
from ..utils.validators import ensure_variant_id, to_int
from .cart_storage import CartStorage, CartStorageError, MemoryCartStorage
from .logging import log_event


logger = logging.getLogger(__name__)

Observer = Callable[["CartAggregate"], None]


class CartAggregate:
    """Line items of one shopping session plus derived totals.

    Items are unique by variant_id and always have quantity >= 1. Item count
    and subtotal are computed from the items on every read. Each mutation is
    applied in memory first, then written to storage as a full snapshot;
    storage failures are logged and kept in `last_persist_error` but never
    undo or abort the mutation.
    """

    def __init__(self, session_key: str, storage: Optional[CartStorage] = None, *, restore: bool = True):
        if not session_key:
            raise ValueError("session_key required")
        self._session_key = session_key
        self._storage = storage if storage is not None else MemoryCartStorage()
        self._items: List[LineItem] = []
        self._observers: List[Observer] = []
        self._lock = threading.RLock()
        self.last_persist_error: Optional[CartStorageError] = None
        if restore:
            self.reload()

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def items(self) -> List[LineItem]:
        with self._lock:
            return [replace(it) for it in self._items]

    # -- queries -----------------------------------------------------------

    def get_item_count(self) -> int:
        with self._lock:
            return sum(it.quantity for it in self._items)

    def get_subtotal(self) -> Decimal:
        with self._lock:
            return sum((it.line_total for it in self._items), Decimal("0"))

    def get_item(self, variant_id: str) -> Optional[LineItem]:
        with self._lock:
            found = self._find(variant_id)
            return replace(found) if found is not None else None

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def to_dict(self) -> Dict:
        with self._lock:
            return {
                "session_key": self._session_key,
                "items": [to_line_item_dto(it) for it in self._items],
                "item_count": self.get_item_count(),
                "subtotal": float(self.get_subtotal()),
            }

    # -- mutations ---------------------------------------------------------

    def add_item(self, item: Union[LineItem, Mapping[str, Any]], quantity: int = 1) -> Dict:
        """Add `quantity` units of a variant, merging into an existing line.

        A repeated variant only has its quantity incremented; the price and
        display fields from the first add are kept.
        """
        line = LineItem.coerce(item)
        amount = max(to_int(quantity if quantity is not None else 1, "quantity"), 1)
        with self._lock:
            existing = self._find(line.variant_id)
            if existing is not None:
                existing.quantity += amount
                event = "cart.item_merged"
            else:
                line.quantity = amount
                self._items.append(line)
                event = "cart.item_added"
            snapshot = self._commit(event, variant_id=line.variant_id, quantity=amount)
        self._notify()
        return snapshot

    def remove_item(self, variant_id: str) -> Dict:
        vid = ensure_variant_id(variant_id)
        with self._lock:
            remaining = [it for it in self._items if it.variant_id != vid]
            if len(remaining) == len(self._items):
                return self.to_dict()
            self._items = remaining
            snapshot = self._commit("cart.item_removed", variant_id=vid)
        self._notify()
        return snapshot

    def update_quantity(self, variant_id: str, quantity: int) -> Dict:
        vid = ensure_variant_id(variant_id)
        qnty = to_int(quantity, "quantity")
        if qnty <= 0:
            return self.remove_item(vid)
        with self._lock:
            existing = self._find(vid)
            if existing is None:
                return self.to_dict()
            existing.quantity = qnty
            snapshot = self._commit("cart.quantity_updated", variant_id=vid, quantity=qnty)
        self._notify()
        return snapshot

    def clear(self) -> Dict:
        with self._lock:
            self._items = []
            snapshot = self._commit("cart.cleared")
        self._notify()
        return snapshot

    def reload(self) -> Dict:
        """Replace in-memory items with the stored snapshot (last writer wins)."""
        try:
            raw = self._storage.load(self._session_key)
        except CartStorageError as exc:
            log_event("warning", "cart.restore_failed", session_key=self._session_key, error=str(exc))
            return self.to_dict()
        items = _restore_items(raw or [], self._session_key)
        with self._lock:
            self._items = items
            snapshot = self.to_dict()
        self._notify()
        return snapshot

    # -- observers ---------------------------------------------------------

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    # -- internals ---------------------------------------------------------

    def _find(self, variant_id: str) -> Optional[LineItem]:
        for it in self._items:
            if it.variant_id == variant_id:
                return it
        return None

    def _commit(self, event: str, **fields) -> Dict:
        # caller holds the lock; observers are notified after it is released
        self._persist()
        log_event(
            "info",
            event,
            session_key=self._session_key,
            item_count=self.get_item_count(),
            subtotal=float(self.get_subtotal()),
            **fields,
        )
        return self.to_dict()

    def _persist(self) -> None:
        try:
            self._storage.save(self._session_key, [it.to_dict() for it in self._items])
        except CartStorageError as exc:
            self.last_persist_error = exc
            log_event("warning", "cart.persist_failed", session_key=self._session_key, error=str(exc))
            return
        self.last_persist_error = None

    def _notify(self) -> None:
        with self._lock:
            observers = list(self._observers)
        for callback in observers:
            try:
                callback(self)
            except Exception:
                logger.exception("cart observer failed for %s", self._session_key)


def _restore_items(raw: List[Any], session_key: str) -> List[LineItem]:
    items: List[LineItem] = []
    by_variant: Dict[str, LineItem] = {}
    for entry in raw:
        try:
            line = LineItem.from_dict(entry)
        except ValueError as exc:
            log_event("warning", "cart.restore_skipped", session_key=session_key, error=str(exc))
            continue
        if line.quantity <= 0:
            log_event("warning", "cart.restore_skipped", session_key=session_key, variant_id=line.variant_id)
            continue
        existing = by_variant.get(line.variant_id)
        if existing is not None:
            existing.quantity += line.quantity
            continue
        by_variant[line.variant_id] = line
        items.append(line)
    return items
