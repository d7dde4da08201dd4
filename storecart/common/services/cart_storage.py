import copy
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models.cart_snapshot import CartSnapshot


class CartStorageError(RuntimeError):
    """Raised when a cart snapshot cannot be read or written."""


class CartStorage:
    """Key-value store holding one serialized item list per session key.

    Implementations write and return full snapshots; there are no partial
    updates. Any backend failure is raised as CartStorageError.
    """

    def load(self, key: str) -> Optional[List[Dict]]:
        raise NotImplementedError

    def save(self, key: str, items: List[Dict]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryCartStorage(CartStorage):
    """Process-local storage, used for tests and the `memory` backend."""

    def __init__(self) -> None:
        self._data: Dict[str, List[Dict]] = {}

    def load(self, key: str) -> Optional[List[Dict]]:
        items = self._data.get(key)
        return copy.deepcopy(items) if items is not None else None

    def save(self, key: str, items: List[Dict]) -> None:
        self._data[key] = copy.deepcopy(items)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class DatabaseCartStorage(CartStorage):
    """Cart snapshots backed by the `cart_snapshot` table."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def load(self, key: str) -> Optional[List[Dict]]:
        try:
            with self._session_factory() as session:
                row = session.get(CartSnapshot, key)
                if row is None:
                    return None
                return list(row.items or [])
        except SQLAlchemyError as exc:
            raise CartStorageError(f"failed to load cart {key}") from exc

    def save(self, key: str, items: List[Dict]) -> None:
        snapshot = copy.deepcopy(items)
        try:
            with self._session_factory() as session:
                row = session.get(CartSnapshot, key)
                if row is None:
                    session.add(CartSnapshot(session_key=key, items=snapshot))
                else:
                    row.items = snapshot
                session.flush()
        except SQLAlchemyError as exc:
            raise CartStorageError(f"failed to save cart {key}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(CartSnapshot, key)
                if row is not None:
                    session.delete(row)
                    session.flush()
        except SQLAlchemyError as exc:
            raise CartStorageError(f"failed to delete cart {key}") from exc
