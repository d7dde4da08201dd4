"""File-based cart snapshot storage."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..common.services.cart_storage import CartStorage, CartStorageError


class JsonFileCartStorage(CartStorage):
    """Keeps every session's cart snapshot in one JSON document.

    The document maps session key -> list of serialized line items. Each
    read-modify-write runs under one lock so concurrent sessions never
    overwrite each other, and writes go to a fresh temporary file that
    replaces the document, so a crash mid-write leaves the previous
    document intact.
    """

    def __init__(self, data_file: Path) -> None:
        self._data_file = Path(data_file)
        self._data_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def data_file(self) -> Path:
        return self._data_file

    def load(self, key: str) -> Optional[List[Dict]]:
        with self._lock:
            items = self._load().get(key)
        if items is None:
            return None
        if not isinstance(items, list):
            raise CartStorageError(f"cart {key} is not a list in {self._data_file.name}")
        return items

    def save(self, key: str, items: List[Dict]) -> None:
        with self._lock:
            data = self._load()
            data[key] = list(items)
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._write(data)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load())

    def _load(self) -> Dict[str, List[Dict]]:
        if not self._data_file.exists():
            return {}
        try:
            text = self._data_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise CartStorageError(f"cannot read {self._data_file}") from exc
        if not text.strip():
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CartStorageError(f"{self._data_file.name} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise CartStorageError(f"{self._data_file.name} must hold an object")
        return payload

    def _write(self, data: Dict[str, List[Dict]]) -> None:
        content = json.dumps(data, ensure_ascii=False, indent=2)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._data_file.parent,
                prefix=self._data_file.name + ".",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content + "\n")
            os.replace(tmp_name, self._data_file)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CartStorageError(f"cannot write {self._data_file}") from exc
