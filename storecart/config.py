"""storecart application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


STORAGE_BACKENDS = {"memory", "json", "database"}


def validate_currency(value: Optional[str]) -> str:
    v = (value or "VND").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_tax_rate(value: Optional[str]) -> Decimal:
    try:
        rate = Decimal(str(value if value not in (None, "") else "0.10").strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid tax rate: {value!r}") from exc
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ValueError("Invalid tax rate: expected a fraction between 0 and 1")
    return rate


def validate_storage_backend(value: Optional[str]) -> str:
    v = (value or "json").strip().lower()
    if v not in STORAGE_BACKENDS:
        raise ValueError(f"Invalid storage backend {v!r}: expected one of {sorted(STORAGE_BACKENDS)}")
    return v


def _positive_int(value: Optional[str], default: int, name: str) -> int:
    if value in (None, ""):
        return default
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid {name}: expected an integer") from exc
    if number < 1:
        raise ValueError(f"Invalid {name}: expected a positive integer")
    return number


@dataclass
class CartConfig:
    """Settings for the cart service."""

    secret_key: str
    storage_backend: str
    data_dir: Path
    database_url: str
    key_prefix: str
    tax_rate: Decimal
    currency: str
    log_level: str
    max_carts: int = 1000
    cart_idle_seconds: float = 1800

    @property
    def cart_data_file(self) -> Path:
        return self.data_dir / "carts.json"

    @classmethod
    def load(cls, env: Optional[Mapping[str, str]] = None) -> "CartConfig":
        """Build settings from environment variables (a `.env` file is read first)."""

        if env is None:
            load_dotenv(Path.cwd() / ".env")
            env = os.environ

        data_dir = Path(env.get("STORECART_DATA_DIR") or Path.cwd() / "data")
        config = cls(
            secret_key=env.get("STORECART_SECRET_KEY", "storecart-dev-secret"),
            storage_backend=validate_storage_backend(env.get("STORECART_STORAGE")),
            data_dir=data_dir,
            database_url=env.get("DATABASE_URL") or f"sqlite:///{data_dir / 'storecart.db'}",
            key_prefix=(env.get("STORECART_KEY_PREFIX") or "cart-storage").strip(),
            tax_rate=validate_tax_rate(env.get("STORECART_TAX_RATE")),
            currency=validate_currency(env.get("STORECART_CURRENCY")),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            max_carts=_positive_int(env.get("STORECART_MAX_CARTS"), 1000, "STORECART_MAX_CARTS"),
            cart_idle_seconds=_positive_int(env.get("STORECART_CART_IDLE_SECONDS"), 1800, "STORECART_CART_IDLE_SECONDS"),
        )
        if config.storage_backend == "json":
            config.data_dir.mkdir(parents=True, exist_ok=True)
        return config
