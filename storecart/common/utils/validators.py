from decimal import Decimal, InvalidOperation
from typing import Any


def to_int(value: Any, field: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
    try:
        number = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{field} must be an integer") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"{field} must be an integer")
    return int(number)


def ensure_variant_id(value: Any) -> str:
    vid = str(value).strip() if value is not None else ""
    if not vid:
        raise ValueError("variant_id required")
    return vid


def to_decimal(value: Any, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"{field} must be a number") from exc
    if not amount.is_finite():
        raise ValueError(f"{field} must be a number")
    return amount


def ensure_non_negative_decimal(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValueError(f"{field} must be >= 0")
    return amount


def ensure_percent(value: Any, field: str = "discount_percent") -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    pct = ensure_non_negative_decimal(value, field)
    if pct > 100:
        raise ValueError(f"{field} must be <= 100")
    return pct
