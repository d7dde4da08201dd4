from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from ..utils.validators import ensure_non_negative_decimal, ensure_percent, ensure_variant_id, to_int


@dataclass
class LineItem:
    """One purchasable variant in a cart.

    Price and display fields are a snapshot taken when the variant was first
    added; they are never refreshed from later adds.
    """

    variant_id: str
    unit_price: Decimal
    quantity: int = 1
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    variant_name: Optional[str] = None
    image_url: Optional[str] = None
    discount_percent: Decimal = Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant_id": self.variant_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "variant_name": self.variant_name,
            "image_url": self.image_url,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "discount_percent": str(self.discount_percent),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, quantity: Optional[int] = None) -> "LineItem":
        """Build a LineItem from a mapping, raising ValueError on bad input."""
        if not isinstance(data, Mapping):
            raise ValueError("line item must be an object")
        qty = quantity if quantity is not None else to_int(data.get("quantity", 1), "quantity")
        return cls(
            variant_id=ensure_variant_id(data.get("variant_id")),
            unit_price=ensure_non_negative_decimal(data.get("unit_price"), "unit_price"),
            quantity=qty,
            product_id=_optional_str(data.get("product_id")),
            product_name=_optional_str(data.get("product_name")),
            variant_name=_optional_str(data.get("variant_name")),
            image_url=_optional_str(data.get("image_url")),
            discount_percent=ensure_percent(data.get("discount_percent")),
        )

    @classmethod
    def coerce(cls, item: Union["LineItem", Mapping[str, Any]]) -> "LineItem":
        if isinstance(item, LineItem):
            # re-validate; the caller may have built it by hand
            return replace(
                item,
                variant_id=ensure_variant_id(item.variant_id),
                unit_price=ensure_non_negative_decimal(item.unit_price, "unit_price"),
                discount_percent=ensure_percent(item.discount_percent),
            )
        return cls.from_dict(item, quantity=1)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
