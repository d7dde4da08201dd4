from typing import Any, Dict


def to_line_item_dto(item: Any) -> Dict:
    unit_price = getattr(item, "unit_price", 0) or 0
    quantity = int(getattr(item, "quantity", 0) or 0)
    return {
        "variant_id": getattr(item, "variant_id", None),
        "product_id": getattr(item, "product_id", None),
        "product_name": getattr(item, "product_name", None),
        "variant_name": getattr(item, "variant_name", None),
        "image_url": getattr(item, "image_url", None),
        "unit_price": float(unit_price),
        "quantity": quantity,
        "discount_percent": float(getattr(item, "discount_percent", 0) or 0),
        "line_total": float(unit_price * quantity),
    }
