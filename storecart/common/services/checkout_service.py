from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List

from ..models.line_item import LineItem
from ..utils.validators import ensure_non_negative_decimal
from .logging import log_event


CENT = Decimal("0.01")
DEFAULT_TAX_RATE = Decimal("0.10")
QUICK_AMOUNT_STEPS = (Decimal("10"), Decimal("50"), Decimal("100"))


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _ceil_to(value: Decimal, step: Decimal) -> Decimal:
    return (value / step).to_integral_value(rounding=ROUND_CEILING) * step


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    item_discount: Decimal
    loyalty_discount: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            "subtotal": float(self.subtotal),
            "item_discount": float(self.item_discount),
            "loyalty_discount": float(self.loyalty_discount),
            "discount": float(self.discount),
            "tax": float(self.tax),
            "total": float(self.total),
        }


@dataclass(frozen=True)
class PaymentChange:
    total: Decimal
    amount_received: Decimal
    change: Decimal

    @property
    def is_sufficient(self) -> bool:
        return self.change >= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": float(self.total),
            "amount_received": float(self.amount_received),
            "change": float(self.change),
            "is_sufficient": self.is_sufficient,
        }


class CheckoutService:
    """Point-of-sale pricing over cart line items.

    - item discounts are per-line percentages of the line total
    - the loyalty discount is a fixed amount off the whole cart
    - tax is charged on (subtotal - discounts), never on a negative base
    """

    def __init__(self, tax_rate: Any = DEFAULT_TAX_RATE):
        self._tax_rate = ensure_non_negative_decimal(tax_rate, "tax_rate")

    @property
    def tax_rate(self) -> Decimal:
        return self._tax_rate

    def compute_totals(self, items: Iterable[LineItem], *, loyalty_discount: Any = 0) -> CheckoutTotals:
        loyalty = ensure_non_negative_decimal(loyalty_discount if loyalty_discount is not None else 0, "loyalty_discount")
        subtotal = Decimal("0")
        item_discount = Decimal("0")
        for it in items:
            line = it.unit_price * it.quantity
            subtotal += line
            if it.discount_percent:
                item_discount += line * it.discount_percent / Decimal("100")
        discount = item_discount + loyalty
        taxable = max(subtotal - discount, Decimal("0"))
        tax = taxable * self._tax_rate
        return CheckoutTotals(
            subtotal=_money(subtotal),
            item_discount=_money(item_discount),
            loyalty_discount=_money(loyalty),
            discount=_money(discount),
            tax=_money(tax),
            total=_money(taxable + tax),
        )

    def compute_change(self, total: Any, amount_received: Any) -> PaymentChange:
        due = ensure_non_negative_decimal(total, "total")
        received = ensure_non_negative_decimal(amount_received, "amount_received")
        result = PaymentChange(total=_money(due), amount_received=_money(received), change=_money(received - due))
        if not result.is_sufficient:
            log_event("info", "checkout.insufficient_payment", total=float(due), amount_received=float(received))
        return result

    def quick_amounts(self, total: Any) -> List[Decimal]:
        """Suggested round cash amounts at or above `total`."""
        due = ensure_non_negative_decimal(total, "total")
        amounts = [_ceil_to(due, step) for step in QUICK_AMOUNT_STEPS]
        amounts.append(_ceil_to(due, QUICK_AMOUNT_STEPS[-1]) + QUICK_AMOUNT_STEPS[-1])
        return sorted(set(amounts))
