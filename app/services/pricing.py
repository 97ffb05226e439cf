"""
Order Pricing

Shared by the order API (authoritative totals) and the guest cart
(display totals). Tax is charged per line at the item's own
taxPercentage, falling back to a default rate of 10%.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

DEFAULT_TAX_PERCENTAGE = 10.0


@dataclass(frozen=True)
class PricedLine:
    """One priced line: unit price, quantity and the tax rate to apply."""
    unit_price: float
    quantity: int
    tax_percentage: Optional[float] = None


@dataclass(frozen=True)
class Totals:
    subtotal: float
    tax: float
    total: float


def effective_tax_percentage(
    value: Any,
    default: float = DEFAULT_TAX_PERCENTAGE,
) -> float:
    """Return `value` when it is a real number, otherwise the default rate."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def line_subtotal(unit_price: float, quantity: int) -> float:
    return unit_price * quantity


def line_tax(
    unit_price: float,
    quantity: int,
    tax_percentage: Any = None,
    default: float = DEFAULT_TAX_PERCENTAGE,
) -> float:
    rate = effective_tax_percentage(tax_percentage, default)
    return line_subtotal(unit_price, quantity) * (rate / 100)


def calculate_totals(
    lines: Iterable[PricedLine],
    default_tax_percentage: float = DEFAULT_TAX_PERCENTAGE,
) -> Totals:
    """
    Calculate subtotal, tax and total for a set of lines.

    Values are rounded to cents; total is the rounded sum of the
    rounded subtotal and tax so the three always agree.
    """
    subtotal = 0.0
    tax = 0.0
    for line in lines:
        subtotal += line_subtotal(line.unit_price, line.quantity)
        tax += line_tax(line.unit_price, line.quantity, line.tax_percentage, default_tax_percentage)

    subtotal = round(subtotal, 2)
    tax = round(tax, 2)
    return Totals(subtotal=subtotal, tax=tax, total=round(subtotal + tax, 2))


def is_variant_available(variant: dict[str, Any]) -> bool:
    return bool(variant) and variant.get("isAvailable") is not False


def lowest_available_price(base_price: Any, variants: Optional[list[dict[str, Any]]]) -> float:
    """
    Cheapest available variant price, or the base price when the item
    has no usable variants ("From ₹..." on the menu).
    """
    fallback = float(base_price) if isinstance(base_price, (int, float)) else 0.0
    if not variants:
        return fallback

    prices = [
        float(v["price"])
        for v in variants
        if is_variant_available(v) and isinstance(v.get("price"), (int, float))
    ]
    return min(prices) if prices else fallback
