"""Conversion between share quantity and dollar notional."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..normalize import number_or_zero, parse_number

ORDER_BY = ("quantity", "dollar")


@dataclass(frozen=True)
class Reconciliation:
    quantity: float
    total: float


def _present(value: Any) -> bool:
    return value is not None and value != ""


def reference_price_for(
    order_type: str, limit_price: Any = None, asset_price: Optional[float] = None
) -> Optional[float]:
    """Limit orders are priced at their limit; everything else at the last asset price."""
    if order_type == "limit" and _present(limit_price):
        return parse_number(limit_price)
    return asset_price


def reconcile(
    order_by: str,
    quantity: Any = None,
    dollar_amount: Any = None,
    reference_price: Optional[float] = None,
) -> Reconciliation:
    """Derive the missing side of an order size from a reference price.

    Without a price the raw input is echoed and the other field is zeroed,
    leaving the conversion to execution time.
    """
    if order_by not in ORDER_BY:
        raise ValueError(f"order_by must be one of: {', '.join(ORDER_BY)}")

    price = parse_number(reference_price)
    if order_by == "dollar" and _present(dollar_amount):
        amount = number_or_zero(dollar_amount)
        if not price:
            return Reconciliation(quantity=0.0, total=amount)
        return Reconciliation(quantity=amount / price, total=amount)

    if order_by == "quantity" and _present(quantity):
        qty = number_or_zero(quantity)
        if not price:
            return Reconciliation(quantity=qty, total=0.0)
        return Reconciliation(quantity=qty, total=qty * price)

    return Reconciliation(quantity=0.0, total=0.0)


def format_quantity(value: Any) -> str:
    return f"{number_or_zero(value):.4f}"


def format_total(value: Any) -> str:
    return f"{number_or_zero(value):.2f}"
