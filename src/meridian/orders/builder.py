"""Buy/sell order composition and submission."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..brokers.base import Broker
from ..brokers.models import ORDER_SIDES, ORDER_TYPES, TIME_IN_FORCE, Order, Position
from ..errors import ValidationError, require
from ..log import get_logger
from ..normalize import held_shares, parse_number, project_positions
from .amounts import ORDER_BY

logger = get_logger(__name__)


@dataclass
class OrderForm:
    """Raw order input as collected from the trade screen."""

    symbol: str
    side: str = "buy"
    type: str = "market"
    order_by: str = "quantity"
    quantity: Any = None
    dollar_amount: Any = None
    limit_price: Any = None
    time_in_force: str = "day"

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "OrderForm":
        """Accept either the composer's camelCase fields or a vendor-shaped order."""
        quantity = body.get("quantity", body.get("qty"))
        dollar_amount = body.get("dollarAmount", body.get("dollar_amount", body.get("notional")))
        order_by = body.get("orderBy") or body.get("order_by")
        if not order_by:
            order_by = "dollar" if dollar_amount not in (None, "") and quantity in (None, "") else "quantity"
        return cls(
            symbol=str(body.get("symbol") or ""),
            side=str(body.get("side") or "buy"),
            type=str(body.get("type") or "market"),
            order_by=str(order_by),
            quantity=quantity,
            dollar_amount=dollar_amount,
            limit_price=body.get("limitPrice", body.get("limit_price")),
            time_in_force=str(body.get("time_in_force") or body.get("timeInForce") or "day"),
        )


@dataclass
class OrderSubmission:
    order: Order
    idempotency_key: str
    response: Any


def _empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _fixed(value: Any, places: int, field: str) -> str:
    number = parse_number(value)
    if number is None:
        raise ValidationError(f"{field} must be a number", field=field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return f"{number:.{places}f}"


def build_order(
    form: OrderForm,
    account_id: str | None,
    positions: Iterable[Position] = (),
) -> Order:
    """Validate ``form`` and return a vendor-ready order.

    Rules are checked in order and the first failure raises
    :class:`ValidationError`. Unparseable or non-positive numbers are rejected
    rather than sent as zero.
    """
    symbol = (form.symbol or "").strip().upper()
    require(symbol, "symbol")
    require(account_id, "account_id")

    side = form.side.lower()
    order_type = form.type.lower()
    tif = form.time_in_force.lower()
    order_by = form.order_by.lower()
    if side not in ORDER_SIDES:
        raise ValidationError("side must be 'buy' or 'sell'", field="side")
    if order_type not in ORDER_TYPES:
        raise ValidationError("type must be 'market' or 'limit'", field="type")
    if tif not in TIME_IN_FORCE:
        raise ValidationError("Unsupported time in force", field="time_in_force")
    if order_by not in ORDER_BY:
        raise ValidationError("orderBy must be 'quantity' or 'dollar'", field="orderBy")

    order = Order(symbol=symbol, side=side, type=order_type, time_in_force=tif)

    if side == "sell":
        if _empty(form.quantity):
            raise ValidationError("quantity is required", field="quantity")
        order.qty = _fixed(form.quantity, 4, "quantity")
        owned = held_shares(positions, symbol)
        if owned < float(order.qty):
            raise ValidationError(
                f"You don't have enough shares. You own {owned:g} shares.",
                field="quantity",
            )
    elif order_by == "dollar":
        if _empty(form.dollar_amount):
            raise ValidationError("dollar amount is required", field="dollarAmount")
        order.notional = _fixed(form.dollar_amount, 2, "dollarAmount")
    else:
        if _empty(form.quantity):
            raise ValidationError("quantity is required", field="quantity")
        order.qty = _fixed(form.quantity, 4, "quantity")

    if order_type == "limit":
        if _empty(form.limit_price):
            raise ValidationError("limit price is required for limit orders", field="limitPrice")
        order.limit_price = _fixed(form.limit_price, 2, "limitPrice")

    return order


class OrderRequestBuilder:
    """Composes orders and submits them through a broker."""

    def __init__(self, broker: Broker) -> None:
        self._broker = broker

    def _positions_for(self, account_id: str, symbol: str) -> list[Position]:
        raw = self._broker.list_positions(account_id, {"symbol": symbol.strip().upper()})
        return project_positions(raw)

    def submit(
        self,
        form: OrderForm,
        account_id: str | None,
        positions: Iterable[Position] | None = None,
        idempotency_key: str | None = None,
    ) -> OrderSubmission:
        """Validate, then place the order with a per-submission idempotency key.

        Sell orders fetch current positions when none are supplied. Nothing is
        sent to the broker if validation fails.
        """
        if positions is None and form.side.lower() == "sell" and account_id and form.symbol:
            positions = self._positions_for(account_id, form.symbol)
        order = build_order(form, account_id, positions or ())

        key = idempotency_key or str(uuid.uuid4())
        response = self._broker.place_order(account_id, order.to_payload(), idempotency_key=key)
        logger.info(
            "order_submitted",
            account_id=account_id,
            symbol=order.symbol,
            side=order.side,
            type=order.type,
            idempotency_key=key,
        )
        return OrderSubmission(order=order, idempotency_key=key, response=response)
