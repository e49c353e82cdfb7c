"""Normalization of loosely-typed vendor payloads into typed results."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .brokers.models import Position

# Order in which asset payload fields are consulted for a reference price.
PRICE_FALLBACK_ORDER = (
    ("current_price",),
    ("price",),
    ("data", "current_price"),
    ("data", "price"),
)


def parse_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def number_or_zero(value: Any) -> float:
    parsed = parse_number(value)
    return 0.0 if parsed is None else parsed


def _dig(payload: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    current: Any = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def resolve_asset_price(payload: Mapping[str, Any] | None) -> Optional[float]:
    """Return the first usable price in ``PRICE_FALLBACK_ORDER``."""
    if not payload:
        return None
    for path in PRICE_FALLBACK_ORDER:
        price = parse_number(_dig(payload, path))
        if price:
            return price
    return None


def project_position(raw: Mapping[str, Any]) -> Position:
    shares = number_or_zero(raw.get("quantity"))
    symbol = str(raw.get("symbol", ""))
    return Position(
        symbol=symbol,
        name=str(raw.get("name") or symbol),
        shares=shares,
        current_price=parse_number(raw.get("current_price")),
        purchase_price=parse_number(raw.get("average_cost_basis")),
        value=0.0 if shares == 0 else parse_number(raw.get("market_value")),
        gain=parse_number(raw.get("unrealized_pl")),
        gain_percent=parse_number(raw.get("unrealized_pl_percent")),
    )


def project_positions(payload: Any) -> list[Position]:
    if not isinstance(payload, list):
        return []
    return [project_position(raw) for raw in payload]


def held_shares(positions: Iterable[Position], symbol: str) -> float:
    symbol = symbol.upper()
    for position in positions:
        if position.symbol.upper() == symbol:
            return position.shares
    return 0.0


@dataclass
class PortfolioTotals:
    balance: float
    total_gain: float
    total_gain_percent: float


def portfolio_totals(positions: Iterable[Position]) -> PortfolioTotals:
    balance = 0.0
    total_gain = 0.0
    total_cost = 0.0
    for pos in positions:
        balance += pos.value or 0.0
        total_gain += pos.gain or 0.0
        total_cost += (pos.purchase_price or 0.0) * pos.shares
    percent = (total_gain / total_cost) * 100 if total_cost > 0 else 0.0
    return PortfolioTotals(balance=balance, total_gain=total_gain, total_gain_percent=percent)


def normalize_connected_account(item: Mapping[str, Any]) -> dict[str, Any]:
    """Project a vendor funding-source record, reconciling itemId/providerId."""
    return {
        "id": item.get("id"),
        "itemId": item.get("itemId") or item.get("providerId"),
        "providerId": item.get("providerId") or item.get("itemId"),
        "institutionId": item.get("institutionId"),
        "institutionName": item.get("institutionName"),
        "status": item.get("status"),
        "accounts": item.get("accounts") or [],
        "createdAt": item.get("createdAt"),
        "updatedAt": item.get("updatedAt"),
    }


def connected_accounts(payload: Any) -> list[dict[str, Any]]:
    """Extract funding sources from either response shape the vendor uses."""
    data = payload.get("data", payload) if isinstance(payload, Mapping) else {}
    if not isinstance(data, Mapping):
        return []
    items = data.get("items") or data.get("fundingSources") or []
    return [normalize_connected_account(item) for item in items]
