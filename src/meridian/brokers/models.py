"""Shared data models exchanged with the Bluum API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

ORDER_SIDES = ("buy", "sell")
ORDER_TYPES = ("market", "limit")
TIME_IN_FORCE = ("day", "gtc", "opg", "cls", "ioc", "fok")

GOAL_TYPES = (
    "retirement",
    "education",
    "emergency",
    "wealth_growth",
    "home_purchase",
    "custom",
)
GOAL_STATUSES = ("active", "completed", "archived")


@dataclass
class Position:
    symbol: str
    name: str
    shares: float
    current_price: Optional[float]
    purchase_price: Optional[float]
    value: Optional[float]
    gain: Optional[float]
    gain_percent: Optional[float]

    def to_client_dict(self) -> Dict[str, Any]:
        """Return the camelCase shape the web client consumes."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "shares": self.shares,
            "currentPrice": self.current_price,
            "purchasePrice": self.purchase_price,
            "value": self.value,
            "gain": self.gain,
            "gainPercent": self.gain_percent,
        }


@dataclass
class Order:
    """A vendor-ready order. Numeric fields are already fixed-decimal strings."""

    symbol: str
    side: str
    type: str
    time_in_force: str = "day"
    qty: Optional[str] = None
    notional: Optional[str] = None
    limit_price: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        payload = {
            "symbol": self.symbol,
            "side": self.side,
            "type": self.type,
            "time_in_force": self.time_in_force,
        }
        for key in ("qty", "notional", "limit_price"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class FinancialGoal:
    goal_id: str
    name: str
    goal_type: str
    target_amount: str
    status: str = "active"
    target_date: Optional[str] = None
    priority: Optional[int] = None
    monthly_contribution: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "FinancialGoal":
        return cls(
            goal_id=str(raw.get("goal_id") or raw.get("id") or ""),
            name=str(raw.get("name", "")),
            goal_type=str(raw.get("goal_type", "")),
            target_amount=str(raw.get("target_amount", "")),
            status=str(raw.get("status") or "active"),
            target_date=raw.get("target_date"),
            priority=raw.get("priority"),
            monthly_contribution=raw.get("monthly_contribution"),
        )
