"""Broker abstractions for Meridian."""
from .models import FinancialGoal, Order, Position
from .bluum import BluumBroker, BluumConfig

__all__ = [
    "FinancialGoal",
    "Order",
    "Position",
    "BluumBroker",
    "BluumConfig",
]
