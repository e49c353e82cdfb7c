"""Order sizing and composition."""
from .amounts import Reconciliation, format_quantity, format_total, reconcile, reference_price_for
from .builder import OrderForm, OrderRequestBuilder, OrderSubmission, build_order

__all__ = [
    "Reconciliation",
    "format_quantity",
    "format_total",
    "reconcile",
    "reference_price_for",
    "OrderForm",
    "OrderRequestBuilder",
    "OrderSubmission",
    "build_order",
]
