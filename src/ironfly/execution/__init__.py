"""
Order Execution Package

Signed order placement and cancellation against the options exchange.

Usage:
    from ironfly.execution import OrderLifecycleManager, OrderRequest, OrderSide, OrderType

    manager = OrderLifecycleManager(gateway, config.exchange.secret_key)
    response = manager.place_order(
        OrderRequest("BTC-240105-42000-C", OrderSide.SELL, OrderType.LIMIT, Decimal("0.1"), Decimal("850"))
    )
"""

from ironfly.execution.models import (
    OrderRequest,
    OrderResponse,
    OrderSide,
    OrderStatus,
    OrderType,
    TimeInForce,
)
from ironfly.execution.order_manager import OrderLifecycleManager

__all__ = [
    "OrderLifecycleManager",
    "OrderRequest",
    "OrderResponse",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "TimeInForce",
]
