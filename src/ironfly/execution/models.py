"""
Order Execution Models

This module provides data models for signed order placement on the options exchange.
Uses dataclasses with slots=True for performance (internal data, validated on entry).

Key patterns:
- dataclass(slots=True) for performance
- __post_init__ validation for data integrity
- Enum values match the exchange's wire strings
- Response fields stay None when the exchange omits them

Decision tree:
    Is this data internal to my process?
    ├─ Yes → Use dataclass (performance matters) ← WE ARE HERE
    └─ No → Use Pydantic (validation critical)
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    """
    Order status enum.

    Mirrors the exchange's order states.
    """

    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


class OrderType(str, Enum):
    """
    Order type enum.

    Types of orders supported by the exchange.
    """

    LIMIT = "LIMIT"
    MARKET = "MARKET"


class OrderSide(str, Enum):
    """
    Order side enum.

    Direction of the order.
    """

    BUY = "BUY"
    SELL = "SELL"


class TimeInForce(str, Enum):
    """
    Time in force enum.

    Every order is sent Good Till Cancelled.
    """

    GTC = "GTC"  # Good Till Cancelled


OPEN_STATUSES = frozenset({OrderStatus.ACCEPTED, OrderStatus.PARTIALLY_FILLED})


@dataclass(frozen=True, slots=True)
class OrderRequest:
    """
    Order request.

    Caller-owned and immutable once built.

    Attributes:
        symbol: Option symbol (BASE-YYMMDD-STRIKE-C|P)
        side: BUY or SELL
        order_type: LIMIT or MARKET
        quantity: Contracts to trade (must be positive)
        price: Limit price (required for LIMIT, ignored for MARKET)
        time_in_force: Always GTC
    """

    symbol: str
    side: OrderSide
    order_type: OrderType
    quantity: Decimal
    price: Optional[Decimal] = None
    time_in_force: TimeInForce = TimeInForce.GTC

    def __post_init__(self):
        """
        Validate order request after initialization.

        Ensures data integrity before the request is signed.
        """
        # Validate symbol is not empty
        if not self.symbol or not self.symbol.strip():
            raise ValueError("Symbol cannot be empty")

        # Validate quantity is positive
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {self.quantity}")

        # Validate limit price
        if self.order_type == OrderType.LIMIT:
            if self.price is None:
                raise ValueError("LIMIT orders require a price")
            if self.price <= 0:
                raise ValueError(f"Limit price must be positive, got {self.price}")

        if self.time_in_force != TimeInForce.GTC:
            raise ValueError(f"Only GTC is supported, got {self.time_in_force}")


@dataclass(slots=True)
class OrderResponse:
    """
    Order response mapped from the exchange acknowledgement.

    None means the exchange did not report the field, which is different
    from zero (e.g. "not filled").

    Attributes:
        order_id: Exchange-assigned order id
        symbol: Option symbol
        status: Order status (None when absent or not recognised)
        filled_quantity: Executed quantity
        original_quantity: Original order quantity
        price: Order price
        avg_price: Average fill price (None when the exchange reports zero)
        side: BUY or SELL
    """

    order_id: Optional[str] = None
    symbol: Optional[str] = None
    status: Optional[OrderStatus] = None
    filled_quantity: Optional[Decimal] = None
    original_quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    avg_price: Optional[Decimal] = None
    side: Optional[OrderSide] = None

    @property
    def is_open(self) -> bool:
        """True while the order can still fill."""
        return self.status in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        """True once the exchange will not change the order any more."""
        return self.status is not None and self.status not in OPEN_STATUSES
