"""
Data models for the options chain.

This module contains dataclass definitions shared across the gateway,
normalizer, and strike selection engine to avoid circular imports.

All prices, quantities and strikes are Decimal. Strikes are compared for
equality and ordering during selection, so binary floats never enter here.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")


class OptionType(str, Enum):
    """Option type enum, valued by the symbol suffix."""

    CALL = "C"
    PUT = "P"


@dataclass(slots=True)
class OptionContract:
    """
    Option contract within one chain snapshot.

    Identity fields are fixed once parsed from the symbol; pricing fields are
    updated in place by pricing refreshes and stay None until priced.

    Attributes:
        symbol: Exchange identifier, BASE-YYMMDD-STRIKE-C|P
        strike: Strike price parsed from the symbol
        expiry: Expiration date (UTC)
        option_type: CALL or PUT
        bid_price: Best bid price
        bid_quantity: Quantity at best bid
        ask_price: Best ask price
        ask_quantity: Quantity at best ask
    """

    symbol: str
    strike: Decimal
    expiry: date
    option_type: OptionType
    bid_price: Optional[Decimal] = None
    bid_quantity: Optional[Decimal] = None
    ask_price: Optional[Decimal] = None
    ask_quantity: Optional[Decimal] = None

    _IDENTITY_FIELDS = frozenset({"symbol", "strike", "expiry", "option_type"})

    def __setattr__(self, name, value):
        if name in OptionContract._IDENTITY_FIELDS and _is_set(self, name):
            raise AttributeError(f"{name} is immutable once parsed ({self.symbol})")
        object.__setattr__(self, name, value)

    @property
    def base_asset(self) -> str:
        """Underlying asset prefix of the symbol (e.g. BTC)."""
        return self.symbol.split("-", 1)[0]

    @property
    def is_priced(self) -> bool:
        """True when at least one side carries a price."""
        return self.bid_price is not None or self.ask_price is not None

    @property
    def mid_price(self) -> Optional[Decimal]:
        """Midpoint of bid and ask, None unless both sides are priced."""
        if self.bid_price is None or self.ask_price is None:
            return None
        return (self.bid_price + self.ask_price) / 2

    def to_symbol(self) -> str:
        """Re-render the exchange symbol from the parsed identity fields."""
        return "-".join(
            [
                self.base_asset,
                self.expiry.strftime("%y%m%d"),
                format(self.strike, "f"),
                self.option_type.value,
            ]
        )


def _is_set(obj: OptionContract, name: str) -> bool:
    try:
        object.__getattribute__(obj, name)
    except AttributeError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class PriceLevel:
    """One order book level: (price, quantity), both non-negative."""

    price: Decimal
    quantity: Decimal

    def __post_init__(self):
        if self.price < 0:
            raise ValueError(f"Price must be non-negative, got {self.price}")
        if self.quantity < 0:
            raise ValueError(f"Quantity must be non-negative, got {self.quantity}")


@dataclass(frozen=True, slots=True)
class OrderBook:
    """
    Order book snapshot for one symbol.

    Bids are ordered best (highest) first and asks best (lowest) first, as
    delivered by the exchange. An empty side yields the ZERO sentinel from the
    best_* accessors instead of raising.
    """

    symbol: str
    bids: tuple[PriceLevel, ...] = field(default_factory=tuple)
    asks: tuple[PriceLevel, ...] = field(default_factory=tuple)

    @property
    def best_bid(self) -> Decimal:
        return self.bids[0].price if self.bids else ZERO

    @property
    def best_ask(self) -> Decimal:
        return self.asks[0].price if self.asks else ZERO

    @property
    def best_bid_quantity(self) -> Decimal:
        return self.bids[0].quantity if self.bids else ZERO

    @property
    def best_ask_quantity(self) -> Decimal:
        return self.asks[0].quantity if self.asks else ZERO

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks
