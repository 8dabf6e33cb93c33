"""
Pydantic Models for Exchange Payload Validation

This module provides Pydantic models for validating exchange API responses.
Pydantic is used here (instead of dataclasses) because exchange data is external
and loosely typed: fields go missing, numbers arrive as strings or numbers, and
the same logical data comes back in several shapes.

Key patterns:
- Aliases map exchange camelCase onto snake_case fields
- Optional fields stay None when the exchange omits them
- extra = "ignore": unknown exchange fields never break validation

Decision tree:
    Does this data come from outside my process?
    ├─ Yes → Use Pydantic (validation critical) ← WE ARE HERE
    └─ No → Use dataclass (performance matters)
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class PriceTicker(BaseModel):
    """
    Futures price ticker: {"symbol": "BTCUSDT", "price": "43250.50"}.

    Attributes:
        symbol: Futures symbol
        price: Last price (required, must be positive)
    """

    symbol: Optional[str] = None
    price: Decimal = Field(..., gt=0, description="Last traded price")

    class Config:
        extra = "ignore"


class InstrumentListing(BaseModel):
    """
    Instrument listing (exchange info). Carries symbols but no pricing.

    The options API names the array "optionSymbols"; generic listings use
    "symbols". Both are accepted.
    """

    symbols: List[Dict[str, Any]] = Field(default_factory=list)
    timezone: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_option_symbols(cls, data):
        if isinstance(data, dict) and "symbols" not in data and "optionSymbols" in data:
            data = dict(data)
            data["symbols"] = data.pop("optionSymbols")
        return data

    @field_validator("symbols", mode="before")
    @classmethod
    def keep_records_with_symbol(cls, v):
        """Drop entries that are not objects carrying a symbol."""
        if not isinstance(v, list):
            return v
        return [
            record for record in v
            if isinstance(record, dict) and isinstance(record.get("symbol"), str)
        ]

    class Config:
        extra = "ignore"


class OrderAck(BaseModel):
    """
    Order placement/cancellation response.

    Every field is optional: an omitted field must stay None so callers can
    tell "not filled" apart from "not reported".
    """

    order_id: Optional[str] = Field(default=None, alias="orderId")
    symbol: Optional[str] = None
    status: Optional[str] = None
    executed_qty: Optional[Decimal] = Field(default=None, alias="executedQty")
    orig_qty: Optional[Decimal] = Field(default=None, alias="origQty")
    price: Optional[Decimal] = None
    avg_price: Optional[Decimal] = Field(default=None, alias="avgPrice")
    side: Optional[str] = None

    @field_validator("order_id", "symbol", "status", "side", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        """Exchange order ids arrive as integers; keep them as text."""
        if v is None:
            return v
        return str(v)

    class Config:
        extra = "ignore"
        populate_by_name = True
