"""
Market Data Package

Normalization of exchange payloads into OptionContract / OrderBook, and the
MarketDataService that fetches, normalizes and refreshes pricing.
"""

from ironfly.market_data.normalizer import (
    ParsedSymbol,
    apply_order_book,
    apply_ticker,
    extract_expiries,
    normalize_chain,
    normalize_contract,
    parse_order_book,
    parse_symbol,
    render_symbol,
    update_pricing_from_tickers,
)
from ironfly.market_data.service import MarketDataService

__all__ = [
    "MarketDataService",
    "ParsedSymbol",
    "parse_symbol",
    "render_symbol",
    "normalize_contract",
    "normalize_chain",
    "apply_ticker",
    "apply_order_book",
    "parse_order_book",
    "update_pricing_from_tickers",
    "extract_expiries",
]
