"""
Exchange Gateway Package

HTTP access to the options exchange:
- Explicit httpx transport with documented timeouts
- Endpoint table and chain ingestion sources
- Pydantic validation of external payloads
- Signed order submission and cancellation

Usage:
    from ironfly.gateway import ExchangeGateway, build_http_client

    with build_http_client(config.transport) as http:
        gateway = ExchangeGateway(config.exchange, http)
        price = gateway.get_reference_price()
"""

from ironfly.gateway.client import ExchangeGateway
from ironfly.gateway.ingestion import (
    CHAIN_SOURCE_REGISTRY,
    ChainSource,
    InstrumentListingChainSource,
    Ticker24hrChainSource,
    TickerChainSource,
    chain_source_for,
)
from ironfly.gateway.transport import build_http_client, decode_json

__all__ = [
    "ExchangeGateway",
    "ChainSource",
    "TickerChainSource",
    "Ticker24hrChainSource",
    "InstrumentListingChainSource",
    "CHAIN_SOURCE_REGISTRY",
    "chain_source_for",
    "build_http_client",
    "decode_json",
]
