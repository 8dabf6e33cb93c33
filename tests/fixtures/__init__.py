"""Test fixtures for ironfly tests.

This package provides reusable test fixtures for:
- Exchange payloads (tickers, instrument listings, depth, order acks)
- A routed httpx.MockTransport standing in for the exchange
- Gateway and configuration objects wired for fast, jitter-free retries

Fixtures are auto-discovered by pytest through conftest.py.
"""

from tests.fixtures.exchange_fixtures import (
    MockExchange,
    exchange_config,
    fast_retry,
    make_gateway,
    mock_exchange,
    sample_depth,
    sample_instrument_listing,
    sample_tickers,
)

__all__ = [
    "MockExchange",
    "exchange_config",
    "fast_retry",
    "make_gateway",
    "mock_exchange",
    "sample_depth",
    "sample_instrument_listing",
    "sample_tickers",
]
