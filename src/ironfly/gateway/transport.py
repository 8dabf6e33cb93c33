"""
HTTP Transport

Explicitly constructed httpx client with documented timeout defaults, passed
into the gateway instead of living as module-level state.

Defaults (seconds):
- connect: 10
- read: 30
- write: 30
- pool: 10
"""

import json
from decimal import Decimal
from typing import Any, Optional

import httpx
from loguru import logger

from ironfly.config.trading_config import TransportConfig
from ironfly.core.errors import UpstreamError


def build_timeout(config: Optional[TransportConfig] = None) -> httpx.Timeout:
    """Translate TransportConfig into an httpx.Timeout."""
    config = config or TransportConfig()
    return httpx.Timeout(
        connect=config.connect_timeout,
        read=config.read_timeout,
        write=config.write_timeout,
        pool=config.pool_timeout,
    )


def build_http_client(
    config: Optional[TransportConfig] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Create the HTTP client shared by all gateway calls.

    Args:
        config: Timeout configuration (defaults documented above)
        transport: Optional httpx transport (e.g. httpx.MockTransport in tests)

    Returns:
        Configured httpx.Client; the caller owns and closes it
    """
    timeout = build_timeout(config)
    logger.debug(
        f"HTTP client timeouts: connect={timeout.connect}s read={timeout.read}s "
        f"write={timeout.write}s pool={timeout.pool}s"
    )
    return httpx.Client(timeout=timeout, transport=transport)


def decode_json(response: httpx.Response, endpoint: str = "") -> Any:
    """
    Decode a JSON body with exact decimals.

    Floats are parsed as Decimal so prices never pass through binary floating point.

    Raises:
        UpstreamError: If the body is not valid JSON
    """
    text = response.text
    try:
        return json.loads(text, parse_float=Decimal)
    except ValueError as e:
        raise UpstreamError(
            f"Malformed JSON from {endpoint or 'exchange'}: {e}",
            status_code=None,
            body=text[:500],
            endpoint=endpoint,
        ) from e
