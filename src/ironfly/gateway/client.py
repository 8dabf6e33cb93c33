"""
Exchange Gateway

Translates domain operations into exchange HTTP calls. Every call is wrapped by
the shared RetryExecutor and returns a raw-but-validated payload; turning those
payloads into contracts and order books is the normalizer's job.

Key features:
- One gateway for every chain endpoint shape (see ingestion.ChainSource)
- Explicit, injected httpx.Client (see transport.build_http_client)
- Signed order calls with API-key and signature headers
- Exchange error bodies preserved verbatim in UpstreamError / OrderError

Usage:
    from ironfly.gateway import ExchangeGateway, build_http_client

    http = build_http_client(config.transport)
    gateway = ExchangeGateway(config.exchange, http, RetryExecutor(config.retry.to_policy()))

    price = gateway.get_reference_price()
    records = gateway.get_options_chain(date(2024, 1, 5))
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from ironfly.config.trading_config import ExchangeConfig
from ironfly.core.errors import ConfigurationError, OrderError, UpstreamError
from ironfly.gateway.endpoints import (
    FORM_CONTENT_TYPE,
    HEADER_API_KEY,
    HEADER_SIGNATURE,
    PATH_DEPTH,
    PATH_OPTIONS_TICKER,
    PATH_OPTIONS_TICKER_24HR,
    PATH_ORDER,
    PATH_PRICE_TICKER,
)
from ironfly.gateway.ingestion import ChainSource, RawRecord, chain_source_for
from ironfly.gateway.payloads import PriceTicker
from ironfly.gateway.transport import decode_json
from ironfly.utils.retry import RetryExecutor
from ironfly.utils.signing import SignedRequest


class ExchangeGateway:
    """
    HTTP gateway to the options exchange.

    Attributes:
        config: Exchange configuration (URLs, credentials, base asset)
        http: httpx client used for every request
        retry: Retry executor wrapping every operation
        chain_source: Endpoint shape used for chain and expiry listings
    """

    def __init__(
        self,
        config: ExchangeConfig,
        http: httpx.Client,
        retry: Optional[RetryExecutor] = None,
        chain_source: Optional[ChainSource] = None,
    ):
        self.config = config
        self.http = http
        self.retry = retry or RetryExecutor()
        self.chain_source = chain_source or chain_source_for(config.chain_source)

        logger.info(
            f"ExchangeGateway initialized (base={config.base_asset}, "
            f"chain_source={self.chain_source.name})"
        )

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    def get_reference_price(self) -> Decimal:
        """
        Fetch the futures reference price for the base asset.

        Returns:
            Last futures price

        Raises:
            UpstreamError: If the response is unsuccessful or has no price
        """
        symbol = self.config.reference_symbol

        def fetch() -> Decimal:
            payload = self._get(
                self.config.futures_api_url, PATH_PRICE_TICKER, params={"symbol": symbol}
            )
            try:
                ticker = PriceTicker.model_validate(payload)
            except ValidationError as e:
                raise UpstreamError(
                    f"Price ticker for {symbol} has no usable price",
                    body=str(payload)[:500],
                    endpoint=PATH_PRICE_TICKER,
                ) from e
            logger.info(f"Retrieved {symbol} futures price: {ticker.price}")
            return ticker.price

        return self.retry.execute_with_retry(fetch, "get_reference_price")

    def get_options_chain(self, expiry: date) -> List[RawRecord]:
        """
        Fetch raw chain records for one expiry.

        Records are kept when the symbol's first segment is the base asset and
        its second segment is the expiry as YYMMDD. No match returns [].

        Args:
            expiry: Expiration date to filter on

        Returns:
            Raw records in exchange order
        """
        expiry_token = expiry.strftime("%y%m%d")
        base = self.config.base_asset

        def fetch() -> List[RawRecord]:
            records = self._fetch_listing()
            matched = [
                record for record in records
                if _symbol_matches(record["symbol"], base, expiry_token)
            ]

            logger.info(
                f"Retrieved {len(matched)} {base} option records for expiry {expiry} "
                f"from {self.chain_source.path}"
            )
            if not matched:
                sample = [r["symbol"] for r in records if r["symbol"].startswith(f"{base}-")][:5]
                logger.warning(f"No {base} options found for expiry {expiry}. Sample symbols: {sample}")

            return matched

        return self.retry.execute_with_retry(fetch, "get_options_chain")

    def get_available_expiries(self) -> List[RawRecord]:
        """Fetch the full listing; expiry extraction happens downstream."""
        return self.retry.execute_with_retry(self._fetch_listing, "get_available_expiries")

    def get_order_book(self, symbol: str, depth: int) -> Dict[str, Any]:
        """
        Fetch the top `depth` levels per side for symbol.

        Raises:
            UpstreamError: On non-success status (body included) or a non-object body
        """
        def fetch() -> Dict[str, Any]:
            logger.debug(f"Fetching order book for {symbol} with depth {depth}")
            payload = self._get(
                self.config.options_api_url,
                PATH_DEPTH,
                params={"symbol": symbol, "limit": str(depth)},
            )
            if not isinstance(payload, dict):
                raise UpstreamError(
                    f"Expected object response from {PATH_DEPTH} for {symbol}",
                    body=str(payload)[:500],
                    endpoint=PATH_DEPTH,
                )
            return payload

        return self.retry.execute_with_retry(fetch, "get_order_book")

    def get_option_ticker(self, symbol: str) -> Dict[str, Any]:
        """
        Fetch the live ticker for a single option symbol.

        The exchange answers with an array; the entry for symbol is returned.

        Raises:
            UpstreamError: If no ticker for symbol is present
        """
        def fetch() -> Dict[str, Any]:
            payload = self._get(
                self.config.options_api_url, PATH_OPTIONS_TICKER, params={"symbol": symbol}
            )
            entries = payload if isinstance(payload, list) else [payload]
            for entry in entries:
                if isinstance(entry, dict) and entry.get("symbol") == symbol:
                    return entry
            raise UpstreamError(
                f"No ticker returned for {symbol}",
                body=str(payload)[:500],
                endpoint=PATH_OPTIONS_TICKER,
            )

        return self.retry.execute_with_retry(fetch, "get_option_ticker")

    def get_bulk_tickers(self) -> List[RawRecord]:
        """Fetch every option's 24-hour ticker in one call."""
        def fetch() -> List[RawRecord]:
            payload = self._get(self.config.options_api_url, PATH_OPTIONS_TICKER_24HR)
            if not isinstance(payload, list):
                raise UpstreamError(
                    f"Expected array response from {PATH_OPTIONS_TICKER_24HR}",
                    body=str(payload)[:500],
                    endpoint=PATH_OPTIONS_TICKER_24HR,
                )
            return [r for r in payload if isinstance(r, dict) and isinstance(r.get("symbol"), str)]

        return self.retry.execute_with_retry(fetch, "get_bulk_tickers")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def submit_order(self, signed: SignedRequest) -> Dict[str, Any]:
        """
        Submit a signed order.

        Args:
            signed: Canonical form body and its signature

        Returns:
            Raw order acknowledgement

        Raises:
            ConfigurationError: If no API key is configured
            OrderError: On non-success status, with the exchange body verbatim
        """
        return self.retry.execute_with_retry(
            lambda: self._send_signed("POST", signed, "place"), "submit_order"
        )

    def cancel_order(self, signed: SignedRequest) -> Dict[str, Any]:
        """
        Cancel an order using a signed body carrying symbol and orderId.

        Raises:
            ConfigurationError: If no API key is configured
            OrderError: On non-success status, with the exchange body verbatim
        """
        return self.retry.execute_with_retry(
            lambda: self._send_signed("DELETE", signed, "cancel"), "cancel_order"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_listing(self) -> List[RawRecord]:
        payload = self._get(self.config.options_api_url, self.chain_source.path)
        return self.chain_source.extract_records(payload)

    def _get(self, base_url: str, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        response = self.http.get(f"{base_url.rstrip('/')}{path}", params=params)
        if not response.is_success:
            logger.error(f"GET {path} failed: {response.status_code} - {response.text[:200]}")
            raise UpstreamError(
                f"GET {path} failed",
                status_code=response.status_code,
                body=response.text,
                endpoint=path,
            )
        return decode_json(response, path)

    def _send_signed(self, method: str, signed: SignedRequest, action: str) -> Dict[str, Any]:
        if not self.config.api_key:
            raise ConfigurationError("API key is not configured; refusing to send signed request")

        response = self.http.request(
            method,
            f"{self.config.options_api_url.rstrip('/')}{PATH_ORDER}",
            content=signed.query_string.encode("utf-8"),
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                HEADER_API_KEY: self.config.api_key,
                HEADER_SIGNATURE: signed.signature,
            },
        )

        if not response.is_success:
            logger.error(f"Order {action} failed: {response.status_code} - {response.text}")
            raise OrderError(
                f"Failed to {action} order",
                status_code=response.status_code,
                body=response.text,
                endpoint=PATH_ORDER,
            )

        # Accepted by the exchange from here on: failures carry the 2xx status and are never resent
        try:
            payload = decode_json(response, PATH_ORDER)
        except UpstreamError as e:
            logger.error(f"Order {action} accepted but response unreadable: {response.text[:200]}")
            raise OrderError(
                f"Unreadable order {action} response",
                status_code=response.status_code,
                body=response.text,
                endpoint=PATH_ORDER,
            ) from e
        if not isinstance(payload, dict):
            raise OrderError(
                f"Unexpected order {action} response",
                status_code=response.status_code,
                body=response.text,
                endpoint=PATH_ORDER,
            )
        return payload


def _symbol_matches(symbol: str, base: str, expiry_token: str) -> bool:
    parts = symbol.split("-")
    return len(parts) >= 2 and parts[0] == base and parts[1] == expiry_token
