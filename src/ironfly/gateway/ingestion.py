"""
Options Chain Ingestion Sources

The exchange exposes the same logical chain through several endpoint shapes:

- ticker: JSON array of live tickers with bid/ask/mark pricing
- ticker_24hr: JSON array of 24-hour tickers (richer fields, same pricing keys)
- instrument_listing: exchange info object with a symbols array, no pricing

Each shape is one ChainSource implementation behind a single interface, picked
by the `chain_source` configuration key. The gateway fetches through whichever
source is configured and never branches on the shape itself.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

from pydantic import ValidationError

from ironfly.core.errors import UpstreamError
from ironfly.gateway.endpoints import (
    PATH_INSTRUMENT_LISTING,
    PATH_OPTIONS_TICKER,
    PATH_OPTIONS_TICKER_24HR,
)
from ironfly.gateway.payloads import InstrumentListing


RawRecord = Dict[str, Any]


class ChainSource(Protocol):
    """
    Chain ingestion protocol.

    Attributes:
        name: Configuration key selecting this source
        path: Options API path to GET
        carries_pricing: Whether records include bid/ask/mark fields
    """

    name: str
    path: str
    carries_pricing: bool

    def extract_records(self, payload: Any) -> List[RawRecord]:
        """
        Validate the payload shape and return records that carry a symbol.

        Raises:
            UpstreamError: If the payload has the wrong shape
        """
        ...


def _ticker_records(payload: Any, path: str) -> List[RawRecord]:
    if not isinstance(payload, list):
        raise UpstreamError(
            f"Expected array response from {path}, got {type(payload).__name__}",
            endpoint=path,
        )
    return [
        record for record in payload
        if isinstance(record, dict) and isinstance(record.get("symbol"), str)
    ]


@dataclass(frozen=True, slots=True)
class TickerChainSource:
    """Live ticker listing with pricing."""

    name: str = "ticker"
    path: str = PATH_OPTIONS_TICKER
    carries_pricing: bool = True

    def extract_records(self, payload: Any) -> List[RawRecord]:
        return _ticker_records(payload, self.path)


@dataclass(frozen=True, slots=True)
class Ticker24hrChainSource:
    """24-hour ticker listing with pricing."""

    name: str = "ticker_24hr"
    path: str = PATH_OPTIONS_TICKER_24HR
    carries_pricing: bool = True

    def extract_records(self, payload: Any) -> List[RawRecord]:
        return _ticker_records(payload, self.path)


@dataclass(frozen=True, slots=True)
class InstrumentListingChainSource:
    """Instrument listing without pricing; contracts need a pricing refresh."""

    name: str = "instrument_listing"
    path: str = PATH_INSTRUMENT_LISTING
    carries_pricing: bool = False

    def extract_records(self, payload: Any) -> List[RawRecord]:
        try:
            listing = InstrumentListing.model_validate(payload)
        except ValidationError as e:
            raise UpstreamError(
                f"Malformed instrument listing from {self.path}: {e.error_count()} error(s)",
                endpoint=self.path,
                body=str(payload)[:500],
            ) from e
        return listing.symbols


CHAIN_SOURCE_REGISTRY = {
    "ticker": TickerChainSource,
    "ticker_24hr": Ticker24hrChainSource,
    "instrument_listing": InstrumentListingChainSource,
}


def chain_source_for(name: str) -> ChainSource:
    """
    Build the chain source registered under name.

    Raises:
        ValueError: If name is not a known source
    """
    try:
        return CHAIN_SOURCE_REGISTRY[name]()
    except KeyError:
        raise ValueError(
            f"Unknown chain source: {name!r} (expected one of {', '.join(CHAIN_SOURCE_REGISTRY)})"
        ) from None
