"""
Market Data Normalizer

Converts raw-but-validated exchange payloads into OptionContract and OrderBook.

Key patterns:
- One malformed record never aborts a chain: ParseError is raised per record
  and absorbed here (logged, record dropped)
- Strikes come from the symbol, never from a price field
- Pricing follows a fixed fallback order; an unpriced contract is still valid

Pricing fallback (per record):
    1. bidPrice / askPrice when present and not zero ("0" means not quoted),
       bidQty / askQty whenever present
    2. markPrice (not zero) fills whichever side is still unset
    3. Otherwise the side stays None
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from ironfly.core.errors import ParseError
from ironfly.core.models import ZERO, OptionContract, OptionType, OrderBook, PriceLevel


SYMBOL_DELIMITER = "-"


@dataclass(frozen=True, slots=True)
class ParsedSymbol:
    """Identity fields decoded from BASE-YYMMDD-STRIKE-C|P."""

    base: str
    expiry: date
    strike: Decimal
    option_type: OptionType


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert an exchange numeric field to Decimal.

    Accepts Decimal, int and numeric strings. Returns None for anything else,
    including booleans and binary floats.
    """
    if value is None or isinstance(value, (bool, float)):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def parse_symbol(symbol: str) -> ParsedSymbol:
    """
    Parse an option symbol.

    Args:
        symbol: Exchange symbol, e.g. BTC-240105-42000-C

    Returns:
        ParsedSymbol with base, expiry (20YYMMDD), exact strike and type

    Raises:
        ParseError: If the symbol has fewer than four segments or a bad part
    """
    if not isinstance(symbol, str):
        raise ParseError(f"Symbol must be a string, got {type(symbol).__name__}")

    parts = symbol.split(SYMBOL_DELIMITER)
    if len(parts) < 4:
        raise ParseError(f"Expected 4 segments in option symbol, got {len(parts)}", symbol)

    base, expiry_token, strike_token, type_token = parts[0], parts[1], parts[2], parts[-1]

    if not base:
        raise ParseError("Empty base asset", symbol)

    if len(expiry_token) != 6 or not expiry_token.isdigit():
        raise ParseError(f"Invalid expiry segment {expiry_token!r}", symbol)
    try:
        expiry = datetime.strptime(f"20{expiry_token}", "%Y%m%d").date()
    except ValueError as e:
        raise ParseError(f"Invalid expiry segment {expiry_token!r}: {e}", symbol) from e

    strike = to_decimal(strike_token)
    if strike is None or strike < 0:
        raise ParseError(f"Invalid strike segment {strike_token!r}", symbol)

    option_type = OptionType.CALL if type_token == OptionType.CALL.value else OptionType.PUT

    return ParsedSymbol(base=base, expiry=expiry, strike=strike, option_type=option_type)


def render_symbol(base: str, expiry: date, strike: Decimal, option_type: OptionType) -> str:
    """Render identity fields back into BASE-YYMMDD-STRIKE-C|P."""
    return SYMBOL_DELIMITER.join(
        [base, expiry.strftime("%y%m%d"), format(strike, "f"), option_type.value]
    )


def _quoted(value: Optional[Decimal]) -> Optional[Decimal]:
    """Treat the zero sentinel as not quoted."""
    if value is None or value == ZERO:
        return None
    return value


def apply_ticker(contract: OptionContract, record: Mapping[str, Any]) -> None:
    """
    Apply a ticker record's pricing to contract in place.

    Sides already priced are only overwritten by a direct quote; the mark
    price only fills sides that are still None.
    """
    bid = _quoted(to_decimal(record.get("bidPrice")))
    ask = _quoted(to_decimal(record.get("askPrice")))

    if bid is not None:
        contract.bid_price = bid
    if ask is not None:
        contract.ask_price = ask

    bid_qty = to_decimal(record.get("bidQty"))
    ask_qty = to_decimal(record.get("askQty"))
    if bid_qty is not None:
        contract.bid_quantity = bid_qty
    if ask_qty is not None:
        contract.ask_quantity = ask_qty

    mark = _quoted(to_decimal(record.get("markPrice")))
    if mark is not None:
        if contract.bid_price is None:
            contract.bid_price = mark
        if contract.ask_price is None:
            contract.ask_price = mark


def apply_order_book(contract: OptionContract, book: OrderBook) -> None:
    """
    Price contract from the top of an order book.

    An empty side leaves the contract's side untouched rather than writing
    the zero sentinel as a price.
    """
    if book.bids:
        contract.bid_price = book.best_bid
        contract.bid_quantity = book.best_bid_quantity
    if book.asks:
        contract.ask_price = book.best_ask
        contract.ask_quantity = book.best_ask_quantity


def normalize_contract(record: Mapping[str, Any]) -> Optional[OptionContract]:
    """
    Build an OptionContract from one raw record.

    Returns:
        The contract, or None when the symbol is malformed (logged)
    """
    symbol = record.get("symbol")
    try:
        parsed = parse_symbol(symbol)
    except ParseError as e:
        logger.warning(f"Dropping malformed option record {symbol!r}: {e}")
        return None

    contract = OptionContract(
        symbol=symbol,
        strike=parsed.strike,
        expiry=parsed.expiry,
        option_type=parsed.option_type,
    )
    apply_ticker(contract, record)
    return contract


def normalize_chain(records: Iterable[Mapping[str, Any]]) -> List[OptionContract]:
    """
    Normalize a chain snapshot.

    Exchange order is preserved, malformed records are dropped and duplicate
    symbols keep their first occurrence.
    """
    contracts: List[OptionContract] = []
    seen = set()
    dropped = 0

    for record in records:
        contract = normalize_contract(record)
        if contract is None:
            dropped += 1
            continue
        if contract.symbol in seen:
            logger.debug(f"Skipping duplicate symbol {contract.symbol}")
            continue
        seen.add(contract.symbol)
        contracts.append(contract)

    if dropped:
        logger.warning(f"Dropped {dropped} malformed record(s) while normalizing chain")
    logger.debug(f"Normalized {len(contracts)} option contracts")
    return contracts


def _parse_levels(side: Any, symbol: str, name: str) -> tuple[PriceLevel, ...]:
    if not isinstance(side, (list, tuple)):
        return ()

    levels = []
    for entry in side:
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            logger.debug(f"Skipping malformed {name} entry for {symbol}: {entry!r}")
            continue
        price = to_decimal(entry[0])
        quantity = to_decimal(entry[1])
        if price is None or quantity is None or price < 0 or quantity < 0:
            logger.debug(f"Skipping malformed {name} entry for {symbol}: {entry!r}")
            continue
        levels.append(PriceLevel(price=price, quantity=quantity))
    return tuple(levels)


def parse_order_book(symbol: str, payload: Mapping[str, Any]) -> OrderBook:
    """
    Parse a depth payload {bids: [[price, qty], ...], asks: [...]}.

    Exchange ordering is preserved (best level first per side). Malformed
    entries are skipped; an absent or non-array side is empty.
    """
    book = OrderBook(
        symbol=symbol,
        bids=_parse_levels(payload.get("bids"), symbol, "bid"),
        asks=_parse_levels(payload.get("asks"), symbol, "ask"),
    )
    logger.debug(
        f"Parsed order book for {symbol}: {len(book.bids)} bids, {len(book.asks)} asks, "
        f"best bid: {book.best_bid}, best ask: {book.best_ask}"
    )
    return book


def update_pricing_from_tickers(
    contracts: Sequence[OptionContract],
    tickers: Iterable[Mapping[str, Any]],
) -> int:
    """
    Update contracts in place from one bulk ticker payload.

    Contracts without a matching ticker are left unchanged.

    Returns:
        Number of contracts updated
    """
    ticker_map: Dict[str, Mapping[str, Any]] = {}
    for ticker in tickers:
        symbol = ticker.get("symbol")
        if isinstance(symbol, str):
            ticker_map[symbol] = ticker

    updated = 0
    for contract in contracts:
        ticker = ticker_map.get(contract.symbol)
        if ticker is None:
            continue
        apply_ticker(contract, ticker)
        updated += 1

    logger.info(f"Updated pricing for {updated}/{len(contracts)} contracts")
    return updated


def extract_expiries(records: Iterable[Mapping[str, Any]], base_asset: str) -> List[date]:
    """
    Collect the distinct expiries listed for base_asset, ascending.

    Records for other assets and malformed symbols are skipped.
    """
    expiries = set()
    for record in records:
        symbol = record.get("symbol")
        try:
            parsed = parse_symbol(symbol)
        except ParseError:
            continue
        if parsed.base == base_asset:
            expiries.add(parsed.expiry)
    return sorted(expiries)
