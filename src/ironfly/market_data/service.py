"""
Market Data Service

Orchestrates gateway calls and normalization into a strategy-ready chain.

Failure boundaries:
- Chain and reference price fetches propagate after the retry policy is exhausted
- Per-contract pricing refreshes are isolated: one failing contract is logged
  and skipped, the others are still priced
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from loguru import logger

from ironfly.config.trading_config import StrategyConfig
from ironfly.core.errors import NoExpiryAvailableError
from ironfly.core.models import OptionContract, OrderBook
from ironfly.gateway.client import ExchangeGateway
from ironfly.market_data.normalizer import (
    apply_order_book,
    apply_ticker,
    extract_expiries,
    normalize_chain,
    parse_order_book,
    update_pricing_from_tickers,
)


FRIDAY = 4


class MarketDataService:
    """
    Market data facade over the exchange gateway.

    Attributes:
        gateway: Exchange gateway
        strategy: Strategy settings (depth, workers, expiry search horizon)
        today: Callable returning the current UTC date
    """

    def __init__(
        self,
        gateway: ExchangeGateway,
        strategy: Optional[StrategyConfig] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.gateway = gateway
        self.strategy = strategy or StrategyConfig()
        self.today = today or _utc_today

    def get_reference_price(self) -> Decimal:
        """Fetch the futures reference price."""
        logger.info("Fetching current futures reference price...")
        price = self.gateway.get_reference_price()
        logger.info(f"Current futures price: {price}")
        return price

    def get_chain(self, expiry: date) -> List[OptionContract]:
        """
        Fetch and normalize the chain for expiry.

        When the configured chain source carries no pricing, contracts come
        back unpriced; call refresh_bulk_pricing or refresh_order_book_pricing.
        """
        logger.info(f"Fetching options chain for expiry: {expiry}")
        records = self.gateway.get_options_chain(expiry)
        contracts = normalize_chain(records)
        if not self.gateway.chain_source.carries_pricing:
            logger.debug(f"{self.gateway.chain_source.name} carries no pricing; contracts unpriced")
        return contracts

    def get_order_book(self, symbol: str, depth: Optional[int] = None) -> OrderBook:
        """Fetch and parse the order book for symbol."""
        depth = depth or self.strategy.order_book_depth
        payload = self.gateway.get_order_book(symbol, depth)
        return parse_order_book(symbol, payload)

    def refresh_contract_pricing(self, contract: OptionContract) -> None:
        """Refresh one contract from its single-symbol ticker."""
        ticker = self.gateway.get_option_ticker(contract.symbol)
        apply_ticker(contract, ticker)
        logger.debug(
            f"Updated pricing for {contract.symbol}: Bid={contract.bid_price}, Ask={contract.ask_price}"
        )

    def refresh_order_book_pricing(
        self,
        contracts: Sequence[OptionContract],
        depth: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> int:
        """
        Price each contract from the top of its order book.

        Contracts are independent: a failure on one is logged and that contract
        is left unchanged. Runs sequentially when max_workers <= 1, otherwise on
        a bounded thread pool.

        Args:
            contracts: Contracts to update in place
            depth: Order book depth (default: strategy.order_book_depth)
            max_workers: Worker threads (default: strategy.refresh_workers)

        Returns:
            Number of contracts successfully refreshed
        """
        depth = depth or self.strategy.order_book_depth
        workers = max_workers if max_workers is not None else self.strategy.refresh_workers

        def refresh(contract: OptionContract) -> None:
            book = self.get_order_book(contract.symbol, depth)
            apply_order_book(contract, book)

        return self._refresh_each(contracts, refresh, workers)

    def refresh_ticker_pricing(
        self,
        contracts: Sequence[OptionContract],
        max_workers: Optional[int] = None,
    ) -> int:
        """Per-contract ticker refresh with the same isolation as refresh_order_book_pricing."""
        workers = max_workers if max_workers is not None else self.strategy.refresh_workers
        return self._refresh_each(contracts, self.refresh_contract_pricing, workers)

    def refresh_bulk_pricing(self, contracts: Sequence[OptionContract]) -> int:
        """Price every contract from one bulk 24-hour ticker call."""
        tickers = self.gateway.get_bulk_tickers()
        return update_pricing_from_tickers(contracts, tickers)

    def get_available_expiries(self) -> List[date]:
        """List distinct expiries for the base asset, ascending."""
        records = self.gateway.get_available_expiries()
        expiries = extract_expiries(records, self.gateway.config.base_asset)
        logger.info(f"Found {len(expiries)} available expiries")
        return expiries

    def get_current_or_next_expiry(self) -> date:
        """
        Resolve the expiry to trade.

        Search order:
            1. Today, or the first listed expiry within expiry_search_days
            2. The first listed Friday within weekly_search_weeks after that

        Raises:
            NoExpiryAvailableError: If nothing is listed inside the horizon
        """
        today = self.today()
        expiries = self.get_available_expiries()

        daily_end = today + timedelta(days=self.strategy.expiry_search_days)
        for expiry in expiries:
            if today <= expiry <= daily_end:
                logger.info(f"Using expiry {expiry}")
                return expiry

        weekly_end = daily_end + timedelta(weeks=self.strategy.weekly_search_weeks)
        for expiry in expiries:
            if daily_end < expiry <= weekly_end and expiry.weekday() == FRIDAY:
                logger.info(f"Using weekly expiry {expiry}")
                return expiry

        raise NoExpiryAvailableError(
            f"No {self.gateway.config.base_asset} expiry listed between {today} and {weekly_end}"
        )

    def _refresh_each(
        self,
        contracts: Sequence[OptionContract],
        refresh: Callable[[OptionContract], None],
        workers: int,
    ) -> int:
        logger.debug(f"Updating prices for {len(contracts)} option contracts (workers={workers})")
        refreshed = 0

        if workers <= 1:
            for contract in contracts:
                refreshed += _refresh_isolated(contract, refresh)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [pool.submit(_refresh_isolated, c, refresh) for c in contracts]
                for future in as_completed(futures):
                    refreshed += future.result()

        logger.info(f"Updated pricing for {refreshed}/{len(contracts)} contracts")
        return refreshed


def _refresh_isolated(contract: OptionContract, refresh: Callable[[OptionContract], None]) -> int:
    try:
        refresh(contract)
    except Exception as e:
        logger.warning(f"Failed to update prices for {contract.symbol}: {e}")
        return 0
    return 1


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()
