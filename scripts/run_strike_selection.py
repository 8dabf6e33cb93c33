#!/usr/bin/env python3
"""
Run Strike Selection - Iron Butterfly Legs

This script:
1. Loads config/trading_config.yaml (env overrides applied)
2. Fetches the futures reference price
3. Resolves the current or next expiry (or uses --expiry)
4. Fetches and normalizes the options chain
5. Refreshes pricing (bulk tickers or per-contract order books)
6. Selects the iron butterfly legs and logs them

No orders are placed.

Usage:
    # Run with default settings
    python scripts/run_strike_selection.py

    # Specific expiry and strike distance
    python scripts/run_strike_selection.py --expiry 2024-01-05 --strike-distance 3

    # Price from order books with 4 workers and log the strike analysis
    python scripts/run_strike_selection.py --pricing order-book --workers 4 --analyze
"""

import argparse
import sys
from datetime import date
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from ironfly.config import configure_logging, load_trading_config
from ironfly.core.errors import IronflyError
from ironfly.gateway import ExchangeGateway, build_http_client
from ironfly.market_data import MarketDataService
from ironfly.strategy import log_strike_analysis, select_iron_butterfly
from ironfly.utils.retry import RetryExecutor


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Select iron butterfly strikes from the live options chain"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to trading config YAML (default: config/trading_config.yaml)"
    )

    parser.add_argument(
        "--expiry",
        type=date.fromisoformat,
        default=None,
        help="Expiry date YYYY-MM-DD (default: current or next listed expiry)"
    )

    parser.add_argument(
        "--strike-distance",
        type=int,
        default=None,
        help="Strike steps between ATM and wings (default: from config)"
    )

    parser.add_argument(
        "--pricing",
        choices=["chain", "bulk", "order-book"],
        default="chain",
        help="Pricing refresh after the chain fetch (default: chain, i.e. none when the chain carries pricing)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for order book refresh (default: from config)"
    )

    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Log every strike with its moneyness and the wing candidates"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_trading_config(args.config)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    configure_logging(config.logging, verbose=args.verbose)

    strike_distance = args.strike_distance or config.strategy.strike_distance

    logger.info("=" * 70)
    logger.info("IRON BUTTERFLY STRIKE SELECTION")
    logger.info("=" * 70)

    with build_http_client(config.transport) as http:
        gateway = ExchangeGateway(
            config.exchange,
            http,
            RetryExecutor(config.retry.to_policy()),
        )
        service = MarketDataService(gateway, config.strategy)

        try:
            reference_price = service.get_reference_price()
            expiry = args.expiry or service.get_current_or_next_expiry()
            chain = service.get_chain(expiry)

            if not chain:
                logger.warning(f"No contracts listed for {expiry}; nothing to select")
                return 1

            if args.pricing == "bulk" or (args.pricing == "chain" and not gateway.chain_source.carries_pricing):
                service.refresh_bulk_pricing(chain)
            elif args.pricing == "order-book":
                service.refresh_order_book_pricing(chain, max_workers=args.workers)
        except IronflyError as e:
            logger.error(f"Market data unavailable: {e}")
            return 1

    if args.analyze:
        log_strike_analysis(chain, reference_price, strike_distance)

    butterfly = select_iron_butterfly(chain, reference_price, strike_distance)
    if butterfly is None:
        logger.warning("No trade: iron butterfly could not be assembled")
        return 1

    logger.info("=" * 70)
    logger.info(f"Expiry: {expiry}  Reference: {reference_price}  ATM strike: {butterfly.atm_strike}")
    for role, contract in (
        ("SELL ATM call", butterfly.atm_call),
        ("SELL ATM put", butterfly.atm_put),
        ("BUY wing call", butterfly.wing_call),
        ("BUY wing put", butterfly.wing_put),
    ):
        logger.info(
            f"  {role:<14} {contract.symbol:<22} bid={contract.bid_price} ask={contract.ask_price}"
        )
    logger.info(f"Wing width: {butterfly.wing_width}")
    logger.info("=" * 70)

    return 0


if __name__ == "__main__":
    sys.exit(main())
