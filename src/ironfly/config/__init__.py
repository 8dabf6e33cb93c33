"""
Configuration Module

Trading configuration dataclasses, YAML/env loading, and logging setup.
"""

from ironfly.config.logging_setup import configure_logging
from ironfly.config.trading_config import (
    ExchangeConfig,
    LoggingConfig,
    RetryConfig,
    StrategyConfig,
    TradingConfig,
    TransportConfig,
    load_trading_config,
)

__all__ = [
    "TradingConfig",
    "ExchangeConfig",
    "TransportConfig",
    "RetryConfig",
    "StrategyConfig",
    "LoggingConfig",
    "load_trading_config",
    "configure_logging",
]
