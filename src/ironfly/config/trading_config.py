"""
Trading Configuration Loader

Loads and validates trading configuration from YAML file, with environment
variable overrides for credentials and deployment settings.

Config location: config/trading_config.yaml

Schema:
- exchange: API base URLs, credentials, base/quote asset, chain source
- transport: HTTP timeouts (seconds)
- retry: Retry/backoff policy for exchange calls
- strategy: Strike distance, order book depth, pricing refresh workers, expiry search
- logging: Log level and optional rotating log file
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

from ironfly.core.errors import ConfigurationError
from ironfly.utils.retry import RetryPolicy


CHAIN_SOURCES = ("ticker", "ticker_24hr", "instrument_listing")


@dataclass
class ExchangeConfig:
    """Exchange connection configuration."""
    options_api_url: str = "https://eapi.binance.com"
    futures_api_url: str = "https://fapi.binance.com"
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    base_asset: str = "BTC"
    quote_asset: str = "USDT"
    chain_source: str = "ticker"

    @property
    def reference_symbol(self) -> str:
        """Futures ticker used as the reference price (e.g. BTCUSDT)."""
        return f"{self.base_asset}{self.quote_asset}"


@dataclass
class TransportConfig:
    """HTTP timeouts (seconds)."""
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 10.0


@dataclass
class RetryConfig:
    """Retry/backoff configuration for exchange calls."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: bool = True
    total_timeout: Optional[float] = 120.0

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            total_timeout=self.total_timeout,
        )


@dataclass
class StrategyConfig:
    """Iron butterfly strike selection configuration."""
    strike_distance: int = 2          # strike steps between ATM and wing
    order_book_depth: int = 10
    refresh_workers: int = 1          # 1 = sequential pricing refresh
    expiry_search_days: int = 7       # daily expiries looked at after today
    weekly_search_weeks: int = 4      # Friday expiries looked at afterwards


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_file: Optional[str] = None
    rotation: str = "100 MB"
    retention: int = 10


@dataclass
class TradingConfig:
    """Complete trading configuration."""

    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "TradingConfig":
        """Create config from dictionary with nested dataclass instantiation."""
        return cls(
            exchange=ExchangeConfig(**(data.get("exchange") or {})),
            transport=TransportConfig(**(data.get("transport") or {})),
            retry=RetryConfig(**(data.get("retry") or {})),
            strategy=StrategyConfig(**(data.get("strategy") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Exchange
        for name in ("options_api_url", "futures_api_url"):
            url = getattr(self.exchange, name)
            if not url or not url.startswith(("http://", "https://")):
                errors.append(f"Invalid {name}: {url!r}")
        if not self.exchange.base_asset:
            errors.append("base_asset cannot be empty")
        if self.exchange.chain_source not in CHAIN_SOURCES:
            errors.append(
                f"Invalid chain_source: {self.exchange.chain_source!r} "
                f"(expected one of {', '.join(CHAIN_SOURCES)})"
            )

        # Transport
        for name in ("connect_timeout", "read_timeout", "write_timeout", "pool_timeout"):
            if getattr(self.transport, name) <= 0:
                errors.append(f"{name} must be > 0")

        # Retry
        if self.retry.max_attempts < 1:
            errors.append(f"Invalid max_attempts: {self.retry.max_attempts}")
        if self.retry.base_delay < 0:
            errors.append(f"Invalid base_delay: {self.retry.base_delay}")
        if self.retry.max_delay < self.retry.base_delay:
            errors.append("max_delay must be >= base_delay")
        if self.retry.total_timeout is not None and self.retry.total_timeout <= 0:
            errors.append(f"Invalid total_timeout: {self.retry.total_timeout}")

        # Strategy
        if self.strategy.strike_distance < 1:
            errors.append(f"strike_distance must be >= 1: {self.strategy.strike_distance}")
        if self.strategy.order_book_depth < 1:
            errors.append(f"order_book_depth must be >= 1: {self.strategy.order_book_depth}")
        if self.strategy.refresh_workers < 1:
            errors.append(f"refresh_workers must be >= 1: {self.strategy.refresh_workers}")
        if self.strategy.expiry_search_days < 0:
            errors.append("expiry_search_days must be >= 0")
        if self.strategy.weekly_search_weeks < 0:
            errors.append("weekly_search_weeks must be >= 0")

        # Logging
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if self.logging.level.upper() not in valid_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        return errors

    def require_credentials(self) -> None:
        """
        Ensure API credentials are present before any authenticated call.

        Raises:
            ConfigurationError: If api_key or secret_key is missing
        """
        missing = [
            name for name in ("api_key", "secret_key")
            if not getattr(self.exchange, name)
        ]
        if missing:
            raise ConfigurationError(f"Missing exchange credentials: {', '.join(missing)}")


def merge_config_with_env(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge configuration with environment variables.

    Environment variables override config file settings.

    Examples:
        IRONFLY_API_KEY=...
        IRONFLY_SECRET_KEY=...
        IRONFLY_STRIKE_DISTANCE=3
        IRONFLY_LOG_LEVEL=DEBUG

    Args:
        config_data: Configuration data from file

    Returns:
        Merged configuration with env vars applied
    """
    env_mapping = {
        "IRONFLY_OPTIONS_API_URL": ("exchange", "options_api_url", str),
        "IRONFLY_FUTURES_API_URL": ("exchange", "futures_api_url", str),
        "IRONFLY_API_KEY": ("exchange", "api_key", str),
        "IRONFLY_SECRET_KEY": ("exchange", "secret_key", str),
        "IRONFLY_BASE_ASSET": ("exchange", "base_asset", str),
        "IRONFLY_CHAIN_SOURCE": ("exchange", "chain_source", str),
        "IRONFLY_MAX_ATTEMPTS": ("retry", "max_attempts", int),
        "IRONFLY_STRIKE_DISTANCE": ("strategy", "strike_distance", int),
        "IRONFLY_REFRESH_WORKERS": ("strategy", "refresh_workers", int),
        "IRONFLY_LOG_LEVEL": ("logging", "level", str),
        "IRONFLY_LOG_FILE": ("logging", "log_file", str),
    }

    for env_var, (section, key, convert) in env_mapping.items():
        env_value = os.environ.get(env_var)
        if env_value is None:
            continue

        section_data = config_data.get(section) or {}
        section_data[key] = convert(env_value)
        config_data[section] = section_data

        logger.debug(f"Overriding {section}.{key} from env: {env_var}")

    return config_data


def load_trading_config(config_path: Optional[str] = None) -> TradingConfig:
    """
    Load trading configuration from YAML file.

    Args:
        config_path: Path to config file (default: config/trading_config.yaml)

    Returns:
        TradingConfig object

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        project_root = Path(__file__).parent.parent.parent.parent
        config_path = project_root / "config" / "trading_config.yaml"

    config_file = Path(config_path)

    data: Dict[str, Any] = {}
    if not config_file.exists():
        logger.warning(f"Trading config file not found: {config_file}, using defaults")
    else:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
        if not data:
            logger.warning(f"Empty config file: {config_file}, using defaults")

    data = merge_config_with_env(data)

    try:
        config = TradingConfig.from_dict(data)
    except TypeError as e:
        raise ValueError(f"Invalid configuration in {config_file}: {e}") from e

    errors = config.validate()
    if errors:
        error_msg = "Configuration validation errors:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)

    logger.info(f"✓ Loaded trading config from {config_file}")
    return config
