"""
Tests for Trading Configuration

Tests YAML loading, environment overrides, validation and logging setup.
"""

import os
from unittest.mock import patch

import pytest

from ironfly.config import configure_logging
from ironfly.config.trading_config import (
    LoggingConfig,
    TradingConfig,
    load_trading_config,
    merge_config_with_env,
)
from ironfly.core.errors import ConfigurationError
from ironfly.utils.retry import RetryPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove IRONFLY_* variables so the host environment cannot leak in."""
    for name in list(os.environ):
        if name.startswith("IRONFLY_"):
            monkeypatch.delenv(name)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "trading_config.yaml"
    path.write_text(
        """
exchange:
  base_asset: BTC
  chain_source: instrument_listing
  api_key: file-key
retry:
  max_attempts: 5
  total_timeout: 60
strategy:
  strike_distance: 3
  refresh_workers: 4
logging:
  level: debug
"""
    )
    return path


class TestTradingConfigDefaults:
    """Test default configuration."""

    def test_defaults_are_valid(self):
        """Test default config passes validation."""
        assert TradingConfig().validate() == []

    def test_default_values(self):
        """Test documented defaults."""
        config = TradingConfig()

        assert config.exchange.options_api_url == "https://eapi.binance.com"
        assert config.exchange.futures_api_url == "https://fapi.binance.com"
        assert config.exchange.reference_symbol == "BTCUSDT"
        assert config.exchange.chain_source == "ticker"
        assert config.transport.connect_timeout == 10.0
        assert config.transport.read_timeout == 30.0
        assert config.strategy.strike_distance == 2
        assert config.strategy.order_book_depth == 10

    def test_retry_config_to_policy(self):
        """Test RetryConfig maps onto RetryPolicy."""
        config = TradingConfig()
        config.retry.max_attempts = 4
        config.retry.jitter = False

        policy = config.retry.to_policy()

        assert isinstance(policy, RetryPolicy)
        assert policy.max_attempts == 4
        assert policy.jitter is False
        assert policy.total_timeout == 120.0


class TestTradingConfigValidation:
    """Test validation error collection."""

    def test_collects_all_errors(self):
        """Test every problem is reported, not just the first."""
        config = TradingConfig.from_dict(
            {
                "exchange": {"options_api_url": "ftp://nope", "chain_source": "websocket"},
                "strategy": {"strike_distance": 0, "refresh_workers": 0},
                "logging": {"level": "LOUD"},
            }
        )

        errors = config.validate()

        assert any("options_api_url" in e for e in errors)
        assert any("chain_source" in e for e in errors)
        assert any("strike_distance" in e for e in errors)
        assert any("refresh_workers" in e for e in errors)
        assert any("log level" in e for e in errors)

    def test_max_delay_below_base_delay(self):
        """Test inconsistent retry delays are rejected."""
        config = TradingConfig.from_dict({"retry": {"base_delay": 10, "max_delay": 5}})

        assert "max_delay must be >= base_delay" in config.validate()

    def test_require_credentials(self):
        """Test missing credentials raise ConfigurationError naming them."""
        config = TradingConfig.from_dict({"exchange": {"api_key": "k"}})

        with pytest.raises(ConfigurationError, match="secret_key"):
            config.require_credentials()

    def test_require_credentials_present(self):
        """Test complete credentials pass."""
        config = TradingConfig.from_dict({"exchange": {"api_key": "k", "secret_key": "s"}})

        config.require_credentials()


class TestLoadTradingConfig:
    """Test loading from YAML and the environment."""

    def test_load_from_file(self, config_file):
        """Test YAML values override defaults."""
        config = load_trading_config(str(config_file))

        assert config.exchange.chain_source == "instrument_listing"
        assert config.exchange.api_key == "file-key"
        assert config.retry.max_attempts == 5
        assert config.strategy.strike_distance == 3
        assert config.strategy.refresh_workers == 4
        assert config.strategy.order_book_depth == 10

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file yields defaults."""
        config = load_trading_config(str(tmp_path / "missing.yaml"))

        assert config == TradingConfig()

    def test_empty_file_uses_defaults(self, tmp_path):
        """Test an empty file yields defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_trading_config(str(path)) == TradingConfig()

    def test_env_overrides_file(self, config_file, monkeypatch):
        """Test environment variables win over the file."""
        monkeypatch.setenv("IRONFLY_API_KEY", "env-key")
        monkeypatch.setenv("IRONFLY_SECRET_KEY", "env-secret")
        monkeypatch.setenv("IRONFLY_STRIKE_DISTANCE", "5")

        config = load_trading_config(str(config_file))

        assert config.exchange.api_key == "env-key"
        assert config.exchange.secret_key == "env-secret"
        assert config.strategy.strike_distance == 5

    def test_unknown_key_raises_value_error(self, tmp_path):
        """Test unknown keys are reported as invalid configuration."""
        path = tmp_path / "bad.yaml"
        path.write_text("strategy:\n  wing_delta: 0.1\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_trading_config(str(path))

    def test_invalid_values_raise_value_error(self, tmp_path):
        """Test validation errors are raised together."""
        path = tmp_path / "bad.yaml"
        path.write_text("strategy:\n  strike_distance: 0\n  order_book_depth: 0\n")

        with pytest.raises(ValueError, match="Configuration validation errors") as exc_info:
            load_trading_config(str(path))

        assert "strike_distance" in str(exc_info.value)
        assert "order_book_depth" in str(exc_info.value)


class TestMergeConfigWithEnv:
    """Test environment merging."""

    def test_creates_missing_section(self, monkeypatch):
        """Test env vars create sections absent from the file."""
        monkeypatch.setenv("IRONFLY_LOG_LEVEL", "WARNING")

        merged = merge_config_with_env({})

        assert merged == {"logging": {"level": "WARNING"}}

    def test_converts_types(self, monkeypatch):
        """Test numeric env vars are converted."""
        monkeypatch.setenv("IRONFLY_MAX_ATTEMPTS", "7")

        merged = merge_config_with_env({"retry": {"base_delay": 2.0}})

        assert merged["retry"] == {"base_delay": 2.0, "max_attempts": 7}


class TestConfigureLogging:
    """Test loguru sink setup."""

    def test_stderr_only(self):
        """Test default handler is replaced with stderr."""
        with patch("ironfly.config.logging_setup.logger") as mock_logger:
            configure_logging(LoggingConfig(level="warning"))

        mock_logger.remove.assert_called_once()
        assert mock_logger.add.call_count == 1
        assert mock_logger.add.call_args.kwargs["level"] == "WARNING"

    def test_file_sink(self, tmp_path):
        """Test a log file adds a rotating sink."""
        log_file = str(tmp_path / "ironfly.log")

        with patch("ironfly.config.logging_setup.logger") as mock_logger:
            configure_logging(LoggingConfig(log_file=log_file), verbose=True)

        assert mock_logger.add.call_count == 2
        stderr_call, file_call = mock_logger.add.call_args_list
        assert stderr_call.kwargs["level"] == "DEBUG"
        assert file_call.args[0] == log_file
        assert file_call.kwargs["rotation"] == "100 MB"
