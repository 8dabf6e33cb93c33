"""Loguru sink setup for scripts and long-running processes."""

import sys

from loguru import logger

from ironfly.config.trading_config import LoggingConfig


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Replace the default loguru handler with stderr and an optional rotating file.

    Args:
        config: Logging configuration
        verbose: Force DEBUG level on stderr
    """
    level = "DEBUG" if verbose else config.level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if config.log_file:
        logger.add(
            config.log_file,
            level=config.level.upper(),
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            format=LOG_FORMAT,
        )
