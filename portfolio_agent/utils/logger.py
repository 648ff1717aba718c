"""
Logging utility with loguru.
Provides structured logging with optional file rotation.
"""

import sys

from loguru import logger

from portfolio_agent.config.settings import settings, resolve_path


def setup_logger(level: str = None, log_file_enabled: bool = None):
    """
    Configure loguru logger with console and (optionally) file outputs.

    Request-scoped fields such as correlation_id are attached with
    logger.bind() and rendered from the record's extra dict.
    """
    level = (level or settings.log_level).upper()
    if log_file_enabled is None:
        log_file_enabled = settings.log_file_enabled

    # Remove default handler
    logger.remove()
    logger.configure(extra={"correlation_id": "-"})

    # Console handler with colors
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <magenta>{extra[correlation_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )

    if log_file_enabled:
        log_dir = resolve_path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "app.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[correlation_id]} | {name}:{function}:{line} - {message}",
            level="DEBUG",
        )

    logger.debug("Logger initialized")
    return logger
