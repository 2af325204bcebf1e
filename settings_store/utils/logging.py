"""
Logging configuration for the settings store
"""
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from settings_store.config import Settings, get_settings


def _changes_filter(record) -> bool:
    return record["extra"].get("setting_change") is True


def setup_logging(settings: Optional[Settings] = None):
    """
    Configure Loguru logging from the application settings
    """
    settings = settings or get_settings()

    # Remove default handler
    logger.remove()

    # Console handler with colors
    logger.add(
        sys.stdout,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=settings.log_level,
        colorize=True,
    )

    # File handler for all logs
    Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )

    # Separate log of every setting write
    Path(settings.changes_log).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.changes_log,
        format="{time:YYYY-MM-DD HH:mm:ss} | {message}",
        level="INFO",
        filter=_changes_filter,
        rotation="10 MB",
        retention="365 days",
        compression="zip",
    )

    logger.info(f"Logging initialized. Level: {settings.log_level}")
    logger.info(f"Log file: {settings.log_file}")
    logger.info(f"Changes log: {settings.changes_log}")

    return logger


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance

    Args:
        name: Optional name for the logger

    Returns:
        Logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


def log_setting_change(action: str, key: str, **details: Any):
    """
    Record a setting write in the changes log

    Args:
        action: 'insert' or 'update'
        key: Setting name
        **details: Additional fields to log
    """
    parts = [f"action={action}", f"key={key}"] + [f"{k}={v}" for k, v in details.items()]
    logger.bind(setting_change=True).info(" | ".join(parts))
