"""
Store Workspace Logging Configuration
Centralized logging setup for the store client
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from .config import settings


def setup_logging(
    log_level: Optional[str] = None,
    log_to_file: bool = False,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Configure logging for the store client

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to rotating files
        log_to_console: Whether to log to console
        log_dir: Override for settings.LOG_DIR

    Returns:
        Configured logger instance
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)

    logger = logging.getLogger("storeapp")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s() - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    target_dir = None
    if log_to_file:
        target_dir = Path(log_dir or settings.LOG_DIR)
        target_dir.mkdir(exist_ok=True, parents=True)

        app_handler = logging.handlers.RotatingFileHandler(
            target_dir / settings.LOG_FILE,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        app_handler.setLevel(level)
        app_handler.setFormatter(detailed_formatter)
        logger.addHandler(app_handler)

        # Errors only
        error_handler = logging.handlers.RotatingFileHandler(
            target_dir / settings.ERROR_LOG_FILE,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)
        logger.addHandler(error_handler)

    setup_module_loggers(level, detailed_formatter, target_dir)

    return logger


def setup_module_loggers(
    level: int,
    file_formatter: logging.Formatter,
    log_dir: Optional[Path] = None
):
    """Setup loggers for specific areas of the client"""

    # HTTP traffic
    api_logger = logging.getLogger("storeapp.api")
    api_logger.setLevel(level)
    api_logger.handlers.clear()
    if log_dir:
        api_handler = logging.handlers.RotatingFileHandler(
            log_dir / "api.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        api_handler.setFormatter(file_formatter)
        api_logger.addHandler(api_handler)

    # Reconciliation, submission gate and store mutations
    business_logger = logging.getLogger("storeapp.business")
    business_logger.setLevel(level)
    business_logger.handlers.clear()
    if log_dir:
        business_handler = logging.handlers.RotatingFileHandler(
            log_dir / "business.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8'
        )
        business_handler.setFormatter(file_formatter)
        business_logger.addHandler(business_handler)

    # Login, logout and session restore are always recorded
    security_logger = logging.getLogger("storeapp.security")
    security_logger.setLevel(logging.INFO)
    security_logger.handlers.clear()
    if log_dir:
        security_handler = logging.handlers.RotatingFileHandler(
            log_dir / "security.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding='utf-8'
        )
        security_handler.setFormatter(file_formatter)
        security_logger.addHandler(security_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name"""
    return logging.getLogger(f"storeapp.{name}")


__all__ = [
    'setup_logging',
    'setup_module_loggers',
    'get_logger'
]
