"""
Logging configuration using loguru.
"""
import sys

from loguru import logger

from router_inventory.config import settings


def setup_logger(level: str = None, log_file: str = None) -> None:
    """Configure the loguru sinks: stderr, plus a rotating file when LOG_FILE is set."""
    level = level or settings.log_level
    log_file = log_file or settings.log_file

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )

    logger.info(f"Logger initialized (level={level})")
