"""
Logging configuration
"""

import sys

from loguru import logger

from taxonomy_api.core.config import settings


def setup_logging():
    """Setup logging configuration"""
    # Remove default handler
    logger.remove()

    # Add console handler
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}",
        colorize=True,
    )


# Create logger instance
log = logger
