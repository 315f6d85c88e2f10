"""
Logging setup for statmerge

Usage:
    from utils.logging import setup_logging

    # Call once at startup
    setup_logging(level="INFO", log_file="data/statmerge.log")

    logger = logging.getLogger(__name__)
    logger.info("Merged metric", extra={"statistic_id": "sensor.energy", "imported": 42})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
]
