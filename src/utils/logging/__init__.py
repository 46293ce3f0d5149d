"""
Structured logging for the category update producer

Provides JSON-formatted logging for production, coloured console logging for
development, and a ContextLogger that binds fields such as the service name
to every record.

Usage:
    from src.utils.logging import setup_logging, ContextLogger

    # Setup logging (call once at process startup)
    setup_logging(level="INFO", json_format=True)

    # Bind service-wide fields
    logger = ContextLogger(__name__, service="daemon")

    # Log with structured fields
    logger.info("Sent category update command", guild_id=1, ticket_id=5)
"""

from .config import setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
