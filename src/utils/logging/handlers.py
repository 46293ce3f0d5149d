"""
Logger wrapper that binds structured fields to every record.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds bound fields to all log records

    Usage:
        logger = ContextLogger(__name__, service="daemon")
        logger.info("Sent category update command", guild_id=1, ticket_id=5)
        # Record carries service, guild_id and ticket_id

        rpc_logger = logger.bind(service="rpc-client")
    """

    def __init__(self, name: str, **context: Any):
        """
        Initialize context logger

        Args:
            name: Logger name
            **context: Fields to include in every record
        """
        self.logger = logging.getLogger(name)
        self.context = context

    def bind(self, **context: Any) -> "ContextLogger":
        """
        Create a child logger with additional bound fields

        Args:
            **context: Fields to add (overriding existing ones)

        Returns:
            New ContextLogger sharing the underlying logger
        """
        child = ContextLogger(self.logger.name, **{**self.context, **context})
        child.logger = self.logger
        return child

    def _log(self, level: int, msg: str, *args, exc_info=None, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level,
            msg,
            *args,
            exc_info=exc_info,
            extra={**self.context, **fields},
            stacklevel=3,
        )

    def debug(self, msg: str, *args, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args, **fields: Any) -> None:
        self._log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args, **fields: Any) -> None:
        self._log(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, *args, exc_info=None, **fields: Any) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **fields)

    def critical(self, msg: str, *args, exc_info=None, **fields: Any) -> None:
        self._log(logging.CRITICAL, msg, *args, exc_info=exc_info, **fields)

    def get_context(self) -> dict[str, Any]:
        """Copy of the bound fields"""
        return self.context.copy()
