"""
Database connection pooling for PostgreSQL.

Provides a thread-safe connection pool with checkout health checks,
connection recycling and Prometheus metrics, plus a startup helper that
opens the pool and proves the database is reachable.
"""

import logging

import psycopg2

from src.utils.retry import retry_with_backoff

from .base import (
    BaseConnectionPool,
    ConnectionPoolError,
    PoolClosedError,
    PooledConnection,
    PoolExhaustedError,
)
from .postgres import PostgresConnectionPool

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 15


def connect_database(
    dsn: str,
    max_size: int = 2,
    connect_timeout: int = CONNECT_TIMEOUT_SECONDS,
    max_retries: int = 2,
) -> PostgresConnectionPool:
    """
    Open a PostgreSQL pool and verify one connection.

    Args:
        dsn: PostgreSQL DSN or URI
        max_size: Maximum pooled connections
        connect_timeout: Seconds allowed per connection attempt
        max_retries: Connection attempts retried after the first failure

    Returns:
        Ready PostgresConnectionPool

    Raises:
        psycopg2.OperationalError: If the database cannot be reached
    """
    pool = PostgresConnectionPool(
        dsn,
        connect_timeout=connect_timeout,
        max_size=max_size,
        acquire_timeout=connect_timeout,
        pool_name="main",
    )

    @retry_with_backoff(
        max_retries=max_retries,
        base_delay=1.0,
        max_delay=5.0,
        retryable_exceptions=(psycopg2.OperationalError, PoolExhaustedError),
    )
    def verify() -> None:
        with pool.acquire() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()

    try:
        verify()
    except Exception:
        pool.close()
        raise

    logger.info("Database connection verified")
    return pool


__all__ = [
    "BaseConnectionPool",
    "PostgresConnectionPool",
    "PooledConnection",
    "ConnectionPoolError",
    "PoolExhaustedError",
    "PoolClosedError",
    "connect_database",
]
