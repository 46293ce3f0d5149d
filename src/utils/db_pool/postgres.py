"""PostgreSQL connection pool implementation."""

import math
from typing import Any

import psycopg2
import psycopg2.extensions
from opentelemetry import trace

from src.utils.tracing import trace_operation

from .base import BaseConnectionPool


class PostgresConnectionPool(BaseConnectionPool):
    """Connection pool for PostgreSQL addressed by a DSN or URI."""

    db_type = "postgresql"

    def __init__(self, dsn: str, connect_timeout: int = 15, **kwargs: Any):
        """
        Initialize PostgreSQL connection pool.

        Args:
            dsn: libpq connection string or postgresql:// URI
            connect_timeout: Seconds allowed to establish a connection
            **kwargs: Additional arguments for BaseConnectionPool
        """
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        super().__init__(**kwargs)

    def _create_connection(self, timeout: float) -> psycopg2.extensions.connection:
        # libpq counts whole seconds and treats 0 as "wait forever"
        connect_timeout = max(1, min(self.connect_timeout, math.ceil(timeout)))

        with trace_operation(
            "postgres_connect",
            kind=trace.SpanKind.CLIENT,
            pool_name=self.pool_name,
            connect_timeout=connect_timeout,
        ):
            conn = psycopg2.connect(self.dsn, connect_timeout=connect_timeout)
            # Read-only workload, no transactions to manage
            conn.set_session(autocommit=True)
            return conn

    def _is_connection_healthy(self, conn: psycopg2.extensions.connection) -> bool:
        if conn is None or conn.closed:
            return False

        try:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except (psycopg2.Error, psycopg2.Warning):
            return False

    def _close_connection(self, conn: psycopg2.extensions.connection) -> None:
        if conn is not None and not conn.closed:
            conn.close()
