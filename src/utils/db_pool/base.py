"""
Base classes for database connection pooling.

Provides a thread-safe pool that creates connections lazily up to a maximum
size, validates them on checkout, recycles stale ones, and exports pool
state as Prometheus metrics.
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from queue import Empty, LifoQueue
from typing import Any

from opentelemetry import trace
from prometheus_client import Counter, Gauge, Histogram

from src.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


CONNECTION_POOL_SIZE = Gauge(
    "db_pool_connections",
    "Connections currently owned by the pool",
    ["pool_name", "state"],
)

CONNECTION_POOL_ERRORS = Counter(
    "db_pool_errors_total",
    "Connection pool errors",
    ["pool_name", "error_type"],
)

CONNECTION_ACQUIRE_TIME = Histogram(
    "db_pool_acquire_seconds",
    "Time to acquire a connection from the pool",
    ["pool_name"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0],
)


@dataclass
class PooledConnection:
    """Pooled database connection with usage metadata."""

    connection: Any
    created_at: float = field(default_factory=time.monotonic)
    last_used: float = field(default_factory=time.monotonic)
    use_count: int = 0

    def mark_used(self) -> None:
        """Record a checkout."""
        self.last_used = time.monotonic()
        self.use_count += 1


class ConnectionPoolError(Exception):
    """Base exception for connection pool errors."""

    pass


class PoolExhaustedError(ConnectionPoolError):
    """Raised when no connection becomes available in time."""

    pass


class PoolClosedError(ConnectionPoolError):
    """Raised when using a closed pool."""

    pass


class BaseConnectionPool:
    """
    Base class for database connection pools.

    Subclasses implement connection creation, health checking and closing.
    """

    db_type = "unknown"

    def __init__(
        self,
        max_size: int = 2,
        max_idle_time: float = 300.0,
        max_lifetime: float = 3600.0,
        acquire_timeout: float = 30.0,
        pool_name: str = "default",
    ):
        """
        Initialize connection pool.

        Args:
            max_size: Maximum number of connections
            max_idle_time: Seconds an idle connection may sit before recycling
            max_lifetime: Seconds a connection may live before recycling
            acquire_timeout: Default seconds to wait for a connection
            pool_name: Name of the pool for metrics and logs
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.max_idle_time = max_idle_time
        self.max_lifetime = max_lifetime
        self.acquire_timeout = acquire_timeout
        self.pool_name = pool_name

        self._idle: LifoQueue[PooledConnection] = LifoQueue(maxsize=max_size)
        self._size = 0
        self._lock = threading.Lock()
        self._closed = False

    def _create_connection(self, timeout: float) -> Any:
        """Create a new database connection within timeout seconds."""
        raise NotImplementedError

    def _is_connection_healthy(self, conn: Any) -> bool:
        """Check that a connection can still serve queries."""
        raise NotImplementedError

    def _close_connection(self, conn: Any) -> None:
        """Close a database connection."""
        raise NotImplementedError

    def _is_stale(self, pooled_conn: PooledConnection) -> bool:
        now = time.monotonic()
        if now - pooled_conn.created_at > self.max_lifetime:
            logger.debug("Connection exceeded max lifetime, recycling")
            return True
        if now - pooled_conn.last_used > self.max_idle_time:
            logger.debug("Connection exceeded max idle time, recycling")
            return True
        return False

    def _discard(self, pooled_conn: PooledConnection) -> None:
        try:
            self._close_connection(pooled_conn.connection)
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")
        finally:
            with self._lock:
                self._size -= 1
            self._update_metrics()

    def _reserve_slot(self) -> bool:
        with self._lock:
            if self._size < self.max_size:
                self._size += 1
                return True
            return False

    def _open_new(self, timeout: float) -> PooledConnection:
        try:
            return PooledConnection(connection=self._create_connection(timeout))
        except Exception:
            with self._lock:
                self._size -= 1
            CONNECTION_POOL_ERRORS.labels(
                pool_name=self.pool_name, error_type="creation"
            ).inc()
            raise

    def _checkout(self, timeout: float) -> PooledConnection:
        deadline = time.monotonic() + timeout

        while True:
            if self._closed:
                raise PoolClosedError("Connection pool is closed")

            try:
                pooled_conn = self._idle.get_nowait()
            except Empty:
                if self._reserve_slot():
                    return self._open_new(max(0.0, deadline - time.monotonic()))

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    CONNECTION_POOL_ERRORS.labels(
                        pool_name=self.pool_name, error_type="timeout"
                    ).inc()
                    raise PoolExhaustedError(
                        f"No connection available within {timeout:.2f}s"
                    )
                try:
                    pooled_conn = self._idle.get(timeout=min(remaining, 0.1))
                except Empty:
                    continue

            if self._is_stale(pooled_conn) or not self._check_health(pooled_conn):
                self._discard(pooled_conn)
                continue

            return pooled_conn

    def _check_health(self, pooled_conn: PooledConnection) -> bool:
        try:
            return self._is_connection_healthy(pooled_conn.connection)
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            CONNECTION_POOL_ERRORS.labels(
                pool_name=self.pool_name, error_type="health_check"
            ).inc()
            return False

    def _update_metrics(self) -> None:
        idle = self._idle.qsize()
        with self._lock:
            size = self._size
        CONNECTION_POOL_SIZE.labels(pool_name=self.pool_name, state="idle").set(idle)
        CONNECTION_POOL_SIZE.labels(pool_name=self.pool_name, state="active").set(
            max(0, size - idle)
        )

    @contextmanager
    def acquire(self, timeout: float | None = None) -> Iterator[Any]:
        """
        Acquire a connection from the pool.

        Args:
            timeout: Seconds to wait for a connection, including opening a new
                one (default: acquire_timeout)

        Yields:
            Database connection

        Raises:
            PoolClosedError: If the pool is closed
            PoolExhaustedError: If no connection is available in time
        """
        wait = self.acquire_timeout if timeout is None else min(timeout, self.acquire_timeout)
        start_time = time.monotonic()

        with trace_operation(
            "db_pool_acquire",
            kind=trace.SpanKind.CLIENT,
            database_type=self.db_type,
            pool_name=self.pool_name,
        ):
            pooled_conn = self._checkout(wait)

        pooled_conn.mark_used()
        CONNECTION_ACQUIRE_TIME.labels(pool_name=self.pool_name).observe(
            time.monotonic() - start_time
        )
        self._update_metrics()

        broken = False
        try:
            yield pooled_conn.connection
        except Exception:
            broken = not self._check_health(pooled_conn)
            raise
        finally:
            if broken or self._closed:
                self._discard(pooled_conn)
            else:
                self._idle.put_nowait(pooled_conn)
                self._update_metrics()

    def close(self) -> None:
        """Close every idle connection and refuse further checkouts."""
        if self._closed:
            return

        logger.info(f"Closing connection pool '{self.pool_name}'")
        self._closed = True

        while True:
            try:
                pooled_conn = self._idle.get_nowait()
            except Empty:
                break
            self._discard(pooled_conn)

    def get_stats(self) -> dict[str, Any]:
        """Get pool statistics."""
        idle = self._idle.qsize()
        with self._lock:
            size = self._size
        return {
            "pool_name": self.pool_name,
            "total_connections": size,
            "idle_connections": idle,
            "active_connections": max(0, size - idle),
            "max_size": self.max_size,
            "closed": self._closed,
        }
