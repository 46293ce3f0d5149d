"""
PostgreSQL access for the category update queue and ticket panels.

Both repositories are read-only. Every query runs under the cycle deadline:
pool checkout, including opening a new connection, waits at most the remaining
time and the query itself gets a matching statement_timeout, reset before the
connection goes back to the pool.
"""

import logging
from typing import Any, Sequence

import psycopg2
import psycopg2.errors

from src.utils.db_pool import BaseConnectionPool, ConnectionPoolError
from src.utils.tracing import trace_database_query

from .deadline import Deadline
from .exceptions import CycleTimeoutError, DataAccessError
from .models import Panel, QueueEntry

logger = logging.getLogger(__name__)

READY_FOR_UPDATE_QUERY = """
    SELECT q.guild_id, q.ticket_id, t.channel_id, t.panel_id, q.new_status
    FROM category_update_queue q
    INNER JOIN tickets t
        ON t.guild_id = q.guild_id AND t.id = q.ticket_id
    WHERE q.status_changed_at < NOW() - make_interval(secs => %s)
    ORDER BY q.status_changed_at, q.guild_id, q.ticket_id
"""

PANEL_BY_ID_QUERY = """
    SELECT panel_id, target_category, pending_category
    FROM panels
    WHERE panel_id = %s
"""


class _Repository:
    """Shared deadline-bounded query execution."""

    def __init__(self, pool: BaseConnectionPool):
        self.pool = pool

    def _execute(
        self,
        deadline: Deadline,
        table: str,
        query: str,
        params: Sequence[Any],
        fetch_all: bool,
    ) -> Any:
        remaining = deadline.check(f"querying {table}")

        try:
            with trace_database_query("SELECT", table):
                with self.pool.acquire(timeout=remaining) as conn:
                    with conn.cursor() as cursor:
                        timeout_ms = max(1, int(deadline.check(f"querying {table}") * 1000))
                        cursor.execute("SET statement_timeout = %s", (timeout_ms,))
                        try:
                            cursor.execute(query, params)
                            return cursor.fetchall() if fetch_all else cursor.fetchone()
                        finally:
                            # Pooled sessions are reused; a dead one is discarded by the pool
                            if not conn.closed:
                                cursor.execute("RESET statement_timeout")
        except psycopg2.errors.QueryCanceled as e:
            raise CycleTimeoutError(f"Query on {table} cancelled at cycle deadline") from e
        except ConnectionPoolError as e:
            if deadline.expired():
                raise CycleTimeoutError(
                    f"No database connection for {table} before the cycle deadline"
                ) from e
            raise DataAccessError(f"Connection pool error querying {table}: {e}") from e
        except psycopg2.Error as e:
            if deadline.expired():
                raise CycleTimeoutError(
                    f"Database unavailable for {table} before the cycle deadline: {e}"
                ) from e
            raise DataAccessError(f"Database error querying {table}: {e}") from e


class CategoryUpdateQueueRepository(_Repository):
    """Reads the queue of tickets waiting for a category move."""

    def get_ready_for_update(
        self,
        age_threshold: float,
        deadline: Deadline,
    ) -> list[QueueEntry]:
        """
        Fetch queue entries older than the age threshold

        Args:
            age_threshold: Seconds an entry must have waited
            deadline: Cycle deadline

        Returns:
            Ready entries in queue order

        Raises:
            DataAccessError: On connection or query failure
            CycleTimeoutError: If the deadline is reached
        """
        rows = self._execute(
            deadline,
            "category_update_queue",
            READY_FOR_UPDATE_QUERY,
            (age_threshold,),
            fetch_all=True,
        )

        try:
            entries = [QueueEntry.from_row(row) for row in rows]
        except ValueError as e:
            raise DataAccessError(f"Malformed category update queue row: {e}") from e

        logger.debug(f"Fetched {len(entries)} ready queue entries")
        return entries


class PanelRepository(_Repository):
    """Reads ticket panel configuration."""

    def get_by_id(self, panel_id: int, deadline: Deadline) -> Panel | None:
        """
        Fetch a panel

        Args:
            panel_id: Panel identifier
            deadline: Cycle deadline

        Returns:
            Panel, or None if it does not exist

        Raises:
            DataAccessError: On connection or query failure
            CycleTimeoutError: If the deadline is reached
        """
        row = self._execute(
            deadline,
            "panels",
            PANEL_BY_ID_QUERY,
            (panel_id,),
            fetch_all=False,
        )

        if row is None:
            return None

        panel = Panel.from_row(row)
        if panel.panel_id == 0:
            return None
        return panel
