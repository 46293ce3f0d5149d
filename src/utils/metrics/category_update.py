"""
Metrics for category update reconciliation cycles.

Tracks cycle outcomes and durations, and what happened to every queue entry
a cycle looked at.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    REGISTRY,
)

logger = logging.getLogger(__name__)


class CategoryUpdateMetrics:
    """
    Metrics for the category update daemon

    Tracks cycles, published events and skipped entries.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize category update metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.cycles_total = Counter(
            "category_update_cycles_total",
            "Reconciliation cycles by outcome",
            ["status"],
            registry=self.registry,
        )

        self.cycle_duration_seconds = Histogram(
            "category_update_cycle_duration_seconds",
            "Duration of reconciliation cycles in seconds",
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600),
            registry=self.registry,
        )

        self.slow_cycles_total = Counter(
            "category_update_slow_cycles_total",
            "Cycles that used more than half of the execution timeout",
            registry=self.registry,
        )

        self.last_success_timestamp = Gauge(
            "category_update_last_success_timestamp",
            "Unix time of the last cycle that fetched the ready set",
            registry=self.registry,
        )

        self.entries_fetched_total = Counter(
            "category_update_entries_fetched_total",
            "Queue entries returned by the ready-set query",
            registry=self.registry,
        )

        self.events_published_total = Counter(
            "category_update_events_published_total",
            "Ticket status update events published",
            registry=self.registry,
        )

        self.entries_skipped_total = Counter(
            "category_update_entries_skipped_total",
            "Queue entries skipped, by reason",
            ["reason"],
            registry=self.registry,
        )

    def record_cycle(
        self,
        aborted: bool,
        duration: float,
        fetched: int = 0,
    ) -> None:
        """
        Record a finished cycle

        Args:
            aborted: Whether the ready-set fetch failed
            duration: Cycle duration in seconds
            fetched: Number of entries in the ready set
        """
        status = "aborted" if aborted else "completed"
        self.cycles_total.labels(status=status).inc()
        self.cycle_duration_seconds.observe(duration)

        if not aborted:
            self.entries_fetched_total.inc(fetched)
            self.last_success_timestamp.set(time.time())

        logger.debug(
            f"Recorded cycle: status={status}, duration={duration:.2f}s, fetched={fetched}"
        )

    def record_published(self) -> None:
        self.events_published_total.inc()

    def record_skipped(self, reason: str) -> None:
        """
        Record a skipped entry

        Args:
            reason: Skip reason label
        """
        self.entries_skipped_total.labels(reason=reason).inc()

    def record_slow_cycle(self) -> None:
        self.slow_cycles_total.inc()
