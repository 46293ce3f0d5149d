"""
Reconciliation cycle for queued ticket category updates.

One cycle fetches the ready set, resolves each entry's new category from its
panel, and publishes one TicketStatusUpdate per eligible entry. A failure on
one entry never stops the others; only a failed ready-set fetch aborts the
cycle.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from src.utils.logging import ContextLogger
from src.utils.metrics import CategoryUpdateMetrics
from src.utils.tracing import add_span_attributes, trace_operation

from .config import Config
from .deadline import Deadline
from .exceptions import CategoryUpdateError, UnsupportedStatusError
from .models import QueueEntry, TicketStatusUpdate
from .publisher import EventPublisher
from .repository import CategoryUpdateQueueRepository, PanelRepository
from .resolver import resolve_category


class SkipReason(str, Enum):
    """Why an entry produced no event."""

    MISSING_CHANNEL = "missing_channel"
    MISSING_PANEL = "missing_panel"
    PANEL_LOOKUP_FAILED = "panel_lookup_failed"
    PANEL_DELETED = "panel_deleted"
    NO_PENDING_CATEGORY = "no_pending_category"
    UNSUPPORTED_STATUS = "unsupported_status"
    PUBLISH_FAILED = "publish_failed"


@dataclass
class CycleResult:
    """Outcome of one reconciliation cycle."""

    fetched: int = 0
    published: int = 0
    skipped: Counter = field(default_factory=Counter)
    aborted: bool = False
    slow: bool = False
    duration: float = 0.0

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


class CategoryUpdateDaemon:
    """
    Runs reconciliation cycles against the category update queue
    """

    def __init__(
        self,
        config: Config,
        queue_repository: CategoryUpdateQueueRepository,
        panel_repository: PanelRepository,
        publisher: EventPublisher,
        metrics: Optional[CategoryUpdateMetrics] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Process configuration (timeouts and thresholds)
            queue_repository: Source of ready queue entries
            panel_repository: Source of panel configuration
            publisher: Destination for status update events
            metrics: Optional Prometheus metrics
            clock: Monotonic clock (overridable in tests)
        """
        self.config = config
        self.queue_repository = queue_repository
        self.panel_repository = panel_repository
        self.publisher = publisher
        self.metrics = metrics
        self._clock = clock
        self.logger = ContextLogger(__name__, service="daemon")

    def run_once(self) -> CycleResult:
        """
        Run one reconciliation cycle

        Returns:
            CycleResult describing what happened to each entry
        """
        self.logger.debug("Running...")

        result = CycleResult()
        deadline = Deadline(self.config.execution_timeout, clock=self._clock)

        with trace_operation("category_update_cycle", component="daemon"):
            try:
                entries = self.queue_repository.get_ready_for_update(
                    self.config.move_category_after, deadline
                )
            except Exception as e:
                self.logger.error(
                    "Failed to get tickets",
                    error=str(e),
                    exc_info=not isinstance(e, CategoryUpdateError),
                )
                result.aborted = True
                result.duration = deadline.elapsed()
                add_span_attributes(aborted=True)
                if self.metrics:
                    self.metrics.record_cycle(aborted=True, duration=result.duration)
                return result

            result.fetched = len(entries)

            for entry in entries:
                reason = self._process_entry(entry, deadline)
                if reason is None:
                    result.published += 1
                    if self.metrics:
                        self.metrics.record_published()
                else:
                    result.skipped[reason] += 1
                    if self.metrics:
                        self.metrics.record_skipped(reason.value)

            add_span_attributes(
                fetched=result.fetched,
                published=result.published,
                skipped=result.skipped_total,
            )

        result.duration = deadline.elapsed()
        if self.metrics:
            self.metrics.record_cycle(
                aborted=False, duration=result.duration, fetched=result.fetched
            )

        if result.duration > self.config.execution_timeout / 2:
            result.slow = True
            if self.metrics:
                self.metrics.record_slow_cycle()
            self.logger.warning(
                "Execution took more than 50% of the timeout",
                duration=round(result.duration, 3),
                timeout=self.config.execution_timeout,
            )

        return result

    def _process_entry(self, entry: QueueEntry, deadline: Deadline) -> SkipReason | None:
        """
        Resolve and publish one entry

        Returns:
            None when an event was published, otherwise the skip reason
        """
        ids = {"guild_id": entry.guild_id, "ticket_id": entry.ticket_id}

        if entry.channel_id is None:
            self.logger.warning("Channel ID is missing", **ids)
            return SkipReason.MISSING_CHANNEL

        if entry.panel_id is None:
            self.logger.warning("Panel ID is missing", **ids)
            return SkipReason.MISSING_PANEL

        try:
            panel = self.panel_repository.get_by_id(entry.panel_id, deadline)
        except Exception as e:
            self.logger.error(
                "Failed to get panel",
                panel_id=entry.panel_id,
                error=str(e),
                exc_info=not isinstance(e, CategoryUpdateError),
                **ids,
            )
            return SkipReason.PANEL_LOOKUP_FAILED

        if panel is None:
            self.logger.info("Panel for ticket has been deleted", panel_id=entry.panel_id, **ids)
            return SkipReason.PANEL_DELETED

        # No pending category means the feature is disabled for this panel
        if panel.pending_category is None:
            self.logger.debug("No pending category set", panel_id=panel.panel_id, **ids)
            return SkipReason.NO_PENDING_CATEGORY

        try:
            new_category = resolve_category(
                entry.new_status, panel.target_category, panel.pending_category
            )
        except UnsupportedStatusError:
            self.logger.error(
                "Ticket status has no category mapping",
                status=entry.status_value,
                **ids,
            )
            return SkipReason.UNSUPPORTED_STATUS

        event = TicketStatusUpdate(
            guild_id=entry.guild_id,
            ticket_id=entry.ticket_id,
            channel_id=entry.channel_id,
            new_category_id=new_category,
        )

        try:
            self.publisher.publish(event, deadline)
        except Exception as e:
            self.logger.error(
                "Failed to send message to Kafka",
                error=str(e),
                exc_info=not isinstance(e, CategoryUpdateError),
                **ids,
            )
            return SkipReason.PUBLISH_FAILED

        self.logger.info("Sent category update command", new_category=new_category, **ids)
        return None
