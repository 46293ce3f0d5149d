"""
APScheduler-based scheduler driving reconciliation cycles.

CategoryUpdateScheduler owns the interval job and the process lifecycle:
IDLE -> RUNNING -> SHUTTING_DOWN -> STOPPED. Shutdown only prevents new
cycles; a cycle already running finishes under its own deadline.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers import SchedulerNotRunningError
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .exceptions import SchedulerStateError

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class CategoryUpdateScheduler:
    """
    Interval scheduler for the category update daemon

    At most one cycle is ever in flight: jobs run on a single worker thread
    and every tick runs under a non-blocking cycle lock.

    Usage:
        scheduler = CategoryUpdateScheduler(daemon.run_once, run_frequency=600)
        signal.signal(signal.SIGTERM, lambda *_: scheduler.request_shutdown())
        scheduler.start()  # blocks until shutdown
    """

    JOB_ID = "category_update_cycle"

    def __init__(self, cycle: Callable[[], Any], run_frequency: float):
        """
        Initialize the scheduler

        Args:
            cycle: Zero-argument callable running one reconciliation cycle
            run_frequency: Seconds between cycle starts
        """
        if run_frequency <= 0:
            raise ValueError("run_frequency must be greater than zero")

        self.cycle = cycle
        self.run_frequency = run_frequency
        self.scheduler = BlockingScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self.state = SchedulerState.IDLE
        self._shutdown_requested = threading.Event()
        self._cycle_lock = threading.Lock()

    def start(self) -> None:
        """
        Start the scheduler and block until shutdown

        The first cycle runs one interval after start. Returns once shutdown
        was requested and any in-flight cycle has finished.

        Raises:
            SchedulerStateError: If the scheduler was already started
        """
        if self.state != SchedulerState.IDLE:
            raise SchedulerStateError(f"Cannot start scheduler in state {self.state.value}")

        self.state = SchedulerState.RUNNING
        self.scheduler.add_job(
            self._run_cycle,
            trigger=IntervalTrigger(seconds=self.run_frequency),
            id=self.JOB_ID,
            replace_existing=True,
        )
        logger.info(f"Starting daemon, running every {self.run_frequency:g}s")

        try:
            if not self._shutdown_requested.is_set():
                self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler interrupted")
            self.request_shutdown()
        finally:
            self._shutdown_requested.set()
            self._wait_for_cycle()
            self.state = SchedulerState.STOPPED
            logger.info("Scheduler stopped")

    def request_shutdown(self) -> None:
        """
        Stop scheduling new cycles

        Idempotent and safe to call from a signal handler. Does not interrupt
        a cycle already in flight.
        """
        if self._shutdown_requested.is_set():
            return
        self._shutdown_requested.set()

        if self.state == SchedulerState.IDLE:
            self.state = SchedulerState.STOPPED
            return

        if self.state == SchedulerState.RUNNING:
            self.state = SchedulerState.SHUTTING_DOWN
            logger.info("Shutting down daemon")
            self._stop_loop()

    def is_cycle_running(self) -> bool:
        return self._cycle_lock.locked()

    def _stop_loop(self) -> None:
        try:
            self.scheduler.shutdown(wait=False)
        except SchedulerNotRunningError:
            # start() has not entered the loop yet; it checks the flag first
            pass

    def _wait_for_cycle(self) -> None:
        if self._cycle_lock.locked():
            logger.info("Waiting for the running cycle to finish")
        with self._cycle_lock:
            pass

    def _run_cycle(self) -> None:
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous cycle still running, skipping this tick")
            return

        try:
            if self._shutdown_requested.is_set():
                logger.debug("Shutdown requested, skipping cycle")
                self._stop_loop()
                return

            self.cycle()
        except Exception as e:
            logger.error(f"Reconciliation cycle failed: {e}", exc_info=True)
        finally:
            self._cycle_lock.release()
