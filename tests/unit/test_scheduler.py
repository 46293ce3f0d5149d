"""
Unit tests for the category update scheduler

Tests verify:
- CategoryUpdateScheduler initialization
- Interval job scheduling
- Lifecycle transitions and idempotent shutdown
- Single-flight cycle execution

All tests use a mocked BlockingScheduler to avoid real scheduling.
"""

import threading
from unittest.mock import Mock, patch

import pytest
from apscheduler.schedulers import SchedulerNotRunningError
from apscheduler.triggers.interval import IntervalTrigger

from src.category_update.exceptions import SchedulerStateError
from src.category_update.scheduler import CategoryUpdateScheduler, SchedulerState


# ============================================================================
# Test CategoryUpdateScheduler Initialization
# ============================================================================

class TestSchedulerInit:
    """Test scheduler initialization"""

    def test_scheduler_starts_idle(self):
        """Test a new scheduler is idle with a BlockingScheduler"""
        scheduler = CategoryUpdateScheduler(Mock(), 600)

        assert scheduler.scheduler is not None
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.is_cycle_running() is False

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_scheduler_runs_jobs_one_at_a_time(self, mock_blocking_scheduler):
        """Test the scheduler is configured for a single in-flight job"""
        CategoryUpdateScheduler(Mock(), 600)

        kwargs = mock_blocking_scheduler.call_args.kwargs
        assert kwargs['executors']['default']._pool._max_workers == 1
        assert kwargs['job_defaults'] == {'coalesce': True, 'max_instances': 1}

    @pytest.mark.parametrize("frequency", [0, -1])
    def test_scheduler_rejects_non_positive_frequency(self, frequency):
        with pytest.raises(ValueError, match="run_frequency"):
            CategoryUpdateScheduler(Mock(), frequency)


# ============================================================================
# Test Lifecycle
# ============================================================================

class TestSchedulerLifecycle:
    """Test start and shutdown"""

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_start_adds_interval_job(self, mock_scheduler_class):
        """Test start schedules the cycle at the run frequency"""
        mock_scheduler = Mock()
        mock_scheduler_class.return_value = mock_scheduler

        scheduler = CategoryUpdateScheduler(Mock(), 600)
        scheduler.start()

        call_args = mock_scheduler.add_job.call_args
        assert call_args.args[0] == scheduler._run_cycle
        assert isinstance(call_args.kwargs['trigger'], IntervalTrigger)
        assert call_args.kwargs['trigger'].interval.total_seconds() == 600
        assert call_args.kwargs['id'] == "category_update_cycle"
        assert call_args.kwargs['replace_existing'] is True
        mock_scheduler.start.assert_called_once()

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_start_returns_stopped(self, mock_scheduler_class):
        """Test state is STOPPED once the blocking loop exits"""
        mock_scheduler_class.return_value = Mock()

        scheduler = CategoryUpdateScheduler(Mock(), 600)
        scheduler.start()

        assert scheduler.state is SchedulerState.STOPPED

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_start_twice_raises(self, mock_scheduler_class):
        mock_scheduler_class.return_value = Mock()

        scheduler = CategoryUpdateScheduler(Mock(), 600)
        scheduler.start()

        with pytest.raises(SchedulerStateError):
            scheduler.start()

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_shutdown_before_start_prevents_start(self, mock_scheduler_class):
        mock_scheduler = Mock()
        mock_scheduler_class.return_value = mock_scheduler

        scheduler = CategoryUpdateScheduler(Mock(), 600)
        scheduler.request_shutdown()

        assert scheduler.state is SchedulerState.STOPPED
        with pytest.raises(SchedulerStateError):
            scheduler.start()
        mock_scheduler.start.assert_not_called()

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_shutdown_while_running_stops_loop(self, mock_scheduler_class):
        """Test shutdown moves to SHUTTING_DOWN and stops the loop without waiting"""
        mock_scheduler = Mock()
        mock_scheduler_class.return_value = mock_scheduler
        scheduler = CategoryUpdateScheduler(Mock(), 600)
        states = []

        def run_loop():
            scheduler.request_shutdown()
            states.append(scheduler.state)

        mock_scheduler.start.side_effect = run_loop

        scheduler.start()

        assert states == [SchedulerState.SHUTTING_DOWN]
        mock_scheduler.shutdown.assert_called_once_with(wait=False)
        assert scheduler.state is SchedulerState.STOPPED

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_repeated_shutdown_is_idempotent(self, mock_scheduler_class):
        """Test a second signal has no further effect"""
        mock_scheduler = Mock()
        mock_scheduler_class.return_value = mock_scheduler
        scheduler = CategoryUpdateScheduler(Mock(), 600)

        def run_loop():
            scheduler.request_shutdown()
            scheduler.request_shutdown()

        mock_scheduler.start.side_effect = run_loop

        scheduler.start()

        mock_scheduler.shutdown.assert_called_once()

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_shutdown_tolerates_loop_not_running(self, mock_scheduler_class):
        mock_scheduler = Mock()
        mock_scheduler.shutdown.side_effect = SchedulerNotRunningError()
        mock_scheduler_class.return_value = mock_scheduler
        scheduler = CategoryUpdateScheduler(Mock(), 600)
        mock_scheduler.start.side_effect = scheduler.request_shutdown

        scheduler.start()

        assert scheduler.state is SchedulerState.STOPPED

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_keyboard_interrupt_stops_scheduler(self, mock_scheduler_class):
        mock_scheduler = Mock()
        mock_scheduler.start.side_effect = KeyboardInterrupt()
        mock_scheduler_class.return_value = mock_scheduler

        scheduler = CategoryUpdateScheduler(Mock(), 600)
        scheduler.start()

        assert scheduler.state is SchedulerState.STOPPED

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_start_waits_for_in_flight_cycle(self, mock_scheduler_class):
        """Test start returns only after a running cycle has finished"""
        mock_scheduler = Mock()
        mock_scheduler_class.return_value = mock_scheduler
        cycle_started = threading.Event()
        release_cycle = threading.Event()
        finished = []

        def cycle():
            cycle_started.set()
            release_cycle.wait(5)
            finished.append(True)

        scheduler = CategoryUpdateScheduler(cycle, 600)

        def run_loop():
            threading.Thread(target=scheduler._run_cycle).start()
            cycle_started.wait(5)
            scheduler.request_shutdown()
            threading.Timer(0.05, release_cycle.set).start()

        mock_scheduler.start.side_effect = run_loop

        scheduler.start()

        assert finished == [True]
        assert scheduler.state is SchedulerState.STOPPED


# ============================================================================
# Test Cycle Execution
# ============================================================================

class TestRunCycle:
    """Test the scheduled job wrapper"""

    def test_run_cycle_invokes_cycle(self):
        cycle = Mock()
        scheduler = CategoryUpdateScheduler(cycle, 600)

        scheduler._run_cycle()

        cycle.assert_called_once_with()
        assert scheduler.is_cycle_running() is False

    @patch('src.category_update.scheduler.logger')
    def test_run_cycle_logs_and_swallows_failures(self, mock_logger):
        """Test a crashing cycle does not kill the scheduler"""
        cycle = Mock(side_effect=RuntimeError("boom"))
        scheduler = CategoryUpdateScheduler(cycle, 600)

        scheduler._run_cycle()

        mock_logger.error.assert_called_once()
        assert "boom" in mock_logger.error.call_args.args[0]
        assert scheduler.is_cycle_running() is False

    @patch('src.category_update.scheduler.logger')
    def test_run_cycle_skips_overlapping_tick(self, mock_logger):
        """Test a tick arriving while a cycle runs is skipped"""
        cycle = Mock()
        scheduler = CategoryUpdateScheduler(cycle, 600)
        scheduler._cycle_lock.acquire()

        try:
            scheduler._run_cycle()
        finally:
            scheduler._cycle_lock.release()

        cycle.assert_not_called()
        mock_logger.warning.assert_called_once_with(
            "Previous cycle still running, skipping this tick"
        )

    @patch('src.category_update.scheduler.BlockingScheduler')
    def test_run_cycle_after_shutdown_does_nothing(self, mock_scheduler_class):
        mock_scheduler_class.return_value = Mock()
        cycle = Mock()
        scheduler = CategoryUpdateScheduler(cycle, 600)
        scheduler.request_shutdown()

        scheduler._run_cycle()

        cycle.assert_not_called()
