"""Tests for periodic scan scheduling."""

from datetime import timezone
from unittest.mock import Mock, patch

import pytest

from bandwatch.scheduler import SCAN_JOB_ID, PeriodicScan, create_scheduler


@pytest.fixture
def orchestrator(test_settings):
    orchestrator = Mock()
    orchestrator.settings = test_settings
    orchestrator.symbols = ["EURUSD", "MSFT"]
    return orchestrator


class TestCreateScheduler:
    """Test scheduler creation."""

    @patch("bandwatch.scheduler.AsyncIOScheduler")
    def test_create_scheduler(self, mock_scheduler_cls):
        """Scheduler never stacks overlapping runs."""
        mock_scheduler = Mock()
        mock_scheduler_cls.return_value = mock_scheduler

        scheduler = create_scheduler()

        assert scheduler == mock_scheduler
        call_kwargs = mock_scheduler_cls.call_args[1]
        assert call_kwargs["job_defaults"]["max_instances"] == 1
        assert call_kwargs["job_defaults"]["coalesce"] is True
        assert call_kwargs["timezone"] == "UTC"
        assert mock_scheduler.add_listener.call_count == 3


class TestPeriodicScan:
    """Test the periodic scan job."""

    def test_interval_from_settings(self, orchestrator):
        periodic = PeriodicScan(orchestrator, scheduler=Mock())

        assert periodic.interval_seconds == 60

    def test_start_registers_job(self, orchestrator):
        """First run is immediate, later runs every interval, one at a time."""
        scheduler = Mock()
        scheduler.running = False
        periodic = PeriodicScan(orchestrator, interval_seconds=30, scheduler=scheduler)

        periodic.start()

        scheduler.add_job.assert_called_once()
        args, kwargs = scheduler.add_job.call_args
        assert args[0] == orchestrator.run_cycle
        assert kwargs["trigger"] == "interval"
        assert kwargs["seconds"] == 30
        assert kwargs["id"] == SCAN_JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["replace_existing"] is True
        assert kwargs["next_run_time"].tzinfo == timezone.utc
        scheduler.start.assert_called_once()

    def test_start_does_not_restart_running_scheduler(self, orchestrator):
        scheduler = Mock()
        scheduler.running = True

        PeriodicScan(orchestrator, scheduler=scheduler).start()

        scheduler.start.assert_not_called()

    def test_stop(self, orchestrator):
        scheduler = Mock()
        scheduler.running = True

        PeriodicScan(orchestrator, scheduler=scheduler).stop()

        scheduler.shutdown.assert_called_once_with(wait=False)

    def test_stop_when_not_running(self, orchestrator):
        scheduler = Mock()
        scheduler.running = False

        PeriodicScan(orchestrator, scheduler=scheduler).stop()

        scheduler.shutdown.assert_not_called()
