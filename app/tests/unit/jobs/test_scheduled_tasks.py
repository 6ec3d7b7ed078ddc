"""Unit tests for the scheduled queue processor."""

from unittest.mock import MagicMock

import pytest
import schedule

from infrastructure.notifications import ProcessQueueResult
from jobs import scheduled_tasks


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock()
    dispatcher.process_due_jobs.return_value = ProcessQueueResult(processed=2, sent=2)
    dispatcher.store.flush.return_value = True
    return dispatcher


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.notifications.process_interval_seconds = 10
    settings.notifications.process_batch_size = 15
    settings.job_store.flush_interval_ms = 5000
    return settings


@pytest.fixture(autouse=True)
def clear_schedule():
    scheduled_tasks.clear()
    yield
    scheduled_tasks.clear()


@pytest.mark.unit
class TestScheduledTasks:
    """Tests for job registration and the scheduled callables."""

    def test_init_registers_tagged_jobs(self, mock_dispatcher, mock_settings):
        scheduled_tasks.init(mock_dispatcher, mock_settings)

        jobs = schedule.get_jobs(scheduled_tasks.SCHEDULE_TAG)
        assert len(jobs) == 3
        intervals = sorted(
            (job.interval, job.unit) for job in jobs
        )
        assert intervals == [(5, "minutes"), (5, "seconds"), (10, "seconds")]

    def test_clear_removes_only_queue_jobs(self, mock_dispatcher, mock_settings):
        other = schedule.every(1).hours.do(lambda: None)
        scheduled_tasks.init(mock_dispatcher, mock_settings)

        scheduled_tasks.clear()

        assert schedule.get_jobs() == [other]
        schedule.cancel_job(other)

    def test_registered_jobs_process_and_flush(self, mock_dispatcher, mock_settings):
        scheduled_tasks.init(mock_dispatcher, mock_settings)

        for job in schedule.get_jobs(scheduled_tasks.SCHEDULE_TAG):
            job.run()

        mock_dispatcher.process_due_jobs.assert_called_once_with(limit=15)
        mock_dispatcher.store.flush.assert_called_once_with()

    def test_process_due_notifications(self, mock_dispatcher):
        scheduled_tasks.process_due_notifications(mock_dispatcher, limit=3)

        mock_dispatcher.process_due_jobs.assert_called_once_with(limit=3)

    def test_safe_run_swallows_and_logs_errors(self):
        failing = MagicMock(side_effect=RuntimeError("boom"))
        failing.__name__ = "failing"

        scheduled_tasks.safe_run(failing)()

        failing.assert_called_once_with()

    def test_run_continuously_stops_when_event_set(self):
        stop_event = scheduled_tasks.run_continuously(interval=0.01)

        stop_event.set()

        assert stop_event.is_set()
