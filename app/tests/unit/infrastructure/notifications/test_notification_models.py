"""Unit tests for notification queue models and configuration."""

from datetime import timedelta

import pytest

from infrastructure.notifications.config import QueueConfig
from infrastructure.notifications.models import (
    JobFilter,
    JobStatus,
    NotificationChannel,
    ProcessQueueResult,
    new_id,
)


@pytest.mark.unit
class TestNotificationJob:
    """Tests for the NotificationJob record."""

    def test_is_due_for_queued_job_at_next_attempt(self, job_factory, frozen_now):
        job = job_factory(status=JobStatus.QUEUED, next_attempt_at=frozen_now)

        assert job.is_due(frozen_now)

    def test_is_not_due_before_next_attempt(self, job_factory, frozen_now):
        job = job_factory(next_attempt_at=frozen_now + timedelta(seconds=1))

        assert not job.is_due(frozen_now)

    @pytest.mark.parametrize(
        "status", [JobStatus.PROCESSING, JobStatus.SENT, JobStatus.FAILED]
    )
    def test_is_not_due_outside_claimable_statuses(self, job_factory, frozen_now, status):
        job = job_factory(status=status)

        assert not job.is_due(frozen_now)

    def test_is_not_due_without_budget(self, job_factory, frozen_now):
        job = job_factory(status=JobStatus.RETRYING, attempts=3, max_attempts=3)

        assert not job.is_due(frozen_now)
        assert not job.has_budget

    def test_serializes_with_camel_case_aliases(self, job_factory):
        job = job_factory(metadata={"orderId": "o_1"})

        payload = job.model_dump(mode="json", by_alias=True)

        assert payload["businessId"] == "biz_1"
        assert payload["maxAttempts"] == 3
        assert payload["nextAttemptAt"].startswith("2026-03-01T12:00:00")
        assert payload["channel"] == "email"
        assert payload["status"] == "queued"
        assert payload["metadata"] == {"orderId": "o_1"}


@pytest.mark.unit
class TestJobFilter:
    """Tests for JobFilter matching."""

    def test_empty_filter_matches_everything(self, job_factory):
        assert JobFilter().matches(job_factory())

    def test_filters_combine(self, job_factory):
        job = job_factory(channel=NotificationChannel.SMS, business_id="biz_2")

        assert JobFilter(channel=NotificationChannel.SMS, business_id="biz_2").matches(job)
        assert not JobFilter(channel=NotificationChannel.SMS, business_id="biz_1").matches(job)
        assert not JobFilter(status=JobStatus.SENT).matches(job)


@pytest.mark.unit
class TestProcessQueueResult:
    """Tests for the batch result shape."""

    def test_defaults_to_zero_counts(self):
        result = ProcessQueueResult()

        assert result.model_dump(by_alias=True) == {
            "processed": 0,
            "sent": 0,
            "retried": 0,
            "failed": 0,
            "skipped": 0,
            "jobIds": [],
        }


@pytest.mark.unit
def test_new_id_is_prefixed_and_unique():
    first, second = new_id("ntf"), new_id("ntf")

    assert first.startswith("ntf_")
    assert first != second


@pytest.mark.unit
class TestQueueConfig:
    """Tests for dispatch engine configuration and backoff."""

    def test_retry_delay_doubles_from_base(self):
        config = QueueConfig(retry_base_ms=1000, retry_max_ms=60000)

        assert [config.retry_delay_ms(a) for a in (1, 2, 3, 4)] == [1000, 2000, 4000, 8000]

    def test_retry_delay_is_capped(self):
        config = QueueConfig(retry_base_ms=1000, retry_max_ms=5000)

        assert config.retry_delay_ms(10) == 5000

    def test_retry_delay_is_monotonic_and_bounded(self):
        config = QueueConfig(retry_base_ms=300, retry_max_ms=45000)

        delays = [config.retry_delay_ms(a) for a in range(1, 11)]

        assert delays == sorted(delays)
        assert max(delays) <= 45000

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_max_attempts": 0},
            {"default_max_attempts": 11},
            {"retry_base_ms": 99},
            {"retry_base_ms": 2000, "retry_max_ms": 1000},
            {"send_timeout_ms": -1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            QueueConfig(**kwargs)

    def test_from_settings(self):
        class _Settings:
            default_max_attempts = 5
            retry_base_ms = 250
            retry_max_ms = 4000
            send_timeout_ms = 0

        config = QueueConfig.from_settings(_Settings())

        assert config == QueueConfig(
            default_max_attempts=5, retry_base_ms=250, retry_max_ms=4000, send_timeout_ms=0
        )
