"""Unit tests for reserved metadata parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from infrastructure.notifications.metadata import (
    FALLBACK_SOURCE,
    FallbackTarget,
    fallback_metadata,
    parse_directives,
    parse_timestamp,
)
from infrastructure.notifications.models import NotificationChannel

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestParseTimestamp:
    """Tests for ISO-8601 parsing."""

    def test_accepts_zulu_suffix(self):
        assert parse_timestamp("2026-03-01T13:00:00Z") == NOW + timedelta(hours=1)

    def test_reads_naive_timestamps_as_utc(self):
        assert parse_timestamp("2026-03-01T13:00:00") == NOW + timedelta(hours=1)

    def test_normalises_offsets_to_utc(self):
        parsed = parse_timestamp("2026-03-01T14:00:00+02:00")

        assert parsed == NOW
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", 1234, {"at": "x"}])
    def test_returns_none_for_non_timestamps(self, value):
        assert parse_timestamp(value) is None


class TestParseDirectives:
    """Tests for JobDirectives extraction."""

    def test_empty_metadata(self):
        directives = parse_directives(None, NOW)

        assert directives.scheduled_for is None
        assert directives.fallback_targets == ()
        assert not directives.is_fallback

    def test_future_schedule_is_kept(self):
        directives = parse_directives({"scheduledFor": "2026-03-01T13:00:00Z"}, NOW)

        assert directives.scheduled_for == NOW + timedelta(hours=1)

    @pytest.mark.parametrize(
        "scheduled_for", ["2026-03-01T12:00:00Z", "2026-03-01T11:00:00Z", "not-a-date"]
    )
    def test_past_present_or_invalid_schedule_is_ignored(self, scheduled_for):
        directives = parse_directives({"scheduledFor": scheduled_for}, NOW)

        assert directives.scheduled_for is None

    def test_nested_fallback_targets_in_queue_order(self):
        metadata = {
            "fallback": {"smsAudience": "+15555550100", "emailAudience": "a@example.com"}
        }

        directives = parse_directives(metadata, NOW)

        assert directives.fallback_targets == (
            FallbackTarget(NotificationChannel.EMAIL, "a@example.com"),
            FallbackTarget(NotificationChannel.SMS, "+15555550100"),
        )

    def test_legacy_flat_keys(self):
        metadata = {"fallbackEmailAudience": " a@example.com "}

        directives = parse_directives(metadata, NOW)

        assert directives.fallback_targets == (
            FallbackTarget(NotificationChannel.EMAIL, "a@example.com"),
        )

    def test_nested_target_wins_over_legacy_key(self):
        metadata = {
            "fallback": {"emailAudience": "nested@example.com"},
            "fallbackEmailAudience": "legacy@example.com",
        }

        directives = parse_directives(metadata, NOW)

        assert directives.fallback_targets[0].audience == "nested@example.com"

    def test_blank_and_non_string_targets_are_skipped(self):
        metadata = {"fallback": {"emailAudience": "  ", "smsAudience": 15555550100}}

        assert parse_directives(metadata, NOW).fallback_targets == ()

    def test_detects_fallback_jobs(self):
        assert parse_directives({"source": FALLBACK_SOURCE}, NOW).is_fallback


class TestFallbackMetadata:
    """Tests for fallback job tagging."""

    def test_strips_fallback_keys_and_tags_source(self):
        metadata = {
            "orderId": "o_1",
            "fallback": {"emailAudience": "a@example.com"},
            "fallbackSmsAudience": "+15555550100",
        }

        tagged = fallback_metadata(
            metadata,
            source_job_id="ntf_push",
            to_channel=NotificationChannel.EMAIL,
            reason="push-noop failed",
            queued_at=NOW,
        )

        assert tagged == {
            "orderId": "o_1",
            "source": "push-fallback",
            "fallbackFromJobId": "ntf_push",
            "fallbackFromChannel": "push",
            "fallbackToChannel": "email",
            "fallbackReason": "push-noop failed",
            "fallbackQueuedAt": NOW.isoformat(),
        }
        assert parse_directives(tagged, NOW).fallback_targets == ()

    def test_does_not_mutate_source_metadata(self):
        metadata = {"fallback": {"emailAudience": "a@example.com"}}

        fallback_metadata(metadata, "ntf_push", NotificationChannel.SMS, "x", NOW)

        assert metadata == {"fallback": {"emailAudience": "a@example.com"}}
