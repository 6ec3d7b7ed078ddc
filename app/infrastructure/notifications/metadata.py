"""Reserved job metadata shapes.

Job metadata is an open key/value map, but two shapes drive the dispatch
engine:

- ``scheduledFor``: ISO-8601 timestamp delaying the first attempt
- ``fallback.emailAudience`` / ``fallback.smsAudience`` (or the legacy flat
  ``fallbackEmailAudience`` / ``fallbackSmsAudience``): targets that receive a
  copy of a push notification whose delivery failed

They are parsed once into ``JobDirectives`` right after validation so the
engine never re-inspects the raw map.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from infrastructure.notifications.models import NotificationChannel

SCHEDULED_FOR_KEY = "scheduledFor"
FALLBACK_KEY = "fallback"
FALLBACK_KEY_PREFIX = "fallback"
FALLBACK_SOURCE = "push-fallback"

# Queue order of fallback channels
FALLBACK_AUDIENCE_KEYS: Tuple[Tuple[NotificationChannel, str, str], ...] = (
    (NotificationChannel.EMAIL, "emailAudience", "fallbackEmailAudience"),
    (NotificationChannel.SMS, "smsAudience", "fallbackSmsAudience"),
)


@dataclass(frozen=True)
class FallbackTarget:
    channel: NotificationChannel
    audience: str


@dataclass(frozen=True)
class JobDirectives:
    """Engine-relevant view of a job's metadata.

    Attributes:
        scheduled_for: First eligible instant, when it lies in the future
        fallback_targets: Alternate channels for a failed push delivery
        is_fallback: True for jobs created by the push fallback cascade
    """

    scheduled_for: Optional[datetime] = None
    fallback_targets: Tuple[FallbackTarget, ...] = ()
    is_fallback: bool = False


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when it is not one.

    A trailing ``Z`` is accepted and naive timestamps are read as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _audience(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_directives(
    metadata: Optional[Mapping[str, Any]], now: datetime
) -> JobDirectives:
    """Extract the reserved shapes from ``metadata``.

    Args:
        metadata: Validated job metadata (may be None)
        now: Reference time; ``scheduledFor`` is kept only if strictly later

    Returns:
        JobDirectives for the job
    """
    if not metadata:
        return JobDirectives()

    scheduled_for = parse_timestamp(metadata.get(SCHEDULED_FOR_KEY))
    if scheduled_for is not None and scheduled_for <= now:
        scheduled_for = None

    nested = metadata.get(FALLBACK_KEY)
    if not isinstance(nested, Mapping):
        nested = {}

    targets = []
    for channel, nested_key, legacy_key in FALLBACK_AUDIENCE_KEYS:
        audience = _audience(nested.get(nested_key)) or _audience(
            metadata.get(legacy_key)
        )
        if audience:
            targets.append(FallbackTarget(channel=channel, audience=audience))

    return JobDirectives(
        scheduled_for=scheduled_for,
        fallback_targets=tuple(targets),
        is_fallback=metadata.get("source") == FALLBACK_SOURCE,
    )


def fallback_metadata(
    metadata: Optional[Mapping[str, Any]],
    source_job_id: str,
    to_channel: NotificationChannel,
    reason: str,
    queued_at: datetime,
) -> Dict[str, Any]:
    """Build the metadata of a fallback job.

    Every ``fallback*`` key of the source metadata is dropped before the
    fallback tags are added, so a fallback job carries no targets of its own.
    """
    tagged = {
        key: value
        for key, value in (metadata or {}).items()
        if not key.startswith(FALLBACK_KEY_PREFIX)
    }
    tagged.update(
        {
            "source": FALLBACK_SOURCE,
            "fallbackFromJobId": source_job_id,
            "fallbackFromChannel": NotificationChannel.PUSH.value,
            "fallbackToChannel": to_channel.value,
            "fallbackReason": reason,
            "fallbackQueuedAt": queued_at.isoformat(),
        }
    )
    return tagged
