"""Notification queue core models.

Durable job and audit records for the notification dispatch queue, plus the
small value types exchanged between the dispatch engine, the job store and
delivery providers.

Uses Pydantic BaseModel for the persisted records so they:
- Serialize to camelCase JSON for the API and the file snapshot
- Validate on load from a snapshot
- Stay immutable where required (audit entries are frozen)

Plain dataclasses are used for internal value types that never cross the
API boundary.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NotificationChannel(str, Enum):
    """Delivery medium of a job. Each channel has exactly one provider."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class JobStatus(str, Enum):
    """Lifecycle status of a notification job.

    QUEUED and RETRYING jobs are eligible for pickup once due. SENT is
    terminal. FAILED is terminal unless the job is manually retried while it
    still has attempt budget left.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    RETRYING = "retrying"
    SENT = "sent"
    FAILED = "failed"


CLAIMABLE_STATUSES = frozenset({JobStatus.QUEUED, JobStatus.RETRYING})


class AuditEvent(str, Enum):
    """Lifecycle events recorded in the audit trail."""

    QUEUED = "queued"
    ATTEMPT_STARTED = "attempt_started"
    ATTEMPT_SUCCEEDED = "attempt_succeeded"
    ATTEMPT_FAILED = "attempt_failed"
    RETRY_SCHEDULED = "retry_scheduled"
    RETRY_REQUESTED = "retry_requested"
    FAILED_FINAL = "failed_final"
    FALLBACK_QUEUED = "fallback_queued"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Opaque, globally unique identifier such as ``ntf_<uuid4>``."""
    return f"{prefix}_{uuid.uuid4()}"


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationJob(CamelModel):
    """A durable unit of delivery work.

    Attributes:
        id: Opaque job identifier assigned by the store
        business_id: Owning business
        channel: Delivery channel (immutable after creation)
        audience: Channel-specific address (email, phone, push subscription)
        subject: Optional subject (email) or title (push)
        message: Message body, never empty
        metadata: Open key/value map; ``scheduledFor`` and ``fallback`` are reserved
        status: Current JobStatus
        provider: Name of the provider that last attempted delivery
        attempts: Delivery attempts made so far, 0 <= attempts <= max_attempts
        max_attempts: Attempt budget, 1-10
        next_attempt_at: Job is not eligible before this instant
        last_attempt_at: Start of the most recent attempt
        sent_at: Set when delivered
        failed_at: Set when terminally failed
        last_error: Error text of the most recent failed attempt
        version: Incremented by the store on every write, used for claims
        created_at: Creation time
        updated_at: Time of the last write
    """

    id: str
    business_id: str
    channel: NotificationChannel
    audience: str
    subject: Optional[str] = None
    message: str
    metadata: Optional[Dict[str, Any]] = None
    status: JobStatus = JobStatus.QUEUED
    provider: Optional[str] = None
    attempts: int = 0
    max_attempts: int
    next_attempt_at: datetime
    last_attempt_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    last_error: Optional[str] = None
    version: int = 0
    created_at: datetime
    updated_at: datetime

    def is_due(self, now: datetime) -> bool:
        """Whether the job may be picked up automatically at ``now``."""
        return (
            self.status in CLAIMABLE_STATUSES
            and self.next_attempt_at <= now
            and self.attempts < self.max_attempts
        )

    @property
    def has_budget(self) -> bool:
        return self.attempts < self.max_attempts


class AuditLogEntry(CamelModel):
    """Immutable record of one job lifecycle event.

    Attributes:
        id: Entry identifier
        job_id: Job the entry belongs to
        event: AuditEvent
        channel: Channel of the job
        provider: Provider involved, if any
        attempt: Attempt number the entry pertains to (0 for ``queued``)
        message: Short human summary
        detail: Event specific key/value detail
        created_at: Time the entry was written
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    job_id: str
    event: AuditEvent
    channel: NotificationChannel
    provider: Optional[str] = None
    attempt: Optional[int] = None
    message: str
    detail: Optional[Dict[str, Any]] = None
    created_at: datetime


class ProcessQueueResult(CamelModel):
    """Aggregate outcome of one ``process_due_jobs`` batch.

    ``skipped`` counts due jobs that another caller claimed first; they are
    not part of ``processed`` or ``job_ids``.
    """

    processed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0
    job_ids: List[str] = Field(default_factory=list)


@dataclass(frozen=True)
class JobSpec:
    """Validated input for creating a job in the store."""

    business_id: str
    channel: NotificationChannel
    audience: str
    message: str
    max_attempts: int
    next_attempt_at: datetime
    subject: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class JobFilter:
    """Optional filters for listing jobs. ``None`` means no constraint."""

    status: Optional[JobStatus] = None
    channel: Optional[NotificationChannel] = None
    business_id: Optional[str] = None

    def matches(self, job: NotificationJob) -> bool:
        if self.status is not None and job.status != self.status:
            return False
        if self.channel is not None and job.channel != self.channel:
            return False
        if self.business_id is not None and job.business_id != self.business_id:
            return False
        return True


@dataclass(frozen=True)
class DispatchInput:
    """What a provider receives for a single delivery attempt."""

    job_id: str
    business_id: str
    channel: NotificationChannel
    audience: str
    subject: Optional[str]
    message: str
    metadata: Optional[Dict[str, Any]]
    attempt: int


@dataclass
class ProviderResult:
    """Outcome reported by a provider.

    ``accepted=False`` is treated the same as a raised error: a failed attempt.
    """

    accepted: bool
    external_id: Optional[str] = None
    detail: Optional[str] = None
