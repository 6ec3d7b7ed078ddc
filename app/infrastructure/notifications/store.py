"""Notification job storage.

This module provides the storage interface for notification jobs and their
audit trail, and a thread-safe in-memory implementation. The protocol-based
design allows other backends (file snapshot, databases) behind the same
contract.
"""

import copy
import threading
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    CLAIMABLE_STATUSES,
    AuditEvent,
    AuditLogEntry,
    JobFilter,
    JobSpec,
    JobStatus,
    NotificationChannel,
    NotificationJob,
    new_id,
    utc_now,
)

logger = get_module_logger()

# Fields that never change after creation
IMMUTABLE_FIELDS = frozenset({"id", "channel", "created_at", "version"})


class JobStore(Protocol):
    """Storage interface for notification jobs and audit entries.

    Implementations must make ``claim`` atomic: at most one caller can move a
    given job version from queued/retrying to processing.

    Methods:
        create: Persist a new queued job
        update: Merge named fields into a job
        get_by_id: Fetch a job
        list: Jobs matching a filter, newest first
        list_due: Eligible jobs, earliest due first
        claim: Compare-and-set a due job to processing
        append_audit: Persist an audit entry
        list_audit: Audit entries, newest first
        flush: Persist pending writes (no-op for purely in-memory stores)
    """

    def create(self, spec: JobSpec) -> NotificationJob:
        """Persist a new job with ``status=queued`` and ``attempts=0``.

        Args:
            spec: Validated job input

        Returns:
            The stored job, with id and timestamps assigned
        """
        ...

    def update(
        self, job_id: str, changes: Mapping[str, Any]
    ) -> Optional[NotificationJob]:
        """Merge ``changes`` into a job and refresh ``updated_at``.

        Returns:
            The updated job, or None if it does not exist
        """
        ...

    def get_by_id(self, job_id: str) -> Optional[NotificationJob]:
        ...

    def list(self, job_filter: Optional[JobFilter] = None) -> List[NotificationJob]:
        """Jobs matching ``job_filter``, newest created first."""
        ...

    def list_due(self, now: datetime, limit: int) -> List[NotificationJob]:
        """Jobs eligible at ``now``, ordered by ``next_attempt_at`` ascending.

        Args:
            now: Reference time
            limit: Maximum number of jobs, clamped to at least 1
        """
        ...

    def claim(
        self, job_id: str, expected_version: int, changes: Mapping[str, Any]
    ) -> Optional[NotificationJob]:
        """Atomically move a job from queued/retrying to processing.

        The claim only succeeds if the job still has ``expected_version``,
        is queued or retrying, and has attempt budget left.

        Args:
            job_id: Job to claim
            expected_version: Version observed when the job was selected
            changes: Additional fields to set with the transition

        Returns:
            The claimed job, or None if the claim was lost
        """
        ...

    def append_audit(
        self,
        *,
        job_id: str,
        event: AuditEvent,
        channel: NotificationChannel,
        message: str,
        provider: Optional[str] = None,
        attempt: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        ...

    def list_audit(self, job_id: Optional[str] = None) -> List[AuditLogEntry]:
        """Audit entries, optionally for one job, newest first."""
        ...

    def flush(self) -> bool:
        """Persist pending writes. Returns True if anything was written."""
        ...


class InMemoryJobStore:
    """In-memory implementation of JobStore.

    Thread-safe store for notification jobs with support for:
    - Versioned records (every write increments ``version``)
    - Compare-and-set claims guarding against double dispatch
    - Append-only audit trail

    Returned jobs are copies; mutating them never changes stored state.
    Suitable for single-instance deployments, development and tests.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, NotificationJob] = {}
        self._audit: List[AuditLogEntry] = []
        self._lock = threading.RLock()

    def _on_write(self) -> None:
        """Hook called under the lock after every mutation."""

    def create(self, spec: JobSpec) -> NotificationJob:
        """Persist a new queued job."""
        now = utc_now()
        job = NotificationJob(
            id=new_id("ntf"),
            business_id=spec.business_id,
            channel=spec.channel,
            audience=spec.audience,
            subject=spec.subject,
            message=spec.message,
            metadata=copy.deepcopy(spec.metadata),
            status=JobStatus.QUEUED,
            provider=None,
            attempts=0,
            max_attempts=spec.max_attempts,
            next_attempt_at=spec.next_attempt_at,
            version=1,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
            self._on_write()

        logger.debug("notification_job_stored", job_id=job.id, channel=job.channel.value)
        return job.model_copy(deep=True)

    def update(
        self, job_id: str, changes: Mapping[str, Any]
    ) -> Optional[NotificationJob]:
        """Merge named fields into a job."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("notification_job_update_not_found", job_id=job_id)
                return None
            updated = self._apply(job, changes)
            return updated.model_copy(deep=True)

    def get_by_id(self, job_id: str) -> Optional[NotificationJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job is not None else None

    def list(self, job_filter: Optional[JobFilter] = None) -> List[NotificationJob]:
        """Jobs matching the filter, newest created first."""
        job_filter = job_filter or JobFilter()
        with self._lock:
            return [
                job.model_copy(deep=True)
                for job in reversed(self._jobs.values())
                if job_filter.matches(job)
            ]

    def list_due(self, now: datetime, limit: int) -> List[NotificationJob]:
        """Eligible jobs, earliest due first, truncated to ``limit``."""
        limit = max(1, int(limit))
        with self._lock:
            # sorted() is stable, so equal due times keep creation order
            due = sorted(
                (job for job in self._jobs.values() if job.is_due(now)),
                key=lambda job: job.next_attempt_at,
            )
            selected = [job.model_copy(deep=True) for job in due[:limit]]

        logger.debug(
            "fetched_due_notification_jobs",
            count=len(selected),
            total_store_size=len(self._jobs),
        )
        return selected

    def claim(
        self, job_id: str, expected_version: int, changes: Mapping[str, Any]
    ) -> Optional[NotificationJob]:
        """Compare-and-set a job to processing."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("notification_job_claim_not_found", job_id=job_id)
                return None

            if (
                job.version != expected_version
                or job.status not in CLAIMABLE_STATUSES
                or not job.has_budget
            ):
                logger.debug(
                    "notification_job_claim_rejected",
                    job_id=job_id,
                    expected_version=expected_version,
                    current_version=job.version,
                    status=job.status.value,
                )
                return None

            claimed = self._apply(job, {**changes, "status": JobStatus.PROCESSING})
            return claimed.model_copy(deep=True)

    def append_audit(
        self,
        *,
        job_id: str,
        event: AuditEvent,
        channel: NotificationChannel,
        message: str,
        provider: Optional[str] = None,
        attempt: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        """Append an immutable audit entry."""
        entry = AuditLogEntry(
            id=new_id("nal"),
            job_id=job_id,
            event=event,
            channel=channel,
            provider=provider,
            attempt=attempt,
            message=message,
            detail=copy.deepcopy(detail),
            created_at=utc_now(),
        )
        with self._lock:
            self._audit.append(entry)
            self._on_write()
        return entry.model_copy(deep=True)

    def list_audit(self, job_id: Optional[str] = None) -> List[AuditLogEntry]:
        """Audit entries, optionally for one job, newest first."""
        with self._lock:
            return [
                entry.model_copy(deep=True)
                for entry in reversed(self._audit)
                if job_id is None or entry.job_id == job_id
            ]

    def flush(self) -> bool:
        """Nothing to persist for the in-memory store."""
        return False

    def _apply(
        self, job: NotificationJob, changes: Mapping[str, Any]
    ) -> NotificationJob:
        """Apply changes to a stored job (assumes lock is held)."""
        illegal = IMMUTABLE_FIELDS.intersection(changes)
        if illegal:
            raise ValueError(f"Cannot update immutable job fields: {sorted(illegal)}")

        updated = job.model_copy(
            update={
                **changes,
                "version": job.version + 1,
                "updated_at": utc_now(),
            },
            deep=True,
        )
        self._jobs[job.id] = updated
        self._on_write()
        return updated
