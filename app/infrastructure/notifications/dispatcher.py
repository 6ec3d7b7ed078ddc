"""Notification dispatch engine.

Durable, pull-based notification delivery:
- Enqueues jobs after validating and normalising input
- Selects due jobs and claims each one atomically before any provider call
- Drives the attempt state machine with exponential backoff
- Cascades failed push deliveries into email/SMS fallback jobs (one level)
- Records an audit entry for every lifecycle event

Provider failures never escape ``process_due_jobs``; they are absorbed into
job state and audit history. Caller errors (validation, not found, conflict)
are raised synchronously.

Usage Example:
    from infrastructure.notifications import (
        InMemoryJobStore,
        NotificationDispatcher,
        QueueConfig,
        build_provider_registry,
    )

    dispatcher = NotificationDispatcher(
        store=InMemoryJobStore(),
        providers=build_provider_registry(settings),
        config=QueueConfig(default_max_attempts=3),
    )

    job = dispatcher.enqueue(
        business_id="biz_1",
        channel="email",
        audience="owner@example.com",
        message="Your order is ready",
    )

    result = dispatcher.process_due_jobs(limit=20)
    logger.info("queue_processed", **result.model_dump())
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from infrastructure.logging import get_module_logger
from infrastructure.notifications.config import MAX_ATTEMPTS, MIN_ATTEMPTS, QueueConfig
from infrastructure.notifications.errors import (
    JobConflictError,
    JobNotFoundError,
    JobValidationError,
    NotificationQueueError,
    ProviderError,
)
from infrastructure.notifications.metadata import (
    fallback_metadata,
    parse_directives,
)
from infrastructure.notifications.models import (
    AuditEvent,
    AuditLogEntry,
    DispatchInput,
    JobFilter,
    JobSpec,
    JobStatus,
    NotificationChannel,
    NotificationJob,
    ProcessQueueResult,
    ProviderResult,
    utc_now,
)
from infrastructure.notifications.providers.base import NotificationProvider
from infrastructure.notifications.providers.unavailable import UnavailableProvider
from infrastructure.notifications.store import JobStore

logger = get_module_logger()

DEFAULT_PROCESS_LIMIT = 20
DEFAULT_AUDIENCE = "all"
SEND_WORKERS_PER_CHANNEL = 4


def _error_message(error: BaseException) -> str:
    if isinstance(error, ProviderError):
        return error.message
    return str(error) or type(error).__name__


class NotificationDispatcher:
    """Dispatch engine for the notification queue.

    Attributes:
        store: JobStore holding jobs and the audit trail
        providers: Mapping of channel to the provider that delivers it
        config: QueueConfig controlling attempt budget, backoff and timeouts

    Example:
        dispatcher = NotificationDispatcher(store, providers, QueueConfig())
        dispatcher.enqueue(business_id="biz_1", channel="sms",
                           audience="+15555550100", message="Hi")
        stats = dispatcher.process_due_jobs()
    """

    def __init__(
        self,
        store: JobStore,
        providers: Mapping[NotificationChannel, NotificationProvider],
        config: Optional[QueueConfig] = None,
    ):
        self.store = store
        self.providers = dict(providers)
        self.config = config or QueueConfig()
        self._executors: Dict[NotificationChannel, ThreadPoolExecutor] = {}
        self._in_flight: Dict[NotificationChannel, Set[Future]] = {}
        self._executor_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Enqueue
    # ------------------------------------------------------------------

    def enqueue(
        self,
        business_id: str,
        channel: Union[str, NotificationChannel],
        audience: Optional[str],
        message: str,
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        max_attempts: Optional[int] = None,
    ) -> NotificationJob:
        """Validate input and persist a new queued job.

        No delivery is attempted; the job becomes eligible at ``now`` or at
        ``metadata.scheduledFor`` when that lies in the future.

        Args:
            business_id: Owning business, required
            channel: "email", "sms" or "push" (case-insensitive)
            audience: Channel-specific target, defaults to "all" when blank
            message: Message body, required
            subject: Optional subject or push title
            metadata: Optional key/value map (must be an object)
            max_attempts: Attempt budget 1-10, defaults to configuration

        Returns:
            The created NotificationJob

        Raises:
            JobValidationError: If any input is invalid
        """
        business_id = (business_id or "").strip()
        message = (message or "").strip()
        if not business_id or not message:
            raise JobValidationError("Missing businessId or message")

        resolved_channel = self._parse_channel(channel)
        resolved_max_attempts = self._parse_max_attempts(max_attempts)

        if metadata is not None and not isinstance(metadata, Mapping):
            raise JobValidationError("metadata must be an object")

        now = utc_now()
        directives = parse_directives(metadata, now)
        job = self.store.create(
            JobSpec(
                business_id=business_id,
                channel=resolved_channel,
                audience=(audience or "").strip() or DEFAULT_AUDIENCE,
                subject=(subject or "").strip() or None,
                message=message,
                metadata=dict(metadata) if metadata is not None else None,
                max_attempts=resolved_max_attempts,
                next_attempt_at=directives.scheduled_for or now,
            )
        )

        scheduled_for = (
            directives.scheduled_for.isoformat() if directives.scheduled_for else None
        )
        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.QUEUED,
            channel=job.channel,
            provider=None,
            attempt=0,
            message="Notification queued",
            detail={
                "audience": job.audience,
                "maxAttempts": job.max_attempts,
                "scheduledFor": scheduled_for,
            },
        )

        logger.info(
            "notification_job_queued",
            job_id=job.id,
            business_id=job.business_id,
            channel=job.channel.value,
            audience=job.audience,
            max_attempts=job.max_attempts,
            scheduled_for=scheduled_for,
        )
        return job

    def _parse_channel(
        self, channel: Union[str, NotificationChannel]
    ) -> NotificationChannel:
        if isinstance(channel, NotificationChannel):
            return channel
        try:
            return NotificationChannel((channel or "").strip().lower())
        except (AttributeError, ValueError) as e:
            raise JobValidationError("Invalid notification channel") from e

    def _parse_max_attempts(self, max_attempts: Optional[Any]) -> int:
        if max_attempts is None:
            return self.config.default_max_attempts
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, (int, float)):
            raise JobValidationError("maxAttempts must be an integer")
        if isinstance(max_attempts, float) and not max_attempts.is_integer():
            raise JobValidationError("maxAttempts must be an integer")
        value = int(max_attempts)
        if not MIN_ATTEMPTS <= value <= MAX_ATTEMPTS:
            raise JobValidationError("maxAttempts must be between 1 and 10")
        return value

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process_due_jobs(self, limit: Optional[int] = DEFAULT_PROCESS_LIMIT) -> ProcessQueueResult:
        """Attempt every due job, sequentially, in ``next_attempt_at`` order.

        Args:
            limit: Maximum number of jobs to select, clamped to at least 1

        Returns:
            ProcessQueueResult with per-outcome counts. Jobs claimed by a
            concurrent caller are counted as ``skipped``.
        """
        try:
            batch_size = max(1, int(limit)) if limit is not None else DEFAULT_PROCESS_LIMIT
        except (TypeError, ValueError):
            batch_size = DEFAULT_PROCESS_LIMIT

        due_jobs = self.store.list_due(utc_now(), batch_size)
        result = ProcessQueueResult()

        for job in due_jobs:
            processed = self._attempt(job)
            if processed is None:
                result.skipped += 1
                continue

            result.processed += 1
            result.job_ids.append(processed.id)
            if processed.status == JobStatus.SENT:
                result.sent += 1
            elif processed.status == JobStatus.RETRYING:
                result.retried += 1
            elif processed.status == JobStatus.FAILED:
                result.failed += 1

        if due_jobs:
            logger.info(
                "notification_queue_processed",
                selected=len(due_jobs),
                processed=result.processed,
                sent=result.sent,
                retried=result.retried,
                failed=result.failed,
                skipped=result.skipped,
            )
        return result

    def process_job(self, job_id: str) -> Optional[NotificationJob]:
        """Run one delivery attempt for a job, whether or not it is due.

        Returns:
            The job after the attempt (sent, retrying or failed), or None if
            the job could not be claimed because it is not queued/retrying,
            has no budget left, or was claimed by someone else.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        job = self.store.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError("Notification job not found")
        return self._attempt(job)

    def _provider_for(self, channel: NotificationChannel) -> NotificationProvider:
        provider = self.providers.get(channel)
        if provider is None:
            logger.warning("notification_provider_missing", channel=channel.value)
            provider = UnavailableProvider(channel)
        return provider

    def _attempt(self, job: NotificationJob) -> Optional[NotificationJob]:
        provider = self._provider_for(job.channel)
        attempt = job.attempts + 1

        claimed = self.store.claim(
            job.id,
            job.version,
            {
                "provider": provider.name,
                "attempts": attempt,
                "last_attempt_at": utc_now(),
                "last_error": None,
            },
        )
        if claimed is None:
            logger.info(
                "notification_job_claim_skipped",
                job_id=job.id,
                expected_version=job.version,
            )
            return None

        self.store.append_audit(
            job_id=claimed.id,
            event=AuditEvent.ATTEMPT_STARTED,
            channel=claimed.channel,
            provider=provider.name,
            attempt=attempt,
            message="Dispatch attempt started",
            detail={"audience": claimed.audience},
        )

        dispatch = DispatchInput(
            job_id=claimed.id,
            business_id=claimed.business_id,
            channel=claimed.channel,
            audience=claimed.audience,
            subject=claimed.subject,
            message=claimed.message,
            metadata=claimed.metadata,
            attempt=attempt,
        )

        try:
            provider_result = self._send(provider, dispatch)
            if not provider_result.accepted:
                raise ProviderError(
                    provider_result.detail
                    or f"{provider.name} rejected notification dispatch"
                )
        except Exception as e:
            return self._mark_attempt_failure(claimed, provider, attempt, _error_message(e))

        return self._mark_sent(claimed, provider, attempt, provider_result)

    def _send(
        self, provider: NotificationProvider, dispatch: DispatchInput
    ) -> ProviderResult:
        timeout_ms = self.config.send_timeout_ms
        if timeout_ms <= 0:
            return provider.send(dispatch)

        future = self._submit(provider, dispatch)
        try:
            return future.result(timeout=timeout_ms / 1000)
        except FutureTimeoutError:
            if future.done():
                # The provider itself raised a TimeoutError
                raise
            future.cancel()
            logger.warning(
                "notification_send_timed_out",
                job_id=dispatch.job_id,
                provider=provider.name,
                timeout_ms=timeout_ms,
            )
            raise ProviderError(f"{provider.name} timed out after {timeout_ms}ms")

    def _submit(
        self, provider: NotificationProvider, dispatch: DispatchInput
    ) -> Future:
        """Run ``provider.send`` on the executor of the job's channel.

        Each channel has its own workers, so a hung provider only holds up
        its own channel. Timed-out calls cannot be interrupted; once they
        occupy every worker the executor is abandoned to them and replaced.
        """
        channel = dispatch.channel
        with self._executor_lock:
            executor = self._executors.get(channel)
            in_flight = self._in_flight.setdefault(channel, set())
            if executor is not None and len(in_flight) >= SEND_WORKERS_PER_CHANNEL:
                logger.warning(
                    "notification_send_executor_saturated",
                    channel=channel.value,
                    provider=provider.name,
                    in_flight=len(in_flight),
                )
                executor.shutdown(wait=False)
                executor = None
                in_flight = self._in_flight[channel] = set()

            if executor is None:
                executor = ThreadPoolExecutor(
                    max_workers=SEND_WORKERS_PER_CHANNEL,
                    thread_name_prefix=f"notification-send-{channel.value}",
                )
                self._executors[channel] = executor

            future = executor.submit(provider.send, dispatch)
            in_flight.add(future)
        future.add_done_callback(in_flight.discard)
        return future

    def shutdown(self) -> None:
        """Release the send executors without waiting for hung providers."""
        with self._executor_lock:
            for executor in self._executors.values():
                executor.shutdown(wait=False, cancel_futures=True)
            self._executors.clear()
            self._in_flight.clear()

    def _mark_sent(
        self,
        job: NotificationJob,
        provider: NotificationProvider,
        attempt: int,
        provider_result: ProviderResult,
    ) -> NotificationJob:
        sent = self._require(
            self.store.update(
                job.id,
                {
                    "status": JobStatus.SENT,
                    "provider": provider.name,
                    "sent_at": utc_now(),
                    "failed_at": None,
                    "last_error": None,
                },
            )
        )

        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.ATTEMPT_SUCCEEDED,
            channel=job.channel,
            provider=provider.name,
            attempt=attempt,
            message="Notification delivered",
            detail={
                "accepted": provider_result.accepted,
                "externalId": provider_result.external_id,
                "detail": provider_result.detail,
            },
        )

        logger.info(
            "notification_job_sent",
            job_id=job.id,
            channel=job.channel.value,
            provider=provider.name,
            attempt=attempt,
            external_id=provider_result.external_id,
        )
        return sent

    def _mark_attempt_failure(
        self,
        job: NotificationJob,
        provider: NotificationProvider,
        attempt: int,
        error: str,
    ) -> NotificationJob:
        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.ATTEMPT_FAILED,
            channel=job.channel,
            provider=provider.name,
            attempt=attempt,
            message="Dispatch attempt failed",
            detail={"error": error},
        )

        if job.channel == NotificationChannel.PUSH:
            fallback_jobs = self._queue_fallbacks(job, error)
            if fallback_jobs:
                return self._mark_fallback_failed(job, provider, attempt, error, fallback_jobs)

        if attempt >= job.max_attempts:
            return self._mark_failed_final(job, provider, attempt, error)

        return self._schedule_retry(job, provider, attempt, error)

    def _queue_fallbacks(self, job: NotificationJob, reason: str) -> List[NotificationJob]:
        """Enqueue email/SMS copies of a failed push job.

        Fallback jobs never cascade: their metadata is stripped of fallback
        targets and tagged as a fallback, and a tagged job is never used as
        a fallback source.
        """
        now = utc_now()
        directives = parse_directives(job.metadata, now)
        if not directives.fallback_targets:
            return []
        if directives.is_fallback:
            logger.warning("notification_fallback_cascade_blocked", job_id=job.id)
            return []

        queued = []
        for target in directives.fallback_targets:
            fallback = self.enqueue(
                business_id=job.business_id,
                channel=target.channel,
                audience=target.audience,
                message=job.message,
                subject=job.subject,
                metadata=fallback_metadata(
                    job.metadata,
                    source_job_id=job.id,
                    to_channel=target.channel,
                    reason=reason,
                    queued_at=now,
                ),
                max_attempts=job.max_attempts,
            )
            queued.append(fallback)
        return queued

    def _mark_fallback_failed(
        self,
        job: NotificationJob,
        provider: NotificationProvider,
        attempt: int,
        error: str,
        fallback_jobs: List[NotificationJob],
    ) -> NotificationJob:
        channels = [fallback.channel.value for fallback in fallback_jobs]
        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.FALLBACK_QUEUED,
            channel=job.channel,
            provider=provider.name,
            attempt=attempt,
            message="Fallback notifications queued",
            detail={
                "provider": provider.name,
                "attempt": attempt,
                "error": error,
                "fallbackJobIds": [fallback.id for fallback in fallback_jobs],
                "fallbackChannels": channels,
            },
        )

        failed = self._require(
            self.store.update(
                job.id,
                {
                    "status": JobStatus.FAILED,
                    "provider": provider.name,
                    "failed_at": utc_now(),
                    "last_error": "Push delivery failed. Fallback queued: "
                    + ", ".join(channel.upper() for channel in channels),
                },
            )
        )

        logger.warning(
            "notification_fallback_queued",
            job_id=job.id,
            provider=provider.name,
            attempt=attempt,
            fallback_job_ids=[fallback.id for fallback in fallback_jobs],
            fallback_channels=channels,
            error=error,
        )
        return failed

    def _mark_failed_final(
        self,
        job: NotificationJob,
        provider: NotificationProvider,
        attempt: int,
        error: str,
    ) -> NotificationJob:
        failed = self._require(
            self.store.update(
                job.id,
                {
                    "status": JobStatus.FAILED,
                    "provider": provider.name,
                    "failed_at": utc_now(),
                    "last_error": error,
                },
            )
        )

        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.FAILED_FINAL,
            channel=job.channel,
            provider=provider.name,
            attempt=attempt,
            message="Retry budget exhausted",
            detail={"maxAttempts": job.max_attempts, "error": error},
        )

        logger.error(
            "notification_job_failed",
            job_id=job.id,
            channel=job.channel.value,
            provider=provider.name,
            attempt=attempt,
            max_attempts=job.max_attempts,
            error=error,
        )
        return failed

    def _schedule_retry(
        self,
        job: NotificationJob,
        provider: NotificationProvider,
        attempt: int,
        error: str,
    ) -> NotificationJob:
        delay_ms = self.config.retry_delay_ms(attempt)
        next_attempt_at = utc_now() + timedelta(milliseconds=delay_ms)

        retrying = self._require(
            self.store.update(
                job.id,
                {
                    "status": JobStatus.RETRYING,
                    "provider": provider.name,
                    "next_attempt_at": next_attempt_at,
                    "failed_at": None,
                    "last_error": error,
                },
            )
        )

        self.store.append_audit(
            job_id=job.id,
            event=AuditEvent.RETRY_SCHEDULED,
            channel=job.channel,
            provider=provider.name,
            attempt=attempt,
            message="Retry scheduled",
            detail={"delayMs": delay_ms, "nextAttemptAt": next_attempt_at.isoformat()},
        )

        logger.warning(
            "notification_job_retry_scheduled",
            job_id=job.id,
            channel=job.channel.value,
            provider=provider.name,
            attempt=attempt,
            max_attempts=job.max_attempts,
            next_attempt_at=next_attempt_at.isoformat(),
            error=error,
        )
        return retrying

    # ------------------------------------------------------------------
    # Manual retry and reads
    # ------------------------------------------------------------------

    def retry_job(self, job_id: str) -> NotificationJob:
        """Re-arm a job for immediate pickup.

        Only delivered jobs, jobs with no attempt budget left and jobs with
        an attempt in flight are refused. Status is otherwise not checked, so
        a push job that failed early because fallbacks were queued can be
        re-armed while it still has budget; that re-delivery is allowed on
        purpose.

        Raises:
            JobNotFoundError: If the job does not exist
            JobConflictError: If the job cannot be retried
        """
        existing = self.store.get_by_id((job_id or "").strip())
        if existing is None:
            raise JobNotFoundError("Notification job not found")

        if existing.status == JobStatus.SENT:
            raise JobConflictError("Sent jobs cannot be retried")

        if existing.status == JobStatus.PROCESSING:
            raise JobConflictError("Job is currently being processed")

        if not existing.has_budget:
            raise JobConflictError("Retry budget exhausted for this job")

        updated = self._require(
            self.store.update(
                existing.id,
                {
                    "status": JobStatus.RETRYING,
                    "next_attempt_at": utc_now(),
                    "failed_at": None,
                    "last_error": None,
                },
            )
        )

        self.store.append_audit(
            job_id=existing.id,
            event=AuditEvent.RETRY_REQUESTED,
            channel=existing.channel,
            provider=existing.provider,
            attempt=existing.attempts,
            message="Manual retry requested",
            detail={"previousStatus": existing.status.value},
        )

        logger.info(
            "notification_job_retry_requested",
            job_id=existing.id,
            channel=existing.channel.value,
            attempts=existing.attempts,
            previous_status=existing.status.value,
        )
        return updated

    def get_job(self, job_id: str) -> NotificationJob:
        """Fetch a job or raise JobNotFoundError."""
        job = self.store.get_by_id((job_id or "").strip())
        if job is None:
            raise JobNotFoundError("Notification job not found")
        return job

    def list_jobs(self, job_filter: Optional[JobFilter] = None) -> List[NotificationJob]:
        return self.store.list(job_filter)

    def list_audit_logs(self, job_id: Optional[str] = None) -> List[AuditLogEntry]:
        return self.store.list_audit(job_id)

    def _require(self, job: Optional[NotificationJob]) -> NotificationJob:
        if job is None:
            raise NotificationQueueError("Notification job update failed")
        return job
