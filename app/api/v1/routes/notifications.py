"""FastAPI routes for the notification queue."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from api.dependencies.rate_limits import get_limiter
from api.v1.schemas.notifications import ProcessQueueRequest, QueueNotificationRequest
from infrastructure.logging import get_module_logger
from infrastructure.notifications import (
    AuditLogEntry,
    JobConflictError,
    JobFilter,
    JobNotFoundError,
    JobStatus,
    JobValidationError,
    NotificationChannel,
    NotificationJob,
    NotificationQueueError,
    ProcessQueueResult,
)
from infrastructure.notifications.dispatcher import DEFAULT_PROCESS_LIMIT
from infrastructure.services import NotificationDispatcherDep
from infrastructure.services.providers import get_settings

logger = get_module_logger()
router = APIRouter(prefix="/notifications", tags=["Notifications"])
limiter = get_limiter()


def _process_rate_limit() -> str:
    return get_settings().server.PROCESS_RATE_LIMIT


def to_http_exception(error: NotificationQueueError) -> HTTPException:
    """Map a notification queue error to an HTTPException."""
    if isinstance(error, JobValidationError):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, JobNotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, JobConflictError):
        return HTTPException(status_code=409, detail=error.message)
    return HTTPException(status_code=500, detail="Notification queue error")


@router.get("/jobs", response_model=List[NotificationJob])
def list_jobs(
    dispatcher: NotificationDispatcherDep,
    status: Optional[JobStatus] = Query(None, description="Filter by job status"),
    channel: Optional[NotificationChannel] = Query(None, description="Filter by channel"),
    business_id: Optional[str] = Query(
        None, alias="businessId", description="Filter by owning business"
    ),
):
    """List notification jobs, newest first."""
    return dispatcher.list_jobs(
        JobFilter(status=status, channel=channel, business_id=business_id)
    )


@router.post("/jobs", response_model=NotificationJob, status_code=201)
def queue_notification(
    payload: QueueNotificationRequest,
    dispatcher: NotificationDispatcherDep,
):
    """Queue a notification job.

    The job is only persisted here; delivery happens when the queue is
    processed.

    Raises:
        HTTPException: 400 when the input is rejected
    """
    try:
        return dispatcher.enqueue(
            business_id=payload.business_id,
            channel=payload.channel,
            audience=payload.audience,
            message=payload.message,
            subject=payload.subject,
            metadata=payload.metadata,
            max_attempts=payload.max_attempts,
        )
    except NotificationQueueError as e:
        logger.warning("notification_queue_request_rejected", error=e.message)
        raise to_http_exception(e) from e


@router.post("/jobs/process", response_model=ProcessQueueResult)
@limiter.limit(_process_rate_limit)
def process_queue(
    request: Request,  # pylint: disable=unused-argument
    dispatcher: NotificationDispatcherDep,
    payload: Optional[ProcessQueueRequest] = None,
):
    """Process due notification jobs in one batch.

    Provider failures are reflected in the returned counts and in job state;
    they never fail the request.
    """
    limit = payload.limit if payload and payload.limit is not None else DEFAULT_PROCESS_LIMIT
    return dispatcher.process_due_jobs(limit=limit)


@router.post("/jobs/{job_id}/retry", response_model=NotificationJob)
def retry_job(job_id: str, dispatcher: NotificationDispatcherDep):
    """Re-arm a job for immediate pickup.

    Raises:
        HTTPException: 404 if the job does not exist, 409 if it cannot be retried
    """
    try:
        return dispatcher.retry_job(job_id)
    except NotificationQueueError as e:
        logger.warning("notification_retry_request_rejected", job_id=job_id, error=e.message)
        raise to_http_exception(e) from e


@router.get("/jobs/{job_id}/audit", response_model=List[AuditLogEntry])
def get_job_audit(job_id: str, dispatcher: NotificationDispatcherDep):
    """Audit trail of one job, newest first."""
    try:
        dispatcher.get_job(job_id)
    except NotificationQueueError as e:
        raise to_http_exception(e) from e
    return dispatcher.list_audit_logs(job_id)


@router.get("/audit", response_model=List[AuditLogEntry])
def list_audit_logs(
    dispatcher: NotificationDispatcherDep,
    job_id: Optional[str] = Query(None, alias="jobId", description="Filter by job"),
):
    """Audit entries across all jobs, or for one job, newest first."""
    return dispatcher.list_audit_logs(job_id)
