"""Notification dispatch queue.

Provides durable, multi-channel notification delivery (email, SMS, push) with:
- Attempt budgets and exponential backoff
- Atomic claims preventing duplicate dispatch
- Push-to-email/SMS fallback for failed push deliveries
- A per-job audit trail

Usage:
    from infrastructure.notifications import (
        NotificationDispatcher,
        QueueConfig,
        create_job_store,
        build_provider_registry,
    )

    dispatcher = NotificationDispatcher(
        store=create_job_store(settings.job_store),
        providers=build_provider_registry(settings),
        config=QueueConfig.from_settings(settings.notifications),
    )

    job = dispatcher.enqueue(
        business_id="biz_1",
        channel="push",
        audience=subscription_audience,
        message="Your table is ready",
        metadata={"fallback": {"emailAudience": "owner@example.com"}},
    )

    result = dispatcher.process_due_jobs(limit=20)
"""

# Models
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
)

# Errors
from infrastructure.notifications.errors import (
    JobConflictError,
    JobNotFoundError,
    JobValidationError,
    NotificationQueueError,
    ProviderError,
)

# Dispatch engine
from infrastructure.notifications.config import QueueConfig
from infrastructure.notifications.dispatcher import NotificationDispatcher

# Storage
from infrastructure.notifications.store import InMemoryJobStore, JobStore
from infrastructure.notifications.file_store import JsonFileJobStore
from infrastructure.notifications.factory import create_job_store

# Providers
from infrastructure.notifications.providers import (
    NotificationProvider,
    ProviderRegistry,
    build_provider_registry,
)

__all__ = [
    # Models
    "AuditEvent",
    "AuditLogEntry",
    "DispatchInput",
    "JobFilter",
    "JobSpec",
    "JobStatus",
    "NotificationChannel",
    "NotificationJob",
    "ProcessQueueResult",
    "ProviderResult",
    # Errors
    "JobConflictError",
    "JobNotFoundError",
    "JobValidationError",
    "NotificationQueueError",
    "ProviderError",
    # Dispatch engine
    "QueueConfig",
    "NotificationDispatcher",
    # Storage
    "InMemoryJobStore",
    "JobStore",
    "JsonFileJobStore",
    "create_job_store",
    # Providers
    "NotificationProvider",
    "ProviderRegistry",
    "build_provider_registry",
]
