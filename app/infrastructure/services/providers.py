"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache

from infrastructure.configuration import get_settings
from infrastructure.notifications import (
    JobStore,
    NotificationDispatcher,
    ProviderRegistry,
    QueueConfig,
    build_provider_registry,
    create_job_store,
)


@lru_cache
def get_job_store() -> JobStore:
    """
    Get application-scoped job store singleton.

    The backend (memory or file) is selected by ``JOB_STORE_BACKEND``. A file
    store loads its snapshot on first access.

    Returns:
        JobStore: Cached job store instance.
    """
    settings = get_settings()
    return create_job_store(settings.job_store)


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    """
    Get application-scoped provider registry.

    Returns:
        ProviderRegistry: One provider per channel, built from provider settings.
    """
    return build_provider_registry(get_settings())


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """
    Get application-scoped notification dispatcher singleton.

    The API, the scheduled queue processor and the lifespan hooks all share
    this instance so they operate on the same store.

    Returns:
        NotificationDispatcher: Cached dispatcher wired to the job store and providers.

    Usage:
        @router.post("/jobs")
        def queue(dispatcher: NotificationDispatcherDep):
            return dispatcher.enqueue(...)
    """
    settings = get_settings()
    return NotificationDispatcher(
        store=get_job_store(),
        providers=get_provider_registry(),
        config=QueueConfig.from_settings(settings.notifications),
    )
