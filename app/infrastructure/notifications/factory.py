"""Factory for creating job stores based on configuration."""

from infrastructure.configuration import JobStoreSettings
from infrastructure.logging import get_module_logger
from infrastructure.notifications.file_store import JsonFileJobStore
from infrastructure.notifications.store import InMemoryJobStore, JobStore

logger = get_module_logger()


def create_job_store(
    store_settings: JobStoreSettings, backend: str | None = None
) -> JobStore:
    """Factory to create the job store selected by configuration.

    Args:
        store_settings: Job store settings (backend, snapshot path)
        backend: Optional backend override (memory, file).
                If None, uses store_settings.backend

    Returns:
        Appropriate JobStore implementation

    Raises:
        ValueError: If unknown backend specified

    Examples:
        >>> store = create_job_store(settings.job_store)  # Uses JOB_STORE_BACKEND
        >>> store = create_job_store(settings.job_store, backend="memory")
    """
    backend = backend or store_settings.backend

    if backend == "memory":
        logger.info("creating_in_memory_job_store")
        return InMemoryJobStore()

    elif backend == "file":
        logger.info("creating_file_job_store", path=store_settings.path)
        return JsonFileJobStore(store_settings.path)

    else:
        raise ValueError(f"Unknown job store backend: {backend}. Supported: memory, file")
