"""Job store infrastructure settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import InfrastructureSettings


class JobStoreSettings(InfrastructureSettings):
    """Notification job store configuration.

    Environment Variables:
        JOB_STORE_BACKEND: Backend type - 'memory' or 'file' (default: memory)
        JOB_STORE_PATH: Snapshot path for the file backend
        JOB_STORE_FLUSH_INTERVAL_MS: How often the file backend is flushed (default: 5000)

    Store Backends:
        - memory: In-memory store (development, testing)
        - file: In-memory store persisted to a JSON snapshot on disk

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        if settings.job_store.backend == "file":
            path = settings.job_store.path
        ```
    """

    backend: str = Field(
        default="memory",
        alias="JOB_STORE_BACKEND",
        description="Job store backend: 'memory' or 'file'",
    )
    path: str = Field(
        default="./.data/notification-queue.json",
        alias="JOB_STORE_PATH",
        description="Snapshot file used by the 'file' backend",
    )
    flush_interval_ms: int = Field(
        default=5000,
        alias="JOB_STORE_FLUSH_INTERVAL_MS",
        description="Interval between snapshot flushes (milliseconds)",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in ("memory", "file"):
            raise ValueError(f"Invalid JOB_STORE_BACKEND value: {v}")
        return value

    @field_validator("flush_interval_ms")
    @classmethod
    def validate_flush_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError("JOB_STORE_FLUSH_INTERVAL_MS must be a positive integer")
        return v
