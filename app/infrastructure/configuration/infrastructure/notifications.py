"""Notification queue infrastructure settings."""

from pydantic import Field, field_validator, model_validator

from infrastructure.configuration.base import InfrastructureSettings


class NotificationQueueSettings(InfrastructureSettings):
    """Notification dispatch queue configuration.

    Controls the attempt budget, exponential backoff and batch processing
    behavior of the dispatch engine.

    Environment Variables:
        NOTIFICATION_MAX_ATTEMPTS: Default attempt budget per job, 1-10 (default: 3)
        NOTIFICATION_RETRY_BASE_MS: Base backoff delay in ms, >= 100 (default: 1000)
        NOTIFICATION_RETRY_MAX_MS: Backoff ceiling in ms, >= base (default: 60000)
        NOTIFICATION_SEND_TIMEOUT_MS: Per-attempt provider timeout, 0 disables (default: 10000)
        NOTIFICATION_PROCESS_BATCH_SIZE: Jobs per scheduled batch (default: 20)
        NOTIFICATION_PROCESS_INTERVAL_SECONDS: Scheduler interval, 0 disables (default: 10)
        NOTIFICATION_DEFAULT_SUBJECT: Subject/title used when a job has none

    Exponential Backoff:
        Delay calculation: min(retry_max_ms, retry_base_ms * 2 ^ (attempt - 1))

        Example with defaults (base=1000ms, max=60000ms):
            Attempt 1: 1000ms
            Attempt 2: 2000ms
            Attempt 3: 4000ms
            Attempt 7+: 60000ms (capped)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        max_attempts = settings.notifications.default_max_attempts
        base_ms = settings.notifications.retry_base_ms
        ```
    """

    default_max_attempts: int = Field(
        default=3,
        alias="NOTIFICATION_MAX_ATTEMPTS",
        description="Default attempt budget for jobs that do not specify one",
    )
    retry_base_ms: int = Field(
        default=1000,
        alias="NOTIFICATION_RETRY_BASE_MS",
        description="Base delay for exponential backoff (milliseconds)",
    )
    retry_max_ms: int = Field(
        default=60000,
        alias="NOTIFICATION_RETRY_MAX_MS",
        description="Maximum delay for exponential backoff (milliseconds)",
    )
    send_timeout_ms: int = Field(
        default=10000,
        alias="NOTIFICATION_SEND_TIMEOUT_MS",
        description="Timeout for a single provider send call, 0 to disable",
    )
    process_batch_size: int = Field(
        default=20,
        alias="NOTIFICATION_PROCESS_BATCH_SIZE",
        description="Number of due jobs processed per scheduled batch",
    )
    process_interval_seconds: int = Field(
        default=10,
        alias="NOTIFICATION_PROCESS_INTERVAL_SECONDS",
        description="Interval between scheduled queue runs, 0 to disable",
    )
    default_subject: str = Field(
        default="Notification",
        alias="NOTIFICATION_DEFAULT_SUBJECT",
        description="Subject or push title used when a job has no subject",
    )

    @field_validator("default_max_attempts")
    @classmethod
    def validate_default_max_attempts(cls, v: int) -> int:
        """Keep the default budget inside the per-job range."""
        if v < 1 or v > 10:
            raise ValueError("NOTIFICATION_MAX_ATTEMPTS must be between 1 and 10")
        return v

    @field_validator("retry_base_ms")
    @classmethod
    def validate_retry_base_ms(cls, v: int) -> int:
        """Ensure the base delay is not too aggressive."""
        if v < 100:
            raise ValueError("NOTIFICATION_RETRY_BASE_MS must be at least 100")
        return v

    @field_validator("send_timeout_ms", "process_interval_seconds")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator("process_batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("NOTIFICATION_PROCESS_BATCH_SIZE must be at least 1")
        return v

    @field_validator("default_subject")
    @classmethod
    def validate_default_subject(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("NOTIFICATION_DEFAULT_SUBJECT must be non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_backoff_window(self) -> "NotificationQueueSettings":
        """Ensure the backoff ceiling is not below the base delay."""
        if self.retry_max_ms < self.retry_base_ms:
            raise ValueError(
                "NOTIFICATION_RETRY_MAX_MS must be >= NOTIFICATION_RETRY_BASE_MS"
            )
        return self
