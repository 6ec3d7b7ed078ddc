"""Dispatch engine configuration."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.configuration import NotificationQueueSettings

MIN_ATTEMPTS = 1
MAX_ATTEMPTS = 10


@dataclass(frozen=True)
class QueueConfig:
    """Configuration for the dispatch engine.

    Attributes:
        default_max_attempts: Attempt budget for jobs that do not set one
        retry_base_ms: Delay before the first retry
        retry_max_ms: Cap on any retry delay
        send_timeout_ms: Per-attempt provider timeout, 0 runs sends inline
            without a timeout

    Example:
        config = QueueConfig(default_max_attempts=5, retry_base_ms=500)
        config.retry_delay_ms(3)  # 2000
    """

    default_max_attempts: int = 3
    retry_base_ms: int = 1000
    retry_max_ms: int = 60000
    send_timeout_ms: int = 10000

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not MIN_ATTEMPTS <= self.default_max_attempts <= MAX_ATTEMPTS:
            raise ValueError("default_max_attempts must be between 1 and 10")
        if self.retry_base_ms < 100:
            raise ValueError("retry_base_ms must be at least 100")
        if self.retry_max_ms < self.retry_base_ms:
            raise ValueError("retry_max_ms must be >= retry_base_ms")
        if self.send_timeout_ms < 0:
            raise ValueError("send_timeout_ms must be >= 0")

    @classmethod
    def from_settings(cls, settings: "NotificationQueueSettings") -> "QueueConfig":
        return cls(
            default_max_attempts=settings.default_max_attempts,
            retry_base_ms=settings.retry_base_ms,
            retry_max_ms=settings.retry_max_ms,
            send_timeout_ms=settings.send_timeout_ms,
        )

    def retry_delay_ms(self, attempt: int) -> int:
        """Backoff before the retry that follows failed ``attempt``.

        Uses the formula: retry_base_ms * 2 ^ (attempt - 1), capped at
        retry_max_ms.
        """
        exponent = max(0, attempt - 1)
        return min(self.retry_max_ms, self.retry_base_ms * (2**exponent))
