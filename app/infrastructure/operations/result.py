"""Transport result for a single provider call.

Provider clients return an OperationResult instead of raising, so the
provider can decide how to word the ProviderError that fails the attempt.
"""

from dataclasses import dataclass
from typing import Any, Optional

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Outcome of one remote call made by a provider.

    Attributes:
        status: OperationStatus of the call
        message: Error detail recorded on the job, or "ok"
        data: Parsed response body on success
        error_code: Machine code such as RATE_LIMITED or TIMEOUT
        retry_after: Seconds the remote asked us to wait, when rate limited
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_retryable(self) -> bool:
        """Whether a later attempt could plausibly succeed."""
        return self.status == OperationStatus.TRANSIENT_ERROR

    @classmethod
    def success(cls, data: Optional[Any] = None) -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, message="ok", data=data)

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        """Timeouts, connection failures, rate limiting and 5xx responses."""
        return cls(
            status=OperationStatus.TRANSIENT_ERROR,
            message=message,
            error_code=error_code,
            retry_after=retry_after,
        )

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        """Rejected payloads, bad credentials and other 4xx responses."""
        return cls(
            status=OperationStatus.PERMANENT_ERROR,
            message=message,
            error_code=error_code,
        )

    @classmethod
    def not_found(cls, message: str) -> "OperationResult":
        """The remote resource is gone, e.g. an expired push subscription."""
        return cls(
            status=OperationStatus.NOT_FOUND,
            message=message,
            error_code="NOT_FOUND",
        )
