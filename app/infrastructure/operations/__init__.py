"""Operation result types and status enums.

Standardized result types for provider transport calls, including the
status enum, the result dataclass and error classifiers for HTTP responses
and transport exceptions.
"""

from infrastructure.operations.classifiers import (
    classify_http_response,
    classify_request_exception,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_http_response",
    "classify_request_exception",
]
