"""Error classifiers for delivery provider transports.

Converts HTTP responses and transport exceptions raised while talking to
delivery providers into standardized OperationResult objects.

Key Functions:
- classify_http_response(): non-2xx `requests` responses → OperationResult
- classify_request_exception(): `requests` transport errors → OperationResult

Usage:
    from infrastructure.operations.classifiers import (
        classify_http_response,
        classify_request_exception,
    )

    try:
        response = requests.post(url, json=body, timeout=10)
    except requests.RequestException as exc:
        return classify_request_exception(exc)
    if not response.ok:
        return classify_http_response(response, detail="Invalid `to` field")
"""

from typing import Optional

import requests

from infrastructure.operations.result import OperationResult


def _retry_after(response: requests.Response) -> Optional[int]:
    header_value = response.headers.get("retry-after")
    if not header_value:
        return None
    try:
        return int(header_value)
    except (TypeError, ValueError):
        return None


def classify_http_response(
    response: requests.Response, detail: Optional[str] = None
) -> OperationResult:
    """Classify a non-2xx HTTP response into an OperationResult.

    Status Code Mapping:
    - 429: Rate limiting → TRANSIENT_ERROR with retry_after
    - 404/410: Gone → NOT_FOUND
    - 5xx: Server error → TRANSIENT_ERROR
    - Other: → PERMANENT_ERROR

    Args:
        response: The provider response.
        detail: Error text extracted from the response body, if any.
            Defaults to ``HTTP <status>``.

    Returns:
        OperationResult whose message is the provider's error detail.
    """
    status_code = response.status_code
    message = detail or f"HTTP {status_code}"

    if status_code == 429:
        return OperationResult.transient_error(
            message,
            error_code="RATE_LIMITED",
            retry_after=_retry_after(response) or 60,
        )

    if status_code in (404, 410):
        return OperationResult.not_found(message)

    if 500 <= status_code < 600:
        return OperationResult.transient_error(message, error_code="SERVER_ERROR")

    return OperationResult.permanent_error(message, error_code="HTTP_ERROR")


def classify_request_exception(exc: Exception) -> OperationResult:
    """Classify a transport exception raised by ``requests``.

    Timeouts and connection failures are transient; anything else raised by
    the transport is reported as a permanent error.
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Request timed out: {exc}", error_code="TIMEOUT"
        )
    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"Connection error: {exc}", error_code="CONNECTION_ERROR"
        )
    return OperationResult.permanent_error(
        f"{type(exc).__name__}: {exc}", error_code="REQUEST_ERROR"
    )
