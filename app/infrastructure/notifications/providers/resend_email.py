"""Email provider backed by the Resend HTTP API."""

from typing import Any, Dict, Optional

import requests

from infrastructure.logging import get_module_logger
from infrastructure.notifications.errors import ProviderError
from infrastructure.notifications.models import (
    DispatchInput,
    NotificationChannel,
    ProviderResult,
)
from infrastructure.notifications.providers.base import NotificationProvider
from infrastructure.operations import (
    OperationResult,
    classify_http_response,
    classify_request_exception,
)

logger = get_module_logger()


class ResendEmailProvider(NotificationProvider):
    """Sends plain text email through ``POST {api_base_url}/emails``.

    Args:
        api_key: Resend API key, sent as a bearer token
        from_email: Sender address
        api_base_url: API root, e.g. https://api.resend.com
        default_subject: Subject used when the job has none
        timeout_seconds: HTTP timeout for one request
        session: Optional requests session (for connection reuse or tests)
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        api_base_url: str,
        default_subject: str,
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._from_email = from_email
        self._url = f"{api_base_url.rstrip('/')}/emails"
        self._default_subject = default_subject
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        logger.info("initialized_email_provider", backend="resend", url=self._url)

    @property
    def name(self) -> str:
        return "email-resend"

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def send(self, dispatch: DispatchInput) -> ProviderResult:
        if "@" not in dispatch.audience:
            raise ProviderError("Email notifications require an email audience target")

        subject = (dispatch.subject or "").strip() or self._default_subject
        result = self._post_email(
            {
                "from": self._from_email,
                "to": [dispatch.audience],
                "subject": subject,
                "text": dispatch.message,
            }
        )

        if not result.is_success:
            logger.warning(
                "resend_send_failed",
                job_id=dispatch.job_id,
                status=result.status.value,
                error_code=result.error_code,
                retryable=result.is_retryable,
                error=result.message,
            )
            raise ProviderError(f"Resend send failed: {result.message}")

        email_id = (result.data or {}).get("id")
        return ProviderResult(
            accepted=True,
            external_id=email_id if isinstance(email_id, str) else None,
            detail="Delivered by Resend",
        )

    def _post_email(self, payload: Dict[str, Any]) -> OperationResult:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            response = self._session.post(
                self._url, json=payload, headers=headers, timeout=self._timeout_seconds
            )
        except requests.RequestException as e:
            return classify_request_exception(e)

        body = _json_body(response)
        if not response.ok:
            detail = body.get("message") or body.get("error")
            return classify_http_response(
                response, detail=detail if isinstance(detail, str) else None
            )
        return OperationResult.success(data=body)


def _json_body(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
