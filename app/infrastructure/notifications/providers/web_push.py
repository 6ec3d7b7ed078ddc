"""Push provider delivering Web Push messages with VAPID authentication."""

import base64
import binascii
import json
from typing import Any, Dict, Optional

from pywebpush import WebPushException, webpush

from infrastructure.logging import get_module_logger
from infrastructure.notifications.errors import ProviderError
from infrastructure.notifications.models import (
    DispatchInput,
    NotificationChannel,
    ProviderResult,
)
from infrastructure.notifications.providers.base import NotificationProvider
from infrastructure.operations import OperationResult, classify_http_response

logger = get_module_logger()

AUDIENCE_TOKEN_PREFIX = "webpush:"
PUSH_TTL_SECONDS = 60


def _decode_base64url(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def parse_push_audience(audience: str) -> Dict[str, Any]:
    """Turn a push audience into a Web Push subscription dict.

    Accepted forms are ``webpush:<base64url(json)>`` and raw subscription
    JSON. The subscription must carry ``endpoint`` and ``keys.p256dh/auth``.

    Raises:
        ProviderError: If the audience is not a usable subscription
    """
    text = audience.strip()
    if not text:
        raise ProviderError(
            "Push notifications require a direct web push subscription audience"
        )

    if text.startswith(AUDIENCE_TOKEN_PREFIX):
        encoded = text[len(AUDIENCE_TOKEN_PREFIX):].strip()
        if not encoded:
            raise ProviderError("Invalid webpush audience token")
        try:
            text = _decode_base64url(encoded)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise ProviderError("Invalid webpush audience token") from e

    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise ProviderError(
            "Push audience must be a webpush:<base64url(json)> token "
            "or raw subscription JSON"
        ) from e

    if not isinstance(parsed, dict):
        parsed = {}
    keys = parsed.get("keys") if isinstance(parsed.get("keys"), dict) else {}

    def _text(value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    endpoint = _text(parsed.get("endpoint"))
    p256dh = _text(keys.get("p256dh"))
    auth = _text(keys.get("auth"))
    if not endpoint or not p256dh or not auth:
        raise ProviderError(
            "Push subscription must include endpoint and keys.p256dh/auth"
        )

    expiration = parsed.get("expirationTime")
    return {
        "endpoint": endpoint,
        "expirationTime": (
            expiration
            if isinstance(expiration, (int, float)) and not isinstance(expiration, bool)
            else None
        ),
        "keys": {"p256dh": p256dh, "auth": auth},
    }


class WebPushProvider(NotificationProvider):
    """Delivers push notifications to browser push services via pywebpush.

    Args:
        vapid_subject: ``mailto:`` or URL contact for the VAPID claims
        vapid_private_key: VAPID private key used to sign requests
        default_title: Title used when the job has no subject
        timeout_seconds: HTTP timeout for one push request
    """

    def __init__(
        self,
        vapid_subject: str,
        vapid_private_key: str,
        default_title: str,
        timeout_seconds: float = 10.0,
    ):
        self._vapid_subject = vapid_subject
        self._vapid_private_key = vapid_private_key
        self._default_title = default_title
        self._timeout_seconds = timeout_seconds
        logger.info("initialized_push_provider", backend="webpush")

    @property
    def name(self) -> str:
        return "push-webpush"

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def send(self, dispatch: DispatchInput) -> ProviderResult:
        subscription = parse_push_audience(dispatch.audience)
        payload = {
            "title": (dispatch.subject or "").strip() or self._default_title,
            "body": dispatch.message,
            "data": {
                **(dispatch.metadata or {}),
                "jobId": dispatch.job_id,
                "businessId": dispatch.business_id,
            },
        }

        try:
            response = webpush(
                subscription_info=subscription,
                data=json.dumps(payload),
                vapid_private_key=self._vapid_private_key,
                vapid_claims={"sub": self._vapid_subject},
                ttl=PUSH_TTL_SECONDS,
                headers={"Urgency": "normal"},
                timeout=self._timeout_seconds,
            )
        except WebPushException as e:
            detail = _webpush_error_detail(e)
            if e.response is not None:
                result = classify_http_response(e.response, detail=detail)
            else:
                result = OperationResult.transient_error(detail, error_code="PUSH_ERROR")
            logger.warning(
                "web_push_send_failed",
                job_id=dispatch.job_id,
                status_code=getattr(e.response, "status_code", None),
                error_code=result.error_code,
                retryable=result.is_retryable,
                error=detail,
            )
            raise ProviderError(f"Web push delivery failed: {detail}") from e

        status_code = getattr(response, "status_code", 201)
        headers = getattr(response, "headers", None) or {}
        external_id: Optional[str] = (
            headers.get("location")
            or headers.get("x-message-id")
            or headers.get("x-request-id")
        )
        return ProviderResult(
            accepted=200 <= status_code < 300,
            external_id=external_id,
            detail=f"Delivered by web-push ({status_code})",
        )


def _webpush_error_detail(exc: WebPushException) -> str:
    response = exc.response
    if response is not None:
        body = getattr(response, "text", None)
        if body:
            return body
    return exc.message if getattr(exc, "message", None) else str(exc)
