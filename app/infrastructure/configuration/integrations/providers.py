"""Notification delivery provider settings."""

import re
from typing import Optional

from pydantic import Field, field_validator, model_validator

from infrastructure.configuration.base import IntegrationSettings

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class NotificationProviderSettings(IntegrationSettings):
    """Email and push delivery provider configuration.

    Environment Variables:
        NOTIFICATION_EMAIL_PROVIDER: 'dev' or 'resend' (default: dev)
        NOTIFICATION_EMAIL_API_KEY: Resend API key
        NOTIFICATION_EMAIL_FROM: Sender address for Resend
        NOTIFICATION_EMAIL_API_BASE_URL: Resend API base URL
        NOTIFICATION_PUSH_PROVIDER: 'noop' or 'webpush' (default: noop)
        NOTIFICATION_PUSH_VAPID_SUBJECT: VAPID subject (mailto: or http(s) URL)
        NOTIFICATION_PUSH_VAPID_PUBLIC_KEY: VAPID public key
        NOTIFICATION_PUSH_VAPID_PRIVATE_KEY: VAPID private key

    SMS has no provider yet; it is always wired as an unavailable provider.

    Example:
        ```python
        from infrastructure.services import get_settings

        providers = get_settings().providers
        if providers.email_provider == "resend":
            api_key = providers.email_api_key
        ```
    """

    email_provider: str = Field(
        default="dev",
        alias="NOTIFICATION_EMAIL_PROVIDER",
        description="Email provider: 'dev' or 'resend'",
    )
    email_api_key: Optional[str] = Field(
        default=None, alias="NOTIFICATION_EMAIL_API_KEY"
    )
    email_from: Optional[str] = Field(default=None, alias="NOTIFICATION_EMAIL_FROM")
    email_api_base_url: str = Field(
        default="https://api.resend.com",
        alias="NOTIFICATION_EMAIL_API_BASE_URL",
    )
    push_provider: str = Field(
        default="noop",
        alias="NOTIFICATION_PUSH_PROVIDER",
        description="Push provider: 'noop' or 'webpush'",
    )
    push_vapid_subject: str = Field(
        default="mailto:notifications@example.com",
        alias="NOTIFICATION_PUSH_VAPID_SUBJECT",
    )
    push_vapid_public_key: Optional[str] = Field(
        default=None, alias="NOTIFICATION_PUSH_VAPID_PUBLIC_KEY"
    )
    push_vapid_private_key: Optional[str] = Field(
        default=None, alias="NOTIFICATION_PUSH_VAPID_PRIVATE_KEY"
    )

    @field_validator("email_provider")
    @classmethod
    def validate_email_provider(cls, v: str) -> str:
        value = v.strip().lower() or "dev"
        if value not in ("dev", "resend"):
            raise ValueError(f"Invalid NOTIFICATION_EMAIL_PROVIDER value: {v}")
        return value

    @field_validator("push_provider")
    @classmethod
    def validate_push_provider(cls, v: str) -> str:
        value = v.strip().lower() or "noop"
        if value not in ("noop", "webpush"):
            raise ValueError(f"Invalid NOTIFICATION_PUSH_PROVIDER value: {v}")
        return value

    @field_validator("email_api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        value = v.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("NOTIFICATION_EMAIL_API_BASE_URL must be an http(s) URL")
        return value.rstrip("/")

    @field_validator(
        "email_api_key",
        "email_from",
        "push_vapid_public_key",
        "push_vapid_private_key",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("email_from")
    @classmethod
    def validate_email_from(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _EMAIL_PATTERN.match(v):
            raise ValueError("NOTIFICATION_EMAIL_FROM must be a valid email")
        return v

    @model_validator(mode="after")
    def validate_provider_credentials(self) -> "NotificationProviderSettings":
        """Selected providers must have the credentials they need."""
        if self.email_provider == "resend" and (
            not self.email_api_key or not self.email_from
        ):
            raise ValueError(
                "NOTIFICATION_EMAIL_PROVIDER=resend requires "
                "NOTIFICATION_EMAIL_API_KEY and NOTIFICATION_EMAIL_FROM"
            )
        if self.push_provider == "webpush":
            if not self.push_vapid_public_key or not self.push_vapid_private_key:
                raise ValueError(
                    "NOTIFICATION_PUSH_PROVIDER=webpush requires "
                    "NOTIFICATION_PUSH_VAPID_PUBLIC_KEY and "
                    "NOTIFICATION_PUSH_VAPID_PRIVATE_KEY"
                )
            if not self.push_vapid_subject.startswith(
                ("mailto:", "http://", "https://")
            ):
                raise ValueError(
                    "NOTIFICATION_PUSH_VAPID_SUBJECT must start with "
                    "mailto:, http://, or https://"
                )
        return self
