"""Notification delivery providers."""

from infrastructure.notifications.providers.base import (
    NotificationProvider,
    ProviderRegistry,
)
from infrastructure.notifications.providers.dev_email import DevEmailProvider
from infrastructure.notifications.providers.registry import build_provider_registry
from infrastructure.notifications.providers.resend_email import ResendEmailProvider
from infrastructure.notifications.providers.unavailable import UnavailableProvider
from infrastructure.notifications.providers.web_push import (
    WebPushProvider,
    parse_push_audience,
)

__all__ = [
    "NotificationProvider",
    "ProviderRegistry",
    "DevEmailProvider",
    "ResendEmailProvider",
    "UnavailableProvider",
    "WebPushProvider",
    "parse_push_audience",
    "build_provider_registry",
]
