"""Channel to provider wiring for the dispatch engine."""

from typing import TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.providers.base import (
    NotificationProvider,
    ProviderRegistry,
)
from infrastructure.notifications.providers.dev_email import DevEmailProvider
from infrastructure.notifications.providers.resend_email import ResendEmailProvider
from infrastructure.notifications.providers.unavailable import UnavailableProvider
from infrastructure.notifications.providers.web_push import WebPushProvider

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def _build_email_provider(settings: "Settings") -> NotificationProvider:
    providers = settings.providers
    if (
        providers.email_provider == "resend"
        and providers.email_api_key
        and providers.email_from
    ):
        return ResendEmailProvider(
            api_key=providers.email_api_key,
            from_email=providers.email_from,
            api_base_url=providers.email_api_base_url,
            default_subject=settings.notifications.default_subject,
        )

    logger.warning(
        "notification_email_provider_fallback",
        configured_provider=providers.email_provider,
        reason=(
            "missing_notification_email_api_key_or_from"
            if providers.email_provider == "resend"
            else "notification_email_provider_not_resend"
        ),
    )
    return DevEmailProvider()


def _build_push_provider(settings: "Settings") -> NotificationProvider:
    providers = settings.providers
    if (
        providers.push_provider == "webpush"
        and providers.push_vapid_public_key
        and providers.push_vapid_private_key
    ):
        return WebPushProvider(
            vapid_subject=providers.push_vapid_subject,
            vapid_private_key=providers.push_vapid_private_key,
            default_title=settings.notifications.default_subject,
        )

    logger.warning(
        "notification_push_provider_fallback",
        configured_provider=providers.push_provider,
        reason=(
            "missing_notification_push_vapid_keys"
            if providers.push_provider == "webpush"
            else "notification_push_provider_not_webpush"
        ),
    )
    return UnavailableProvider(NotificationChannel.PUSH)


def build_provider_registry(settings: "Settings") -> ProviderRegistry:
    """Wire exactly one provider per channel from settings.

    Email uses Resend when it is selected and fully configured, otherwise the
    dev provider. Push uses Web Push when VAPID keys are present, otherwise
    an unavailable provider. SMS has no backend and is always unavailable.

    Args:
        settings: Application settings

    Returns:
        Mapping of every NotificationChannel to its provider
    """
    registry: ProviderRegistry = {
        NotificationChannel.EMAIL: _build_email_provider(settings),
        NotificationChannel.SMS: UnavailableProvider(NotificationChannel.SMS),
        NotificationChannel.PUSH: _build_push_provider(settings),
    }
    logger.info(
        "notification_providers_registered",
        providers={channel.value: p.name for channel, p in registry.items()},
    )
    return registry
