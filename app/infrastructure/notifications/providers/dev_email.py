"""Development email provider that logs instead of sending."""

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    DispatchInput,
    NotificationChannel,
    ProviderResult,
)
from infrastructure.notifications.providers.base import NotificationProvider

logger = get_module_logger()


class DevEmailProvider(NotificationProvider):
    """Accepts every email and only logs it."""

    @property
    def name(self) -> str:
        return "email-dev"

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def send(self, dispatch: DispatchInput) -> ProviderResult:
        logger.info(
            "notification_email_dev_send",
            job_id=dispatch.job_id,
            business_id=dispatch.business_id,
            audience=dispatch.audience,
            subject=dispatch.subject,
            attempt=dispatch.attempt,
        )
        return ProviderResult(
            accepted=True,
            external_id=f"dev-{dispatch.job_id}-{dispatch.attempt}",
            detail="Delivered by dev email adapter",
        )
