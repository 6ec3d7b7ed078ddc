"""Notification provider abstract base class.

All delivery providers (dev email, Resend, web push, unavailable) implement
this interface. Exactly one provider per channel is wired into the dispatch
engine by ``build_provider_registry``.
"""

from abc import ABC, abstractmethod
from typing import Dict

from infrastructure.notifications.models import (
    DispatchInput,
    NotificationChannel,
    ProviderResult,
)


class NotificationProvider(ABC):
    """Abstract base class for notification providers.

    A provider attempts to deliver one job through one channel. Failure is
    signalled by raising (``ProviderError`` or any other exception) or by
    returning ``ProviderResult(accepted=False)``; the dispatch engine treats
    both the same way and turns them into a retry, a fallback or a final
    failure.

    Example Implementation:
        class LogEmailProvider(NotificationProvider):

            @property
            def name(self) -> str:
                return "email-log"

            @property
            def channel(self) -> NotificationChannel:
                return NotificationChannel.EMAIL

            def send(self, dispatch: DispatchInput) -> ProviderResult:
                logger.info("email_logged", audience=dispatch.audience)
                return ProviderResult(accepted=True, external_id=dispatch.job_id)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier recorded on jobs and audit entries."""
        pass

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """Channel this provider delivers on."""
        pass

    @abstractmethod
    def send(self, dispatch: DispatchInput) -> ProviderResult:
        """Attempt delivery of a single job.

        Args:
            dispatch: Job content and attempt number

        Returns:
            ProviderResult; ``accepted=True`` marks the job as sent

        Raises:
            ProviderError: If the notification could not be delivered
        """
        pass


ProviderRegistry = Dict[NotificationChannel, NotificationProvider]
