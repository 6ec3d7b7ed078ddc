"""Provider for channels that have no delivery backend configured."""

from infrastructure.notifications.errors import ProviderError
from infrastructure.notifications.models import (
    DispatchInput,
    NotificationChannel,
    ProviderResult,
)
from infrastructure.notifications.providers.base import NotificationProvider


class UnavailableProvider(NotificationProvider):
    """Always fails, so jobs on an unconfigured channel still run through
    the normal retry, fallback and failure transitions."""

    def __init__(self, channel: NotificationChannel):
        self._channel = channel

    @property
    def name(self) -> str:
        return f"{self._channel.value}-noop"

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    def send(self, dispatch: DispatchInput) -> ProviderResult:
        raise ProviderError(
            f"{self._channel.value.upper()} provider is not configured yet"
        )
