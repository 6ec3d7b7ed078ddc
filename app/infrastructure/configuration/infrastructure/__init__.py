"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.notifications import (
    NotificationQueueSettings,
)
from infrastructure.configuration.infrastructure.server import ServerSettings
from infrastructure.configuration.infrastructure.store import JobStoreSettings

__all__ = [
    "NotificationQueueSettings",
    "ServerSettings",
    "JobStoreSettings",
]
