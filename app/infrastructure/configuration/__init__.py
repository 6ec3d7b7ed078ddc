"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the
notification queue service using Pydantic BaseSettings with domain-based
organization.

Exports:
    get_settings: Cached process-wide Settings instance
    Settings: Main settings class (for testing/overrides)
    NotificationQueueSettings: Queue behavior settings class (for testing)
    NotificationProviderSettings: Delivery provider settings class (for testing)
    JobStoreSettings: Job store settings class (for testing)

Example:
    ```python
    from infrastructure.configuration import get_settings

    settings = get_settings()

    max_attempts = settings.notifications.default_max_attempts
    store_backend = settings.job_store.backend
    ```
"""

from infrastructure.configuration.settings import Settings, get_settings
from infrastructure.configuration.infrastructure import (
    JobStoreSettings,
    NotificationQueueSettings,
    ServerSettings,
)
from infrastructure.configuration.integrations import NotificationProviderSettings

__all__ = [
    "get_settings",
    "Settings",
    "NotificationQueueSettings",
    "NotificationProviderSettings",
    "JobStoreSettings",
    "ServerSettings",
]
