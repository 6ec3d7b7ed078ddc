"""
Dependency injection services.

Provides type aliases and provider functions for FastAPI dependency injection.
"""

from infrastructure.services.dependencies import (
    SettingsDep,
    NotificationDispatcherDep,
)
from infrastructure.services.providers import (
    get_settings,
    get_job_store,
    get_provider_registry,
    get_notification_dispatcher,
)

__all__ = [
    "SettingsDep",
    "NotificationDispatcherDep",
    "get_settings",
    "get_job_store",
    "get_provider_registry",
    "get_notification_dispatcher",
]
