"""
Type aliases for FastAPI dependency injection.

Provides annotated type hints for common infrastructure dependencies.
"""

from typing import Annotated
from fastapi import Depends
from infrastructure.configuration import Settings
from infrastructure.notifications import NotificationDispatcher
from infrastructure.services.providers import (
    get_settings,
    get_notification_dispatcher,
)

# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Notification dispatcher dependency - shared with the scheduled queue processor
NotificationDispatcherDep = Annotated[
    NotificationDispatcher, Depends(get_notification_dispatcher)
]

__all__ = [
    "SettingsDep",
    "NotificationDispatcherDep",
]
