"""Infrastructure modules for the notification queue service.

Centralized infrastructure components:
- configuration: Settings management (get_settings, NotificationQueueSettings)
- logging: Structured logging (get_module_logger, bind_request_context)
- notifications: Notification dispatch queue (NotificationDispatcher, job stores, providers)
- operations: Operation results and error classification for provider transports
- services: Dependency injection services (SettingsDep, NotificationDispatcherDep, get_settings)
"""

# Configuration
from infrastructure.configuration import get_settings

# Logging
from infrastructure.logging import get_module_logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    # Configuration
    "get_settings",
    # Logging
    "get_module_logger",
    # Operations
    "OperationResult",
    "OperationStatus",
]
