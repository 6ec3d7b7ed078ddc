"""Notification queue exceptions.

Caller errors (validation, not found, conflict) are raised synchronously by
the dispatch engine and mapped to HTTP status codes by the API layer.
Provider failures are raised by providers and absorbed by the engine into
job state and audit history.
"""


class NotificationQueueError(Exception):
    """Base class for notification queue errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class JobValidationError(NotificationQueueError):
    """Enqueue input was rejected before reaching the store."""


class JobNotFoundError(NotificationQueueError):
    """No job exists with the requested id."""


class JobConflictError(NotificationQueueError):
    """The job is in a state that does not allow the requested operation."""


class ProviderError(NotificationQueueError):
    """A provider could not deliver a notification."""
