"""Integration settings __init__ - exports delivery provider settings."""

from infrastructure.configuration.integrations.providers import (
    NotificationProviderSettings,
)

__all__ = ["NotificationProviderSettings"]
