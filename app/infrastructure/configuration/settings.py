"""Notification queue service configuration settings - main aggregator."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import NotificationProviderSettings

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    JobStoreSettings,
    NotificationQueueSettings,
    ServerSettings,
)


class Settings(BaseSettings):
    """Notification queue service configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: Delivery provider configurations (email API, web push)
    - **Infrastructure**: Core system configurations (queue, job store, server)

    Environment Variables:
        PREFIX: Environment prefix for non-production deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        # Access queue settings
        base_ms = settings.notifications.retry_base_ms

        # Access provider settings
        if settings.providers.email_provider == "resend":
            # Configure Resend...

        # Check environment
        if settings.is_production:
            # Production-specific logic...
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    providers: NotificationProviderSettings

    # Infrastructure settings
    notifications: NotificationQueueSettings
    job_store: JobStoreSettings
    server: ServerSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "providers": NotificationProviderSettings,
            # Infrastructure
            "notifications": NotificationQueueSettings,
            "job_store": JobStoreSettings,
            "server": ServerSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide Settings instance.

    The @lru_cache decorator ensures only ONE instance is created per
    process. Modules below the service layer (logging, providers) read
    settings through here; application code uses
    ``infrastructure.services.SettingsDep``.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()
