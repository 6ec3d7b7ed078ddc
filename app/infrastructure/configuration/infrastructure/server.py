"""Server infrastructure settings."""

from typing import List

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class ServerSettings(InfrastructureSettings):
    """Server and application runtime configuration.

    Environment Variables:
        BACKEND_URL: Backend API base URL (default: http://127.0.0.1:8000)
        CORS_ORIGINS: Comma separated list of allowed origins (non-production only)
        PROCESS_RATE_LIMIT: slowapi limit for the queue processing endpoint

    Example:
        ```python
        from infrastructure.services import get_settings

        backend_url = get_settings().server.BACKEND_URL
        origins = get_settings().server.cors_origins
        ```
    """

    BACKEND_URL: str = Field(default="http://127.0.0.1:8000", alias="BACKEND_URL")
    CORS_ORIGINS: str = Field(
        default="http://localhost:8000,http://127.0.0.1:8000",
        alias="CORS_ORIGINS",
    )
    PROCESS_RATE_LIMIT: str = Field(default="30/minute", alias="PROCESS_RATE_LIMIT")

    @property
    def cors_origins(self) -> List[str]:
        """Allowed origins parsed from the comma separated setting."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
