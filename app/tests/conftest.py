"""Shared fixtures for the notification queue test suite."""

import os

import pytest

from infrastructure.services import providers as service_providers


@pytest.fixture(autouse=True)
def reset_service_singletons():
    """Clear the lru_cache'd service providers around each test."""
    cached = (
        service_providers.get_settings,
        service_providers.get_job_store,
        service_providers.get_provider_registry,
        service_providers.get_notification_dispatcher,
    )
    for provider in cached:
        provider.cache_clear()
    yield
    for provider in cached:
        provider.cache_clear()


@pytest.fixture
def clean_notification_env(monkeypatch):
    """Remove notification related environment variables for settings tests."""
    prefixes = ("NOTIFICATION_", "JOB_STORE_", "PROCESS_RATE_LIMIT", "CORS_ORIGINS")
    for key in list(os.environ):
        if key.startswith(prefixes):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
