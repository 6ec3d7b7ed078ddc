"""Test fixtures for notification queue tests."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union
from unittest.mock import MagicMock

import pytest

from infrastructure.notifications.config import QueueConfig
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.models import (
    DispatchInput,
    JobStatus,
    NotificationChannel,
    NotificationJob,
    ProviderResult,
)
from infrastructure.notifications.providers.base import NotificationProvider
from infrastructure.notifications.store import InMemoryJobStore


@pytest.fixture
def frozen_now() -> datetime:
    """The instant tests freeze the clock at."""
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def queue_config():
    """Inline sends with the default backoff window."""
    return QueueConfig(
        default_max_attempts=3,
        retry_base_ms=1000,
        retry_max_ms=60000,
        send_timeout_ms=0,
    )


@pytest.fixture
def provider_factory():
    """Factory for mock providers.

    Returns:
        Factory function creating a MagicMock that satisfies NotificationProvider

    Example:
        ok = provider_factory(NotificationChannel.EMAIL)
        down = provider_factory(NotificationChannel.SMS, outcome=RuntimeError("down"))
        flaky = provider_factory(
            NotificationChannel.SMS,
            outcome=[RuntimeError("down"), ProviderResult(accepted=True)],
        )
    """

    def _factory(
        channel: NotificationChannel,
        name: Optional[str] = None,
        outcome: Union[ProviderResult, Exception, Iterable[Any], None] = None,
    ) -> MagicMock:
        provider = MagicMock(spec=NotificationProvider)
        provider.name = name or f"{channel.value}-test"
        provider.channel = channel
        if outcome is None:
            provider.send.return_value = ProviderResult(
                accepted=True, external_id="ext-1", detail="ok"
            )
        elif isinstance(outcome, (ProviderResult, Exception)):
            if isinstance(outcome, Exception):
                provider.send.side_effect = outcome
            else:
                provider.send.return_value = outcome
        else:
            provider.send.side_effect = list(outcome)
        return provider

    return _factory


@pytest.fixture
def providers(provider_factory):
    """One always-accepting provider per channel."""
    return {channel: provider_factory(channel) for channel in NotificationChannel}


@pytest.fixture
def dispatcher_factory(store, queue_config, providers):
    """Factory for dispatchers sharing the test store.

    Example:
        dispatcher = dispatcher_factory()
        failing = dispatcher_factory(
            providers={NotificationChannel.SMS: provider_factory(..., outcome=err)}
        )
    """

    default_providers = providers

    def _factory(
        providers: Optional[Dict[NotificationChannel, Any]] = None,
        config: Optional[QueueConfig] = None,
        job_store=None,
    ) -> NotificationDispatcher:
        return NotificationDispatcher(
            store=job_store if job_store is not None else store,
            providers=providers if providers is not None else default_providers,
            config=config or queue_config,
        )

    return _factory


@pytest.fixture
def dispatcher(dispatcher_factory):
    return dispatcher_factory()


@pytest.fixture
def job_factory(frozen_now):
    """Factory for NotificationJob records built outside the store."""

    def _factory(**overrides) -> NotificationJob:
        fields: Dict[str, Any] = {
            "id": "ntf_test",
            "business_id": "biz_1",
            "channel": NotificationChannel.EMAIL,
            "audience": "owner@example.com",
            "message": "Hello",
            "status": JobStatus.QUEUED,
            "attempts": 0,
            "max_attempts": 3,
            "next_attempt_at": frozen_now,
            "version": 1,
            "created_at": frozen_now,
            "updated_at": frozen_now,
        }
        fields.update(overrides)
        return NotificationJob(**fields)

    return _factory


@pytest.fixture
def dispatch_input_factory():
    """Factory for DispatchInput values handed to providers."""

    def _factory(**overrides) -> DispatchInput:
        fields: Dict[str, Any] = {
            "job_id": "ntf_test",
            "business_id": "biz_1",
            "channel": NotificationChannel.EMAIL,
            "audience": "owner@example.com",
            "subject": "Order ready",
            "message": "Your order is ready",
            "metadata": None,
            "attempt": 1,
        }
        fields.update(overrides)
        return DispatchInput(**fields)

    return _factory
