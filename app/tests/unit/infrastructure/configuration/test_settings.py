"""Unit tests for notification queue settings."""

import pytest
from pydantic import ValidationError

from infrastructure.configuration import (
    JobStoreSettings,
    NotificationProviderSettings,
    NotificationQueueSettings,
    ServerSettings,
    Settings,
    get_settings,
)
from infrastructure import services
from infrastructure.logging import setup as logging_setup


@pytest.fixture
def env(clean_notification_env):
    return clean_notification_env


@pytest.mark.unit
class TestNotificationQueueSettings:
    """Tests for queue behavior settings."""

    def test_defaults(self, env):
        settings = NotificationQueueSettings()

        assert settings.default_max_attempts == 3
        assert settings.retry_base_ms == 1000
        assert settings.retry_max_ms == 60000
        assert settings.send_timeout_ms == 10000
        assert settings.process_batch_size == 20
        assert settings.process_interval_seconds == 10
        assert settings.default_subject == "Notification"

    def test_reads_environment(self, env):
        env.setenv("NOTIFICATION_MAX_ATTEMPTS", "5")
        env.setenv("NOTIFICATION_RETRY_BASE_MS", "250")
        env.setenv("NOTIFICATION_RETRY_MAX_MS", "4000")
        env.setenv("NOTIFICATION_DEFAULT_SUBJECT", "  Update  ")

        settings = NotificationQueueSettings()

        assert settings.default_max_attempts == 5
        assert settings.retry_base_ms == 250
        assert settings.retry_max_ms == 4000
        assert settings.default_subject == "Update"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("NOTIFICATION_MAX_ATTEMPTS", "0"),
            ("NOTIFICATION_MAX_ATTEMPTS", "11"),
            ("NOTIFICATION_RETRY_BASE_MS", "99"),
            ("NOTIFICATION_RETRY_MAX_MS", "500"),
            ("NOTIFICATION_SEND_TIMEOUT_MS", "-1"),
            ("NOTIFICATION_PROCESS_BATCH_SIZE", "0"),
            ("NOTIFICATION_DEFAULT_SUBJECT", "   "),
        ],
    )
    def test_rejects_invalid_values(self, env, name, value):
        env.setenv(name, value)

        with pytest.raises(ValidationError):
            NotificationQueueSettings()


@pytest.mark.unit
class TestNotificationProviderSettings:
    """Tests for delivery provider settings."""

    def test_defaults(self, env):
        settings = NotificationProviderSettings()

        assert settings.email_provider == "dev"
        assert settings.push_provider == "noop"
        assert settings.email_api_base_url == "https://api.resend.com"
        assert settings.email_api_key is None

    def test_resend_configuration(self, env):
        env.setenv("NOTIFICATION_EMAIL_PROVIDER", "Resend")
        env.setenv("NOTIFICATION_EMAIL_API_KEY", "re_test")
        env.setenv("NOTIFICATION_EMAIL_FROM", "noreply@example.com")
        env.setenv("NOTIFICATION_EMAIL_API_BASE_URL", "https://api.resend.com/")

        settings = NotificationProviderSettings()

        assert settings.email_provider == "resend"
        assert settings.email_api_base_url == "https://api.resend.com"

    def test_resend_requires_credentials(self, env):
        env.setenv("NOTIFICATION_EMAIL_PROVIDER", "resend")
        env.setenv("NOTIFICATION_EMAIL_API_KEY", "  ")

        with pytest.raises(ValidationError, match="requires"):
            NotificationProviderSettings()

    def test_webpush_requires_keys(self, env):
        env.setenv("NOTIFICATION_PUSH_PROVIDER", "webpush")
        env.setenv("NOTIFICATION_PUSH_VAPID_PUBLIC_KEY", "public")

        with pytest.raises(ValidationError, match="VAPID"):
            NotificationProviderSettings()

    def test_webpush_subject_must_be_contact(self, env):
        env.setenv("NOTIFICATION_PUSH_PROVIDER", "webpush")
        env.setenv("NOTIFICATION_PUSH_VAPID_PUBLIC_KEY", "public")
        env.setenv("NOTIFICATION_PUSH_VAPID_PRIVATE_KEY", "private")
        env.setenv("NOTIFICATION_PUSH_VAPID_SUBJECT", "ops@example.com")

        with pytest.raises(ValidationError):
            NotificationProviderSettings()

    @pytest.mark.parametrize(
        "name,value",
        [
            ("NOTIFICATION_EMAIL_PROVIDER", "smtp"),
            ("NOTIFICATION_PUSH_PROVIDER", "fcm"),
            ("NOTIFICATION_EMAIL_FROM", "not-an-email"),
            ("NOTIFICATION_EMAIL_API_BASE_URL", "ftp://api.resend.com"),
        ],
    )
    def test_rejects_invalid_values(self, env, name, value):
        env.setenv(name, value)

        with pytest.raises(ValidationError):
            NotificationProviderSettings()


@pytest.mark.unit
class TestJobStoreAndServerSettings:
    """Tests for job store and server settings."""

    def test_job_store_defaults(self, env):
        settings = JobStoreSettings()

        assert settings.backend == "memory"
        assert settings.path == "./.data/notification-queue.json"
        assert settings.flush_interval_ms == 5000

    def test_job_store_rejects_unknown_backend(self, env):
        env.setenv("JOB_STORE_BACKEND", "redis")

        with pytest.raises(ValidationError):
            JobStoreSettings()

    def test_cors_origins_are_split(self, env):
        env.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com,")

        assert ServerSettings().cors_origins == [
            "https://a.example.com",
            "https://b.example.com",
        ]


@pytest.mark.unit
class TestSettingsAggregator:
    """Tests for the main Settings object."""

    def test_builds_all_sections(self, env):
        settings = Settings()

        assert isinstance(settings.notifications, NotificationQueueSettings)
        assert isinstance(settings.providers, NotificationProviderSettings)
        assert isinstance(settings.job_store, JobStoreSettings)
        assert isinstance(settings.server, ServerSettings)

    def test_section_override(self, env):
        env.setenv("JOB_STORE_BACKEND", "file")
        store = JobStoreSettings()

        settings = Settings(job_store=store)

        assert settings.job_store is store

    @pytest.mark.parametrize("prefix,expected", [("", True), ("dev-", False)])
    def test_is_production(self, env, prefix, expected):
        env.setenv("PREFIX", prefix)

        assert Settings().is_production is expected

    def test_one_cached_instance_per_process(self, env):
        from_configuration = get_settings()

        assert services.get_settings() is from_configuration
        assert logging_setup.get_settings() is from_configuration
