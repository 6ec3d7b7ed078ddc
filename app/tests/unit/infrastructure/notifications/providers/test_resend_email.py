"""Unit tests for ResendEmailProvider."""

from unittest.mock import MagicMock

import pytest
import requests

from infrastructure.notifications.errors import ProviderError
from infrastructure.notifications.providers.resend_email import ResendEmailProvider


def _response(status_code=200, body=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = {}
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def provider(session):
    return ResendEmailProvider(
        api_key="re_test",
        from_email="noreply@example.com",
        api_base_url="https://api.resend.com/",
        default_subject="Notification",
        timeout_seconds=5,
        session=session,
    )


@pytest.mark.unit
class TestResendEmailProvider:
    """Tests for the Resend transport."""

    def test_identity(self, provider):
        assert provider.name == "email-resend"
        assert provider.channel.value == "email"

    def test_send_posts_email(self, provider, session, dispatch_input_factory):
        session.post.return_value = _response(200, {"id": "em_123"})

        result = provider.send(dispatch_input_factory())

        session.post.assert_called_once_with(
            "https://api.resend.com/emails",
            json={
                "from": "noreply@example.com",
                "to": ["owner@example.com"],
                "subject": "Order ready",
                "text": "Your order is ready",
            },
            headers={
                "Authorization": "Bearer re_test",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=5,
        )
        assert result.accepted is True
        assert result.external_id == "em_123"
        assert result.detail == "Delivered by Resend"

    def test_send_uses_default_subject(self, provider, session, dispatch_input_factory):
        session.post.return_value = _response(200, {"id": "em_123"})

        provider.send(dispatch_input_factory(subject=None))

        assert session.post.call_args.kwargs["json"]["subject"] == "Notification"

    def test_send_requires_email_audience(self, provider, session, dispatch_input_factory):
        with pytest.raises(ProviderError, match="require an email audience target"):
            provider.send(dispatch_input_factory(audience="all"))

        session.post.assert_not_called()

    def test_error_body_message_is_reported(self, provider, session, dispatch_input_factory):
        session.post.return_value = _response(422, {"message": "Invalid `to` field"})

        with pytest.raises(ProviderError) as exc_info:
            provider.send(dispatch_input_factory())

        assert exc_info.value.message == "Resend send failed: Invalid `to` field"

    def test_error_without_body_reports_status(self, provider, session, dispatch_input_factory):
        session.post.return_value = _response(502)

        with pytest.raises(ProviderError) as exc_info:
            provider.send(dispatch_input_factory())

        assert exc_info.value.message == "Resend send failed: HTTP 502"

    def test_transport_errors_are_provider_errors(
        self, provider, session, dispatch_input_factory
    ):
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ProviderError, match="Resend send failed: Connection error"):
            provider.send(dispatch_input_factory())

    def test_missing_id_is_tolerated(self, provider, session, dispatch_input_factory):
        session.post.return_value = _response(200, {"unexpected": True})

        result = provider.send(dispatch_input_factory())

        assert result.accepted is True
        assert result.external_id is None
