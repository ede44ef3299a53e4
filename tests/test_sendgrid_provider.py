"""Tests for the SendGrid email provider."""

import base64
from unittest.mock import MagicMock, patch

import pytest
from python_http_client.exceptions import HTTPError

from mailgateway import (
    BytesAttachment,
    EdpData,
    EdpDataKey,
    Message,
    MissingSenderError,
    Priority,
    RequiredOptionValueNotSpecifiedException,
    SendErrorKind,
    SendGridEmailDeliveryProvider,
    SendGridOptions,
)


def _make_provider(options: SendGridOptions | None = None) -> SendGridEmailDeliveryProvider:
    """Create a SendGrid provider with a mocked client."""
    with patch("mailgateway.providers.sendgrid.SendGridAPIClient"):
        return SendGridEmailDeliveryProvider(options or SendGridOptions(api_key="SG.test_key"))


class TestSendGridConstruction:
    def test_requires_api_key(self):
        with pytest.raises(RequiredOptionValueNotSpecifiedException) as exc_info:
            SendGridEmailDeliveryProvider(SendGridOptions())
        assert exc_info.value.field_name == "api_key"

    def test_client_gets_api_key(self, sendgrid_options):
        with patch("mailgateway.providers.sendgrid.SendGridAPIClient") as mock_client:
            provider = SendGridEmailDeliveryProvider(sendgrid_options)
        mock_client.assert_called_once_with("SG.test_key_123")
        assert provider.name == "sendgrid"


class TestSendGridCreateProviderMessage:
    def test_maps_message_fields(self, full_message):
        mail = _make_provider().create_provider_message(full_message).get()

        assert mail["from"] == {"email": "from@example.com", "name": "Sender"}
        assert mail["subject"] == "test subject"
        personalization = mail["personalizations"][0]
        assert personalization["to"] == [{"email": "to@example.com", "name": "Recipient"}]
        assert personalization["cc"] == [{"email": "cc@example.com"}]
        assert personalization["bcc"] == [{"email": "bcc@example.com"}]
        assert mail["reply_to_list"] == [{"email": "replyto@example.com"}]
        assert mail["content"] == [
            {"type": "text/plain", "value": "this is a test"},
            {"type": "text/html", "value": "<p>this is a test</p>"},
        ]
        assert mail["headers"] == {"X-Campaign": "welcome"}

    def test_is_deterministic(self, full_message):
        provider = _make_provider()
        first = provider.create_provider_message(full_message).get()
        second = provider.create_provider_message(full_message).get()
        assert first == second

    def test_cc_duplicate_of_to_is_dropped(self):
        message = (
            Message.compose()
            .from_address("from@example.com")
            .to("a@example.com")
            .cc("a@example.com")
            .bcc("a@example.com")
            .build()
        )
        personalization = _make_provider().create_provider_message(message).get()["personalizations"][0]
        assert personalization["to"] == [{"email": "a@example.com"}]
        assert "cc" not in personalization
        assert "bcc" not in personalization

    def test_attachment(self):
        message = (
            Message.compose()
            .from_address("from@example.com")
            .to("to@example.com")
            .with_plain_text_content("see attached")
            .include_attachment(BytesAttachment("report.pdf", b"%PDF-1.4"))
            .build()
        )
        (attachment,) = _make_provider().create_provider_message(message).get()["attachments"]
        assert attachment["filename"] == "report.pdf"
        assert attachment["type"] == "application/pdf"
        assert attachment["disposition"] == "attachment"
        assert base64.b64decode(attachment["content"]) == b"%PDF-1.4"

    def test_template_and_categories(self):
        message = (
            Message.compose()
            .from_address("from@example.com")
            .to("to@example.com")
            .pass_edp_data(EdpData(EdpDataKey.SENDGRID_TEMPLATE_ID, "d-123"))
            .pass_edp_data(EdpData(EdpDataKey.SENDGRID_CATEGORIES, ["welcome", "onboarding"]))
            .build()
        )
        mail = _make_provider().create_provider_message(message).get()
        assert mail["template_id"] == "d-123"
        assert mail["categories"] == ["welcome", "onboarding"]

    def test_categories_keep_caller_order(self):
        categories = ("billing", "alpha", "zeta")
        message = (
            Message.compose()
            .from_address("from@example.com")
            .to("to@example.com")
            .pass_edp_data(EdpData(EdpDataKey.SENDGRID_CATEGORIES, categories))
            .build()
        )
        mail = _make_provider().create_provider_message(message).get()
        assert mail["categories"] == list(categories)

    def test_send_time_edp_data_overrides_message(self, message):
        extra = [EdpData(EdpDataKey.SENDGRID_TEMPLATE_ID, "d-999")]
        mail = _make_provider().create_provider_message(message, extra).get()
        assert mail["template_id"] == "d-999"

    def test_priority_header(self):
        message = Message.compose().from_address("f@example.com").to("t@example.com").with_priority(Priority.LOW).build()
        mail = _make_provider().create_provider_message(message).get()
        assert mail["headers"] == {"X-Priority": "5"}

    def test_requires_sender(self):
        with pytest.raises(MissingSenderError):
            _make_provider().create_provider_message(Message.compose().to("t@example.com").build())


class TestSendGridSend:
    def test_send_success(self, message):
        provider = _make_provider()
        mock_response = MagicMock(status_code=202, body=b"", headers={"X-Message-Id": "sg-abc"})
        provider._client.send = MagicMock(return_value=mock_response)

        result = provider.send(message)

        assert result.is_success
        assert result.provider_name == "sendgrid"
        assert result.message_id == "sg-abc"
        provider._client.send.assert_called_once()

    def test_send_failure_status(self, message):
        provider = _make_provider()
        mock_response = MagicMock(status_code=400, body=b"Bad Request")
        provider._client.send = MagicMock(return_value=mock_response)

        result = provider.send(message)

        assert not result.is_success
        assert result.error.kind == SendErrorKind.REJECTED
        assert result.error_code == "400"

    def test_http_error_unauthorized(self, message):
        provider = _make_provider()
        provider._client.send = MagicMock(side_effect=HTTPError(401, "Unauthorized", b"bad key", {}))

        result = provider.send(message)

        assert not result.is_success
        assert result.error.kind == SendErrorKind.AUTHENTICATION
        assert result.error_code == "401"

    def test_http_error_bad_request(self, message):
        provider = _make_provider()
        provider._client.send = MagicMock(side_effect=HTTPError(400, "Bad Request", b"invalid", {}))

        result = provider.send(message)

        assert result.error.kind == SendErrorKind.REJECTED
        assert result.raw_response == b"invalid"

    def test_send_exception(self, message):
        provider = _make_provider()
        provider._client.send = MagicMock(side_effect=ConnectionError("network error"))

        result = provider.send(message)

        assert not result.is_success
        assert result.error.kind == SendErrorKind.TRANSPORT
        assert "network error" in result.error_message

    def test_send_passes_projection_to_client(self, full_message):
        provider = _make_provider()
        provider._client.send = MagicMock(return_value=MagicMock(status_code=200, body=b"", headers={}))

        result = provider.send(full_message)

        assert result.is_success
        assert result.message_id is None
        sent_mail = provider._client.send.call_args[0][0]
        assert sent_mail.get() == provider.create_provider_message(full_message).get()

    async def test_send_async(self, message):
        provider = _make_provider()
        provider._client.send = MagicMock(return_value=MagicMock(status_code=202, body=b"", headers={}))

        result = await provider.send_async(message)

        assert result.is_success
