"""Tests for the SMTP2GO email provider."""

import base64
from unittest.mock import MagicMock

import httpx
import pytest

from mailgateway import (
    BytesAttachment,
    EdpData,
    EdpDataKey,
    Message,
    Priority,
    RequiredOptionValueNotSpecifiedException,
    SendErrorKind,
    Smtp2GoEmailDeliveryProvider,
    Smtp2GoOptions,
)
from mailgateway.options import SMTP2GO_API_URL


def _make_provider(
    api_key: str = "test_key", mock_response: MagicMock | None = None
) -> tuple[Smtp2GoEmailDeliveryProvider, MagicMock]:
    """Create a provider with a mocked httpx client."""
    provider = Smtp2GoEmailDeliveryProvider(Smtp2GoOptions(api_key=api_key))
    mock_client = MagicMock()
    if mock_response is not None:
        mock_client.post = MagicMock(return_value=mock_response)
    provider._client = mock_client
    return provider, mock_client


def _ok_response(email_id: str = "smtp2go-1") -> MagicMock:
    return MagicMock(
        status_code=200,
        text="OK",
        json=MagicMock(return_value={"data": {"succeeded": 1, "email_id": email_id}}),
    )


class TestSmtp2GoCreateProviderMessage:
    def test_requires_api_key(self):
        with pytest.raises(RequiredOptionValueNotSpecifiedException):
            Smtp2GoEmailDeliveryProvider(Smtp2GoOptions())

    def test_maps_message_fields(self, full_message):
        provider, _ = _make_provider()
        payload = provider.create_provider_message(full_message)

        assert payload["sender"] == "Sender <from@example.com>"
        assert payload["to"] == ["Recipient <to@example.com>"]
        assert payload["cc"] == ["cc@example.com"]
        assert payload["bcc"] == ["bcc@example.com"]
        assert payload["subject"] == "test subject"
        assert payload["text_body"] == "this is a test"
        assert payload["html_body"] == "<p>this is a test</p>"
        assert {"header": "X-Campaign", "value": "welcome"} in payload["custom_headers"]
        assert {"header": "Reply-To", "value": "replyto@example.com"} in payload["custom_headers"]

    def test_sender_without_name(self):
        provider, _ = _make_provider()
        message = Message.compose().from_address("noreply@example.com").to("user@example.com").build()
        payload = provider.create_provider_message(message)
        assert payload["sender"] == "noreply@example.com"
        assert payload["subject"] == ""
        assert "custom_headers" not in payload

    def test_is_deterministic(self, full_message):
        provider, _ = _make_provider()
        assert provider.create_provider_message(full_message) == provider.create_provider_message(full_message)

    def test_attachment_and_template(self):
        provider, _ = _make_provider()
        message = (
            Message.compose()
            .from_address("noreply@example.com")
            .to("user@example.com")
            .with_priority(Priority.HIGH)
            .include_attachment(BytesAttachment("notes.txt", b"hello"))
            .pass_edp_data(EdpData(EdpDataKey.SMTP2GO_TEMPLATE_ID, "tpl-1"))
            .build()
        )
        payload = provider.create_provider_message(message)

        (attachment,) = payload["attachments"]
        assert attachment["filename"] == "notes.txt"
        assert attachment["mimetype"] == "text/plain"
        assert base64.b64decode(attachment["fileblob"]) == b"hello"
        assert payload["template_id"] == "tpl-1"
        assert payload["custom_headers"] == [{"header": "X-Priority", "value": "1"}]


class TestSmtp2GoSend:
    def test_send_success(self, message):
        provider, _ = _make_provider(mock_response=_ok_response("abc-123"))

        result = provider.send(message)

        assert result.is_success
        assert result.provider_name == "smtp2go"
        assert result.message_id == "abc-123"

    def test_send_success_without_json_body(self, message):
        response = MagicMock(status_code=200, text="OK", json=MagicMock(side_effect=ValueError("no json")))
        provider, _ = _make_provider(mock_response=response)

        result = provider.send(message)

        assert result.is_success
        assert result.message_id is None

    def test_send_failure_status(self, message):
        provider, _ = _make_provider(mock_response=MagicMock(status_code=500, text="Internal Server Error"))

        result = provider.send(message)

        assert not result.is_success
        assert result.error.kind == SendErrorKind.REJECTED
        assert "500" in result.error_code

    def test_send_unauthorized(self, message):
        provider, _ = _make_provider(mock_response=MagicMock(status_code=401, text="Unauthorized"))

        result = provider.send(message)

        assert result.error.kind == SendErrorKind.AUTHENTICATION

    def test_send_exception(self, message):
        provider, mock_client = _make_provider()
        mock_client.post = MagicMock(side_effect=ConnectionError("connection reset"))

        result = provider.send(message)

        assert not result.is_success
        assert result.error.kind == SendErrorKind.TRANSPORT
        assert "connection reset" in result.error_message

    def test_send_timeout(self, message):
        provider, mock_client = _make_provider()
        mock_client.post = MagicMock(side_effect=httpx.ReadTimeout("read timed out"))

        result = provider.send(message)

        assert result.error.kind == SendErrorKind.TIMEOUT

    def test_send_uses_correct_api_url_and_headers(self, message):
        provider, mock_client = _make_provider(api_key="my_secret_key", mock_response=_ok_response())

        provider.send(message)

        call_args = mock_client.post.call_args
        assert call_args[0][0] == SMTP2GO_API_URL
        assert call_args.kwargs["headers"]["X-Smtp2go-Api-Key"] == "my_secret_key"
        assert call_args.kwargs["json"] == provider.create_provider_message(message)


class TestSmtp2GoContextManager:
    def test_context_manager_calls_close(self):
        provider = Smtp2GoEmailDeliveryProvider(Smtp2GoOptions(api_key="test_key"))
        provider.close = MagicMock()
        with provider:
            pass
        provider.close.assert_called_once()

    async def test_async_context_manager_calls_close(self):
        provider = Smtp2GoEmailDeliveryProvider(Smtp2GoOptions(api_key="test_key"))
        provider.close = MagicMock()
        async with provider:
            pass
        provider.close.assert_called_once()


class TestSmtp2GoSendAsync:
    async def test_send_async_returns_result(self, message):
        provider, _ = _make_provider(mock_response=_ok_response())
        result = await provider.send_async(message)
        assert result.is_success
