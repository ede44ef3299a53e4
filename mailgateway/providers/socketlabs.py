"""SocketLabs email delivery provider (Injection API)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import httpx

from mailgateway.options import SocketLabsOptions
from mailgateway.types import (
    Address,
    EdpData,
    EdpDataKey,
    Message,
    Priority,
    SendErrorKind,
    SendResult,
    ordered_addresses,
    ordered_attachments,
)

from .base import BaseEmailDeliveryProvider, check_message, format_recipients, validated

logger = logging.getLogger(__name__)

SUCCESS_CODE = "Success"
_AUTH_ERROR_CODES = {"InvalidAuthentication", "AccountDisabled"}

_PRIORITY_VALUES: dict[Priority, str] = {
    Priority.HIGH: "1",
    Priority.LOW: "5",
}


def _address(address: Address) -> dict[str, str]:
    entry = {"EmailAddress": address.address}
    if address.display_name:
        entry["FriendlyName"] = address.display_name
    return entry


def _addresses(addresses: Iterable[Address]) -> list[dict[str, str]]:
    return [_address(a) for a in ordered_addresses(addresses)]


class SocketLabsEmailDeliveryProvider(BaseEmailDeliveryProvider):
    """Sends emails via the SocketLabs Injection API."""

    default_name = "socketlabs"

    def __init__(self, options: SocketLabsOptions, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._options = validated(options)
        self._client = httpx.Client(timeout=options.timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> dict[str, Any]:
        """Build the injection request, without the API key."""
        check_message(message)
        assert message.from_address is not None
        body: dict[str, Any] = {
            "From": _address(message.from_address),
            "To": _addresses(message.to),
            "Subject": message.subject or "",
        }
        if message.cc:
            body["Cc"] = _addresses(message.cc)
        if message.bcc:
            body["Bcc"] = _addresses(message.bcc)
        if message.reply_to:
            # The API takes a single reply-to address.
            body["ReplyTo"] = _address(ordered_addresses(message.reply_to)[0])
        if message.plain_text_body is not None:
            body["TextBody"] = message.plain_text_body.content
            body["CharSet"] = message.plain_text_body.charset
        if message.html_body is not None:
            body["HtmlBody"] = message.html_body.content
            body["CharSet"] = message.html_body.charset

        custom_headers = [{"Name": key, "Value": value} for key, value in message.headers.items()]
        if message.priority in _PRIORITY_VALUES:
            custom_headers.append({"Name": "X-Priority", "Value": _PRIORITY_VALUES[message.priority]})
        if custom_headers:
            body["CustomHeaders"] = custom_headers

        if message.attachments:
            body["Attachments"] = []
            for attachment in ordered_attachments(message.attachments):
                resolved = attachment.resolve()
                body["Attachments"].append(
                    {
                        "Name": resolved.file_name,
                        "Content": resolved.base64_content(),
                        "ContentType": resolved.content_type,
                    }
                )

        server_id = message.edp_value(EdpDataKey.SOCKETLABS_SERVER_ID, edp_data) or self._options.default_server_id
        return {"ServerId": server_id, "Messages": [body]}

    def _deliver(self, message: Message, native: dict[str, Any], edp_data: Sequence[EdpData]) -> SendResult:
        request = {**native, "ApiKey": self._options.api_key}
        try:
            response = self._client.post(self._options.api_url, json=request)
        except httpx.TimeoutException as exc:
            logger.error("Timed out sending email via SocketLabs")
            return SendResult.fail(self.name, str(exc) or "SocketLabs request timed out", kind=SendErrorKind.TIMEOUT)
        except Exception as exc:
            logger.exception("Unexpected error sending email via SocketLabs")
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)

        if not 200 <= response.status_code < 300:
            logger.error("SocketLabs send failed. Status: %s, Body: %s", response.status_code, response.text)
            return SendResult.fail(
                self.name,
                f"SocketLabs returned status {response.status_code}",
                kind=SendErrorKind.TRANSPORT,
                error_code=str(response.status_code),
                raw_response=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        error_code = data.get("ErrorCode")
        if error_code == SUCCESS_CODE:
            receipt = data.get("TransactionReceipt")
            logger.info("Email sent via SocketLabs to %s", format_recipients(message))
            return SendResult.ok(
                self.name,
                message_id=receipt if isinstance(receipt, str) else None,
                raw_response=data,
            )

        logger.error("SocketLabs rejected the message: %s", error_code)
        kind = SendErrorKind.AUTHENTICATION if error_code in _AUTH_ERROR_CODES else SendErrorKind.REJECTED
        return SendResult.fail(
            self.name,
            f"SocketLabs returned error code {error_code}",
            kind=kind,
            error_code=str(error_code) if error_code is not None else None,
            raw_response=data,
        )
