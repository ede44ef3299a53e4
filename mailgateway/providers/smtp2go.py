"""SMTP2GO email delivery provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from mailgateway.options import Smtp2GoOptions
from mailgateway.types import (
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

_PRIORITY_VALUES: dict[Priority, str] = {
    Priority.HIGH: "1",
    Priority.LOW: "5",
}


class Smtp2GoEmailDeliveryProvider(BaseEmailDeliveryProvider):
    """Sends emails via the SMTP2GO REST API."""

    default_name = "smtp2go"

    def __init__(self, options: Smtp2GoOptions, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._options = validated(options)
        self._client = httpx.Client(timeout=options.timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> dict[str, Any]:
        """Build the JSON payload for the ``/email/send`` endpoint."""
        check_message(message)
        payload: dict[str, Any] = {
            "sender": str(message.from_address),
            "to": [str(a) for a in ordered_addresses(message.to)],
            "subject": message.subject or "",
        }
        if message.cc:
            payload["cc"] = [str(a) for a in ordered_addresses(message.cc)]
        if message.bcc:
            payload["bcc"] = [str(a) for a in ordered_addresses(message.bcc)]
        if message.plain_text_body is not None:
            payload["text_body"] = message.plain_text_body.content
        if message.html_body is not None:
            payload["html_body"] = message.html_body.content

        custom_headers = [{"header": key, "value": value} for key, value in message.headers.items()]
        if message.reply_to:
            reply_to = ", ".join(str(a) for a in ordered_addresses(message.reply_to))
            custom_headers.append({"header": "Reply-To", "value": reply_to})
        if message.priority in _PRIORITY_VALUES:
            custom_headers.append({"header": "X-Priority", "value": _PRIORITY_VALUES[message.priority]})
        if custom_headers:
            payload["custom_headers"] = custom_headers

        if message.attachments:
            payload["attachments"] = []
            for attachment in ordered_attachments(message.attachments):
                resolved = attachment.resolve()
                payload["attachments"].append(
                    {
                        "filename": resolved.file_name,
                        "fileblob": resolved.base64_content(),
                        "mimetype": resolved.content_type,
                    }
                )

        template_id = message.edp_value(EdpDataKey.SMTP2GO_TEMPLATE_ID, edp_data)
        if template_id:
            payload["template_id"] = template_id
        return payload

    def _deliver(self, message: Message, native: dict[str, Any], edp_data: Sequence[EdpData]) -> SendResult:
        try:
            response = self._client.post(
                self._options.api_url,
                json=native,
                headers={"X-Smtp2go-Api-Key": self._options.api_key},
            )
        except httpx.TimeoutException as exc:
            logger.error("Timed out sending email via SMTP2GO")
            return SendResult.fail(self.name, str(exc) or "SMTP2GO request timed out", kind=SendErrorKind.TIMEOUT)
        except Exception as exc:
            logger.exception("Unexpected error sending email via SMTP2GO")
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)

        if 200 <= response.status_code < 300:
            data = _json_data(response)
            logger.info("Email sent via SMTP2GO to %s", format_recipients(message))
            return SendResult.ok(self.name, message_id=data.get("email_id"), raw_response=response.text)
        logger.error(
            "SMTP2GO send failed. Status: %s, Body: %s",
            response.status_code,
            response.text,
        )
        kind = SendErrorKind.AUTHENTICATION if response.status_code in (401, 403) else SendErrorKind.REJECTED
        return SendResult.fail(
            self.name,
            f"SMTP2GO returned status {response.status_code}",
            kind=kind,
            error_code=str(response.status_code),
            raw_response=response.text,
        )


def _json_data(response: httpx.Response) -> dict[str, Any]:
    """Return the ``data`` object of an SMTP2GO response, or an empty dict."""
    try:
        body = response.json()
    except ValueError:
        return {}
    data = body.get("data") if isinstance(body, dict) else None
    return data if isinstance(data, dict) else {}
