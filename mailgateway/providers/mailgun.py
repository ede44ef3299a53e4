"""Mailgun email delivery provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from mailgateway.options import MailgunOptions
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


@dataclass
class MailgunMessage:
    """Form fields and files for a Mailgun ``/messages`` request."""

    data: dict[str, Any]
    files: list[tuple[str, tuple[str, bytes, str]]] = field(default_factory=list)


class MailgunEmailDeliveryProvider(BaseEmailDeliveryProvider):
    """Sends emails via the Mailgun messages API."""

    default_name = "mailgun"

    def __init__(self, options: MailgunOptions, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._options = validated(options)
        self._url = f"{options.base_url.rstrip('/')}/{options.domain}/messages"
        self._client = httpx.Client(timeout=options.timeout, auth=("api", options.api_key or ""))

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> MailgunMessage:
        check_message(message)
        data: dict[str, Any] = {
            "from": str(message.from_address),
            "to": [str(a) for a in ordered_addresses(message.to)],
        }
        if message.cc:
            data["cc"] = [str(a) for a in ordered_addresses(message.cc)]
        if message.bcc:
            data["bcc"] = [str(a) for a in ordered_addresses(message.bcc)]
        if message.subject is not None:
            data["subject"] = message.subject
        if message.plain_text_body is not None:
            data["text"] = message.plain_text_body.content
        if message.html_body is not None:
            data["html"] = message.html_body.content
        if message.reply_to:
            data["h:Reply-To"] = ", ".join(str(a) for a in ordered_addresses(message.reply_to))
        if message.priority in _PRIORITY_VALUES:
            data["h:X-Priority"] = _PRIORITY_VALUES[message.priority]
        for key, value in message.headers.items():
            data[f"h:{key}"] = value

        tags = message.edp_value(EdpDataKey.MAILGUN_TAGS, edp_data)
        if tags:
            data["o:tag"] = list(tags)

        files = []
        for attachment in ordered_attachments(message.attachments):
            resolved = attachment.resolve()
            files.append(("attachment", (resolved.file_name, resolved.content, resolved.content_type)))
        return MailgunMessage(data=data, files=files)

    def _deliver(self, message: Message, native: MailgunMessage, edp_data: Sequence[EdpData]) -> SendResult:
        try:
            response = self._client.post(self._url, data=native.data, files=native.files or None)
        except httpx.TimeoutException as exc:
            logger.error("Timed out sending email via Mailgun")
            return SendResult.fail(self.name, str(exc) or "Mailgun request timed out", kind=SendErrorKind.TIMEOUT)
        except Exception as exc:
            logger.exception("Unexpected error sending email via Mailgun")
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)

        if 200 <= response.status_code < 300:
            body = _json_body(response)
            message_id = body.get("id")
            logger.info("Email sent via Mailgun to %s, id=%s", format_recipients(message), message_id)
            return SendResult.ok(
                self.name,
                message_id=message_id if isinstance(message_id, str) else None,
                raw_response=response.text,
            )
        logger.error(
            "Mailgun send failed. Status: %s, Body: %s",
            response.status_code,
            response.text,
        )
        kind = SendErrorKind.AUTHENTICATION if response.status_code in (401, 403) else SendErrorKind.REJECTED
        description = _json_body(response).get("message") or f"Mailgun returned status {response.status_code}"
        return SendResult.fail(
            self.name,
            str(description),
            kind=kind,
            error_code=str(response.status_code),
            raw_response=response.text,
        )


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
