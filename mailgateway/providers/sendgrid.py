"""SendGrid email delivery provider."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from python_http_client.exceptions import HTTPError  # type: ignore[import-untyped]
from sendgrid import SendGridAPIClient  # type: ignore[import-untyped]
from sendgrid.helpers.mail import (  # type: ignore[import-untyped]
    Attachment,
    Bcc,
    Category,
    Cc,
    Disposition,
    FileContent,
    FileName,
    FileType,
    From,
    Header,
    Mail,
    ReplyTo,
    TemplateId,
    To,
)

from mailgateway.options import SendGridOptions
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


class SendGridEmailDeliveryProvider(BaseEmailDeliveryProvider):
    """Sends emails via the SendGrid API."""

    default_name = "sendgrid"

    def __init__(self, options: SendGridOptions, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._options = validated(options)
        self._client = SendGridAPIClient(options.api_key)

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Mail:
        check_message(message)
        assert message.from_address is not None
        mail = Mail(
            from_email=From(message.from_address.address, message.from_address.display_name),
            to_emails=[To(a.address, a.display_name) for a in ordered_addresses(message.to)],
            subject=message.subject,
            plain_text_content=message.plain_text_body.content if message.plain_text_body else None,
            html_content=message.html_body.content if message.html_body else None,
        )
        # SendGrid rejects an address that appears in more than one recipient list.
        for address in ordered_addresses(message.cc - message.to):
            mail.add_cc(Cc(address.address, address.display_name))
        for address in ordered_addresses(message.bcc - message.to - message.cc):
            mail.add_bcc(Bcc(address.address, address.display_name))
        if message.reply_to:
            mail.reply_to_list = [ReplyTo(a.address, a.display_name) for a in ordered_addresses(message.reply_to)]

        if message.priority in _PRIORITY_VALUES:
            mail.add_header(Header("X-Priority", _PRIORITY_VALUES[message.priority]))
        for key, value in message.headers.items():
            mail.add_header(Header(key, value))

        for attachment in ordered_attachments(message.attachments):
            resolved = attachment.resolve()
            mail.add_attachment(
                Attachment(
                    FileContent(resolved.base64_content()),
                    FileName(resolved.file_name),
                    FileType(resolved.content_type),
                    Disposition("attachment"),
                )
            )

        template_id = message.edp_value(EdpDataKey.SENDGRID_TEMPLATE_ID, edp_data)
        if template_id:
            mail.template_id = TemplateId(template_id)
        # add_category inserts at the front.
        for category in reversed(list(message.edp_value(EdpDataKey.SENDGRID_CATEGORIES, edp_data) or ())):
            mail.add_category(Category(category))
        return mail

    def _deliver(self, message: Message, native: Mail, edp_data: Sequence[EdpData]) -> SendResult:
        try:
            response = self._client.send(native)
        except HTTPError as exc:
            logger.error("SendGrid send failed. Status: %s, Body: %s", exc.status_code, exc.body)
            kind = SendErrorKind.AUTHENTICATION if exc.status_code in (401, 403) else SendErrorKind.REJECTED
            return SendResult.fail(
                self.name,
                f"SendGrid returned status {exc.status_code}",
                kind=kind,
                error_code=str(exc.status_code),
                raw_response=exc.body,
            )
        except Exception as exc:
            logger.exception("Unexpected error sending email via SendGrid")
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)

        if 200 <= response.status_code < 300:
            logger.info("Email sent via SendGrid to %s", format_recipients(message))
            return SendResult.ok(self.name, message_id=_message_id(response), raw_response=response.body)
        logger.error(
            "SendGrid send failed. Status: %s, Body: %s",
            response.status_code,
            response.body,
        )
        return SendResult.fail(
            self.name,
            f"SendGrid returned status {response.status_code}",
            kind=SendErrorKind.REJECTED,
            error_code=str(response.status_code),
            raw_response=response.body,
        )


def _message_id(response: Any) -> str | None:
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("X-Message-Id")
    return value if isinstance(value, str) else None
