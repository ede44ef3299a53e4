"""SMTP email delivery provider.

Delivers over the network with :mod:`smtplib`, or writes ``.eml`` files into
a pickup directory when configured with
``SmtpDeliveryMethod.SPECIFIED_PICKUP_DIRECTORY``.
"""

from __future__ import annotations

import logging
import smtplib
import uuid
from collections.abc import Sequence
from email import policy
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from pathlib import Path

from mailgateway.options import SmtpDeliveryMethod, SmtpOptions, SmtpProviderOptions
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

# (X-Priority, Importance)
_PRIORITY_HEADERS: dict[Priority, tuple[str, str]] = {
    Priority.HIGH: ("1 (Highest)", "High"),
    Priority.LOW: ("5 (Lowest)", "Low"),
}


def _address_list(addresses: frozenset[Address]) -> str:
    return ", ".join(str(address) for address in ordered_addresses(addresses))


class SmtpEmailDeliveryProvider(BaseEmailDeliveryProvider):
    """Sends emails through an SMTP server or into a pickup directory."""

    default_name = "smtp"

    def __init__(self, options: SmtpProviderOptions, *, name: str | None = None) -> None:
        super().__init__(name=name)
        self._options = validated(options)

    @property
    def options(self) -> SmtpProviderOptions:
        return self._options

    def validate_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Message:
        """Also validate a per-message ``SMTP_OPTIONS`` override."""
        check_message(message)
        self._smtp_options_for(message, edp_data)
        return message

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> EmailMessage:
        """Build the MIME message for ``message``.

        ``Message-ID`` and ``Date`` are added at send time, so building the
        same message twice yields equal results.
        """
        check_message(message)
        mime = EmailMessage()
        mime["From"] = str(message.from_address)
        mime["To"] = _address_list(message.to)
        if message.cc:
            mime["Cc"] = _address_list(message.cc)
        if message.bcc:
            mime["Bcc"] = _address_list(message.bcc)
        if message.reply_to:
            mime["Reply-To"] = _address_list(message.reply_to)
        if message.subject is not None:
            mime["Subject"] = message.subject
        if message.priority in _PRIORITY_HEADERS:
            x_priority, importance = _PRIORITY_HEADERS[message.priority]
            mime["X-Priority"] = x_priority
            mime["Importance"] = importance
        for key, value in message.headers.items():
            del mime[key]
            mime[key] = value

        plain, html = message.plain_text_body, message.html_body
        if plain is not None:
            mime.set_content(plain.content, subtype="plain", charset=plain.charset)
            if html is not None:
                mime.add_alternative(html.content, subtype="html", charset=html.charset)
        elif html is not None:
            mime.set_content(html.content, subtype="html", charset=html.charset)

        for attachment in ordered_attachments(message.attachments):
            resolved = attachment.resolve()
            mime.add_attachment(
                resolved.content,
                maintype=resolved.maintype,
                subtype=resolved.subtype,
                filename=resolved.file_name,
            )
        return mime

    def _smtp_options_for(self, message: Message, edp_data: Sequence[EdpData]) -> SmtpOptions:
        override = message.edp_value(EdpDataKey.SMTP_OPTIONS, edp_data)
        if override is None:
            assert self._options.smtp_options is not None
            return self._options.smtp_options
        if not isinstance(override, SmtpOptions):
            raise TypeError(f"{EdpDataKey.SMTP_OPTIONS.value} data must be SmtpOptions, got {type(override).__name__}")
        override.validate()
        return override

    def _deliver(self, message: Message, native: EmailMessage, edp_data: Sequence[EdpData]) -> SendResult:
        smtp_options = self._smtp_options_for(message, edp_data)
        assert message.from_address is not None
        if "Message-ID" not in native:
            native["Message-ID"] = make_msgid(domain=message.from_address.address.rsplit("@", 1)[1])
        if "Date" not in native:
            native["Date"] = formatdate(localtime=True)

        if smtp_options.delivery_method == SmtpDeliveryMethod.SPECIFIED_PICKUP_DIRECTORY:
            return self._write_to_pickup_directory(message, native, smtp_options)
        return self._send_over_network(message, native, smtp_options)

    def _write_to_pickup_directory(self, message: Message, native: EmailMessage, smtp_options: SmtpOptions) -> SendResult:
        assert smtp_options.pickup_directory_location is not None
        directory = Path(smtp_options.pickup_directory_location)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / f"{uuid.uuid4().hex}.eml"
            path.write_bytes(native.as_bytes(policy=policy.SMTP))
        except OSError as exc:
            logger.exception("Could not write email to pickup directory %s", directory)
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)
        logger.info("Email to %s written to %s", format_recipients(message), path)
        return SendResult.ok(self.name, message_id=str(native["Message-ID"]), raw_response=str(path))

    def _send_over_network(self, message: Message, native: EmailMessage, smtp_options: SmtpOptions) -> SendResult:
        assert message.from_address is not None
        smtp_class = smtplib.SMTP_SSL if smtp_options.use_ssl else smtplib.SMTP
        try:
            with smtp_class(smtp_options.host, smtp_options.port, timeout=smtp_options.timeout) as client:
                if smtp_options.use_starttls and not smtp_options.use_ssl:
                    client.starttls()
                if smtp_options.username:
                    client.login(smtp_options.username, smtp_options.password or "")
                refused = client.send_message(
                    native,
                    from_addr=message.from_address.address,
                    to_addrs=[address.address for address in message.all_recipients],
                )
        except smtplib.SMTPAuthenticationError as exc:
            logger.error("SMTP authentication failed on %s: [%s] %s", smtp_options.host, exc.smtp_code, exc.smtp_error)
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.AUTHENTICATION, error_code=str(exc.smtp_code))
        except smtplib.SMTPRecipientsRefused as exc:
            logger.error("SMTP server %s refused all recipients: %s", smtp_options.host, exc.recipients)
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.REJECTED)
        except (smtplib.SMTPSenderRefused, smtplib.SMTPDataError) as exc:
            logger.error("SMTP server %s rejected the message: [%s] %s", smtp_options.host, exc.smtp_code, exc.smtp_error)
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.REJECTED, error_code=str(exc.smtp_code))
        except TimeoutError as exc:
            logger.error("Timed out sending email via SMTP server %s", smtp_options.host)
            return SendResult.fail(self.name, str(exc) or "SMTP connection timed out", kind=SendErrorKind.TIMEOUT)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("Unexpected error sending email via SMTP server %s", smtp_options.host)
            return SendResult.fail(self.name, str(exc), kind=SendErrorKind.TRANSPORT)

        if refused:
            logger.warning("SMTP server %s refused some recipients: %s", smtp_options.host, ", ".join(refused))
        logger.info("Email sent via SMTP to %s", format_recipients(message))
        return SendResult.ok(self.name, message_id=str(native["Message-ID"]), raw_response=refused)
