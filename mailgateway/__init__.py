"""
mailgateway: Email composition and multi-provider delivery library.

Build a message once, send it through any supported email delivery provider
(SMTP, SendGrid, SMTP2GO, Mailgun, SocketLabs) and get back the same
``SendResult`` shape whichever provider delivered it.

Installation::

    pip install mailgateway

Quick start, compose a message::

    from mailgateway import Message

    message = (
        Message.compose()
        .from_address("noreply@example.com", "My App")
        .to("user@example.com")
        .with_subject("Welcome")
        .with_plain_text_content("Hello!")
        .with_html_content("<h1>Hello!</h1>")
        .build()
    )

Quick start, SMTP::

    from mailgateway import SmtpEmailDeliveryProvider, SmtpOptions, SmtpProviderOptions

    provider = SmtpEmailDeliveryProvider(SmtpProviderOptions(
        smtp_options=SmtpOptions(host="smtp.example.com", port=587, use_starttls=True),
    ))
    result = provider.send(message)
    if result.is_success:
        print(f"Message-ID: {result.message_id}")

Quick start, SendGrid::

    from mailgateway import SendGridEmailDeliveryProvider, SendGridOptions

    provider = SendGridEmailDeliveryProvider(SendGridOptions(api_key="SG..."))
    result = provider.send(message)

Provider-specific data travels with the message as ``EdpData``::

    from mailgateway import EdpData, EdpDataKey

    message = (
        Message.compose()
        .to("user@example.com")
        .pass_edp_data(EdpData(EdpDataKey.SENDGRID_TEMPLATE_ID, "d-123"))
        .build()
    )

Several providers behind one entry point::

    from mailgateway import EmailGateway, EmailServiceOptions, use_sendgrid, use_smtp

    gateway = EmailGateway(EmailServiceOptions(default_provider="sendgrid", default_from="noreply@example.com"))
    use_sendgrid(gateway, SendGridOptions(api_key="SG..."))
    use_smtp(gateway, SmtpProviderOptions(smtp_options=SmtpOptions(host="smtp.example.com")))
    gateway.send(message)                # via SendGrid
    gateway.send(message, "smtp")        # via SMTP

For testing::

    from mailgateway import MockEmailProvider

    provider = MockEmailProvider()
    result = provider.send(message)
    assert result.is_success
    assert len(provider.sent) == 1

Module overview
---------------
- ``types``         - Address, attachments, Message, EdpData, SendResult
- ``composer``      - MessageComposer fluent builder
- ``options``       - Provider options and their ``validate()`` contract
- ``providers/``    - SMTP, SendGrid, SMTP2GO, Mailgun, SocketLabs providers
- ``gateway``       - EmailGateway: provider registration and selection
- ``registration``  - ``use_*`` helpers registering the bundled providers
- ``mock``          - MockEmailProvider for tests
- ``errors``        - Exceptions for messages or setups built wrong

What this library does NOT own (stays in the consuming app):
- Retries and queueing
- Credential storage
- Delivery status webhooks
"""

from .composer import MessageComposer
from .errors import (
    AmbiguousProviderError,
    DuplicateProviderError,
    InvalidAddressFormatError,
    InvalidHeaderValueError,
    MailGatewayError,
    MissingRecipientError,
    MissingSenderError,
    ProviderNotFoundError,
    RequiredOptionValueNotSpecifiedException,
)
from .gateway import EmailGateway
from .mock import MockEmailProvider, SentMessage
from .options import (
    EmailServiceOptions,
    MailgunOptions,
    ProviderOptions,
    SendGridOptions,
    Smtp2GoOptions,
    SmtpDeliveryMethod,
    SmtpOptions,
    SmtpProviderOptions,
    SocketLabsOptions,
)
from .providers import (
    BaseEmailDeliveryProvider,
    EmailDeliveryProvider,
    MailgunEmailDeliveryProvider,
    SendGridEmailDeliveryProvider,
    Smtp2GoEmailDeliveryProvider,
    SmtpEmailDeliveryProvider,
    SocketLabsEmailDeliveryProvider,
)
from .registration import use_mailgun, use_sendgrid, use_smtp, use_smtp2go, use_socketlabs
from .types import (
    Address,
    Attachment,
    Base64Attachment,
    BytesAttachment,
    EdpData,
    EdpDataKey,
    ErrorInfo,
    FilePathAttachment,
    Message,
    MessageBody,
    Priority,
    ResolvedAttachment,
    SendErrorKind,
    SendResult,
)

__all__ = [
    # Message model
    "Address",
    "Attachment",
    "Base64Attachment",
    "BytesAttachment",
    "EdpData",
    "EdpDataKey",
    "FilePathAttachment",
    "Message",
    "MessageBody",
    "MessageComposer",
    "Priority",
    "ResolvedAttachment",
    # Results
    "ErrorInfo",
    "SendErrorKind",
    "SendResult",
    # Options
    "EmailServiceOptions",
    "MailgunOptions",
    "ProviderOptions",
    "SendGridOptions",
    "Smtp2GoOptions",
    "SmtpDeliveryMethod",
    "SmtpOptions",
    "SmtpProviderOptions",
    "SocketLabsOptions",
    # Providers
    "BaseEmailDeliveryProvider",
    "EmailDeliveryProvider",
    "MailgunEmailDeliveryProvider",
    "MockEmailProvider",
    "SendGridEmailDeliveryProvider",
    "SentMessage",
    "Smtp2GoEmailDeliveryProvider",
    "SmtpEmailDeliveryProvider",
    "SocketLabsEmailDeliveryProvider",
    # Gateway
    "EmailGateway",
    "use_mailgun",
    "use_sendgrid",
    "use_smtp",
    "use_smtp2go",
    "use_socketlabs",
    # Errors
    "AmbiguousProviderError",
    "DuplicateProviderError",
    "InvalidAddressFormatError",
    "InvalidHeaderValueError",
    "MailGatewayError",
    "MissingRecipientError",
    "MissingSenderError",
    "ProviderNotFoundError",
    "RequiredOptionValueNotSpecifiedException",
]
