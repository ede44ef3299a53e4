"""Helpers that register the bundled providers on an :class:`EmailGateway`.

Each helper validates the options, builds the provider and registers it,
returning the provider::

    gateway = EmailGateway()
    use_sendgrid(gateway, SendGridOptions(api_key="SG..."))
"""

from __future__ import annotations

from .gateway import EmailGateway
from .options import MailgunOptions, SendGridOptions, Smtp2GoOptions, SmtpProviderOptions, SocketLabsOptions
from .providers import (
    MailgunEmailDeliveryProvider,
    SendGridEmailDeliveryProvider,
    Smtp2GoEmailDeliveryProvider,
    SmtpEmailDeliveryProvider,
    SocketLabsEmailDeliveryProvider,
)


def use_smtp(gateway: EmailGateway, options: SmtpProviderOptions, *, name: str | None = None) -> SmtpEmailDeliveryProvider:
    return gateway.register_provider(options, lambda o: SmtpEmailDeliveryProvider(o, name=name))  # type: ignore[return-value]


def use_sendgrid(gateway: EmailGateway, options: SendGridOptions, *, name: str | None = None) -> SendGridEmailDeliveryProvider:
    return gateway.register_provider(options, lambda o: SendGridEmailDeliveryProvider(o, name=name))  # type: ignore[return-value]


def use_smtp2go(gateway: EmailGateway, options: Smtp2GoOptions, *, name: str | None = None) -> Smtp2GoEmailDeliveryProvider:
    return gateway.register_provider(options, lambda o: Smtp2GoEmailDeliveryProvider(o, name=name))  # type: ignore[return-value]


def use_mailgun(gateway: EmailGateway, options: MailgunOptions, *, name: str | None = None) -> MailgunEmailDeliveryProvider:
    return gateway.register_provider(options, lambda o: MailgunEmailDeliveryProvider(o, name=name))  # type: ignore[return-value]


def use_socketlabs(
    gateway: EmailGateway,
    options: SocketLabsOptions,
    *,
    name: str | None = None,
) -> SocketLabsEmailDeliveryProvider:
    return gateway.register_provider(options, lambda o: SocketLabsEmailDeliveryProvider(o, name=name))  # type: ignore[return-value]
