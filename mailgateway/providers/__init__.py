"""Email delivery providers."""

from .base import BaseEmailDeliveryProvider, EmailDeliveryProvider
from .mailgun import MailgunEmailDeliveryProvider
from .sendgrid import SendGridEmailDeliveryProvider
from .smtp import SmtpEmailDeliveryProvider
from .smtp2go import Smtp2GoEmailDeliveryProvider
from .socketlabs import SocketLabsEmailDeliveryProvider

__all__ = [
    "BaseEmailDeliveryProvider",
    "EmailDeliveryProvider",
    "MailgunEmailDeliveryProvider",
    "SendGridEmailDeliveryProvider",
    "SmtpEmailDeliveryProvider",
    "Smtp2GoEmailDeliveryProvider",
    "SocketLabsEmailDeliveryProvider",
]
