"""Provider configuration and its validation contract.

Every options type is a frozen dataclass exposing ``validate()``. Validation
checks required fields in declaration order and raises
:class:`RequiredOptionValueNotSpecifiedException` for the first violation.
Options are validated once, when the provider is built or registered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidAddressFormatError, RequiredOptionValueNotSpecifiedException
from .types import Address

MAILGUN_API_URL = "https://api.mailgun.net/v3"
SMTP2GO_API_URL = "https://api.smtp2go.com/v3/email/send"
SOCKETLABS_API_URL = "https://inject.socketlabs.com/api/v1/email"
DEFAULT_TIMEOUT_SECONDS = 10.0


class ProviderOptions(ABC):
    """Base class for provider options."""

    @abstractmethod
    def validate(self) -> None:
        """Raise for the first missing or invalid required value."""

    def _missing(self, field_name: str, reason: str) -> RequiredOptionValueNotSpecifiedException:
        return RequiredOptionValueNotSpecifiedException(type(self).__name__, field_name, reason)

    def _require_text(self, field_name: str) -> None:
        value = getattr(self, field_name)
        if not isinstance(value, str) or not value.strip():
            raise self._missing(field_name, f"the given {type(self).__name__}.{field_name} value is null or empty")

    def _require_positive(self, field_name: str) -> None:
        value = getattr(self, field_name)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise self._missing(
                field_name,
                f"the given {type(self).__name__}.{field_name} value is less than or equal to zero",
            )


@dataclass(frozen=True, slots=True)
class EmailServiceOptions(ProviderOptions):
    """Options of the :class:`~mailgateway.gateway.EmailGateway`."""

    default_provider: str | None = None
    default_from: str | None = None
    pause_sending: bool = False

    def validate(self) -> None:
        self._require_text("default_provider")
        if self.default_from is not None:
            try:
                Address.parse(self.default_from)
            except InvalidAddressFormatError as exc:
                raise self._missing("default_from", str(exc)) from exc

    @property
    def default_sender(self) -> Address | None:
        return Address.parse(self.default_from) if self.default_from else None


# ── SMTP ──────────────────────────────────────────────────────────────


class SmtpDeliveryMethod(str, Enum):
    """How the SMTP provider delivers messages."""

    NETWORK = "network"
    SPECIFIED_PICKUP_DIRECTORY = "specified_pickup_directory"


@dataclass(frozen=True, slots=True)
class SmtpOptions(ProviderOptions):
    """Connection settings for SMTP delivery.

    With ``SPECIFIED_PICKUP_DIRECTORY`` delivery nothing is sent over the
    network: each message is written as an ``.eml`` file into
    ``pickup_directory_location``.
    """

    host: str | None = None
    port: int = 25
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    use_ssl: bool = False
    use_starttls: bool = False
    timeout: float = 30.0
    delivery_method: SmtpDeliveryMethod = SmtpDeliveryMethod.NETWORK
    pickup_directory_location: str | None = None

    def validate(self) -> None:
        if self.delivery_method == SmtpDeliveryMethod.SPECIFIED_PICKUP_DIRECTORY:
            self._require_text("pickup_directory_location")
            return
        self._require_text("host")
        self._require_positive("port")


@dataclass(frozen=True, slots=True)
class SmtpProviderOptions(ProviderOptions):
    """Options of the SMTP email delivery provider."""

    smtp_options: SmtpOptions | None = None

    def validate(self) -> None:
        if self.smtp_options is None:
            raise self._missing("smtp_options", "the SMTP options must be specified")
        self.smtp_options.validate()


# ── HTTP API providers ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SendGridOptions(ProviderOptions):
    """Options of the SendGrid email delivery provider."""

    api_key: str | None = field(default=None, repr=False)

    def validate(self) -> None:
        self._require_text("api_key")


@dataclass(frozen=True, slots=True)
class Smtp2GoOptions(ProviderOptions):
    """Options of the SMTP2GO email delivery provider."""

    api_key: str | None = field(default=None, repr=False)
    api_url: str = SMTP2GO_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def validate(self) -> None:
        self._require_text("api_key")
        self._require_text("api_url")


@dataclass(frozen=True, slots=True)
class MailgunOptions(ProviderOptions):
    """Options of the Mailgun email delivery provider.

    Use ``base_url="https://api.eu.mailgun.net/v3"`` for EU domains.
    """

    api_key: str | None = field(default=None, repr=False)
    domain: str | None = None
    base_url: str = MAILGUN_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def validate(self) -> None:
        self._require_text("api_key")
        self._require_text("domain")
        self._require_text("base_url")


@dataclass(frozen=True, slots=True)
class SocketLabsOptions(ProviderOptions):
    """Options of the SocketLabs email delivery provider."""

    default_server_id: int = 0
    api_key: str | None = field(default=None, repr=False)
    api_url: str = SOCKETLABS_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def validate(self) -> None:
        self._require_positive("default_server_id")
        self._require_text("api_key")
