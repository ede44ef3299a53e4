"""Exceptions raised for programmer and configuration errors.

Anything raised from this module means the message or the provider setup is
wrong and no network activity happened. Failures reported by a transport are
never raised; they come back as ``SendResult.error``.
"""

from __future__ import annotations

from collections.abc import Iterable


class MailGatewayError(Exception):
    """Base class for every error raised by mailgateway."""


class InvalidAddressFormatError(MailGatewayError, ValueError):
    """Raised when a string cannot be parsed into an email address."""

    def __init__(self, value: str, reason: str | None = None) -> None:
        message = f"'{value}' is not a valid email address"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.value = value
        self.reason = reason


class MissingRecipientError(MailGatewayError, ValueError):
    """Raised when a message is built without any 'To' recipient."""

    def __init__(self, message: str = "you must specify at least one recipient email in the 'To' list") -> None:
        super().__init__(message)


class MissingSenderError(MailGatewayError, ValueError):
    """Raised when a message reaches a provider without a 'From' address."""

    def __init__(self, message: str = "the message has no 'From' address and no default sender is configured") -> None:
        super().__init__(message)


class RequiredOptionValueNotSpecifiedException(MailGatewayError, ValueError):
    """Raised by ``validate()`` for the first missing or invalid option value."""

    def __init__(self, options_type: str, field_name: str, reason: str) -> None:
        super().__init__(f"{options_type}.{field_name}: {reason}")
        self.options_type = options_type
        self.field_name = field_name
        self.reason = reason


class AmbiguousProviderError(MailGatewayError, LookupError):
    """Raised when several providers are registered and none was chosen."""

    def __init__(self, provider_names: Iterable[str]) -> None:
        self.provider_names = tuple(sorted(provider_names))
        super().__init__(
            "multiple email delivery providers are registered "
            f"({', '.join(self.provider_names)}) and no default provider is configured"
        )


class ProviderNotFoundError(MailGatewayError, LookupError):
    """Raised when the requested provider is not registered."""

    def __init__(self, provider_name: str | None) -> None:
        self.provider_name = provider_name
        if provider_name is None:
            super().__init__("no email delivery provider is registered")
        else:
            super().__init__(f"no email delivery provider named '{provider_name}' is registered")


class DuplicateProviderError(MailGatewayError, ValueError):
    """Raised when registering a provider under a name already in use."""

    def __init__(self, provider_name: str) -> None:
        super().__init__(f"an email delivery provider named '{provider_name}' is already registered")
        self.provider_name = provider_name


class InvalidHeaderValueError(MailGatewayError, ValueError):
    """Raised when a subject or header contains a line break, or a header name is malformed."""

    def __init__(self, header_name: str, value: str) -> None:
        super().__init__(f"invalid value for header {header_name!r}: {value!r}")
        self.header_name = header_name
        self.value = value
