"""Email gateway: the main entry point for sending messages.

The gateway holds the registered providers, picks the one a send should go
through and applies service-wide options such as the default sender.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, TypeVar

from .errors import (
    AmbiguousProviderError,
    DuplicateProviderError,
    MissingSenderError,
    ProviderNotFoundError,
)
from .providers.base import DEFAULT_MAX_CONCURRENCY
from .types import EdpData, Message, SendErrorKind, SendResult, _backfill_sender

if TYPE_CHECKING:
    from .options import EmailServiceOptions, ProviderOptions
    from .providers.base import EmailDeliveryProvider

logger = logging.getLogger(__name__)

OptionsT = TypeVar("OptionsT", bound="ProviderOptions")


class EmailGateway:
    """Routes messages to registered email delivery providers.

    Usage::

        from mailgateway import EmailGateway, EmailServiceOptions, Message
        from mailgateway import SmtpEmailDeliveryProvider, SmtpProviderOptions, SmtpOptions

        gateway = EmailGateway(EmailServiceOptions(default_provider="smtp", default_from="noreply@example.com"))
        gateway.register_provider(
            SmtpProviderOptions(smtp_options=SmtpOptions(host="smtp.example.com", port=587)),
            SmtpEmailDeliveryProvider,
        )
        result = gateway.send(Message.compose().to("user@example.com").with_subject("Hi").build())
        if result.is_success:
            print(f"Sent: {result.message_id}")

    Provider selection: an explicit ``provider_name`` wins, then
    ``options.default_provider``, then the only registered provider. With
    several providers and no default, :class:`AmbiguousProviderError` is
    raised before anything is sent.
    """

    def __init__(self, options: EmailServiceOptions | None = None) -> None:
        if options is not None:
            options.validate()
        self.options = options
        self._providers: dict[str, EmailDeliveryProvider] = {}
        self._sender_lock = threading.Lock()

    @property
    def providers(self) -> Mapping[str, EmailDeliveryProvider]:
        return MappingProxyType(self._providers)

    # ── Registration ──────────────────────────────────────────────

    def register_provider(
        self,
        options: OptionsT,
        factory: Callable[[OptionsT], EmailDeliveryProvider],
    ) -> EmailDeliveryProvider:
        """Validate ``options``, build a provider from them and register it.

        Nothing is registered when validation or construction fails.
        """
        options.validate()
        return self.add_provider(factory(options))

    def add_provider(self, provider: EmailDeliveryProvider) -> EmailDeliveryProvider:
        """Register an already-built provider under its name."""
        if provider.name in self._providers:
            raise DuplicateProviderError(provider.name)
        self._providers[provider.name] = provider
        logger.info("Registered email delivery provider '%s'", provider.name)
        return provider

    def get_provider(self, provider_name: str | None = None) -> EmailDeliveryProvider:
        """Return the provider a send with ``provider_name`` would use."""
        if provider_name is None and self.options is not None:
            provider_name = self.options.default_provider
        if provider_name is not None:
            try:
                return self._providers[provider_name]
            except KeyError:
                raise ProviderNotFoundError(provider_name) from None
        if len(self._providers) == 1:
            return next(iter(self._providers.values()))
        if not self._providers:
            raise ProviderNotFoundError(None)
        raise AmbiguousProviderError(self._providers)

    # ── Sending ───────────────────────────────────────────────────

    def send(
        self,
        message: Message,
        provider_name: str | None = None,
        *,
        edp_data: Sequence[EdpData] = (),
    ) -> SendResult:
        """Send a message through the selected provider.

        Args:
            message: The message to send.
            provider_name: Registered provider to use instead of the default.
            edp_data: Provider-specific data for this send only.

        Returns:
            The provider's SendResult. Delivery failures are reported here,
            never raised.
        """
        provider = self.get_provider(provider_name)
        self._prepare(provider, message, edp_data)
        if self._paused:
            return self._paused_result(provider)
        return provider.send(message, edp_data)

    def send_multiple(self, messages: Iterable[Message], provider_name: str | None = None) -> list[SendResult]:
        """Send messages in order, one result per message.

        Every message is checked before the first one is sent, so a message
        built wrong aborts the batch before any delivery happens.
        """
        provider = self.get_provider(provider_name)
        batch = [self._prepare(provider, message) for message in messages]
        if self._paused:
            return [self._paused_result(provider) for _ in batch]
        return provider.send_multiple(batch)

    async def send_async(
        self,
        message: Message,
        provider_name: str | None = None,
        *,
        edp_data: Sequence[EdpData] = (),
    ) -> SendResult:
        provider = self.get_provider(provider_name)
        self._prepare(provider, message, edp_data)
        if self._paused:
            return self._paused_result(provider)
        return await provider.send_async(message, edp_data)

    async def send_multiple_async(
        self,
        messages: Iterable[Message],
        provider_name: str | None = None,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> list[SendResult]:
        provider = self.get_provider(provider_name)
        batch = [self._prepare(provider, message) for message in messages]
        if self._paused:
            return [self._paused_result(provider) for _ in batch]
        return await provider.send_multiple_async(batch, max_concurrency=max_concurrency)

    def close(self) -> None:
        """Close every registered provider that holds transport resources."""
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if callable(close):
                close()

    # ── Internals ─────────────────────────────────────────────────

    @property
    def _paused(self) -> bool:
        return self.options is not None and self.options.pause_sending

    def _paused_result(self, provider: EmailDeliveryProvider) -> SendResult:
        logger.warning("Email sending is paused, message not sent via '%s'", provider.name)
        return SendResult.fail(provider.name, "email sending is paused", kind=SendErrorKind.SENDING_PAUSED)

    def _prepare(
        self,
        provider: EmailDeliveryProvider,
        message: Message,
        edp_data: Sequence[EdpData] = (),
    ) -> Message:
        if message is None:
            raise TypeError("message must not be None")
        if message.from_address is None:
            sender = self.options.default_sender if self.options is not None else None
            if sender is None:
                raise MissingSenderError()
            with self._sender_lock:
                if message.from_address is None:
                    _backfill_sender(message, sender)
        provider.validate_message(message, edp_data)
        return message
