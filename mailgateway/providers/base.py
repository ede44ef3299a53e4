"""Base protocol and shared behaviour for email delivery providers."""

from __future__ import annotations

import asyncio
import binascii
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any, Protocol, TypeVar

from mailgateway.errors import MissingSenderError
from mailgateway.options import ProviderOptions
from mailgateway.types import EdpData, Message, SendErrorKind, SendResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4

OptionsT = TypeVar("OptionsT", bound=ProviderOptions)


class EmailDeliveryProvider(Protocol):
    """Interface that all email delivery providers must implement."""

    name: str

    def validate_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Message:
        """Raise for a message this provider could never send.

        Called for every message of a batch before the first one is sent.
        """
        ...

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Any:
        """Project a Message into the provider's native representation.

        Deterministic and free of network access.
        """
        ...

    def send(self, message: Message, edp_data: Sequence[EdpData] = ()) -> SendResult:
        """Send a message and return the result.

        Transport failures are returned as a failed SendResult, never raised.
        """
        ...

    def send_multiple(self, messages: Iterable[Message]) -> list[SendResult]:
        """Send each message in turn, one result per message in input order."""
        ...

    async def send_async(self, message: Message, edp_data: Sequence[EdpData] = ()) -> SendResult: ...

    async def send_multiple_async(
        self,
        messages: Iterable[Message],
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> list[SendResult]: ...


def validated(options: OptionsT | None) -> OptionsT:
    """Validate provider options, returning them unchanged."""
    if options is None:
        raise TypeError("provider options must not be None")
    options.validate()
    return options


def check_message(message: Message | None) -> Message:
    """Reject programmer errors before any transport work."""
    if message is None:
        raise TypeError("message must not be None")
    if not isinstance(message, Message):
        raise TypeError(f"expected a Message, got {type(message).__name__}")
    if message.from_address is None:
        raise MissingSenderError()
    return message


class BaseEmailDeliveryProvider(ABC):
    """Shared send pipeline for concrete providers.

    Subclasses implement :meth:`create_provider_message` and :meth:`_deliver`.
    """

    default_name = "edp"

    def __init__(self, *, name: str | None = None) -> None:
        self.name = name or self.default_name

    def validate_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Message:
        return check_message(message)

    @abstractmethod
    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> Any: ...

    @abstractmethod
    def _deliver(self, message: Message, native: Any, edp_data: Sequence[EdpData]) -> SendResult: ...

    def send(self, message: Message, edp_data: Sequence[EdpData] = ()) -> SendResult:
        """Send a message through this provider."""
        self.validate_message(message, edp_data)
        try:
            native = self.create_provider_message(message, edp_data)
        except (OSError, binascii.Error) as exc:
            logger.exception("Could not read attachments for message to %s via %s", format_recipients(message), self.name)
            return SendResult.fail(self.name, f"failed to read attachment: {exc}", kind=SendErrorKind.ATTACHMENT)
        return self._deliver(message, native, edp_data)

    def send_multiple(self, messages: Iterable[Message]) -> list[SendResult]:
        batch = [self.validate_message(message) for message in messages]
        return [self.send(message) for message in batch]

    async def send_async(self, message: Message, edp_data: Sequence[EdpData] = ()) -> SendResult:
        """Send a message asynchronously (runs sync send in a thread)."""
        return await asyncio.to_thread(self.send, message, edp_data)

    async def send_multiple_async(
        self,
        messages: Iterable[Message],
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> list[SendResult]:
        """Send messages concurrently, at most ``max_concurrency`` at a time."""
        batch = [self.validate_message(message) for message in messages]
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def _send_one(message: Message) -> SendResult:
            async with semaphore:
                return await self.send_async(message)

        return list(await asyncio.gather(*(_send_one(message) for message in batch)))

    def close(self) -> None:
        """Release transport resources. No-op unless the provider holds any."""

    def __enter__(self) -> BaseEmailDeliveryProvider:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    async def __aenter__(self) -> BaseEmailDeliveryProvider:
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()


def format_recipients(message: Message) -> str:
    return ", ".join(address.address for address in message.all_recipients)
