"""Mock email delivery provider for testing.

Records all sent messages and returns configurable results.
Useful for unit testing code that depends on mailgateway without
hitting real providers.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from .providers.base import BaseEmailDeliveryProvider, check_message
from .types import Address, EdpData, Message, SendErrorKind, SendResult, ordered_addresses, ordered_attachments


@dataclass
class SentMessage:
    """Record of a message sent through the MockEmailProvider."""

    message: Message
    result: SendResult


class MockEmailProvider(BaseEmailDeliveryProvider):
    """Test provider that records messages and returns configurable results.

    Usage::

        provider = MockEmailProvider()
        result = provider.send(message)
        assert result.is_success
        assert len(provider.sent) == 1
        assert provider.sent[0].message is message

    Configure failures::

        provider = MockEmailProvider(failure_rate=0.5)
        # ~50% of sends will fail

    Reject specific recipients, as a server would for unroutable addresses::

        provider = MockEmailProvider(rejected_addresses=["nobody@example.com"])

    Or provide a fixed result::

        provider = MockEmailProvider(fixed_result=SendResult.fail("mock", "quota exceeded"))
    """

    default_name = "mock"

    def __init__(
        self,
        *,
        name: str | None = None,
        failure_rate: float = 0.0,
        fixed_result: SendResult | None = None,
        rejected_addresses: Iterable[str] = (),
    ) -> None:
        super().__init__(name=name)
        self.failure_rate = failure_rate
        self.fixed_result = fixed_result
        self.rejected_addresses = frozenset(Address.parse(a).address for a in rejected_addresses)
        self.sent: list[SentMessage] = []

    def create_provider_message(self, message: Message, edp_data: Sequence[EdpData] = ()) -> dict[str, Any]:
        check_message(message)
        return {
            "from": str(message.from_address),
            "to": [str(a) for a in ordered_addresses(message.to)],
            "cc": [str(a) for a in ordered_addresses(message.cc)],
            "bcc": [str(a) for a in ordered_addresses(message.bcc)],
            "reply_to": [str(a) for a in ordered_addresses(message.reply_to)],
            "subject": message.subject,
            "text": message.plain_text_body.content if message.plain_text_body else None,
            "html": message.html_body.content if message.html_body else None,
            "headers": dict(message.headers),
            "priority": message.priority.value,
            "attachments": [a.resolve() for a in ordered_attachments(message.attachments)],
            "edp_data": [*message.edp_data, *edp_data],
        }

    def _deliver(self, message: Message, native: dict[str, Any], edp_data: Sequence[EdpData]) -> SendResult:
        rejected = [a.address for a in message.all_recipients if a.address in self.rejected_addresses]
        if self.fixed_result is not None:
            result = self.fixed_result
        elif rejected:
            result = SendResult.fail(
                self.name,
                f"Recipient address rejected: {', '.join(rejected)}",
                kind=SendErrorKind.REJECTED,
                error_code="550",
            )
        elif self.failure_rate > 0 and random.random() < self.failure_rate:  # noqa: S311
            result = SendResult.fail(self.name, "Simulated failure", kind=SendErrorKind.TRANSPORT)
        else:
            result = SendResult.ok(self.name, message_id=f"mock_{uuid.uuid4().hex[:12]}", raw_response=native)

        self.sent.append(SentMessage(message=message, result=result))
        return result

    def reset(self) -> None:
        """Clear all recorded messages."""
        self.sent.clear()
