"""Core types for the mailgateway library."""

from __future__ import annotations

import base64
import mimetypes
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from email.utils import formataddr, parseaddr
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Union

from email_validator import EmailNotValidError, validate_email

from .errors import InvalidAddressFormatError, InvalidHeaderValueError, MissingRecipientError

if TYPE_CHECKING:
    from .composer import MessageComposer

DEFAULT_CHARSET = "utf-8"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_HEADER_NAME = re.compile(r"[!-9;-~]+")


# ── Addresses ─────────────────────────────────────────────────────────


def _normalize_address(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidAddressFormatError(str(value), "the address is empty")
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise InvalidAddressFormatError(value, str(exc)) from exc


@dataclass(frozen=True, slots=True)
class Address:
    """An email address with an optional display name.

    The address is validated and normalized on construction. Two addresses
    are equal when their normalized address is equal; the display name is
    informational only.
    """

    address: str
    display_name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", _normalize_address(self.address))
        if not self.display_name:
            object.__setattr__(self, "display_name", None)
        elif "\r" in self.display_name or "\n" in self.display_name:
            raise InvalidAddressFormatError(self.address, "the display name contains a line break")

    @classmethod
    def parse(cls, value: str | Address, display_name: str | None = None) -> Address:
        """Parse ``"a@x.com"`` or ``"Name <a@x.com>"`` into an Address.

        An explicit ``display_name`` takes precedence over one embedded in
        ``value``.
        """
        if isinstance(value, Address):
            if display_name is None:
                return value
            return cls(value.address, display_name)
        if not isinstance(value, str):
            raise InvalidAddressFormatError(str(value), "expected a string")
        parsed_name, parsed_address = parseaddr(value)
        if not parsed_address:
            raise InvalidAddressFormatError(value)
        return cls(parsed_address, display_name or parsed_name or None)

    def __str__(self) -> str:
        return formataddr((self.display_name or "", self.address))


def _coerce_addresses(values: Iterable[str | Address] | None) -> frozenset[Address]:
    if values is None:
        return frozenset()
    if isinstance(values, (str, Address)):
        values = [values]
    return frozenset(Address.parse(value) for value in values)


# ── Attachments ───────────────────────────────────────────────────────


def _guess_content_type(file_name: str) -> str:
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE


@dataclass(frozen=True, slots=True)
class ResolvedAttachment:
    """Attachment bytes materialized by a provider at send time."""

    file_name: str
    content: bytes
    content_type: str

    @property
    def maintype(self) -> str:
        return self.content_type.split("/", 1)[0]

    @property
    def subtype(self) -> str:
        parts = self.content_type.split("/", 1)
        return parts[1] if len(parts) == 2 else "octet-stream"

    def base64_content(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


@dataclass(frozen=True, slots=True)
class FilePathAttachment:
    """An attachment read from disk when the message is sent."""

    path: str | os.PathLike[str]
    file_name: str | None = None
    content_type: str | None = None

    def resolve(self) -> ResolvedAttachment:
        path = Path(self.path)
        file_name = self.file_name or path.name
        return ResolvedAttachment(
            file_name=file_name,
            content=path.read_bytes(),
            content_type=self.content_type or _guess_content_type(file_name),
        )


@dataclass(frozen=True, slots=True)
class Base64Attachment:
    """An attachment given as a base64-encoded string."""

    file_name: str
    content: str
    content_type: str | None = None

    def resolve(self) -> ResolvedAttachment:
        return ResolvedAttachment(
            file_name=self.file_name,
            content=base64.b64decode(self.content, validate=True),
            content_type=self.content_type or _guess_content_type(self.file_name),
        )


@dataclass(frozen=True, slots=True)
class BytesAttachment:
    """An attachment given as an in-memory byte payload."""

    file_name: str
    content: bytes
    content_type: str | None = None

    def resolve(self) -> ResolvedAttachment:
        return ResolvedAttachment(
            file_name=self.file_name,
            content=bytes(self.content),
            content_type=self.content_type or _guess_content_type(self.file_name),
        )


Attachment = Union[FilePathAttachment, Base64Attachment, BytesAttachment]


# ── Message parts ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MessageBody:
    """Body content together with its character set."""

    content: str
    charset: str = DEFAULT_CHARSET


class Priority(str, Enum):
    """Priority of an email message."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class EdpDataKey(str, Enum):
    """Keys of the provider-specific data a message can carry.

    Each provider reads only the keys it understands and ignores the rest.
    """

    SMTP_OPTIONS = "smtp_options"
    SENDGRID_TEMPLATE_ID = "sendgrid_template_id"
    SENDGRID_CATEGORIES = "sendgrid_categories"
    SMTP2GO_TEMPLATE_ID = "smtp2go_template_id"
    MAILGUN_TAGS = "mailgun_tags"
    SOCKETLABS_SERVER_ID = "socketlabs_server_id"


@dataclass(frozen=True, slots=True)
class EdpData:
    """A provider-specific value passed through a generic Message."""

    key: EdpDataKey
    value: Any


# ── Message ───────────────────────────────────────────────────────────


def check_header(name: str, value: str) -> str:
    """Return ``value`` if it can be written as the ``name`` header."""
    if not isinstance(name, str) or not _HEADER_NAME.fullmatch(name):
        raise InvalidHeaderValueError(str(name), value)
    if not isinstance(value, str) or "\r" in value or "\n" in value:
        raise InvalidHeaderValueError(name, value)
    return value


@dataclass(frozen=True, slots=True)
class Message:
    """An email message, fully validated and immutable once built.

    Prefer building messages with :meth:`Message.compose`. ``to`` must hold at
    least one address. ``from_address`` may be left unset, in which case the
    gateway fills it from ``EmailServiceOptions.default_from``.
    """

    # from_address, headers and edp_data stay out of the hash: the sender may
    # be backfilled and EdpData values need not be hashable.
    to: frozenset[Address]
    from_address: Address | None = field(default=None, hash=False)
    subject: str | None = None
    plain_text_body: MessageBody | None = None
    html_body: MessageBody | None = None
    cc: frozenset[Address] = frozenset()
    bcc: frozenset[Address] = frozenset()
    reply_to: frozenset[Address] = frozenset()
    attachments: frozenset[Attachment] = frozenset()
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    priority: Priority = Priority.NORMAL
    edp_data: tuple[EdpData, ...] = field(default=(), hash=False)

    def __post_init__(self) -> None:
        to = _coerce_addresses(self.to)
        if not to:
            raise MissingRecipientError()
        object.__setattr__(self, "to", to)
        if self.from_address is not None:
            object.__setattr__(self, "from_address", Address.parse(self.from_address))
        object.__setattr__(self, "cc", _coerce_addresses(self.cc))
        object.__setattr__(self, "bcc", _coerce_addresses(self.bcc))
        object.__setattr__(self, "reply_to", _coerce_addresses(self.reply_to))
        object.__setattr__(self, "attachments", frozenset(self.attachments or ()))
        if self.subject is not None:
            check_header("Subject", self.subject)
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))
        for name, value in self.headers.items():
            check_header(name, value)
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "edp_data", tuple(self.edp_data or ()))

    @staticmethod
    def compose() -> MessageComposer:
        """Start composing a new message."""
        from .composer import MessageComposer

        return MessageComposer()

    def edp_value(self, key: EdpDataKey, extra: Iterable[EdpData] = ()) -> Any:
        """Return the value of the last EdpData entry for ``key``, or None.

        Entries in ``extra`` are considered after the message's own entries.
        """
        value = None
        for item in (*self.edp_data, *extra):
            if item.key == key:
                value = item.value
        return value

    @property
    def all_recipients(self) -> list[Address]:
        """To, Cc and Bcc addresses, each listed once."""
        seen: set[Address] = set()
        recipients: list[Address] = []
        for address in (*ordered_addresses(self.to), *ordered_addresses(self.cc), *ordered_addresses(self.bcc)):
            if address not in seen:
                seen.add(address)
                recipients.append(address)
        return recipients


def ordered_addresses(addresses: Iterable[Address]) -> list[Address]:
    """Stable ordering for projecting address sets into provider payloads."""
    return sorted(addresses, key=lambda a: a.address)


def ordered_attachments(attachments: Iterable[Attachment]) -> list[Attachment]:
    """Stable ordering for projecting attachments into provider payloads."""
    return sorted(attachments, key=repr)


def _backfill_sender(message: Message, sender: Address) -> None:
    """Set the sender of a message built without one.

    Only the gateway calls this, before the message reaches a provider.
    """
    if message.from_address is not None:
        raise RuntimeError("the message sender is already set")
    object.__setattr__(message, "from_address", sender)


# ── Send results ──────────────────────────────────────────────────────


class SendErrorKind(str, Enum):
    """Category of a failed send attempt."""

    REJECTED = "rejected"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    ATTACHMENT = "attachment"
    SENDING_PAUSED = "sending_paused"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Why a send attempt failed."""

    kind: SendErrorKind
    message: str
    code: str | None = None


@dataclass(frozen=True, slots=True)
class SendResult:
    """Result of a single send attempt through one provider."""

    is_success: bool
    provider_name: str
    message_id: str | None = None
    error: ErrorInfo | None = None
    raw_response: Any = field(default=None, compare=False, repr=False)

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @classmethod
    def ok(
        cls,
        provider_name: str,
        *,
        message_id: str | None = None,
        raw_response: Any = None,
    ) -> SendResult:
        return cls(
            is_success=True,
            provider_name=provider_name,
            message_id=message_id,
            raw_response=raw_response,
        )

    @classmethod
    def fail(
        cls,
        provider_name: str,
        error_message: str,
        *,
        kind: SendErrorKind = SendErrorKind.UNKNOWN,
        error_code: str | None = None,
        raw_response: Any = None,
    ) -> SendResult:
        return cls(
            is_success=False,
            provider_name=provider_name,
            error=ErrorInfo(kind=kind, message=error_message, code=error_code),
            raw_response=raw_response,
        )
