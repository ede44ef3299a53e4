"""Fluent builder for :class:`~mailgateway.types.Message`."""

from __future__ import annotations

from .errors import MissingRecipientError
from .types import (
    DEFAULT_CHARSET,
    Address,
    Attachment,
    EdpData,
    Message,
    MessageBody,
    Priority,
    check_header,
)


class MessageComposer:
    """Accumulates message fields and builds one :class:`Message`.

    Usage::

        message = (
            Message.compose()
            .from_address("noreply@example.com", "My App")
            .to("user@example.com")
            .with_subject("Welcome")
            .with_plain_text_content("Hello!")
            .build()
        )

    Addresses are parsed as soon as they are passed in, so a malformed
    address raises :class:`InvalidAddressFormatError` at the call site, and a
    subject or header holding a line break raises
    :class:`InvalidHeaderValueError`. The composer is single-use: :meth:`build`
    may be called once.
    """

    def __init__(self) -> None:
        self._from: Address | None = None
        self._to: list[Address] = []
        self._cc: list[Address] = []
        self._bcc: list[Address] = []
        self._reply_to: list[Address] = []
        self._subject: str | None = None
        self._plain_text: MessageBody | None = None
        self._html: MessageBody | None = None
        self._charset: str = DEFAULT_CHARSET
        self._last_body: str | None = None
        self._headers: dict[str, str] = {}
        self._priority = Priority.NORMAL
        self._attachments: list[Attachment] = []
        self._edp_data: list[EdpData] = []
        self._built = False

    # ── Addresses ─────────────────────────────────────────────────

    def from_address(self, address: str | Address, display_name: str | None = None) -> MessageComposer:
        self._from = Address.parse(address, display_name)
        return self

    def to(self, address: str | Address, display_name: str | None = None) -> MessageComposer:
        self._to.append(Address.parse(address, display_name))
        return self

    def cc(self, address: str | Address, display_name: str | None = None) -> MessageComposer:
        self._cc.append(Address.parse(address, display_name))
        return self

    def bcc(self, address: str | Address, display_name: str | None = None) -> MessageComposer:
        self._bcc.append(Address.parse(address, display_name))
        return self

    def reply_to(self, address: str | Address, display_name: str | None = None) -> MessageComposer:
        self._reply_to.append(Address.parse(address, display_name))
        return self

    # ── Content ───────────────────────────────────────────────────

    def with_subject(self, subject: str) -> MessageComposer:
        self._subject = check_header("Subject", subject)
        return self

    def with_plain_text_content(self, content: str) -> MessageComposer:
        self._plain_text = MessageBody(content, self._charset)
        self._last_body = "plain"
        return self

    def with_html_content(self, content: str) -> MessageComposer:
        self._html = MessageBody(content, self._charset)
        self._last_body = "html"
        return self

    def set_charset_to(self, charset: str) -> MessageComposer:
        """Set the charset of the most recently added body.

        Called before any body is added, it becomes the charset of both.
        """
        if self._last_body == "plain" and self._plain_text is not None:
            self._plain_text = MessageBody(self._plain_text.content, charset)
        elif self._last_body == "html" and self._html is not None:
            self._html = MessageBody(self._html.content, charset)
        else:
            self._charset = charset
        return self

    def with_header(self, key: str, value: str) -> MessageComposer:
        self._headers[key] = check_header(key, value)
        return self

    def with_priority(self, priority: Priority) -> MessageComposer:
        self._priority = Priority(priority)
        return self

    def include_attachment(self, attachment: Attachment) -> MessageComposer:
        self._attachments.append(attachment)
        return self

    def pass_edp_data(self, edp_data: EdpData) -> MessageComposer:
        self._edp_data.append(edp_data)
        return self

    # ── Build ─────────────────────────────────────────────────────

    def build(self) -> Message:
        """Validate the accumulated fields and return the Message."""
        if self._built:
            raise RuntimeError("this composer has already built its message")
        if not self._to:
            raise MissingRecipientError()
        self._built = True
        return Message(
            to=frozenset(self._to),
            from_address=self._from,
            subject=self._subject,
            plain_text_body=self._plain_text,
            html_body=self._html,
            cc=frozenset(self._cc),
            bcc=frozenset(self._bcc),
            reply_to=frozenset(self._reply_to),
            attachments=frozenset(self._attachments),
            headers=dict(self._headers),
            priority=self._priority,
            edp_data=tuple(self._edp_data),
        )
