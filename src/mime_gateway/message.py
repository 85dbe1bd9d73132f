"""Mutable message builder populated through typed setters."""

import logging
import secrets
from collections.abc import Iterable, Mapping
from email.utils import formataddr

from mime_gateway._validators import is_header_safe
from mime_gateway.config import Settings
from mime_gateway.exceptions import GatewayError, HeaderInjectionError, UnsupportedEncodingError
from mime_gateway.mime.encoding import encode_header_word
from mime_gateway.models import AttachmentSpec, TextEncoding

logger = logging.getLogger(__name__)

AttachmentInput = str | AttachmentSpec | Mapping[str, object]


def _new_boundary(prefix: str) -> str:
    return f"{prefix}{secrets.token_hex(16)}"


def _check_header_safe(field: str, value: str) -> None:
    """Raise HeaderInjectionError if ``value`` contains CR or LF.

    Raises:
        HeaderInjectionError: If the value is not header-safe.
    """
    if not is_header_safe(value):
        # Do not log the value, it may carry an injection payload
        logger.warning("Header injection attempt detected (field=%s)", field)
        raise HeaderInjectionError(field)


def _to_attachment_spec(file: AttachmentInput) -> AttachmentSpec:
    if isinstance(file, AttachmentSpec):
        return file
    if isinstance(file, str):
        return AttachmentSpec(source=file)
    if "source" not in file:
        raise GatewayError("The source key is missing from the attachment mapping.")
    return AttachmentSpec.model_validate(dict(file))


class Message:
    """Everything needed to compose one outgoing email.

    Each setter validates its own field and leaves the previous value in
    place when it rejects the new one. Boundaries are generated once per
    instance.
    """

    def __init__(
        self,
        *,
        text_encoding: TextEncoding = TextEncoding.QUOTED_PRINTABLE,
        validate_attachment_errors: bool = True,
    ) -> None:
        self._sender_name: str = ""
        self._sender_email: str = ""
        self._recipients: list[str] = []
        self._reply_to_name: str | None = None
        self._reply_to_email: str | None = None
        self._subject: str = ""
        self._text_plain: str | None = None
        self._text_html: str | None = None
        self._attachments: list[AttachmentSpec] = []
        self._header_fields: dict[str, str] = {}
        self._text_encoding = TextEncoding(text_encoding)
        self._validate_attachment_errors = validate_attachment_errors
        self._boundary_mixed = _new_boundary("=_mix_")
        self._boundary_alternative = _new_boundary("=_alt_")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Message":
        """Create an empty message using the defaults from ``settings``."""
        return cls(
            text_encoding=settings.text_encoding,
            validate_attachment_errors=settings.validate_attachment_errors,
        )

    # Read-only views

    @property
    def sender_name(self) -> str:
        return self._sender_name

    @property
    def sender_email(self) -> str:
        return self._sender_email

    @property
    def recipients(self) -> list[str]:
        return list(self._recipients)

    @property
    def reply_to_name(self) -> str | None:
        return self._reply_to_name

    @property
    def reply_to_email(self) -> str | None:
        return self._reply_to_email

    @property
    def subject(self) -> str:
        return self._subject

    @property
    def text_plain(self) -> str | None:
        return self._text_plain

    @property
    def text_html(self) -> str | None:
        return self._text_html

    @property
    def attachments(self) -> list[AttachmentSpec]:
        return list(self._attachments)

    @property
    def header_fields(self) -> dict[str, str]:
        return dict(self._header_fields)

    @property
    def text_encoding(self) -> TextEncoding:
        return self._text_encoding

    @property
    def validate_attachment_errors(self) -> bool:
        return self._validate_attachment_errors

    @property
    def boundary_mixed(self) -> str:
        return self._boundary_mixed

    @property
    def boundary_alternative(self) -> str:
        return self._boundary_alternative

    # Setters

    def set_from(self, email: str, name: str) -> None:
        """Set sender email address and name in one call."""
        _check_header_safe("Sender Email Address", email)
        _check_header_safe("Sender Name", name)
        self._sender_email = email
        self._sender_name = name

    def set_sender_email_address(self, email: str) -> None:
        _check_header_safe("Sender Email Address", email)
        self._sender_email = email

    def set_sender_name(self, name: str) -> None:
        _check_header_safe("Sender Name", name)
        self._sender_name = name

    def set_recipients(self, recipients: str | Iterable[str]) -> None:
        """Replace the recipient list.

        A string is treated as a comma separated list: entries are trimmed
        and empty entries dropped. Lists are taken as given.
        """
        if isinstance(recipients, str):
            addresses = [r.strip() for r in recipients.split(",")]
            addresses = [r for r in addresses if r]
        else:
            addresses = list(recipients)

        for address in addresses:
            _check_header_safe("Recipient address", address)
        self._recipients = addresses

    def set_reply_to_email_address(self, email: str | None) -> None:
        if email is not None:
            _check_header_safe("Reply-To Email Address", email)
        self._reply_to_email = email

    def set_reply_to_name(self, name: str | None) -> None:
        if name is not None:
            _check_header_safe("Reply-To Name", name)
        self._reply_to_name = name

    def set_subject(self, subject: str) -> None:
        _check_header_safe("Subject", subject)
        self._subject = subject

    def set_text_plain(self, text: str | None) -> None:
        self._text_plain = text

    def set_text_html(self, html: str | None) -> None:
        self._text_html = html

    def set_attachments(self, files: AttachmentInput | Iterable[AttachmentInput] | None) -> None:
        """Replace all attachments.

        Accepts a single source, a list of sources/specs/mappings, or a
        mapping of filename to source. The previous list is always erased.
        """
        self._attachments = []
        if not files:
            return
        if isinstance(files, (str, AttachmentSpec)):
            self.append_attachment(files)
        elif isinstance(files, Mapping) and "source" in files:
            self.append_attachment(files)
        elif isinstance(files, Mapping):
            for filename, source in files.items():
                self.append_attachment({"source": source, "filename": filename})
        else:
            for file in files:
                self.append_attachment(file)

    def append_attachment(self, file: AttachmentInput) -> None:
        """Append one attachment after the existing ones.

        Raises:
            GatewayError: If a mapping has no ``source`` key.
        """
        self._attachments.append(_to_attachment_spec(file))

    def set_validate_attachment_errors(self, validate: bool) -> None:
        if not isinstance(validate, bool):
            raise GatewayError("set_validate_attachment_errors accepts boolean values only.")
        self._validate_attachment_errors = validate

    def set_text_encoding(self, encoding: TextEncoding | str | None) -> None:
        """Select the transfer encoding for text sections.

        ``None`` or an empty string disables encoding.

        Raises:
            UnsupportedEncodingError: If the encoding is unknown.
        """
        if not encoding:
            self._text_encoding = TextEncoding.NONE
            return
        try:
            self._text_encoding = TextEncoding(encoding)
        except ValueError:
            raise UnsupportedEncodingError(str(encoding)) from None

    def append_header_field(self, name: str, value: str) -> None:
        """Add a header field; an existing field with the same name is replaced."""
        if not isinstance(value, str):
            raise GatewayError("append_header_field accepts strings only.")
        _check_header_safe("Header field name", name)
        _check_header_safe(f"Header field {name}", value)
        self._header_fields[name] = value

    def append_header_fields(self, fields: Mapping[str, str]) -> None:
        for name, value in fields.items():
            self.append_header_field(name, value)

    def address_headers(self) -> dict[str, str]:
        """Return From, Reply-To, To and Subject header fields.

        Non-ASCII display names and subjects are RFC 2047 encoded.
        """
        headers = {"From": formataddr((self._sender_name, self._sender_email), charset="utf-8")}
        if self._reply_to_email:
            headers["Reply-To"] = formataddr((self._reply_to_name or "", self._reply_to_email), charset="utf-8")
        headers["To"] = ", ".join(self._recipients)
        headers["Subject"] = encode_header_word(self._subject)
        return headers
