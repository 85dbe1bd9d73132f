"""Turn a populated :class:`Message` into MIME headers and body.

The structure of the body depends on which content is present:

====================  =====================================================
content               structure
====================  =====================================================
attachments + both    multipart/mixed > (multipart/alternative, files...)
attachments + one     multipart/mixed > (text/plain or text/html, files...)
attachments only      multipart/mixed > (files...)
plain + html          multipart/alternative > (text/plain, text/html)
plain or html         single text/plain or text/html part
nothing               ComposeError
====================  =====================================================
"""

import logging

from mime_gateway._validators import is_header_safe, is_valid_email_address
from mime_gateway.attachments import (
    AttachmentLoader,
    Fetcher,
    FileStore,
    LocalFileStore,
    MimeSniffer,
    MimetypesSniffer,
    UrlFetcher,
)
from mime_gateway.config import Settings
from mime_gateway.defaults import CRLF
from mime_gateway.exceptions import ComposeError, ValidationError
from mime_gateway.message import Message
from mime_gateway.mime.encoding import base64_encode, qp_encode
from mime_gateway.mime.parts import Part, PartKind
from mime_gateway.models import AttachmentSpec, ComposedMessage, TextEncoding

logger = logging.getLogger(__name__)


class MessageComposer:
    """Validates messages and composes them into a :class:`ComposedMessage`.

    Collaborators default to the filesystem, :mod:`urllib` and
    :mod:`mimetypes`; pass your own to load attachments from elsewhere.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        fetcher: Fetcher | None = None,
        file_store: FileStore | None = None,
        sniffer: MimeSniffer | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.loader = AttachmentLoader(
            fetcher=fetcher or UrlFetcher(max_bytes=self.settings.max_attachment_size),
            file_store=file_store or LocalFileStore(self.settings.temp_dir),
            timeout=self.settings.fetch_timeout,
            max_size=self.settings.max_attachment_size,
        )
        self.sniffer = sniffer or MimetypesSniffer()

    @staticmethod
    def validate_header_safe(value: str) -> bool:
        """Return True if ``value`` can be placed in a header field."""
        return is_header_safe(value)

    def validate(self, message: Message) -> None:
        """Check that ``message`` has what it takes to be sent.

        Raises:
            ValidationError: For the first field found to be missing or
                invalid, checked in the order subject, sender, recipients.
        """
        if not message.subject.strip():
            raise ValidationError("subject", "Email subject cannot be empty.")
        if not message.sender_email.strip():
            raise ValidationError("sender_email", "Sender email address cannot be empty.")
        if not is_valid_email_address(message.sender_email):
            raise ValidationError("sender_email", "Sender email address must be a valid email address.")
        if not message.recipients:
            raise ValidationError("recipients", "At least one recipient is required.")
        for address in message.recipients:
            if not address.strip():
                raise ValidationError("recipients", "Recipient email address cannot be empty.")
            if not is_valid_email_address(address):
                raise ValidationError("recipients", f"The email address '{address}' is invalid.")

    def compose(self, message: Message) -> ComposedMessage:
        """Build the header map and body for ``message``.

        The message itself is left untouched, so composing it again gives
        the same result.

        Raises:
            AttachmentLoadError: If an attachment can not be loaded and the
                message validates attachment errors.
            ComposeError: If there is nothing to send or a content header
                collides with a user supplied header field.
        """
        encoding = message.text_encoding
        plain = message.text_plain
        html = message.text_html
        headers = message.header_fields

        mixed = Part.multipart(PartKind.MIXED, message.boundary_mixed)
        attachments = ""
        for spec in message.attachments:
            section = self.render_attachment_section(spec, strict=message.validate_attachment_errors)
            if section is not None:
                attachments += mixed.delimiter() + section

        if attachments:
            self._merge_headers(headers, mixed.content_info())
            if plain and html:
                alternative = Part.multipart(PartKind.ALTERNATIVE, message.boundary_alternative)
                body = (
                    mixed.delimiter()
                    + self._header_block(alternative)
                    + self._render_alternative(message, alternative)
                )
            elif plain:
                body = (
                    mixed.delimiter()
                    + self._header_block(Part.text(PartKind.TEXT_PLAIN, encoding))
                    + self.render_text_section(plain, encoding)
                )
            elif html:
                body = (
                    mixed.delimiter()
                    + self._header_block(Part.text(PartKind.TEXT_HTML, encoding))
                    + self.render_text_section(html, encoding)
                )
            else:
                body = ""
            body += attachments + mixed.final_delimiter()
        elif plain and html:
            alternative = Part.multipart(PartKind.ALTERNATIVE, message.boundary_alternative)
            self._merge_headers(headers, alternative.content_info())
            body = self._render_alternative(message, alternative)
        elif plain:
            self._merge_headers(headers, Part.text(PartKind.TEXT_PLAIN, encoding).content_info())
            body = self.render_text_section(plain, encoding)
        elif html:
            self._merge_headers(headers, Part.text(PartKind.TEXT_HTML, encoding).content_info())
            body = self.render_text_section(html, encoding)
        else:
            raise ComposeError("No attachments or body text was set. Can not send empty email.")

        logger.debug(
            "Composed message (headers=%d, body_length=%d, attachments=%d)",
            len(headers),
            len(body),
            len(message.attachments),
        )
        return ComposedMessage(headers=headers, body=body)

    def render_text_section(self, text: str, encoding: TextEncoding) -> str:
        """Encode a text body for use as a section payload.

        Base64 output gets no trailing CRLF, some spam filters penalize it.
        """
        encoding = TextEncoding(encoding)
        if encoding is TextEncoding.QUOTED_PRINTABLE:
            return qp_encode(text) + CRLF
        if encoding is TextEncoding.BASE64:
            return base64_encode(text)
        return text + CRLF

    def render_attachment_section(
        self,
        spec: AttachmentSpec,
        *,
        strict: bool = True,
    ) -> str | None:
        """Render the header block and base64 payload of one attachment.

        Returns:
            The rendered section, or None if the attachment was skipped.

        Raises:
            AttachmentLoadError: If the content can not be loaded and
                ``strict`` is True.
        """
        loaded = self.loader.load(spec, strict=strict)
        if loaded is None:
            return None

        part = Part.attachment(
            mime_type=spec.mime_type or self.sniffer.detect(loaded.filename),
            filename=loaded.filename,
            charset=spec.charset,
            content_id=spec.content_id,
            disposition=spec.disposition,
        )
        return self._header_block(part) + base64_encode(loaded.content)

    def _render_alternative(self, message: Message, alternative: Part) -> str:
        encoding = message.text_encoding
        return (
            alternative.delimiter()
            + self._header_block(Part.text(PartKind.TEXT_PLAIN, encoding))
            + self.render_text_section(message.text_plain or "", encoding)
            + alternative.delimiter()
            + self._header_block(Part.text(PartKind.TEXT_HTML, encoding))
            + self.render_text_section(message.text_html or "", encoding)
            + alternative.final_delimiter()
        )

    def _header_block(self, part: Part) -> str:
        return part.header_block(self.settings.header_line_length)

    @staticmethod
    def _merge_headers(headers: dict[str, str], content_headers: dict[str, str]) -> None:
        """Add content headers, refusing to replace user supplied fields.

        Raises:
            ComposeError: If a field with the same name is already present.
        """
        existing = {name.lower() for name in headers}
        for name, value in content_headers.items():
            if name.lower() in existing:
                raise ComposeError(f"Header field {name} is already set and can not be overwritten.")
            headers[name] = value
