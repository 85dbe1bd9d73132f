"""Message data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mime_gateway._validators import is_header_safe
from mime_gateway.defaults import CRLF, DEFAULT_HEADER_LINE_LENGTH
from mime_gateway.mime.encoding import fold_header


class TextEncoding(str, Enum):
    """Content-Transfer-Encoding applied to text body sections."""

    QUOTED_PRINTABLE = "quoted-printable"
    BASE64 = "base64"
    NONE = "none"

    @property
    def header_value(self) -> str:
        """Value of the Content-Transfer-Encoding header for this encoding."""
        if self is TextEncoding.NONE:
            return "8bit"
        return self.value


class AttachmentSpec(BaseModel):
    """A file to attach to an outgoing message.

    ``source`` is either a local path or a URL. Everything else is optional:
    the filename is derived from the source, the MIME type is sniffed from the
    filename.

    ``content_id`` may be ``True`` to use ``<filename>`` as the Content-ID, or
    an explicit string. An empty ``disposition`` omits Content-Disposition.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1)
    filename: str | None = None
    mime_type: str | None = None
    charset: str | None = None
    content_id: bool | str = False
    disposition: str = "attachment"

    @field_validator("source")
    @classmethod
    def _source_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Attachment source can not be blank")
        return v

    @field_validator("filename", "mime_type", "charset", "content_id", "disposition")
    @classmethod
    def _header_safe(cls, v: bool | str | None) -> bool | str | None:
        if isinstance(v, str) and not is_header_safe(v):
            raise ValueError("Attachment header values can not contain carriage return or newlines")
        return v


class ComposedMessage(BaseModel):
    """Immutable result of composing a message: headers plus body."""

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str]
    body: str

    def as_string(self, line_length: int = DEFAULT_HEADER_LINE_LENGTH) -> str:
        """Render header lines, a blank line and the body."""
        lines = [fold_header(f"{name}: {value}", line_length) for name, value in self.headers.items()]
        return CRLF.join(lines) + CRLF + CRLF + self.body
