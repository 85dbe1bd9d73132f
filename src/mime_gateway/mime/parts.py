"""Body parts of a MIME message.

Every section of a composed body is described by a :class:`Part`: its kind
decides which header fields it carries, and multipart kinds also own the
boundary used to delimit their children.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from mime_gateway.defaults import CRLF, DEFAULT_HEADER_LINE_LENGTH
from mime_gateway.mime.encoding import fold_header
from mime_gateway.models import TextEncoding


class PartKind(str, Enum):
    """Kinds of MIME sections the composer emits."""

    MIXED = "multipart/mixed"
    ALTERNATIVE = "multipart/alternative"
    TEXT_PLAIN = "text/plain"
    TEXT_HTML = "text/html"
    ATTACHMENT = "attachment"

    @property
    def is_multipart(self) -> bool:
        return self in (PartKind.MIXED, PartKind.ALTERNATIVE)


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class Part(BaseModel):
    """A single MIME section: its kind plus the data its headers need."""

    model_config = ConfigDict(frozen=True)

    kind: PartKind
    boundary: str | None = None
    encoding: TextEncoding | None = None
    mime_type: str | None = None
    filename: str | None = None
    charset: str | None = None
    content_id: bool | str = False
    disposition: str = "attachment"

    @classmethod
    def multipart(cls, kind: PartKind, boundary: str) -> "Part":
        if not kind.is_multipart:
            raise ValueError(f"{kind.value} is not a multipart kind")
        return cls(kind=kind, boundary=boundary)

    @classmethod
    def text(cls, kind: PartKind, encoding: TextEncoding) -> "Part":
        if kind not in (PartKind.TEXT_PLAIN, PartKind.TEXT_HTML):
            raise ValueError(f"{kind.value} is not a text kind")
        return cls(kind=kind, encoding=encoding)

    @classmethod
    def attachment(
        cls,
        mime_type: str,
        filename: str,
        charset: str | None = None,
        content_id: bool | str = False,
        disposition: str = "attachment",
    ) -> "Part":
        return cls(
            kind=PartKind.ATTACHMENT,
            mime_type=mime_type,
            filename=filename,
            charset=charset,
            content_id=content_id,
            disposition=disposition,
        )

    def content_info(self) -> dict[str, str]:
        """Return the content header fields describing this part, in order."""
        if self.kind.is_multipart:
            return {"Content-Type": f'{self.kind.value}; boundary="{self.boundary}"'}

        if self.kind in (PartKind.TEXT_PLAIN, PartKind.TEXT_HTML):
            encoding = self.encoding or TextEncoding.QUOTED_PRINTABLE
            return {
                "Content-Type": f"{self.kind.value}; charset=UTF-8",
                "Content-Transfer-Encoding": encoding.header_value,
            }

        filename = _quote(self.filename or "")
        charset = f" charset={self.charset};" if self.charset else ""
        fields = {
            "Content-Type": f'{self.mime_type};{charset} name="{filename}"',
            "Content-Transfer-Encoding": "base64",
        }
        if self.disposition:
            fields["Content-Disposition"] = f'{self.disposition}; filename="{filename}"'
        if self.content_id:
            fields["Content-ID"] = f"<{self.filename}>" if self.content_id is True else str(self.content_id)
        return fields

    def header_block(self, line_length: int = DEFAULT_HEADER_LINE_LENGTH) -> str:
        """Render the folded content headers followed by a blank line."""
        lines = [fold_header(f"{name}: {value}", line_length) for name, value in self.content_info().items()]
        return CRLF.join(lines) + CRLF + CRLF

    def delimiter(self) -> str:
        """Boundary delimiter line preceding each child section.

        The CRLF before the dashes belongs to the delimiter (RFC 2046).
        """
        self._require_boundary()
        return f"{CRLF}--{self.boundary}{CRLF}"

    def final_delimiter(self) -> str:
        """Closing delimiter line terminating the multipart body."""
        self._require_boundary()
        return f"{CRLF}--{self.boundary}--{CRLF}"

    def _require_boundary(self) -> None:
        if not self.kind.is_multipart or not self.boundary:
            raise ValueError(f"{self.kind.value} part has no boundary")
