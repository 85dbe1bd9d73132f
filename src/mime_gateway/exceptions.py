"""Custom exceptions for mime-gateway."""


class MimeGatewayError(Exception):
    """Base exception for mime-gateway."""


class GatewayError(MimeGatewayError):
    """Raised when the gateway API is used incorrectly."""


class UnsupportedEncodingError(GatewayError):
    """Raised when an unknown text encoding is requested."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(
            f"{encoding} is not a supported encoding type. "
            "Please use quoted-printable or base64, or none for no encoding."
        )


class ValidationError(MimeGatewayError):
    """Raised when a message is not sendable as composed."""

    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        self.detail = detail
        super().__init__(detail)


class HeaderInjectionError(MimeGatewayError):
    """Raised when a header-bound value contains a carriage return or newline."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} can not contain carriage return or newlines.")


class AttachmentLoadError(MimeGatewayError):
    """Raised when the content of an attachment could not be loaded."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"The content of the file `{source}` could not be loaded.")


class ComposeError(MimeGatewayError):
    """Raised when a message can not be turned into a MIME body."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
