"""Default values shared by settings and the composer."""

DEFAULT_FETCH_TIMEOUT = 30  # seconds
DEFAULT_MAX_ATTACHMENT_SIZE = 25 * 1024 * 1024  # 25 MB
DEFAULT_HEADER_LINE_LENGTH = 76

CRLF = "\r\n"
