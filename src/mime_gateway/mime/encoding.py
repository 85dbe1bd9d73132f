"""Content-Transfer-Encoding helpers and header folding.

All output uses CRLF line endings as required on the wire.
"""

import base64
import binascii
from email.charset import BASE64, Charset
from email.header import Header

from mime_gateway.defaults import CRLF, DEFAULT_HEADER_LINE_LENGTH

BASE64_LINE_LENGTH = 76

# RFC 2047 limit for a single encoded word
_ENCODED_WORD_LENGTH = 75

_UTF8_BASE64 = Charset("utf-8")
_UTF8_BASE64.header_encoding = BASE64


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def qp_encode(text: str) -> str:
    """Quoted-printable encode ``text`` as UTF-8.

    Hard line breaks are preserved as CRLF, long lines get soft breaks at
    76 columns. No trailing line break is added.
    """
    data = _normalize_newlines(text).encode("utf-8")
    encoded = binascii.b2a_qp(data, quotetabs=False, istext=True, header=False)
    return encoded.decode("ascii").replace("\n", CRLF)


def base64_encode(data: bytes | str) -> str:
    """Base64 encode ``data`` in 76 column lines joined by CRLF.

    The last line is not terminated.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    encoded = base64.b64encode(data).decode("ascii")
    lines = [encoded[i : i + BASE64_LINE_LENGTH] for i in range(0, len(encoded), BASE64_LINE_LENGTH)]
    return CRLF.join(lines)


def encode_header_word(value: str) -> str:
    """Encode a non-ASCII header value as RFC 2047 ``B`` encoded words.

    ASCII values are returned unchanged. Words are separated by a space so
    that :func:`fold_header` can break between them.
    """
    if value.isascii():
        return value
    # Header wraps long values onto continuation lines; encoded words never contain whitespace
    return " ".join(Header(value, _UTF8_BASE64, maxlinelen=_ENCODED_WORD_LENGTH).encode().split())


def fold_header(line: str, max_length: int = DEFAULT_HEADER_LINE_LENGTH) -> str:
    """Fold a ``Name: value`` header line at whitespace.

    Continuation lines start with the space they were broken at, so
    unfolding (removing the CRLFs) yields the original line. Single tokens
    longer than ``max_length`` are left intact.
    """
    if len(line) <= max_length:
        return line

    folded: list[str] = []
    current = ""
    for word in line.split(" "):
        if not folded and not current:
            current = word
        elif len(current) + 1 + len(word) > max_length and current.strip():
            folded.append(current)
            current = " " + word
        else:
            current += " " + word
    folded.append(current)
    return CRLF.join(folded)
