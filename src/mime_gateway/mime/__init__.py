"""MIME building blocks: transfer encoders and body parts."""

from mime_gateway.mime.encoding import (
    base64_encode,
    encode_header_word,
    fold_header,
    qp_encode,
)

__all__ = [
    "base64_encode",
    "encode_header_word",
    "fold_header",
    "qp_encode",
]
