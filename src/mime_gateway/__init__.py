"""Compose RFC 2045/2046 MIME email messages ready to hand to a transport."""

from mime_gateway.composer import MessageComposer
from mime_gateway.config import ConfigError, Settings
from mime_gateway.exceptions import (
    AttachmentLoadError,
    ComposeError,
    GatewayError,
    HeaderInjectionError,
    MimeGatewayError,
    UnsupportedEncodingError,
    ValidationError,
)
from mime_gateway.gateway import EmailGateway, StreamGateway
from mime_gateway.message import Message
from mime_gateway.mime.parts import Part, PartKind
from mime_gateway.models import AttachmentSpec, ComposedMessage, TextEncoding

__version__ = "0.1.0"

__all__ = [
    "AttachmentLoadError",
    "AttachmentSpec",
    "ComposeError",
    "ComposedMessage",
    "ConfigError",
    "EmailGateway",
    "GatewayError",
    "HeaderInjectionError",
    "Message",
    "MessageComposer",
    "MimeGatewayError",
    "Part",
    "PartKind",
    "Settings",
    "StreamGateway",
    "TextEncoding",
    "UnsupportedEncodingError",
    "ValidationError",
]
