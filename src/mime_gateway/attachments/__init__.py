"""Attachment loading collaborators for mime-gateway."""

from mime_gateway.attachments.base import Fetcher, FileStore, MimeSniffer
from mime_gateway.attachments.loader import AttachmentLoader, LoadedAttachment
from mime_gateway.attachments.local import LocalFileStore, MimetypesSniffer
from mime_gateway.attachments.url import UrlFetcher, is_url, url_basename

__all__ = [
    "AttachmentLoader",
    "Fetcher",
    "FileStore",
    "LoadedAttachment",
    "LocalFileStore",
    "MimeSniffer",
    "MimetypesSniffer",
    "UrlFetcher",
    "is_url",
    "url_basename",
]
