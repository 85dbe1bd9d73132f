"""Fetch attachments over HTTP(S) and FTP using urllib."""

import http.client
import logging
import urllib.request
from posixpath import basename
from urllib.parse import unquote, urlsplit

from mime_gateway.attachments.base import Fetcher
from mime_gateway.defaults import DEFAULT_MAX_ATTACHMENT_SIZE

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http", "https", "ftp")
USER_AGENT = "mime-gateway"


def is_url(source: str) -> bool:
    """Return True if ``source`` is an absolute URL we know how to fetch."""
    parts = urlsplit(source)
    return parts.scheme.lower() in URL_SCHEMES and bool(parts.netloc)


def url_basename(url: str, default: str = "attachment") -> str:
    """Return the last path segment of ``url``, ignoring query and fragment."""
    name = unquote(basename(urlsplit(url).path))
    return name or default


class UrlFetcher(Fetcher):
    """Fetcher backed by :func:`urllib.request.urlopen`.

    Reads at most ``max_bytes + 1`` bytes so callers can detect oversized
    content without buffering all of it.
    """

    def __init__(self, max_bytes: int = DEFAULT_MAX_ATTACHMENT_SIZE) -> None:
        self.max_bytes = max_bytes

    def fetch(self, url: str, timeout: float) -> bytes:
        if not is_url(url):
            raise ValueError(f"Unsupported attachment URL: {url}")
        logger.debug("Fetching attachment (url=%s, timeout=%s)", url, timeout)
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return resp.read(self.max_bytes + 1)
        except http.client.HTTPException as e:
            raise OSError(f"Invalid HTTP response from {url}: {e!r}") from e
