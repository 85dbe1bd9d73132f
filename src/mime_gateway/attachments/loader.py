"""Load attachment content from local paths or URLs.

Remote sources are downloaded into a temporary file which is always removed
again, whether loading succeeds or not.
"""

from pathlib import Path

import structlog
from pydantic import BaseModel

from mime_gateway.attachments.base import Fetcher, FileStore
from mime_gateway.attachments.local import LocalFileStore
from mime_gateway.attachments.url import UrlFetcher, is_url, url_basename
from mime_gateway.defaults import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_ATTACHMENT_SIZE
from mime_gateway.exceptions import AttachmentLoadError
from mime_gateway.models import AttachmentSpec

logger = structlog.get_logger()


class LoadedAttachment(BaseModel):
    """Attachment content together with the filename to present it under."""

    filename: str
    content: bytes


class AttachmentLoader:
    """Resolve an :class:`AttachmentSpec` into its bytes and filename."""

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        file_store: FileStore | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        max_size: int = DEFAULT_MAX_ATTACHMENT_SIZE,
    ) -> None:
        self.fetcher = fetcher or UrlFetcher(max_bytes=max_size)
        self.file_store = file_store or LocalFileStore()
        self.timeout = timeout
        self.max_size = max_size

    def load(self, spec: AttachmentSpec, *, strict: bool = True) -> LoadedAttachment | None:
        """Load the content of ``spec``.

        Args:
            spec: Attachment to load.
            strict: Raise on failure instead of returning None.

        Returns:
            The loaded attachment, or None when loading failed and
            ``strict`` is False.

        Raises:
            AttachmentLoadError: If the content is unavailable, empty or too
                large and ``strict`` is True.
        """
        try:
            return self._load(spec)
        except AttachmentLoadError:
            if strict:
                raise
            logger.warning("Skipping attachment that could not be loaded", source=spec.source)
            return None

    def _load(self, spec: AttachmentSpec) -> LoadedAttachment:
        if is_url(spec.source):
            filename = spec.filename or url_basename(spec.source)
            content = self._fetch(spec.source)
        else:
            filename = spec.filename or Path(spec.source).name
            content = self._read(spec.source)

        if not content:
            raise AttachmentLoadError(spec.source)
        self._check_size(spec.source, len(content))

        return LoadedAttachment(filename=filename, content=content)

    def _check_size(self, source: str, size: int) -> None:
        if size > self.max_size:
            logger.warning("Attachment exceeds size limit", source=source, size=size, max_size=self.max_size)
            raise AttachmentLoadError(source)

    def _fetch(self, url: str) -> bytes:
        """Download ``url`` through a temporary file and return its content."""
        tmp_path: Path | None = None
        try:
            data = self.fetcher.fetch(url, self.timeout)
            tmp_path = self.file_store.write_temp(data)
            return self.file_store.read_all(tmp_path)
        except (OSError, ValueError) as e:
            logger.info("Attachment fetch failed", url=url, error=str(e))
            raise AttachmentLoadError(url) from e
        finally:
            if tmp_path is not None:
                self.file_store.delete(tmp_path)
                logger.debug("Removed temporary attachment file", path=str(tmp_path))

    def _read(self, path: str) -> bytes:
        try:
            size = self.file_store.size(path)
            self._check_size(path, size)
            return self.file_store.read_all(path)
        except (OSError, ValueError) as e:
            logger.info("Attachment read failed", path=path, error=str(e))
            raise AttachmentLoadError(path) from e
