"""Filesystem-backed file store and extension-based MIME sniffing."""

import logging
import mimetypes
import os
import tempfile
from pathlib import Path

from mime_gateway.attachments.base import FileStore, MimeSniffer

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class LocalFileStore(FileStore):
    """File store on the local filesystem.

    Temporary files are created in ``temp_dir`` or the system default.
    """

    def __init__(self, temp_dir: str | Path | None = None) -> None:
        self.temp_dir = Path(temp_dir) if temp_dir else None

    def read_all(self, path: str | Path) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def size(self, path: str | Path) -> int:
        return Path(path).stat().st_size

    def write_temp(self, data: bytes) -> Path:
        fd, name = tempfile.mkstemp(prefix="attachment", dir=self.temp_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote temporary attachment file (path=%s, bytes=%d)", name, len(data))
        return Path(name)

    def delete(self, path: str | Path) -> None:
        Path(path).unlink(missing_ok=True)


class MimetypesSniffer(MimeSniffer):
    """Guess MIME types from file extensions using :mod:`mimetypes`."""

    def __init__(self, default: str = DEFAULT_MIME_TYPE) -> None:
        self.default = default

    def detect(self, path_or_name: str | Path) -> str:
        mime_type, _ = mimetypes.guess_type(str(path_or_name), strict=False)
        return mime_type or self.default
