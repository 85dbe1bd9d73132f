"""Abstract collaborators used to load attachment content."""

from abc import ABC, abstractmethod
from pathlib import Path


class Fetcher(ABC):
    """Retrieves the content of a remote attachment."""

    @abstractmethod
    def fetch(self, url: str, timeout: float) -> bytes:
        """Download ``url`` and return its body.

        Args:
            url: Absolute URL of the attachment.
            timeout: Seconds to wait before giving up.

        Raises:
            OSError: If the content could not be retrieved.
        """
        ...


class FileStore(ABC):
    """Reads local files and manages temporary copies of remote ones."""

    @abstractmethod
    def read_all(self, path: str | Path) -> bytes:
        """Return the whole content of ``path``.

        Raises:
            OSError: If the file can not be read.
        """
        ...

    @abstractmethod
    def size(self, path: str | Path) -> int:
        """Return the size of ``path`` in bytes without reading it.

        Raises:
            OSError: If the file can not be inspected.
        """
        ...

    @abstractmethod
    def write_temp(self, data: bytes) -> Path:
        """Write ``data`` to a new temporary file and return its path."""
        ...

    @abstractmethod
    def delete(self, path: str | Path) -> None:
        """Remove ``path``; missing files are ignored."""
        ...


class MimeSniffer(ABC):
    """Guesses the MIME type of a file."""

    @abstractmethod
    def detect(self, path_or_name: str | Path) -> str:
        """Return a MIME type such as ``application/pdf``."""
        ...
