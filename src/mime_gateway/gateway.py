"""Abstract base class for email gateways."""

import logging
from abc import ABC, abstractmethod
from types import TracebackType
from typing import TextIO

from mime_gateway.composer import MessageComposer
from mime_gateway.config import Settings
from mime_gateway.message import Message
from mime_gateway.models import ComposedMessage

logger = logging.getLogger(__name__)


class EmailGateway(ABC):
    """Base class for transports that deliver composed messages.

    Subclasses implement :meth:`send`, typically by calling :meth:`prepare`
    and handing the result to their delivery mechanism. A gateway can keep
    its connection open across several sends between
    :meth:`open_connection` and :meth:`close_connection`, or by using it as
    a context manager.
    """

    def __init__(self, settings: Settings | None = None, composer: MessageComposer | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self.composer = composer or MessageComposer(self.settings)
        self.message = Message.from_settings(self.settings)
        self._keepalive = False

    @property
    def keepalive(self) -> bool:
        """Whether the connection stays open after each send."""
        return self._keepalive

    @abstractmethod
    def send(self) -> bool:
        """Deliver the current message.

        Returns:
            True if the message was delivered.
        """
        ...

    def open_connection(self) -> bool:
        """Keep the connection alive until :meth:`close_connection`."""
        self._keepalive = True
        return True

    def close_connection(self) -> None:
        self._keepalive = False

    def prepare(self) -> ComposedMessage:
        """Validate and compose the current message.

        The result carries the From, Reply-To, To and Subject fields ahead of
        the composed ones; a user header field of the same name wins, whatever
        its case.

        Raises:
            ValidationError: If the message is not sendable.
            AttachmentLoadError: If an attachment can not be loaded.
            ComposeError: If the message has no content.
        """
        self.composer.validate(self.message)
        composed = self.composer.compose(self.message)
        overridden = {name.lower() for name in composed.headers}
        headers = {
            name: value for name, value in self.message.address_headers().items() if name.lower() not in overridden
        }
        headers.update(composed.headers)
        logger.info(
            "Message prepared (recipients=%d, attachments=%d)",
            len(self.message.recipients),
            len(self.message.attachments),
        )
        return ComposedMessage(headers=headers, body=composed.body)

    def reset(self) -> Message:
        """Start over with an empty message, keeping the connection state."""
        self.message = Message.from_settings(self.settings)
        return self.message

    def __enter__(self) -> "EmailGateway":
        self.open_connection()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close_connection()


class StreamGateway(EmailGateway):
    """Gateway that writes prepared messages to a text stream instead of delivering them."""

    def __init__(
        self,
        stream: TextIO,
        settings: Settings | None = None,
        composer: MessageComposer | None = None,
    ) -> None:
        super().__init__(settings, composer)
        self.stream = stream

    def send(self) -> bool:
        composed = self.prepare()
        self.stream.write(composed.as_string(self.settings.header_line_length))
        self.stream.flush()
        return True
