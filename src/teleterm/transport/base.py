"""Abstract base class for the chat transport.

The transport is the only part of teleterm that talks to the chat
service. Everything else works with InboundRequest objects and plain
message ids, so the bot logic can be tested against a mock transport.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from teleterm.domain.models import InboundRequest

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract interface for receiving requests and sending replies.

    Example usage::

        async with TelegramTransport(token) as transport:
            for request in await transport.poll():
                await transport.send_message(request.chat_id, "hi")
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying connection.

        Raises:
            TransportError: If the service cannot be reached.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...

    @abstractmethod
    async def poll(self) -> list[InboundRequest]:
        """Wait for the next batch of inbound requests (may be empty)."""
        ...

    @abstractmethod
    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        button: tuple[str, str] | None = None,
    ) -> int:
        """Send a message and return its id.

        Args:
            chat_id: Destination chat.
            text: Message body.
            parse_mode: ``HTML``, ``Markdown`` or None for plain text.
            button: Optional ``(label, callback_data)`` for one inline button.

        Raises:
            TransportError: If the message could not be sent.
        """
        ...

    @abstractmethod
    async def delete_message(self, chat_id: int, message_id: int) -> None:
        """Delete a previously sent message.

        Raises:
            TransportError: If the deletion failed.
        """
        ...

    @abstractmethod
    async def answer_callback(self, callback_id: str) -> None:
        """Acknowledge a button press so the client stops its spinner."""
        ...

    async def __aenter__(self) -> Transport:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()


class TransportError(Exception):
    """Raised when a chat transport operation fails."""

    def __init__(self, message: str, method: str = "") -> None:
        super().__init__(message)
        self.method = method
