"""Chat transports for teleterm.

Public API:
    Transport -- Abstract base class
    TransportError -- Raised when the chat service call fails
    TelegramTransport -- Telegram Bot API over httpx
"""

from teleterm.transport.base import Transport, TransportError
from teleterm.transport.telegram import TelegramTransport

__all__ = ["Transport", "TransportError", "TelegramTransport"]
