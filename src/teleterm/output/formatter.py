"""Terminal snapshots as chat messages.

Captured text is cut down to the last ``visible_lines`` lines, escaped for
Telegram's HTML parse mode and wrapped in ``<pre>`` blocks that fit in one
message each. The previous snapshot's messages are deleted before a new
one is sent, so the chat shows a single live view of the terminal.
"""

from __future__ import annotations

import html
import logging

from teleterm.backend.base import BackendError
from teleterm.session.registry import SessionRegistry
from teleterm.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)

TELEGRAM_MAX_MESSAGE = 4096
PRE_OPEN = "<pre>"
PRE_CLOSE = "</pre>"
MAX_BODY_LEN = TELEGRAM_MAX_MESSAGE - len(PRE_OPEN + PRE_CLOSE)  # 4085

REFRESH_LABEL = "\U0001F504 Refresh"
REFRESH_DATA = "refresh"
CAPTURE_FAILED_TEXT = "Could not read terminal text."

# Longest entity produced by escaping (&amp;).
_ENTITY_MAX_LEN = 5


def escape_html(text: str) -> str:
    """Escape the three characters Telegram's HTML mode reserves."""
    return html.escape(text, quote=False)


def last_lines(text: str, count: int) -> str:
    return "\n".join(text.split("\n")[-count:])


def _entity_containing(text: str, index: int) -> int | None:
    """Start of the escaped entity that ``index`` falls strictly inside."""
    amp = text.rfind("&", max(0, index - _ENTITY_MAX_LEN + 1), index)
    if amp == -1:
        return None
    semi = text.find(";", amp, amp + _ENTITY_MAX_LEN)
    if semi != -1 and semi >= index:
        return amp
    return None


def truncate_front(escaped: str, limit: int = MAX_BODY_LEN) -> str:
    """Keep the tail of ``escaped`` that fits in ``limit``.

    The cut is moved forward to the next line start so the kept text does
    not begin with a partial line, and never splits an HTML entity.
    """
    if len(escaped) <= limit:
        return escaped

    start = len(escaped) - limit
    entity = _entity_containing(escaped, start)
    if entity is not None:
        start = escaped.index(";", entity) + 1

    if escaped[start - 1] != "\n":
        newline = escaped.find("\n", start)
        if newline != -1:
            start = newline + 1
    return escaped[start:]


def split_chunks(escaped: str, limit: int = MAX_BODY_LEN) -> list[str]:
    """Split ``escaped`` into pieces of at most ``limit`` characters.

    Pieces end at the last line break that fits (the break itself is
    dropped), otherwise at the limit, backed off to the start of an entity
    if the limit falls inside one. A limit shorter than the leading entity
    keeps that entity whole in its own piece.
    """
    chunks: list[str] = []
    while len(escaped) > limit:
        cut = escaped.rfind("\n", 0, limit)
        if cut > 0:
            chunks.append(escaped[:cut])
            escaped = escaped[cut + 1:]
            continue
        cut = limit
        entity = _entity_containing(escaped, cut)
        if entity is not None:
            cut = entity if entity > 0 else escaped.index(";") + 1
        chunks.append(escaped[:cut])
        escaped = escaped[cut:]
    chunks.append(escaped)
    return chunks


def format_terminal_chunks(text: str, visible_lines: int, split: bool) -> list[str]:
    """Format captured text as one or more ``<pre>`` message bodies."""
    escaped = escape_html(last_lines(text, visible_lines))
    bodies = split_chunks(escaped) if split else [truncate_front(escaped)]
    return [f"{PRE_OPEN}{body}{PRE_CLOSE}" for body in bodies]


class OutputFormatter:
    """Sends the connected terminal's screen as a live view.

    Args:
        registry: Provides the backend, the connection and the tracked ids.
        transport: Where messages are sent and deleted.
        visible_lines: How many trailing lines of the screen to show.
        split: Send several messages instead of truncating to one.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        transport: Transport,
        visible_lines: int = 40,
        split: bool = False,
    ) -> None:
        self._registry = registry
        self._transport = transport
        self.visible_lines = visible_lines
        self.split = split

    async def _capture(self) -> str | None:
        try:
            return await self._registry.backend.capture(self._registry.connection)
        except BackendError as e:
            logger.warning("Capture failed: %s", e)
            return None

    async def _delete_tracked(self, chat_id: int) -> None:
        for message_id in self._registry.tracked.drain():
            try:
                await self._transport.delete_message(chat_id, message_id)
            except TransportError as e:
                logger.warning("Could not delete message %d: %s", message_id, e)

    def _track(self, message_id: int) -> None:
        if not self._registry.tracked.track(message_id):
            logger.debug("Tracking full; message %d will not be replaced", message_id)

    async def send_snapshot(self, chat_id: int) -> None:
        """Replace the previous snapshot with the current screen."""
        text = await self._capture()
        if text is None:
            await self._transport.send_message(chat_id, CAPTURE_FAILED_TEXT)
            return

        await self._delete_tracked(chat_id)

        chunks = format_terminal_chunks(text, self.visible_lines, self.split)
        for chunk in chunks[:-1]:
            self._track(await self._transport.send_message(chat_id, chunk, parse_mode="HTML"))

        self._track(
            await self._transport.send_message(
                chat_id, chunks[-1], parse_mode="HTML", button=(REFRESH_LABEL, REFRESH_DATA)
            )
        )
        logger.debug("Sent %d snapshot message(s) to chat %d", len(chunks), chat_id)
