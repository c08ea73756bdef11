"""Abstract base class for terminal backends.

All terminal backends must conform to this interface, enabling the
system to swap between the tmux backend (Linux) and the Accessibility
backend (macOS) without changing any other code.

The shared parts of the contract live here so both backends behave the
same way: drift-tolerant liveness checks, the normalization of captured
text, and the ordered delivery of keystroke events.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import NamedTuple

from teleterm.domain.models import (
    ConnectionState,
    KeystrokeEvent,
    LiteralRun,
    SpecialKey,
    TerminalSession,
)

logger = logging.getLogger(__name__)


class SessionIdentity(NamedTuple):
    """A currently visible session id and the process that owns it."""

    session_id: str
    pid: int


class TerminalBackend(ABC):
    """Abstract interface for listing, reading and typing into terminals.

    Backends keep no state of their own beyond what they discover live;
    the caller passes the ConnectionState to every operation.

    Example usage::

        backend = TmuxBackend()
        sessions = await backend.list_sessions()
        connection.attach(sessions[0])
        await backend.inject(connection, decode_keystrokes("ls").events)
        text = await backend.capture(connection)
    """

    name: str = "base"

    @abstractmethod
    async def list_sessions(self) -> list[TerminalSession]:
        """Enumerate the terminal sessions that can be attached to.

        Returns:
            A fresh snapshot, possibly empty, in display order.

        Raises:
            BackendError: If the enumeration mechanism is unavailable.
        """
        ...

    @abstractmethod
    async def _visible_identities(self) -> list[SessionIdentity]:
        """Return every session identity currently visible to the backend."""
        ...

    @abstractmethod
    async def _read_text(self, connection: ConnectionState) -> str | None:
        """Read the raw visible text of the connected session."""
        ...

    @abstractmethod
    async def _send_literal(self, connection: ConnectionState, text: str) -> None:
        """Type a run of characters without modifiers."""
        ...

    @abstractmethod
    async def _send_special(self, connection: ConnectionState, key: SpecialKey) -> None:
        """Press a single named key or character with its modifiers."""
        ...

    async def _focus(self, connection: ConnectionState) -> None:
        """Bring the session to the foreground before typing.

        No-op by default; backends whose injection lands on the focused
        window override it.
        """

    async def is_live(self, connection: ConnectionState) -> bool:
        """Check that the connected session still exists.

        If the exact id has vanished but another visible session belongs
        to the same process (a tab or pane switch), the connection is
        re-pointed at that session and reported live.
        """
        if not connection.connected:
            return False

        fallback: SessionIdentity | None = None
        for identity in await self._visible_identities():
            if identity.session_id == connection.session_id:
                return True
            if fallback is None and identity.pid == connection.pid:
                fallback = identity

        if fallback is None:
            logger.info("Session %s (pid %d) is gone", connection.session_id, connection.pid)
            return False

        logger.info(
            "Session %s drifted to %s (same pid %d)",
            connection.session_id, fallback.session_id, connection.pid,
        )
        connection.session_id = fallback.session_id
        return True

    async def capture(self, connection: ConnectionState) -> str | None:
        """Return the visible text of the connected session, trimmed.

        Returns:
            The text, or None if nothing is connected or it is empty.

        Raises:
            BackendError: If reading fails.
        """
        if not connection.connected:
            return None
        raw = await self._read_text(connection)
        if raw is None:
            return None
        return normalize_captured_text(raw)

    async def inject(self, connection: ConnectionState, events: Sequence[KeystrokeEvent]) -> None:
        """Deliver keystroke events to the connected session in order.

        Raises:
            BackendError: If nothing is connected or delivery fails.
        """
        if not connection.connected:
            raise BackendError("Not connected to a session", backend=self.name)

        await self._focus(connection)
        for event in events:
            if isinstance(event, LiteralRun):
                await self._send_literal(connection, event.text)
            else:
                await self._send_special(connection, event)
        logger.debug("Injected %d events into %s", len(events), connection.session_id)


def normalize_captured_text(raw: str) -> str | None:
    """Strip padding from captured terminal text.

    Removes NUL cell padding, trailing spaces on every line and trailing
    blank lines. No line terminator is kept at the end. Returns None when
    nothing is left.
    """
    lines = [line.rstrip(" ") for line in raw.replace("\0", "").split("\n")]
    text = "\n".join(lines).rstrip("\n")
    return text or None


class BackendError(Exception):
    """Raised when a terminal backend operation fails."""

    def __init__(self, message: str, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend
