"""Session registry: the listing snapshot and the single active connection.

Display indices shown to the user (``.1``, ``.2``, ...) always refer to the
most recent listing. The registry also owns the ids of the output messages
currently on screen, since those belong to whatever session is connected.
"""

from __future__ import annotations

import logging

from teleterm.backend.base import TerminalBackend
from teleterm.domain.models import ConnectionState, TerminalSession, TrackedMessages

logger = logging.getLogger(__name__)

NO_SESSIONS_TEXT = "No terminal sessions found."


class InvalidIndex(Exception):
    """Raised when a display index does not name a session in the snapshot."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"Index {index} out of range 1..{count}")
        self.index = index
        self.count = count


class SessionGone(Exception):
    """Raised when the connected session no longer exists."""


def render_menu(sessions: list[TerminalSession]) -> str:
    """Render a listing as the numbered menu sent to the chat."""
    if not sessions:
        return NO_SESSIONS_TEXT
    lines = ["Terminal windows:"]
    for i, session in enumerate(sessions, start=1):
        line = f".{i} {session.name}"
        if session.title:
            line += f" - {session.title}"
        if session.activity:
            line += f" [{session.activity}]"
        lines.append(line)
    return "\n".join(lines)


class SessionRegistry:
    """Tracks the session snapshot, the connection and the live-view messages."""

    def __init__(self, backend: TerminalBackend) -> None:
        self.backend = backend
        self.snapshot: list[TerminalSession] = []
        self.connection = ConnectionState()
        self.tracked = TrackedMessages()

    async def refresh(self) -> list[TerminalSession]:
        """Replace the snapshot with a fresh listing from the backend."""
        self.snapshot = await self.backend.list_sessions()
        return self.snapshot

    def connect(self, index: int) -> TerminalSession:
        """Attach to the session at 1-based ``index`` of the snapshot.

        Raises:
            InvalidIndex: If the index is out of range. Nothing changes.
        """
        if not 1 <= index <= len(self.snapshot):
            raise InvalidIndex(index, len(self.snapshot))
        session = self.snapshot[index - 1]
        if session.session_id != self.connection.session_id:
            self.tracked.clear()
        self.connection.attach(session)
        logger.info("Connected to %s (%s)", session.name, session.session_id)
        return session

    def disconnect(self) -> None:
        if self.connection.connected:
            logger.info("Disconnected from %s", self.connection.name)
        self.connection.clear()
        self.tracked.clear()

    async def verify_live(self) -> None:
        """Make sure the connected session still exists.

        Raises:
            SessionGone: If it does not; the registry is disconnected first.
        """
        if not await self.backend.is_live(self.connection):
            self.disconnect()
            raise SessionGone()
