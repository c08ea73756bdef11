"""Shared test fixtures for the teleterm test suite.

Provides common fixtures used across unit tests: an in-memory terminal
backend, a mock chat transport, an in-memory key-value store and sample
sessions and requests.
"""

from __future__ import annotations

import itertools
from unittest.mock import AsyncMock

import pytest

from teleterm.backend.base import SessionIdentity, TerminalBackend
from teleterm.domain.models import (
    ConnectionState,
    InboundRequest,
    SpecialKey,
    TerminalSession,
)


# ---------------------------------------------------------------------------
# Backend Fixtures
# ---------------------------------------------------------------------------


class FakeBackend(TerminalBackend):
    """In-memory backend that records what was typed into it."""

    name = "fake"

    def __init__(self, sessions: list[TerminalSession] | None = None) -> None:
        self.sessions = list(sessions or [])
        self.screen: str | None = "user@host:~$ "
        self.typed: list[tuple[str, object]] = []
        self.focused: list[str] = []

    async def list_sessions(self) -> list[TerminalSession]:
        return list(self.sessions)

    async def _visible_identities(self) -> list[SessionIdentity]:
        return [SessionIdentity(s.session_id, s.pid) for s in self.sessions]

    async def _read_text(self, connection: ConnectionState) -> str | None:
        return self.screen

    async def _send_literal(self, connection: ConnectionState, text: str) -> None:
        self.typed.append(("literal", text))

    async def _send_special(self, connection: ConnectionState, key: SpecialKey) -> None:
        self.typed.append(("special", key))

    async def _focus(self, connection: ConnectionState) -> None:
        self.focused.append(connection.session_id)


@pytest.fixture
def sample_sessions() -> list[TerminalSession]:
    """Two terminal sessions owned by different processes."""
    return [
        TerminalSession(session_id="%0", pid=100, name="main:0.0", title="bash"),
        TerminalSession(session_id="%1", pid=200, name="work:1.0", title="vim notes.txt"),
    ]


@pytest.fixture
def fake_backend(sample_sessions: list[TerminalSession]) -> FakeBackend:
    """A FakeBackend listing the sample sessions."""
    return FakeBackend(sample_sessions)


# ---------------------------------------------------------------------------
# Transport Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_transport() -> AsyncMock:
    """A mock Transport whose send_message returns increasing message ids."""
    mock = AsyncMock()
    ids = itertools.count(1000)
    mock.send_message.side_effect = lambda *args, **kwargs: next(ids)
    return mock


# ---------------------------------------------------------------------------
# Storage Fixtures
# ---------------------------------------------------------------------------


class MemoryStore:
    """Dict-backed stand-in for KeyValueStore."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data = dict(data or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


@pytest.fixture
def memory_store() -> MemoryStore:
    """An empty in-memory key-value store."""
    return MemoryStore()


# ---------------------------------------------------------------------------
# Request Fixtures
# ---------------------------------------------------------------------------


OWNER_ID = 4242
CHAT_ID = 4242


def make_text(text: str, sender_id: int = OWNER_ID) -> InboundRequest:
    return InboundRequest(sender_id=sender_id, chat_id=CHAT_ID, text=text)


def make_callback(data: str = "refresh", sender_id: int = OWNER_ID) -> InboundRequest:
    return InboundRequest(
        sender_id=sender_id,
        chat_id=CHAT_ID,
        is_callback=True,
        callback_id="cb-1",
        callback_data=data,
    )


@pytest.fixture
def owner_text():
    """Factory for text requests from the owner."""
    return make_text


@pytest.fixture
def owner_callback():
    """Factory for button presses from the owner."""
    return make_callback


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """A FakeClock starting at a fixed time."""
    return FakeClock()
