"""Tests for the shared TerminalBackend behaviour."""

from __future__ import annotations

import pytest

from teleterm.backend.base import BackendError, TerminalBackend, normalize_captured_text
from teleterm.domain.models import ConnectionState, LiteralRun, Modifier, SpecialKey, TerminalSession


def connected_to(session: TerminalSession) -> ConnectionState:
    connection = ConnectionState()
    connection.attach(session)
    return connection


class TestTerminalBackendABC:
    """The contract cannot be used without an implementation."""

    def test_cannot_instantiate(self) -> None:
        """TerminalBackend is abstract."""
        with pytest.raises(TypeError):
            TerminalBackend()  # type: ignore[abstract]


class TestIsLive:
    """Liveness checks with drift tolerance."""

    @pytest.mark.asyncio
    async def test_not_connected_is_not_live(self, fake_backend) -> None:
        """A cleared connection is never live."""
        assert await fake_backend.is_live(ConnectionState()) is False

    @pytest.mark.asyncio
    async def test_exact_id_is_live(self, fake_backend, sample_sessions) -> None:
        """The session id is still listed."""
        connection = connected_to(sample_sessions[0])
        assert await fake_backend.is_live(connection) is True
        assert connection.session_id == "%0"

    @pytest.mark.asyncio
    async def test_same_pid_adopts_new_id(self, fake_backend, sample_sessions) -> None:
        """A vanished id with a surviving process is re-pointed."""
        connection = connected_to(sample_sessions[0])
        fake_backend.sessions = [
            TerminalSession(session_id="%7", pid=100, name="main:0.1"),
            sample_sessions[1],
        ]
        assert await fake_backend.is_live(connection) is True
        assert connection.session_id == "%7"
        assert connection.pid == 100

    @pytest.mark.asyncio
    async def test_gone_when_pid_also_gone(self, fake_backend, sample_sessions) -> None:
        """Neither the id nor the process is visible."""
        connection = connected_to(sample_sessions[0])
        fake_backend.sessions = [sample_sessions[1]]
        assert await fake_backend.is_live(connection) is False
        assert connection.session_id == "%0"


class TestCapture:
    """Captured text is normalized in one place."""

    @pytest.mark.asyncio
    async def test_not_connected_returns_none(self, fake_backend) -> None:
        assert await fake_backend.capture(ConnectionState()) is None

    @pytest.mark.asyncio
    async def test_trims_screen(self, fake_backend, sample_sessions) -> None:
        """Trailing spaces and blank lines are removed."""
        fake_backend.screen = "$ ls   \nfile  \n\n\n   \n"
        text = await fake_backend.capture(connected_to(sample_sessions[0]))
        assert text == "$ ls\nfile"

    @pytest.mark.asyncio
    async def test_blank_screen_is_none(self, fake_backend, sample_sessions) -> None:
        """A screen of spaces counts as no capture."""
        fake_backend.screen = "   \n  \n"
        assert await fake_backend.capture(connected_to(sample_sessions[0])) is None


class TestNormalizeCapturedText:
    """normalize_captured_text on raw strings."""

    def test_removes_nul_padding(self) -> None:
        assert normalize_captured_text("a\0b\0\0\n") == "ab"

    def test_keeps_leading_indentation(self) -> None:
        assert normalize_captured_text("  indented\n\tTab") == "  indented\n\tTab"

    def test_keeps_inner_blank_lines(self) -> None:
        assert normalize_captured_text("a\n\nb\n") == "a\n\nb"

    def test_empty(self) -> None:
        assert normalize_captured_text("") is None


class TestInject:
    """Events are delivered in order after focusing."""

    @pytest.mark.asyncio
    async def test_requires_connection(self, fake_backend) -> None:
        with pytest.raises(BackendError):
            await fake_backend.inject(ConnectionState(), [LiteralRun(text="ls")])

    @pytest.mark.asyncio
    async def test_focus_then_events_in_order(self, fake_backend, sample_sessions) -> None:
        """Literal runs and special keys go to their own primitives."""
        ctrl_c = SpecialKey(key="c", modifiers=frozenset({Modifier.CTRL}))
        enter = SpecialKey(key="Enter")
        await fake_backend.inject(
            connected_to(sample_sessions[1]),
            [LiteralRun(text="ls"), ctrl_c, enter],
        )
        assert fake_backend.focused == ["%1"]
        assert fake_backend.typed == [("literal", "ls"), ("special", ctrl_c), ("special", enter)]
