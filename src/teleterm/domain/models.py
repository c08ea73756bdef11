"""Core domain models for the teleterm system.

These models represent the data flowing through the system: terminal
sessions discovered by a backend, the single active connection, the
keystroke events produced by the codec, inbound chat requests, and the
set of output messages that make up the current live view.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Terminal Sessions
# ---------------------------------------------------------------------------


class TerminalSession(BaseModel):
    """A terminal session as reported by a backend listing.

    A listing is a snapshot: every call to ``list_sessions()`` produces a
    fresh set of these and the previous one is discarded.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(description="Backend-specific id: tmux pane id or macOS window number")
    pid: int = Field(ge=0, description="Process that owns the session")
    name: str = Field(description="Display name (app name or session:window.pane)")
    title: str = Field(default="", description="Window or pane title")
    activity: str = Field(default="", description="Advisory activity label shown in listings")


class ConnectionState(BaseModel):
    """The one session the bot is currently attached to.

    Fields are copied out of a TerminalSession on attach, so the listing
    snapshot can be replaced freely while connected.
    """

    connected: bool = False
    session_id: str = ""
    pid: int = 0
    name: str = ""
    title: str = ""

    def attach(self, session: TerminalSession) -> None:
        self.connected = True
        self.session_id = session.session_id
        self.pid = session.pid
        self.name = session.name
        self.title = session.title

    def clear(self) -> None:
        self.connected = False
        self.session_id = ""
        self.pid = 0
        self.name = ""
        self.title = ""


# ---------------------------------------------------------------------------
# Keystroke Models (discriminated union)
# ---------------------------------------------------------------------------


class Modifier(str, enum.Enum):
    """Modifier keys that can be held while a key is pressed."""

    CTRL = "ctrl"
    ALT = "alt"
    CMD = "cmd"  # Only meaningful on macOS


ENTER = "Enter"
TAB = "Tab"
ESCAPE = "Escape"


class LiteralRun(BaseModel):
    """A run of unmodified characters typed as-is in one delivery."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    text: str = Field(min_length=1, description="Characters to type")


class SpecialKey(BaseModel):
    """A single key press, optionally with modifiers held.

    ``key`` is either a named key (Enter, Tab, Escape) or a single character.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["special"] = "special"
    key: str = Field(min_length=1, description="Named key or single character")
    modifiers: frozenset[Modifier] = Field(default_factory=frozenset)

    @property
    def is_named(self) -> bool:
        return self.key in (ENTER, TAB, ESCAPE)


KeystrokeEvent = Annotated[
    Union[LiteralRun, SpecialKey],
    Field(discriminator="kind"),
]


class DecodedKeystrokes(BaseModel):
    """Result of decoding one chat payload into keystrokes."""

    model_config = ConfigDict(frozen=True)

    events: list[KeystrokeEvent] = Field(default_factory=list)
    suppress_enter: bool = Field(
        default=False, description="Payload ended with the no-Enter marker"
    )


# ---------------------------------------------------------------------------
# Chat Models
# ---------------------------------------------------------------------------


class InboundRequest(BaseModel):
    """A text message or button press received from the chat transport."""

    model_config = ConfigDict(frozen=True)

    sender_id: int
    sender_username: str = ""
    chat_id: int = Field(description="Where replies go")
    is_callback: bool = False
    text: str = ""
    callback_id: str = ""
    callback_data: str = ""


MAX_TRACKED_MESSAGES = 16


class TrackedMessages(BaseModel):
    """Ids of the output messages that form the current live view.

    Capacity is fixed; ids beyond it are not tracked and will not be
    deleted on the next refresh.
    """

    capacity: int = Field(default=MAX_TRACKED_MESSAGES, gt=0)
    message_ids: list[int] = Field(default_factory=list)

    def track(self, message_id: int) -> bool:
        if len(self.message_ids) >= self.capacity:
            return False
        self.message_ids.append(message_id)
        return True

    def drain(self) -> list[int]:
        """Return tracked ids, most recently sent first, and forget them."""
        ids = list(reversed(self.message_ids))
        self.message_ids.clear()
        return ids

    def clear(self) -> None:
        self.message_ids.clear()

    def __len__(self) -> int:
        return len(self.message_ids)


# ---------------------------------------------------------------------------
# Auth Models
# ---------------------------------------------------------------------------


OTP_TIMEOUT_MIN = 30
OTP_TIMEOUT_MAX = 28800
OTP_TIMEOUT_DEFAULT = 300


class AuthState(BaseModel):
    """Owner binding and one-time-password session state.

    ``owner_id`` and ``otp_timeout`` are persisted; the rest lives only
    for the lifetime of the process.
    """

    owner_id: int | None = None
    otp_timeout: int = Field(
        default=OTP_TIMEOUT_DEFAULT, ge=OTP_TIMEOUT_MIN, le=OTP_TIMEOUT_MAX
    )
    authenticated: bool = False
    last_activity: float = 0.0
