"""Domain models for teleterm.

This package contains the core data structures and value objects used
throughout the system. All models use Pydantic v2 for validation.
"""

from teleterm.domain.models import (
    ENTER,
    ESCAPE,
    TAB,
    AuthState,
    ConnectionState,
    DecodedKeystrokes,
    InboundRequest,
    KeystrokeEvent,
    LiteralRun,
    Modifier,
    SpecialKey,
    TerminalSession,
    TrackedMessages,
)

__all__ = [
    "ENTER",
    "ESCAPE",
    "TAB",
    "AuthState",
    "ConnectionState",
    "DecodedKeystrokes",
    "InboundRequest",
    "KeystrokeEvent",
    "LiteralRun",
    "Modifier",
    "SpecialKey",
    "TerminalSession",
    "TrackedMessages",
]
