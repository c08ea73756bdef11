"""CoreGraphics window-list entries as terminal sessions.

The macOS backend gets on-screen windows as plain dictionaries keyed by the
``kCGWindow*`` names. Everything here works on those dictionaries only, so
it needs no pyobjc.
"""

from __future__ import annotations

from typing import Any

from teleterm.backend.base import SessionIdentity
from teleterm.domain.models import TerminalSession

TERMINAL_APPS = (
    "Terminal", "iTerm2", "iTerm", "Ghostty", "kitty",
    "Alacritty", "Hyper", "Warp", "WezTerm", "Tabby",
)

MIN_WINDOW_SIZE = 50


def is_normal_window(info: dict[str, Any]) -> bool:
    """Layer-0 window with a real size: excludes menus, docks and overlays."""
    if info.get("kCGWindowLayer", 0) != 0:
        return False
    bounds = info.get("kCGWindowBounds") or {}
    return (
        bounds.get("Width", 0) > MIN_WINDOW_SIZE
        and bounds.get("Height", 0) > MIN_WINDOW_SIZE
    )


def is_terminal_app(owner: str) -> bool:
    owner = owner.lower()
    return any(app.lower() in owner for app in TERMINAL_APPS)


def window_id(info: dict[str, Any]) -> str:
    return str(info.get("kCGWindowNumber", 0))


def window_identity(info: dict[str, Any]) -> SessionIdentity:
    return SessionIdentity(window_id(info), int(info.get("kCGWindowOwnerPID", 0)))


def window_to_session(info: dict[str, Any]) -> TerminalSession:
    return TerminalSession(
        session_id=window_id(info),
        pid=int(info.get("kCGWindowOwnerPID", 0)),
        name=str(info.get("kCGWindowOwnerName", "") or ""),
        title=str(info.get("kCGWindowName", "") or ""),
    )


def visible_identities(infos: list[dict[str, Any]]) -> list[SessionIdentity]:
    """Identities of every layer-0 window, terminal or not."""
    return [window_identity(info) for info in infos if info.get("kCGWindowLayer", 0) == 0]


def terminal_windows(
    infos: list[dict[str, Any]], attach_to_any_window: bool = False
) -> list[dict[str, Any]]:
    """Normal windows owned by a terminal app, or every normal window."""
    return [
        info for info in infos
        if is_normal_window(info)
        and (attach_to_any_window or is_terminal_app(str(info.get("kCGWindowOwnerName", ""))))
    ]
