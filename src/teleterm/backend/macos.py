"""macOS terminal backend using CoreGraphics and the Accessibility API.

Windows are discovered with CGWindowListCopyWindowInfo, their text is read
from the accessibility tree of the owning application, and keystrokes are
synthesized as CGEvents posted to the owning process. The process running
teleterm needs the Accessibility permission in System Settings.

pyobjc calls block, so every backend operation runs in the default
executor.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from AppKit import NSApplicationActivateIgnoringOtherApps, NSRunningApplication
from ApplicationServices import (
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    AXUIElementPerformAction,
    AXValueGetValue,
    kAXErrorSuccess,
    kAXValueCGPointType,
    kAXValueCGSizeType,
)
from Quartz import (
    CGEventCreateKeyboardEvent,
    CGEventKeyboardSetUnicodeString,
    CGEventPostToPid,
    CGEventSetFlags,
    CGWindowListCopyWindowInfo,
    kCGNullWindowID,
    kCGWindowListExcludeDesktopElements,
    kCGWindowListOptionOnScreenOnly,
)

from teleterm.backend.base import BackendError, SessionIdentity, TerminalBackend
from teleterm.backend.keycodes import KeyEventParts, literal_key_parts, special_key_parts
from teleterm.backend.prompt import activity_label
from teleterm.backend.windows import (
    terminal_windows,
    visible_identities,
    window_id,
    window_to_session,
)
from teleterm.domain.models import ConnectionState, SpecialKey, TerminalSession

logger = logging.getLogger(__name__)

TEXT_ROLES = ("AXTextArea", "AXStaticText", "AXWebArea")
MAX_AX_DEPTH = 12

FOCUS_DELAY = 0.1
KEY_HOLD_DELAY = 0.001
KEY_GAP_DELAY = 0.005


# ---------------------------------------------------------------------------
# Window list helpers
# ---------------------------------------------------------------------------


def _on_screen_windows() -> list[dict[str, Any]]:
    infos = CGWindowListCopyWindowInfo(
        kCGWindowListOptionOnScreenOnly | kCGWindowListExcludeDesktopElements,
        kCGNullWindowID,
    )
    if infos is None:
        raise BackendError("Window list unavailable", backend="macos")
    return [dict(info) for info in infos]


# ---------------------------------------------------------------------------
# Accessibility helpers
# ---------------------------------------------------------------------------


def _ax_attribute(element: Any, attribute: str) -> Any:
    err, value = AXUIElementCopyAttributeValue(element, attribute, None)
    if err == kAXErrorSuccess:
        return value
    return None


def _ax_bounds(window: Any) -> tuple[float, float, float, float] | None:
    position = _ax_attribute(window, "AXPosition")
    size = _ax_attribute(window, "AXSize")
    if position is None or size is None:
        return None
    ok_pos, point = AXValueGetValue(position, kAXValueCGPointType, None)
    ok_size, extent = AXValueGetValue(size, kAXValueCGSizeType, None)
    if not (ok_pos and ok_size):
        return None
    return (point.x, point.y, extent.width, extent.height)


def _find_text(element: Any, depth: int = 0) -> str | None:
    """Depth-first search for the first element that holds terminal text."""
    if depth > MAX_AX_DEPTH:
        return None
    if _ax_attribute(element, "AXRole") in TEXT_ROLES:
        value = _ax_attribute(element, "AXValue")
        if value is not None:
            return str(value)
    for child in _ax_attribute(element, "AXChildren") or ():
        text = _find_text(child, depth + 1)
        if text is not None:
            return text
    return None


def _match_ax_window(info: dict[str, Any]) -> Any:
    """Find the AX window element for a CoreGraphics window.

    There is no public mapping between the two, so windows are matched by
    title first, then by on-screen bounds, then the app's first window.
    """
    pid = int(info.get("kCGWindowOwnerPID", 0))
    app = AXUIElementCreateApplication(pid)
    windows = list(_ax_attribute(app, "AXWindows") or ())
    if not windows:
        return None

    title = info.get("kCGWindowName") or ""
    if title:
        for window in windows:
            if _ax_attribute(window, "AXTitle") == title:
                return window

    cg = info.get("kCGWindowBounds") or {}
    target = (cg.get("X"), cg.get("Y"), cg.get("Width"), cg.get("Height"))
    for window in windows:
        bounds = _ax_bounds(window)
        if bounds is not None and all(
            abs(a - b) < 1.0 for a, b in zip(bounds, target) if b is not None
        ):
            return window

    return windows[0]


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


class MacOSBackend(TerminalBackend):
    """Controls terminal emulator windows on macOS."""

    name = "macos"

    def __init__(self, attach_to_any_window: bool = False) -> None:
        self._attach_to_any_window = attach_to_any_window
        if attach_to_any_window:
            logger.warning("Listing every on-screen window, not only terminals")

    async def _call(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # -- listing -----------------------------------------------------------

    def _list_sessions_sync(self) -> list[TerminalSession]:
        sessions: list[TerminalSession] = []
        for info in terminal_windows(_on_screen_windows(), self._attach_to_any_window):
            session = window_to_session(info)
            ax_window = _match_ax_window(info)
            title = session.title
            if not title and ax_window is not None:
                title = str(_ax_attribute(ax_window, "AXTitle") or "")
            text = _find_text(ax_window) if ax_window is not None else None

            sessions.append(
                session.model_copy(
                    update={"title": title, "activity": activity_label(text, session.pid)}
                )
            )
        logger.debug("Found %d terminal windows", len(sessions))
        return sessions

    async def list_sessions(self) -> list[TerminalSession]:
        return await self._call(self._list_sessions_sync)

    def _visible_identities_sync(self) -> list[SessionIdentity]:
        return visible_identities(_on_screen_windows())

    async def _visible_identities(self) -> list[SessionIdentity]:
        return await self._call(self._visible_identities_sync)

    # -- reading -----------------------------------------------------------

    def _window_info(self, connection: ConnectionState) -> dict[str, Any] | None:
        for info in _on_screen_windows():
            if window_id(info) == connection.session_id:
                return info
        return None

    def _read_text_sync(self, connection: ConnectionState) -> str | None:
        info = self._window_info(connection)
        if info is None:
            logger.warning("Window %s not found", connection.session_id)
            return None
        ax_window = _match_ax_window(info)
        if ax_window is None:
            logger.warning(
                "No accessibility window for %s; is Accessibility access granted?",
                connection.name,
            )
            return None
        return _find_text(ax_window)

    async def _read_text(self, connection: ConnectionState) -> str | None:
        return await self._call(self._read_text_sync, connection)

    # -- typing ------------------------------------------------------------

    def _focus_sync(self, connection: ConnectionState) -> None:
        info = self._window_info(connection)
        if info is not None:
            ax_window = _match_ax_window(info)
            if ax_window is not None:
                AXUIElementPerformAction(ax_window, "AXRaise")
        app = NSRunningApplication.runningApplicationWithProcessIdentifier_(connection.pid)
        if app is None:
            raise BackendError(
                f"No running application with pid {connection.pid}", backend=self.name
            )
        app.activateWithOptions_(NSApplicationActivateIgnoringOtherApps)

    async def _focus(self, connection: ConnectionState) -> None:
        await self._call(self._focus_sync, connection)
        await asyncio.sleep(FOCUS_DELAY)

    def _post_key(self, pid: int, parts: KeyEventParts) -> None:
        for key_down in (True, False):
            event = CGEventCreateKeyboardEvent(None, parts.key_code, key_down)
            if event is None:
                raise BackendError("Cannot create keyboard event", backend=self.name)
            if parts.char is not None:
                CGEventKeyboardSetUnicodeString(
                    event, len(parts.char.encode("utf-16-le")) // 2, parts.char
                )
            CGEventSetFlags(event, parts.flags)
            CGEventPostToPid(pid, event)
            if key_down:
                time.sleep(KEY_HOLD_DELAY)
        time.sleep(KEY_GAP_DELAY)

    def _send_literal_sync(self, connection: ConnectionState, text: str) -> None:
        for char in text:
            self._post_key(connection.pid, literal_key_parts(char))

    async def _send_literal(self, connection: ConnectionState, text: str) -> None:
        await self._call(self._send_literal_sync, connection, text)
        logger.debug("Typed %d characters into window %s", len(text), connection.session_id)

    def _send_special_sync(self, connection: ConnectionState, key: SpecialKey) -> None:
        self._post_key(connection.pid, special_key_parts(key))

    async def _send_special(self, connection: ConnectionState, key: SpecialKey) -> None:
        await self._call(self._send_special_sync, connection, key)
        logger.debug("Pressed %s %s", sorted(m.value for m in key.modifiers), key.key)
