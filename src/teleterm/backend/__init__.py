"""Terminal backends for teleterm.

A backend lists terminal sessions, reads their visible text and types
into them. Exactly one backend is selected at startup.

Public API:
    TerminalBackend -- Abstract base class
    BackendError -- Raised when the underlying mechanism fails
    TmuxBackend -- tmux panes via the tmux CLI
    MacOSBackend -- Terminal windows via CoreGraphics / Accessibility (macOS)
    create_backend -- Build the backend selected by the settings
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from teleterm.backend.base import BackendError, TerminalBackend
from teleterm.backend.tmux import TmuxBackend

if TYPE_CHECKING:
    from teleterm.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["TerminalBackend", "BackendError", "TmuxBackend", "MacOSBackend", "create_backend"]


def __getattr__(name: str) -> type:
    """Lazy import for the macOS backend, which requires pyobjc."""
    if name == "MacOSBackend":
        from teleterm.backend.macos import MacOSBackend
        return MacOSBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def create_backend(settings: Settings) -> TerminalBackend:
    """Instantiate the configured backend.

    ``auto`` picks the macOS backend on darwin and tmux everywhere else.
    """
    kind = settings.backend.kind
    if kind == "auto":
        kind = "macos" if sys.platform == "darwin" else "tmux"

    if kind == "macos":
        from teleterm.backend.macos import MacOSBackend
        backend: TerminalBackend = MacOSBackend(
            attach_to_any_window=settings.backend.attach_to_any_window
        )
    else:
        backend = TmuxBackend(binary=settings.backend.tmux_binary)

    logger.info("Using %s terminal backend", backend.name)
    return backend
