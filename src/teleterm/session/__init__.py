"""Session selection and connection tracking.

Public API:
    SessionRegistry -- Snapshot, connection and tracked messages
    InvalidIndex -- Bad display index
    SessionGone -- Connected session vanished
    render_menu -- Format a listing for the chat
"""

from teleterm.session.registry import InvalidIndex, SessionGone, SessionRegistry, render_menu

__all__ = ["SessionRegistry", "InvalidIndex", "SessionGone", "render_menu"]
