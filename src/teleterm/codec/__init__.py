"""Keystroke codec for teleterm.

Public API:
    decode_keystrokes -- Turn an annotated chat payload into keystroke events
"""

from teleterm.codec.keystrokes import decode_keystrokes

__all__ = ["decode_keystrokes"]
