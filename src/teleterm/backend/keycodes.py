"""macOS virtual key codes and CGEvent modifier flags.

Reference: HIToolbox Events.h (kVK_* constants), ANSI US layout.

Key events synthesized with CGEventCreateKeyboardEvent need a virtual key
code. For plain characters the code matters little because the unicode
string is attached to the event, but when modifiers are held the system
derives the combination from the key code, so Ctrl+C must carry the code
of the physical C key.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from teleterm.domain.models import ENTER, ESCAPE, TAB, Modifier, SpecialKey

# ---------------------------------------------------------------------------
# Modifier flags (CGEventFlags)
# ---------------------------------------------------------------------------

FLAG_NONE: int = 0
FLAG_SHIFT: int = 1 << 17  # kCGEventFlagMaskShift
FLAG_CONTROL: int = 1 << 18  # kCGEventFlagMaskControl
FLAG_ALTERNATE: int = 1 << 19  # kCGEventFlagMaskAlternate
FLAG_COMMAND: int = 1 << 20  # kCGEventFlagMaskCommand

MODIFIER_FLAGS: dict[Modifier, int] = {
    Modifier.CTRL: FLAG_CONTROL,
    Modifier.ALT: FLAG_ALTERNATE,
    Modifier.CMD: FLAG_COMMAND,
}

# ---------------------------------------------------------------------------
# Key name / character -> virtual key code
# ---------------------------------------------------------------------------

KEY_CODES: dict[str, int] = {
    # Letters (not contiguous on macOS)
    "a": 0x00, "b": 0x0B, "c": 0x08, "d": 0x02,
    "e": 0x0E, "f": 0x03, "g": 0x05, "h": 0x04,
    "i": 0x22, "j": 0x26, "k": 0x28, "l": 0x25,
    "m": 0x2E, "n": 0x2D, "o": 0x1F, "p": 0x23,
    "q": 0x0C, "r": 0x0F, "s": 0x01, "t": 0x11,
    "u": 0x20, "v": 0x09, "w": 0x0D, "x": 0x07,
    "y": 0x10, "z": 0x06,
    # Digits
    "0": 0x1D, "1": 0x12, "2": 0x13, "3": 0x14,
    "4": 0x15, "5": 0x17, "6": 0x16, "7": 0x1A,
    "8": 0x1C, "9": 0x19,
    # Punctuation / symbols
    "-": 0x1B, "=": 0x18,
    "[": 0x21, "]": 0x1E,
    "\\": 0x2A,
    ";": 0x29, "'": 0x27,
    ",": 0x2B, ".": 0x2F, "/": 0x2C,
    "`": 0x32, " ": 0x31,
    # Control keys
    ENTER: 0x24,
    TAB: 0x30,
    ESCAPE: 0x35,
}

# Used when a character has no physical key; the unicode string carries it.
UNMAPPED_KEY_CODE: int = 0x00


def key_code_for(key: str) -> int | None:
    """Return the virtual key code for a named key or character.

    Uppercase letters share the code of their lowercase key.
    """
    if key in KEY_CODES:
        return KEY_CODES[key]
    if len(key) == 1 and key.lower() in KEY_CODES:
        return KEY_CODES[key.lower()]
    return None


def modifiers_to_flags(modifiers: Iterable[Modifier]) -> int:
    """Combine modifiers into a CGEventFlags bitmask."""
    flags = FLAG_NONE
    for mod in modifiers:
        flags |= MODIFIER_FLAGS[mod]
    return flags


# ---------------------------------------------------------------------------
# Keyboard event parameters
# ---------------------------------------------------------------------------


class KeyEventParts(NamedTuple):
    """Arguments for one synthesized key press."""

    key_code: int
    flags: int
    char: str | None  # Unicode string attached to the event, if any


def literal_key_parts(char: str) -> KeyEventParts:
    """Parameters for typing one unmodified character."""
    code = key_code_for(char)
    return KeyEventParts(UNMAPPED_KEY_CODE if code is None else code, FLAG_NONE, char)


def special_key_parts(key: SpecialKey) -> KeyEventParts:
    """Parameters for a named key or a character pressed with modifiers.

    Named keys and shortcuts on a known physical key go by key code and
    flags only, since the system resolves shortcuts from the physical key.
    Anything else carries its character as the unicode string.
    """
    flags = modifiers_to_flags(key.modifiers)
    code = key_code_for(key.key)
    if code is not None and (key.is_named or flags):
        return KeyEventParts(code, flags, None)
    return KeyEventParts(UNMAPPED_KEY_CODE if code is None else code, flags, key.key)
