"""Decode chat payloads into keystroke events.

A payload is plain text annotated with heart emoji and backslash escapes:

    ❤️  Ctrl      💙 Alt      💚 Cmd      (held for the next key)
    💛  Escape    🧡 Enter
    \\n Enter     \\t Tab     \\\\ backslash
    💜  at the very end: do not press Enter afterwards

Consecutive unmodified characters are batched into a single LiteralRun so
backends can deliver them with one call. Everything else becomes a
SpecialKey. Unless suppressed, a trailing Enter is appended so that an
ordinary message behaves like a typed shell command.
"""

from __future__ import annotations

import logging

from teleterm.domain.models import (
    ENTER,
    ESCAPE,
    TAB,
    DecodedKeystrokes,
    KeystrokeEvent,
    LiteralRun,
    Modifier,
    SpecialKey,
)

logger = logging.getLogger(__name__)

RED_HEART = "\u2764"
VARIATION_SELECTOR = "\ufe0f"
BLUE_HEART = "\U0001F499"
GREEN_HEART = "\U0001F49A"
YELLOW_HEART = "\U0001F49B"
PURPLE_HEART = "\U0001F49C"
ORANGE_HEART = "\U0001F9E1"

MODIFIER_TOKENS: dict[str, Modifier] = {
    RED_HEART + VARIATION_SELECTOR: Modifier.CTRL,
    RED_HEART: Modifier.CTRL,
    BLUE_HEART: Modifier.ALT,
    GREEN_HEART: Modifier.CMD,
}

ESCAPE_SEQUENCES: dict[str, str] = {
    "\\n": ENTER,
    "\\t": TAB,
    "\\\\": "\\",
}

# Longest first so the red heart with its variation selector wins.
_MODIFIER_ORDER = sorted(MODIFIER_TOKENS, key=len, reverse=True)


class _KeystrokeScanner:
    """Single-pass scanner holding the modifier and literal accumulators."""

    def __init__(self) -> None:
        self.events: list[KeystrokeEvent] = []
        self.modifiers: set[Modifier] = set()
        self.literal: list[str] = []
        self.keystrokes = 0
        self.had_modifier = False

    def flush_literal(self) -> None:
        if self.literal:
            self.events.append(LiteralRun(text="".join(self.literal)))
            self.literal = []

    def add_literal(self, char: str) -> None:
        self.literal.append(char)
        self.keystrokes += 1

    def press(self, key: str, *, ignore_modifiers: bool = False) -> None:
        self.flush_literal()
        held = frozenset() if ignore_modifiers else frozenset(self.modifiers)
        self.events.append(SpecialKey(key=key, modifiers=held))
        if held or key == ESCAPE:
            self.had_modifier = True
        self.keystrokes += 1
        self.modifiers.clear()

    def feed(self, text: str) -> None:
        pos = 0
        while pos < len(text):
            pos += self._step(text, pos)
        self.flush_literal()
        if self.modifiers:
            logger.debug("Dropping dangling modifiers: %s", sorted(m.value for m in self.modifiers))
            self.modifiers.clear()

    def _step(self, text: str, pos: int) -> int:
        for token in _MODIFIER_ORDER:
            if text.startswith(token, pos):
                self.modifiers.add(MODIFIER_TOKENS[token])
                return len(token)

        if text.startswith(YELLOW_HEART, pos):
            self.press(ESCAPE, ignore_modifiers=True)
            return len(YELLOW_HEART)

        if text.startswith(ORANGE_HEART, pos):
            self.press(ENTER)
            return len(ORANGE_HEART)

        pair = text[pos:pos + 2]
        if pair in ESCAPE_SEQUENCES:
            self.press(ESCAPE_SEQUENCES[pair])
            return 2

        char = text[pos]
        if self.modifiers:
            self.press(char)
        else:
            self.add_literal(char)
        return 1

    def needs_trailing_enter(self) -> bool:
        if self.keystrokes == 1 and self.had_modifier:
            return False
        if not self.events:
            return False
        last = self.events[-1]
        return not (isinstance(last, SpecialKey) and last.key == ENTER)


def decode_keystrokes(payload: str) -> DecodedKeystrokes:
    """Translate a chat payload into an ordered list of keystroke events.

    The trailing Enter, when due, is already part of the returned events.
    Decoding is pure: the same payload always yields the same result.
    """
    suppress_enter = payload.endswith(PURPLE_HEART)
    if suppress_enter:
        payload = payload[: -len(PURPLE_HEART)]

    scanner = _KeystrokeScanner()
    scanner.feed(payload)

    events = scanner.events
    if not suppress_enter and scanner.needs_trailing_enter():
        events.append(SpecialKey(key=ENTER))

    return DecodedKeystrokes(events=events, suppress_enter=suppress_enter)
