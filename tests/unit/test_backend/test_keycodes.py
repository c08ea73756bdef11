"""Tests for the macOS virtual key table."""

from __future__ import annotations

from teleterm.backend.keycodes import (
    FLAG_ALTERNATE,
    FLAG_COMMAND,
    FLAG_CONTROL,
    KEY_CODES,
    UNMAPPED_KEY_CODE,
    KeyEventParts,
    key_code_for,
    literal_key_parts,
    modifiers_to_flags,
    special_key_parts,
)
from teleterm.domain.models import Modifier, SpecialKey


class TestKeyCodes:
    """Verify the key code table."""

    def test_all_letters_present(self) -> None:
        for c in "abcdefghijklmnopqrstuvwxyz":
            assert c in KEY_CODES, f"Missing letter: {c}"

    def test_all_digits_present(self) -> None:
        for c in "0123456789":
            assert c in KEY_CODES, f"Missing digit: {c}"

    def test_control_keys(self) -> None:
        assert key_code_for("Enter") == 0x24
        assert key_code_for("Tab") == 0x30
        assert key_code_for("Escape") == 0x35

    def test_known_letters(self) -> None:
        assert key_code_for("a") == 0x00
        assert key_code_for("c") == 0x08
        assert key_code_for("z") == 0x06

    def test_uppercase_shares_code(self) -> None:
        assert key_code_for("C") == key_code_for("c")

    def test_unmapped_character(self) -> None:
        assert key_code_for("é") is None
        assert key_code_for("!") is None

    def test_codes_are_unique(self) -> None:
        codes = list(KEY_CODES.values())
        assert len(codes) == len(set(codes))


class TestModifierFlags:
    """Modifier sets become CGEventFlags bitmasks."""

    def test_none(self) -> None:
        assert modifiers_to_flags([]) == 0

    def test_single(self) -> None:
        assert modifiers_to_flags([Modifier.CTRL]) == FLAG_CONTROL

    def test_combined(self) -> None:
        flags = modifiers_to_flags(frozenset({Modifier.CTRL, Modifier.ALT, Modifier.CMD}))
        assert flags == FLAG_CONTROL | FLAG_ALTERNATE | FLAG_COMMAND


class TestKeyEventParts:
    """Choosing between key code + flags and an attached unicode string."""

    def test_literal_character(self) -> None:
        assert literal_key_parts("l") == KeyEventParts(0x25, 0, "l")

    def test_literal_without_physical_key(self) -> None:
        assert literal_key_parts("é") == KeyEventParts(UNMAPPED_KEY_CODE, 0, "é")

    def test_named_key_has_no_string(self) -> None:
        assert special_key_parts(SpecialKey(key="Enter")) == KeyEventParts(0x24, 0, None)

    def test_shortcut_uses_physical_key(self) -> None:
        """Ctrl+C goes by the C key code so the system sees the shortcut."""
        key = SpecialKey(key="c", modifiers=frozenset({Modifier.CTRL}))
        assert special_key_parts(key) == KeyEventParts(0x08, FLAG_CONTROL, None)

    def test_unmapped_shortcut_carries_character(self) -> None:
        key = SpecialKey(key="!", modifiers=frozenset({Modifier.ALT}))
        assert special_key_parts(key) == KeyEventParts(UNMAPPED_KEY_CODE, FLAG_ALTERNATE, "!")

    def test_unmodified_backslash_carries_character(self) -> None:
        assert special_key_parts(SpecialKey(key="\\")) == KeyEventParts(0x2A, 0, "\\")
