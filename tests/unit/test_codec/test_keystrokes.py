"""Tests for decode_keystrokes."""

from __future__ import annotations

import pytest

from teleterm.codec.keystrokes import (
    BLUE_HEART,
    GREEN_HEART,
    ORANGE_HEART,
    PURPLE_HEART,
    RED_HEART,
    VARIATION_SELECTOR,
    YELLOW_HEART,
    decode_keystrokes,
)
from teleterm.domain.models import ENTER, ESCAPE, TAB, LiteralRun, Modifier, SpecialKey

CTRL = RED_HEART + VARIATION_SELECTOR


def special(key: str, *mods: Modifier) -> SpecialKey:
    return SpecialKey(key=key, modifiers=frozenset(mods))


class TestPlainText:
    """Unannotated payloads are typed as one run followed by Enter."""

    def test_hello(self) -> None:
        """'hello' becomes one literal run and Enter."""
        decoded = decode_keystrokes("hello")
        assert decoded.events == [LiteralRun(text="hello"), special(ENTER)]
        assert decoded.suppress_enter is False

    def test_spaces_and_symbols_stay_in_one_run(self) -> None:
        """Printable characters of any kind are batched together."""
        decoded = decode_keystrokes("ls -la | grep 'x'")
        assert decoded.events == [LiteralRun(text="ls -la | grep 'x'"), special(ENTER)]

    def test_empty_payload_produces_nothing(self) -> None:
        """An empty payload yields no events at all."""
        assert decode_keystrokes("").events == []

    def test_decoding_is_deterministic(self) -> None:
        """The same payload always decodes to the same events."""
        payload = f"git status{CTRL}c\\n"
        assert decode_keystrokes(payload) == decode_keystrokes(payload)


class TestModifiers:
    """Heart emoji hold modifiers for the next key."""

    def test_ctrl_c_alone(self) -> None:
        """A single modified key gets no trailing Enter."""
        assert decode_keystrokes(f"{CTRL}c").events == [special("c", Modifier.CTRL)]

    def test_red_heart_without_variation_selector(self) -> None:
        """The bare red heart also means Ctrl."""
        assert decode_keystrokes(f"{RED_HEART}d").events == [special("d", Modifier.CTRL)]

    def test_alt_and_cmd(self) -> None:
        """Blue and green hearts map to Alt and Cmd."""
        assert decode_keystrokes(f"{BLUE_HEART}x").events == [special("x", Modifier.ALT)]
        assert decode_keystrokes(f"{GREEN_HEART}v").events == [special("v", Modifier.CMD)]

    def test_modifiers_accumulate(self) -> None:
        """Several hearts combine on the same key."""
        decoded = decode_keystrokes(f"{CTRL}{BLUE_HEART}x")
        assert decoded.events == [special("x", Modifier.CTRL, Modifier.ALT)]

    def test_modifiers_apply_to_one_key_only(self) -> None:
        """Modifiers are cleared after the key they modify."""
        decoded = decode_keystrokes(f"{CTRL}cab")
        assert decoded.events == [
            special("c", Modifier.CTRL),
            LiteralRun(text="ab"),
            special(ENTER),
        ]

    def test_literal_is_flushed_before_modified_key(self) -> None:
        """Text before a modified key is delivered first."""
        decoded = decode_keystrokes(f"ab{CTRL}c")
        assert decoded.events == [
            LiteralRun(text="ab"),
            special("c", Modifier.CTRL),
            special(ENTER),
        ]

    def test_dangling_modifier_is_dropped(self) -> None:
        """A heart with nothing after it produces no key."""
        assert decode_keystrokes(CTRL).events == []
        assert decode_keystrokes(f"ls{BLUE_HEART}").events == [
            LiteralRun(text="ls"),
            special(ENTER),
        ]


class TestSpecialKeys:
    """Escape, Enter and Tab tokens."""

    def test_yellow_heart_is_escape_without_enter(self) -> None:
        """A lone Escape counts as a modified keystroke."""
        assert decode_keystrokes(YELLOW_HEART).events == [special(ESCAPE)]

    def test_escape_ignores_held_modifiers(self) -> None:
        """Escape is always sent bare and clears held modifiers."""
        decoded = decode_keystrokes(f"{CTRL}{YELLOW_HEART}a")
        assert decoded.events == [special(ESCAPE), LiteralRun(text="a"), special(ENTER)]

    def test_escape_then_vim_command(self) -> None:
        """Escape followed by text gets the trailing Enter."""
        decoded = decode_keystrokes(f"{YELLOW_HEART}:wq")
        assert decoded.events == [special(ESCAPE), LiteralRun(text=":wq"), special(ENTER)]

    def test_orange_heart_is_enter(self) -> None:
        """An explicit Enter at the end is not doubled."""
        decoded = decode_keystrokes(f"y{ORANGE_HEART}")
        assert decoded.events == [LiteralRun(text="y"), special(ENTER)]

    def test_orange_heart_keeps_modifiers(self) -> None:
        """Enter carries held modifiers."""
        decoded = decode_keystrokes(f"{BLUE_HEART}{ORANGE_HEART}")
        assert decoded.events == [special(ENTER, Modifier.ALT)]

    def test_backslash_escapes(self) -> None:
        r"""\n, \t and \\ become Enter, Tab and a backslash key."""
        decoded = decode_keystrokes("a\\tb\\\\c\\n")
        assert decoded.events == [
            LiteralRun(text="a"),
            special(TAB),
            LiteralRun(text="b"),
            special("\\"),
            LiteralRun(text="c"),
            special(ENTER),
        ]

    def test_lone_backslash_is_literal(self) -> None:
        r"""A backslash not followed by n, t or \ is an ordinary character."""
        decoded = decode_keystrokes("a\\x")
        assert decoded.events == [LiteralRun(text="a\\x"), special(ENTER)]

    def test_real_newline_is_typed_literally(self) -> None:
        """Only the two-character escape means Enter."""
        decoded = decode_keystrokes("a\nb")
        assert decoded.events == [LiteralRun(text="a\nb"), special(ENTER)]


class TestSuppressEnter:
    """A trailing purple heart suppresses the automatic Enter."""

    @pytest.mark.parametrize("payload", ["ls", f"{CTRL}c", "", "echo \\n"])
    def test_purple_heart_never_yields_enter_or_itself(self, payload: str) -> None:
        """The marker is stripped and no trailing Enter is added."""
        decoded = decode_keystrokes(payload + PURPLE_HEART)
        assert decoded.suppress_enter is True
        assert decoded.events == decode_keystrokes(payload).events[: len(decoded.events)]
        for event in decoded.events:
            if isinstance(event, LiteralRun):
                assert PURPLE_HEART not in event.text

    def test_suppressed_plain_text(self) -> None:
        """Text with the marker is typed without Enter."""
        decoded = decode_keystrokes(f"partial{PURPLE_HEART}")
        assert decoded.events == [LiteralRun(text="partial")]

    def test_purple_heart_in_the_middle_is_literal(self) -> None:
        """Only a suffix marker counts."""
        decoded = decode_keystrokes(f"a{PURPLE_HEART}b")
        assert decoded.suppress_enter is False
        assert decoded.events == [LiteralRun(text=f"a{PURPLE_HEART}b"), special(ENTER)]
