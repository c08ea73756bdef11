"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from teleterm.cli import main, parse_args


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])
        assert args.config is None
        assert args.dbfile is None
        assert args.verbose is False
        assert args.dangerously_attach_to_any_window is False
        assert args.use_weak_security is False

    def test_flags(self) -> None:
        args = parse_args([
            "--dbfile", "/tmp/bot.sqlite",
            "--dangerously-attach-to-any-window",
            "--use-weak-security",
            "-v",
        ])
        assert args.dbfile == Path("/tmp/bot.sqlite")
        assert args.dangerously_attach_to_any_window is True
        assert args.use_weak_security is True
        assert args.verbose is True


class TestMain:
    def test_flags_override_settings(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        captured = {}

        async def fake_run(settings) -> None:
            captured["settings"] = settings

        with (
            patch("teleterm.cli._run_bot", fake_run),
            patch("teleterm.utils.logging.setup_logging"),
        ):
            main([
                "--dbfile", "x.sqlite",
                "--use-weak-security",
                "--dangerously-attach-to-any-window",
            ])

        settings = captured["settings"]
        assert settings.dbfile == Path("x.sqlite")
        assert settings.auth.weak_security is True
        assert settings.backend.attach_to_any_window is True
