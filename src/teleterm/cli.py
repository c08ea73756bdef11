"""Command-line interface for teleterm.

Wires the configured backend, storage, authentication and Telegram
transport together and runs the bot until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="teleterm",
        description="Control a local terminal from a Telegram chat",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/teleterm.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--dbfile",
        type=Path,
        default=None,
        help="SQLite database for owner, secret and settings (default: ./mybot.sqlite)",
    )
    parser.add_argument(
        "--dangerously-attach-to-any-window",
        action="store_true",
        help="List every window, not only terminal emulators (macOS)",
    )
    parser.add_argument(
        "--use-weak-security",
        action="store_true",
        help="Disable one-time-password authentication",
    )
    return parser.parse_args(argv)


async def _run_bot(settings) -> None:
    """Initialize all components and run the bot."""
    from teleterm.auth import AuthGate, SecretGenerationError, ensure_totp_secret, print_provisioning_qr
    from teleterm.backend import create_backend
    from teleterm.bot import BotRunner, CommandDispatcher
    from teleterm.output import OutputFormatter
    from teleterm.session import SessionRegistry
    from teleterm.storage import KeyValueStore
    from teleterm.transport import TelegramTransport

    token = settings.resolve_bot_token()
    if not token:
        logger.error(
            "No bot token: set TELETERM_BOT_TOKEN or write it to %s", settings.api_key_file
        )
        raise SystemExit(1)

    async with KeyValueStore(settings.dbfile) as store:
        if not settings.auth.weak_security:
            try:
                uri = await ensure_totp_secret(store)
            except SecretGenerationError as e:
                logger.error("%s; cannot continue without a TOTP secret", e)
                raise SystemExit(1) from e
            if uri is not None:
                print_provisioning_qr(uri)

        auth = AuthGate(
            store,
            weak_security=settings.auth.weak_security,
            default_otp_timeout=settings.auth.default_otp_timeout,
        )
        await auth.load()

        registry = SessionRegistry(create_backend(settings))

        tc = settings.transport
        async with TelegramTransport(
            token,
            api_base_url=tc.api_base_url,
            poll_timeout=tc.poll_timeout,
            http_timeout=tc.http_timeout,
        ) as transport:
            formatter = OutputFormatter(
                registry,
                transport,
                visible_lines=settings.visible_lines,
                split=settings.split_messages,
            )
            dispatcher = CommandDispatcher(
                auth,
                registry,
                formatter,
                transport,
                settle_delay=settings.backend.settle_delay,
            )
            await BotRunner(transport, dispatcher).run()


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the teleterm CLI."""
    args = parse_args(argv)

    from teleterm.config.settings import load_settings
    from teleterm.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"
    if args.dbfile is not None:
        settings.dbfile = args.dbfile
    if args.dangerously_attach_to_any_window:
        settings.backend.attach_to_any_window = True
    if args.use_weak_security:
        settings.auth.weak_security = True

    setup_logging(settings.logging)

    if settings.backend.attach_to_any_window:
        logger.warning("DANGER MODE: all windows will be visible")
    if settings.auth.weak_security:
        logger.warning("OTP authentication disabled")

    try:
        asyncio.run(_run_bot(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
