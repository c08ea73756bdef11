"""Per-request command handling.

Every inbound request, text or button press, goes through
CommandDispatcher.handle(). Requests are processed one at a time under a
single lock: authentication, the session registry and the live view are
shared state, and keystrokes must reach the terminal in the order they
were sent.
"""

from __future__ import annotations

import asyncio
import logging
import re

from teleterm.auth.gate import AuthGate, AuthOutcome, AuthRejected
from teleterm.backend.base import BackendError
from teleterm.codec.keystrokes import decode_keystrokes
from teleterm.domain.models import InboundRequest
from teleterm.output.formatter import REFRESH_DATA, OutputFormatter
from teleterm.session.registry import InvalidIndex, SessionGone, SessionRegistry, render_menu
from teleterm.transport.base import Transport

logger = logging.getLogger(__name__)

OTP_PROMPT_TEXT = "Enter OTP code."
AUTHENTICATED_TEXT = "Authenticated."
INVALID_INDEX_TEXT = "Invalid window number."
WINDOW_CLOSED_PREFIX = "Window closed.\n\n"
BACKEND_ERROR_TEXT = "Terminal backend unavailable."

HELP_TEXT = (
    "Commands:\n"
    ".list - Show terminal windows\n"
    ".1 .2 ... - Connect to window\n"
    ".help - This help\n\n"
    "Once connected, text is sent as keystrokes.\n"
    "Newline is auto-added; end with `\U0001F49C` to suppress it.\n\n"
    "Modifiers (tap to copy, then paste + key):\n"
    "`\u2764\ufe0f` Ctrl  `\U0001F499` Alt  `\U0001F49A` Cmd  "
    "`\U0001F49B` ESC  `\U0001F9E1` Enter\n\n"
    "Escape sequences: \\n=Enter \\t=Tab\n\n"
    "`.otptimeout <seconds>` - Set OTP timeout (30-28800)"
)

LIST_COMMAND = ".list"
HELP_COMMAND = ".help"
OTP_TIMEOUT_COMMAND = ".otptimeout"
INDEX_PATTERN = re.compile(r"\.(\d+)")
LEADING_INT_PATTERN = re.compile(r"[+-]?\d+")


def leading_int(text: str) -> int:
    """Integer at the start of ``text``, or 0 when there is none."""
    match = LEADING_INT_PATTERN.match(text.strip())
    return int(match.group()) if match else 0


class CommandDispatcher:
    """Routes requests to the auth gate, registry, backend and formatter.

    Args:
        auth: Owner and TOTP checks.
        registry: Session snapshot and connection.
        formatter: Sends the live terminal view.
        transport: Sends plain replies and acknowledges buttons.
        settle_delay: Seconds to let the terminal react to keystrokes.
    """

    def __init__(
        self,
        auth: AuthGate,
        registry: SessionRegistry,
        formatter: OutputFormatter,
        transport: Transport,
        settle_delay: float = 2.0,
    ) -> None:
        self._auth = auth
        self._registry = registry
        self._formatter = formatter
        self._transport = transport
        self._settle_delay = settle_delay
        self._lock = asyncio.Lock()

    async def handle(self, request: InboundRequest) -> None:
        """Process one request to completion, after any earlier ones."""
        async with self._lock:
            try:
                outcome = await self._auth.admit(request)
            except AuthRejected:
                return

            if outcome is AuthOutcome.CHALLENGED:
                if request.is_callback:
                    await self._transport.answer_callback(request.callback_id)
                else:
                    await self._reply(request.chat_id, OTP_PROMPT_TEXT)
                return
            if outcome is AuthOutcome.VERIFIED:
                await self._reply(request.chat_id, AUTHENTICATED_TEXT)
                return

            try:
                if request.is_callback:
                    await self._handle_callback(request)
                else:
                    await self._handle_text(request.chat_id, request.text)
            except BackendError as e:
                logger.error("Backend error: %s", e)
                await self._reply(request.chat_id, BACKEND_ERROR_TEXT)

    async def _reply(self, chat_id: int, text: str, parse_mode: str | None = None) -> None:
        await self._transport.send_message(chat_id, text, parse_mode=parse_mode)

    async def _handle_callback(self, request: InboundRequest) -> None:
        await self._transport.answer_callback(request.callback_id)
        if request.callback_data == REFRESH_DATA and self._registry.connection.connected:
            await self._formatter.send_snapshot(request.chat_id)

    async def _handle_text(self, chat_id: int, text: str) -> None:
        command = text.strip()
        lowered = command.lower()

        if lowered == LIST_COMMAND:
            await self._send_menu(chat_id)
        elif lowered == HELP_COMMAND:
            await self._reply(chat_id, HELP_TEXT, parse_mode="Markdown")
        elif lowered.startswith(OTP_TIMEOUT_COMMAND):
            await self._set_otp_timeout(chat_id, command[len(OTP_TIMEOUT_COMMAND):].strip())
        elif match := INDEX_PATTERN.fullmatch(command):
            await self._connect(chat_id, int(match.group(1)))
        else:
            await self._type(chat_id, text)

    async def _send_menu(self, chat_id: int, prefix: str = "") -> None:
        self._registry.disconnect()
        sessions = await self._registry.refresh()
        await self._reply(chat_id, prefix + render_menu(sessions))

    async def _set_otp_timeout(self, chat_id: int, argument: str) -> None:
        seconds = await self._auth.set_otp_timeout(leading_int(argument))
        await self._reply(chat_id, f"OTP timeout set to {seconds} seconds.")

    async def _connect(self, chat_id: int, index: int) -> None:
        await self._registry.refresh()
        try:
            session = self._registry.connect(index)
        except InvalidIndex:
            await self._reply(chat_id, INVALID_INDEX_TEXT)
            return

        message = f"Connected to {session.name}"
        if session.title:
            message += f" - {session.title}"
        await self._reply(chat_id, message)
        await self._formatter.send_snapshot(chat_id)

    async def _type(self, chat_id: int, text: str) -> None:
        registry = self._registry
        if not registry.connection.connected:
            await self._send_menu(chat_id)
            return

        try:
            await registry.verify_live()
        except SessionGone:
            await self._send_menu(chat_id, WINDOW_CLOSED_PREFIX)
            return

        decoded = decode_keystrokes(text)
        await registry.backend.inject(registry.connection, decoded.events)

        # Keys may switch tabs or panes; re-check after the terminal reacts.
        await asyncio.sleep(self._settle_delay)
        try:
            await registry.verify_live()
        except SessionGone:
            await self._send_menu(chat_id, WINDOW_CLOSED_PREFIX)
            return

        await self._formatter.send_snapshot(chat_id)
