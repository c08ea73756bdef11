"""tmux terminal backend.

Drives tmux through its command-line interface: panes are enumerated with
``list-panes``, read with ``capture-pane`` and typed into with
``send-keys``. Commands are executed directly (no shell), so arguments
are never subject to shell interpretation.
"""

from __future__ import annotations

import asyncio
import logging
import shlex

from teleterm.backend.base import BackendError, SessionIdentity, TerminalBackend
from teleterm.domain.models import ConnectionState, Modifier, SpecialKey, TerminalSession

logger = logging.getLogger(__name__)

PANE_FORMAT = "#{pane_id}\t#{session_name}:#{window_index}.#{pane_index}\t#{pane_pid}\t#{pane_title}"

# tmux key-name prefixes for modifiers; Cmd has no tmux equivalent.
MODIFIER_PREFIXES: dict[Modifier, str] = {
    Modifier.CTRL: "C-",
    Modifier.ALT: "M-",
}

KEY_NAMES: dict[str, str] = {
    " ": "Space",
}


def tmux_argument(value: str) -> str:
    """Protect an argument from tmux's own command parser.

    tmux treats an argument ending in ``;`` as a command separator and reads
    a trailing ``\\;`` as an escaped semicolon, so the last ``;`` is always
    escaped: ``a;`` becomes ``a\\;`` and ``a\\;`` becomes ``a\\\\;``.
    """
    if value.endswith(";"):
        return value[:-1] + "\\;"
    return value


def tmux_key_name(key: SpecialKey) -> str:
    """Build a tmux send-keys key name such as ``C-M-c`` or ``Enter``."""
    if Modifier.CMD in key.modifiers:
        logger.debug("Ignoring Cmd modifier for tmux key %r", key.key)
    prefix = "".join(
        MODIFIER_PREFIXES[mod] for mod in (Modifier.CTRL, Modifier.ALT) if mod in key.modifiers
    )
    return prefix + KEY_NAMES.get(key.key, key.key)


def parse_pane_listing(output: str) -> list[TerminalSession]:
    """Parse ``list-panes`` output in PANE_FORMAT into sessions."""
    sessions: list[TerminalSession] = []
    for row in output.splitlines():
        if not row:
            continue
        cols = row.split("\t", 3)
        if len(cols) < 4:
            logger.debug("Skipping malformed pane row: %r", row)
            continue
        pane_id, name, pid, title = cols
        try:
            pane_pid = int(pid)
        except ValueError:
            pane_pid = 0
        sessions.append(
            TerminalSession(session_id=pane_id, pid=pane_pid, name=name, title=title)
        )
    return sessions


class TmuxBackend(TerminalBackend):
    """Controls tmux panes via the tmux CLI."""

    name = "tmux"

    def __init__(self, binary: str = "tmux") -> None:
        self._binary = binary

    async def _run(self, *args: str) -> tuple[int, str, str]:
        """Run a tmux command and return (returncode, stdout, stderr)."""
        cmd = [self._binary, *args]
        logger.debug("Running: %s", shlex.join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BackendError(f"Cannot run {self._binary}: {e}", backend=self.name) from e
        stdout, stderr = await proc.communicate()
        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace").strip(),
        )

    async def _run_checked(self, *args: str) -> str:
        returncode, stdout, stderr = await self._run(*args)
        if returncode != 0:
            raise BackendError(
                f"tmux {args[0]} failed ({returncode}): {stderr}", backend=self.name
            )
        return stdout

    async def list_sessions(self) -> list[TerminalSession]:
        returncode, stdout, stderr = await self._run("list-panes", "-a", "-F", PANE_FORMAT)
        if returncode != 0:
            # No server running means no sessions, not a broken backend.
            logger.info("tmux list-panes returned %d: %s", returncode, stderr)
            return []
        sessions = parse_pane_listing(stdout)
        logger.debug("Found %d tmux panes", len(sessions))
        return sessions

    async def _visible_identities(self) -> list[SessionIdentity]:
        return [
            SessionIdentity(session.session_id, session.pid)
            for session in await self.list_sessions()
        ]

    async def _read_text(self, connection: ConnectionState) -> str | None:
        returncode, stdout, stderr = await self._run(
            "capture-pane", "-t", connection.session_id, "-p"
        )
        if returncode != 0:
            logger.warning(
                "Failed to capture pane %s: returncode=%d, stderr=%s",
                connection.session_id, returncode, stderr,
            )
        return stdout or None

    async def _send_literal(self, connection: ConnectionState, text: str) -> None:
        await self._run_checked(
            "send-keys", "-t", connection.session_id, "-l", "--", tmux_argument(text)
        )
        logger.debug("Sent literal text: %s", text[:50])

    async def _send_special(self, connection: ConnectionState, key: SpecialKey) -> None:
        if not key.modifiers and not key.is_named:
            # A lone character (the escaped backslash) is typed literally.
            await self._send_literal(connection, key.key)
            return
        key_name = tmux_key_name(key)
        await self._run_checked(
            "send-keys", "-t", connection.session_id, tmux_argument(key_name)
        )
        logger.debug("Sent key: %s", key_name)
