"""Owner binding and one-time-password authentication.

The first user to write to the bot becomes its owner, permanently. Every
other user is ignored. Unless weak security is enabled, the owner must
also enter a TOTP code, which stays valid as long as requests keep
arriving within the OTP timeout (sliding expiration).
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable

from teleterm.auth.totp import SECRET_KEY, totp_for
from teleterm.domain.models import (
    OTP_TIMEOUT_DEFAULT,
    OTP_TIMEOUT_MAX,
    OTP_TIMEOUT_MIN,
    AuthState,
    InboundRequest,
)
from teleterm.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

OWNER_KEY = "owner_id"
OTP_TIMEOUT_KEY = "otp_timeout"
OTP_CODE_LENGTH = 6


class AuthOutcome(enum.Enum):
    """What the dispatcher should do with an owner request."""

    ADMITTED = "admitted"  # Process normally
    CHALLENGED = "challenged"  # Ask for a code (or silently ack a callback)
    VERIFIED = "verified"  # Code accepted; confirm and stop


class AuthRejected(Exception):
    """Raised for requests from anyone but the owner."""

    def __init__(self, sender_id: int) -> None:
        super().__init__(f"Sender {sender_id} is not the owner")
        self.sender_id = sender_id


def clamp_otp_timeout(seconds: int) -> int:
    return max(OTP_TIMEOUT_MIN, min(OTP_TIMEOUT_MAX, seconds))


def is_otp_code(text: str) -> bool:
    return len(text) == OTP_CODE_LENGTH and text.isascii() and text.isdigit()


class AuthGate:
    """Decides whether a request may reach the terminal.

    Args:
        store: Persistent store holding owner, secret and timeout.
        weak_security: Admit the owner without a TOTP code.
        default_otp_timeout: Used until a valid timeout is stored.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        store: KeyValueStore,
        weak_security: bool = False,
        default_otp_timeout: int = OTP_TIMEOUT_DEFAULT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock
        self.weak_security = weak_security
        self.state = AuthState(otp_timeout=clamp_otp_timeout(default_otp_timeout))

    async def load(self) -> None:
        """Read the persisted owner and OTP timeout."""
        owner = await self._store.get(OWNER_KEY)
        if owner:
            try:
                self.state.owner_id = int(owner)
            except ValueError:
                logger.warning("Ignoring malformed stored owner id %r", owner)

        stored = await self._store.get(OTP_TIMEOUT_KEY)
        if stored:
            try:
                timeout = int(stored)
            except ValueError:
                timeout = 0
            if OTP_TIMEOUT_MIN <= timeout <= OTP_TIMEOUT_MAX:
                self.state.otp_timeout = timeout
            else:
                logger.warning("Ignoring out-of-range stored OTP timeout %r", stored)

    async def _claim_or_check_owner(self, request: InboundRequest) -> None:
        if self.state.owner_id is None:
            await self._store.set(OWNER_KEY, str(request.sender_id))
            self.state.owner_id = request.sender_id
            logger.info(
                "Registered owner: %d (%s)", request.sender_id, request.sender_username
            )
        if request.sender_id != self.state.owner_id:
            logger.info("Ignoring message from non-owner %d", request.sender_id)
            raise AuthRejected(request.sender_id)

    async def verify_code(self, code: str) -> bool:
        """Check a code against the stored secret, one 30 s step either side."""
        secret_hex = await self._store.get(SECRET_KEY)
        if not secret_hex:
            logger.warning("No TOTP secret stored; cannot verify codes")
            return False
        try:
            totp = totp_for(secret_hex)
        except ValueError:
            logger.error("Stored TOTP secret is malformed")
            return False
        return totp.verify(code, for_time=self._clock(), valid_window=1)

    def is_authenticated(self) -> bool:
        """True while the last activity is within the OTP timeout."""
        state = self.state
        if state.authenticated and self._clock() - state.last_activity > state.otp_timeout:
            logger.info("OTP session expired")
            state.authenticated = False
        return state.authenticated

    async def admit(self, request: InboundRequest) -> AuthOutcome:
        """Classify a request.

        Raises:
            AuthRejected: If the sender is not the owner.
        """
        await self._claim_or_check_owner(request)

        if self.weak_security:
            return AuthOutcome.ADMITTED

        if self.is_authenticated():
            self.state.last_activity = self._clock()
            return AuthOutcome.ADMITTED

        if request.is_callback:
            return AuthOutcome.CHALLENGED

        code = request.text.strip()
        if is_otp_code(code) and await self.verify_code(code):
            self.state.authenticated = True
            self.state.last_activity = self._clock()
            logger.info("Owner authenticated")
            return AuthOutcome.VERIFIED
        return AuthOutcome.CHALLENGED

    async def set_otp_timeout(self, seconds: int) -> int:
        """Clamp, store and return the new OTP timeout."""
        timeout = clamp_otp_timeout(seconds)
        self.state.otp_timeout = timeout
        await self._store.set(OTP_TIMEOUT_KEY, str(timeout))
        logger.info("OTP timeout set to %d seconds", timeout)
        return timeout
