"""TOTP secret provisioning.

The secret is 20 random bytes, stored hex-encoded under ``totp_secret``
and shown once as an ``otpauth://`` URI for authenticator apps.
"""

from __future__ import annotations

import base64
import io
import logging
import secrets

import pyotp
import qrcode

from teleterm.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

SECRET_KEY = "totp_secret"
SECRET_BYTES = 20
ISSUER = "teleterm"
ACCOUNT_NAME = "teleterm"


class SecretGenerationError(Exception):
    """Raised when no secure randomness is available for a new secret."""


def secret_to_base32(secret_hex: str) -> str:
    """Convert the stored hex secret to the base32 form authenticators use."""
    return base64.b32encode(bytes.fromhex(secret_hex)).decode("ascii")


def totp_for(secret_hex: str) -> pyotp.TOTP:
    return pyotp.TOTP(secret_to_base32(secret_hex))


def provisioning_uri(secret_hex: str) -> str:
    """Build ``otpauth://totp/teleterm?secret=...&issuer=teleterm``."""
    return f"otpauth://totp/{ACCOUNT_NAME}?secret={secret_to_base32(secret_hex)}&issuer={ISSUER}"


async def ensure_totp_secret(store: KeyValueStore) -> str | None:
    """Create the TOTP secret on first run.

    Returns:
        The provisioning URI when a new secret was generated, None when one
        already existed.

    Raises:
        SecretGenerationError: If the system cannot supply random bytes.
    """
    if await store.get(SECRET_KEY):
        return None

    try:
        secret = secrets.token_bytes(SECRET_BYTES)
    except (OSError, NotImplementedError) as e:
        raise SecretGenerationError(f"Cannot generate TOTP secret: {e}") from e

    secret_hex = secret.hex()
    await store.set(SECRET_KEY, secret_hex)
    logger.info("Generated a new TOTP secret")
    return provisioning_uri(secret_hex)


def render_qr(uri: str) -> str:
    """Render ``uri`` as a QR code made of terminal characters."""
    qr = qrcode.QRCode(border=2)
    qr.add_data(uri)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()


def print_provisioning_qr(uri: str) -> None:
    """Show the QR code and the manual-entry secret on stdout."""
    secret = pyotp.parse_uri(uri).secret
    print("\n=== TOTP Setup ===")
    print("Scan this QR code with your authenticator app:\n")
    print(render_qr(uri))
    print(f"Or enter this secret manually: {secret}")
    print("==================\n", flush=True)
