"""Authentication for teleterm.

Public API:
    AuthGate -- Owner check and TOTP session handling
    AuthOutcome -- Result of admitting a request
    AuthRejected -- Request from someone other than the owner
    ensure_totp_secret -- First-run secret generation
    print_provisioning_qr -- Show the secret as a terminal QR code
    SecretGenerationError -- No secure randomness available
"""

from teleterm.auth.gate import AuthGate, AuthOutcome, AuthRejected
from teleterm.auth.totp import SecretGenerationError, ensure_totp_secret, print_provisioning_qr

__all__ = [
    "AuthGate",
    "AuthOutcome",
    "AuthRejected",
    "ensure_totp_secret",
    "print_provisioning_qr",
    "SecretGenerationError",
]
