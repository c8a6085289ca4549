# backend/app/security/totp.py
"""
TOTP (Time-based One-Time Password) helpers
RFC 6238 compliant - Compatible with Google Authenticator, Authy, Aegis

Key points:
- 6-digit codes
- 30-second time step
- HMAC-SHA1 (standard)
- Base32 secret encoding
- Verification accepts the current step plus `valid_window` steps on
  either side (default 1, i.e. +/-30 seconds of clock skew)
"""
import base64
import io
import logging
from datetime import datetime
from typing import Optional, Union

import pyotp
import qrcode

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
TOTP_INTERVAL = 30


def generate_totp_secret() -> str:
    """
    Generate a new random TOTP secret (Base32 encoded).
    Returns 32-character Base32 string (160 bits).
    """
    return pyotp.random_base32()


def get_totp_uri(secret: str, username: str, issuer: Optional[str] = None) -> str:
    """
    Generate the otpauth:// URI for QR code encoding.

    Format: otpauth://totp/{issuer}:{username}?secret={secret}&issuer={issuer}
    """
    totp = pyotp.TOTP(secret)
    return totp.provisioning_uri(name=username, issuer_name=issuer or settings.TOTP_ISSUER)


def generate_qr_code_data_url(secret: str, username: str, issuer: Optional[str] = None) -> str:
    """
    Render the provisioning URI as a PNG QR code data URL.

    The client can display it directly: <img src="{result}">
    """
    uri = get_totp_uri(secret, username, issuer)

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def verify_totp(
    secret: str,
    code: str,
    valid_window: int = 1,
    for_time: Optional[Union[int, datetime]] = None,
) -> bool:
    """
    Verify a 6-digit TOTP code.
    Returns True if valid, False otherwise - never raises.
    """
    if not secret or not code:
        return False

    code = code.strip().replace(" ", "")
    if len(code) != TOTP_DIGITS or not code.isdigit():
        return False

    try:
        totp = pyotp.TOTP(secret)
        return totp.verify(code, for_time=for_time, valid_window=valid_window)
    except (ValueError, TypeError) as exc:
        # binascii.Error (bad base32) is a ValueError subclass
        logger.warning("TOTP verification on unusable secret: %s", type(exc).__name__)
        return False


def get_totp_at(secret: str, for_time: Union[int, datetime]) -> str:
    """Code for an explicit point in time (tests and tooling)."""
    return pyotp.TOTP(secret).at(for_time)


def get_current_totp(secret: str) -> str:
    """
    Get the current TOTP code for a secret.
    Useful for testing only - never expose this in production!
    """
    totp = pyotp.TOTP(secret)
    return totp.now()
