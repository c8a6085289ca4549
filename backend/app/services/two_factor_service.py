# backend/app/services/two_factor_service.py
"""
Two-factor enrolment for a signed-in user.

setup   -> new secret + recovery codes stored, 2FA still disabled
verify  -> a valid code from the new secret switches 2FA on
disable -> password (and a code while enabled) clears everything
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from backend.app.core.errors import (
    AuthenticationError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from backend.app.security import hashing, totp
from backend.app.security.recovery import generate_recovery_codes
from backend.app.storage.base import Store
from backend.app.storage.records import UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TwoFactorEnrollment:
    secret: str
    otpauth_url: str
    qr_code_url: str
    recovery_codes: List[str]


async def _load_user(store: Store, user_id: int) -> UserRecord:
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _check_password(user: UserRecord, password: str) -> None:
    if not await hashing.verify_password_async(password, user.hashed_password):
        logger.info("2FA change refused for user id=%s: bad password", user.id)
        raise AuthenticationError("Invalid password", reason="password mismatch")


async def begin_setup(store: Store, user_id: int, password: str) -> TwoFactorEnrollment:
    user = await _load_user(store, user_id)
    await _check_password(user, password)

    if user.two_factor_enabled:
        raise ResourceStateError("2FA is already enabled")

    secret = totp.generate_totp_secret()
    recovery_codes = generate_recovery_codes()
    await store.update_user(
        user.id,
        two_factor_secret=secret,
        two_factor_enabled=False,
        two_factor_recovery_codes=recovery_codes,
    )
    logger.info("2FA setup started for user id=%s", user.id)

    return TwoFactorEnrollment(
        secret=secret,
        otpauth_url=totp.get_totp_uri(secret, user.username),
        qr_code_url=totp.generate_qr_code_data_url(secret, user.username),
        recovery_codes=recovery_codes,
    )


async def confirm_setup(store: Store, user_id: int, token: str) -> UserRecord:
    user = await _load_user(store, user_id)
    if not user.two_factor_secret:
        raise NotFoundError("2FA setup not initiated")

    if not totp.verify_totp(user.two_factor_secret, token):
        raise ValidationError("Invalid 2FA token")

    user = await store.update_user(user.id, two_factor_enabled=True)
    logger.info("2FA enabled for user id=%s", user_id)
    return user


async def disable(
    store: Store, user_id: int, password: str, token: Optional[str] = None
) -> UserRecord:
    user = await _load_user(store, user_id)
    await _check_password(user, password)

    if user.two_factor_enabled and user.two_factor_secret:
        if not token:
            raise ValidationError("2FA token is required")
        if not totp.verify_totp(user.two_factor_secret, token):
            raise ValidationError("Invalid 2FA token")

    user = await store.update_user(
        user.id,
        two_factor_enabled=False,
        two_factor_secret=None,
        two_factor_recovery_codes=[],
    )
    logger.info("2FA disabled for user id=%s", user_id)
    return user
