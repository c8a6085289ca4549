# backend/app/services/auth_service.py
"""
Registration and the two-step login state machine.

Step 1 (credentials) either finishes the login or, for accounts with 2FA,
stops and hands out a short-lived pending token instead of a session.
Step 2 (second factor) only runs for a caller holding that token for the
same account, re-loads the account and accepts a TOTP code or a
single-use recovery code.

Rejections are uniform: an unknown username and a wrong password produce
the same AuthenticationError message, and so do a wrong TOTP code and a
wrong recovery code. The distinguishing detail only reaches the log.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from backend.app.core.config import Settings, settings
from backend.app.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from backend.app.schemas.user import UserCreate
from backend.app.security import hashing, totp
from backend.app.security.jwt import (
    InvalidTokenError,
    create_two_factor_token,
    decode_two_factor_token,
)
from backend.app.security.recovery import consume_recovery_code
from backend.app.storage.base import Store
from backend.app.storage.errors import ConstraintViolation
from backend.app.storage.records import (
    PREMIUM_SETTING_FIELDS,
    ROLE_ADMIN,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"
INVALID_SECOND_FACTOR = "Invalid 2FA token or recovery code"
SECOND_FACTOR_UNAVAILABLE = "User not found or 2FA not enabled"
INVALID_PENDING_LOGIN = "Invalid or expired 2FA session"


@dataclass(frozen=True)
class LoginOutcome:
    user: UserRecord
    requires_2fa: bool
    # Set only when requires_2fa is True
    pending_token: Optional[str] = None


@lru_cache()
def _placeholder_hash() -> str:
    return hashing.get_password_hash("placeholder-password-for-unknown-users")


async def register(store: Store, data: UserCreate) -> UserRecord:
    if await store.get_user_by_username(data.username):
        raise ConflictError("Username already exists")
    if await store.get_user_by_email(data.email):
        raise ConflictError("Email already exists")

    hashed_password = await hashing.hash_password_async(data.password)
    try:
        user = await store.create_user(
            username=data.username,
            email=data.email,
            hashed_password=hashed_password,
        )
    except ConstraintViolation as exc:
        # Lost a race with a concurrent registration
        raise ConflictError(exc.message) from exc

    await store.create_user_settings(user.id)
    logger.info("Registered user id=%s", user.id)
    return user


async def authenticate(store: Store, username: str, password: str) -> LoginOutcome:
    """Credential step. Raises AuthenticationError on any mismatch."""
    user = await store.get_user_by_username(username)
    if user is None:
        # Unknown usernames pay for one bcrypt check as well
        await hashing.verify_password_async(password, _placeholder_hash())
        logger.info("Login rejected: unknown username")
        raise AuthenticationError(INVALID_CREDENTIALS, reason="unknown username")

    if not await hashing.verify_password_async(password, user.hashed_password):
        logger.info("Login rejected for user id=%s: bad password", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS, reason="password mismatch")

    user = await store.update_user(user.id, last_login=utcnow()) or user

    if user.two_factor_enabled:
        logger.info("Login for user id=%s awaiting second factor", user.id)
        return LoginOutcome(
            user=user, requires_2fa=True, pending_token=create_two_factor_token(user)
        )
    return LoginOutcome(user=user, requires_2fa=False)


async def validate_second_factor(
    store: Store,
    username: str,
    pending_token: str,
    token: Optional[str] = None,
    recovery_code: Optional[str] = None,
) -> UserRecord:
    """Second-factor step. TOTP is tried first, then the recovery code."""
    try:
        claims = decode_two_factor_token(pending_token)
    except InvalidTokenError as exc:
        logger.info("Second factor rejected: pending token invalid (%s)", exc)
        raise AuthenticationError(INVALID_PENDING_LOGIN, reason="pending token invalid") from exc
    if claims["username"] != username:
        logger.info("Second factor rejected: pending token issued for another username")
        raise AuthenticationError(INVALID_PENDING_LOGIN, reason="pending token username mismatch")

    user = await store.get_user_by_username(username)
    if user is None or not user.two_factor_enabled or not user.two_factor_secret:
        raise NotFoundError(SECOND_FACTOR_UNAVAILABLE)
    # A re-created account under the same username gets a new id
    if claims["sub"] != str(user.id):
        logger.info("Second factor rejected for user id=%s: pending token id mismatch", user.id)
        raise AuthenticationError(INVALID_PENDING_LOGIN, reason="pending token id mismatch")

    valid = bool(token) and totp.verify_totp(user.two_factor_secret, token)

    if not valid and recovery_code:
        check = consume_recovery_code(user.two_factor_recovery_codes, recovery_code)
        if check.found and await store.replace_recovery_codes(
            user.id, user.two_factor_recovery_codes, check.remaining
        ):
            logger.warning(
                "Recovery code used for user id=%s, %d left",
                user.id,
                len(check.remaining),
            )
            valid = True

    if not valid:
        logger.info("Second factor rejected for user id=%s", user.id)
        raise AuthenticationError(INVALID_SECOND_FACTOR, reason="second factor mismatch")

    return await store.update_user(user.id, last_login=utcnow()) or user


async def bootstrap_admin(store: Store, config: Settings = settings) -> UserRecord:
    """Create the configured admin account once."""
    password = config.BOOTSTRAP_ADMIN_PASSWORD
    if not password:
        raise ValidationError("Admin bootstrap is not configured")

    if await store.get_user_by_username(config.BOOTSTRAP_ADMIN_USERNAME):
        raise ConflictError("Admin account already exists")

    try:
        admin = await store.create_user(
            username=config.BOOTSTRAP_ADMIN_USERNAME,
            email=config.BOOTSTRAP_ADMIN_EMAIL,
            hashed_password=await hashing.hash_password_async(password),
            role=ROLE_ADMIN,
        )
    except ConstraintViolation as exc:
        raise ConflictError("Admin account already exists") from exc

    await store.create_user_settings(
        admin.id, **{field: True for field in PREMIUM_SETTING_FIELDS}
    )
    logger.info("Admin account %s created", admin.username)
    return admin
