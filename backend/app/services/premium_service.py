# backend/app/services/premium_service.py
"""
Premium entitlement: live status checks, code redemption, code issuing.

Status is computed on read. A premium flag whose expiry has passed is
switched off the first time anyone looks at it, so no background sweep is
needed. The switch-off only applies while the stored expiry is still in the
past, so a redemption landing between the read and the write survives.

Redemption pre-checks the code (exists / unused / not expired) for precise
error messages, then relies on the store's atomic claim: of any number of
concurrent redemptions of one code exactly one gets the grant. The
premium-linked settings follow the flag inside the same store write.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from backend.app.core.config import settings
from backend.app.core.errors import NotFoundError, ResourceStateError, ServiceError
from backend.app.storage.base import Store
from backend.app.storage.errors import ConstraintViolation
from backend.app.storage.records import (
    PremiumCodeRecord,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)

# No 0/O or 1/I look-alikes
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 5


@dataclass(frozen=True)
class PremiumState:
    is_premium: bool
    expires_at: Optional[datetime]


@dataclass(frozen=True)
class Redemption:
    code: PremiumCodeRecord
    user: UserRecord


async def is_premium(store: Store, user_id: int, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    user = await store.get_user(user_id)
    if user is None:
        return False
    if user.premium_active(now):
        return True
    if user.premium_lapsed(now) and await store.expire_premium(user.id, now):
        logger.info("Premium expired for user id=%s", user.id)
    return False


async def get_status(store: Store, user_id: int) -> PremiumState:
    active = await is_premium(store, user_id)
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return PremiumState(is_premium=active, expires_at=user.premium_expiry)


async def redeem(
    store: Store, code: str, user_id: int, now: Optional[datetime] = None
) -> Redemption:
    now = now or utcnow()
    code = code.strip().upper()

    record = await store.get_premium_code(code)
    if record is None:
        raise NotFoundError("Invalid code")
    if record.is_used:
        raise ResourceStateError("Code has already been used")
    if record.is_expired(now):
        raise ResourceStateError("Code has expired")

    result = await store.redeem_premium_code(
        code, user_id, now, stack=settings.PREMIUM_STACKING
    )
    if result is None:
        if await store.get_user(user_id) is None:
            raise NotFoundError("User not found")
        logger.info("Premium code id=%s lost redemption race", record.id)
        raise ResourceStateError("Code has already been used")

    claimed, user = result
    logger.info(
        "Premium code id=%s redeemed by user id=%s (+%sh)",
        claimed.id,
        user_id,
        claimed.duration_hours,
    )
    return Redemption(code=claimed, user=user)


def _new_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


async def generate_code(
    store: Store,
    duration: str,
    duration_hours: int,
    notes: Optional[str] = None,
    created_by: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PremiumCodeRecord:
    now = now or utcnow()
    expires_at = now + timedelta(days=settings.PREMIUM_CODE_SHELF_DAYS)

    for _ in range(MAX_CODE_ATTEMPTS):
        try:
            record = await store.create_premium_code(
                code=_new_code(),
                duration=duration,
                duration_hours=duration_hours,
                expires_at=expires_at,
                notes=notes,
                created_by=created_by,
            )
        except ConstraintViolation:
            logger.warning("Premium code collision, retrying")
            continue
        logger.info("Premium code id=%s generated by user id=%s", record.id, created_by)
        return record

    raise ServiceError(
        "Could not generate a unique premium code",
        status_code=500,
        error_code="server_error",
    )


async def list_codes(store: Store) -> List[PremiumCodeRecord]:
    return await store.list_premium_codes()
