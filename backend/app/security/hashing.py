# backend/app/security/hashing.py
"""
Password hashing with bcrypt.

bcrypt only looks at the first 72 bytes of a password; newer releases
raise on longer input, so registration rejects such passwords up front and
verification treats them as a mismatch.
"""
import logging
from typing import Optional

import bcrypt
from fastapi.concurrency import run_in_threadpool

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash. Never raises."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash or a password bcrypt refuses to process
        logger.warning("Password verification failed on unusable input")
        return False


async def hash_password_async(password: str) -> str:
    """Hash in the thread pool so the event loop keeps serving requests."""
    return await run_in_threadpool(get_password_hash, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, hashed_password)
