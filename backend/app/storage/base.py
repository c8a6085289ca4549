# backend/app/storage/base.py
"""
Repository interface shared by the in-memory and SQL stores.

Services receive a Store explicitly (via app.state / FastAPI dependency)
and never reach for a module-level instance.
"""
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from backend.app.storage.records import (
    PremiumCodeRecord,
    UserRecord,
    UserSettingsRecord,
)


class Store(Protocol):
    # ── users ──────────────────────────────────────────────────────────────
    async def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    async def create_user(
        self,
        username: str,
        email: str,
        hashed_password: str,
        role: str = "user",
    ) -> UserRecord:
        """Raises ConstraintViolation when username or email is taken."""
        ...

    async def update_user(self, user_id: int, **fields) -> Optional[UserRecord]: ...

    async def replace_recovery_codes(
        self, user_id: int, expected: List[str], remaining: List[str]
    ) -> bool:
        """
        Swap the stored recovery codes only if they still equal `expected`.

        A False return means another request consumed a code first.
        """
        ...

    async def expire_premium(self, user_id: int, now: datetime) -> bool:
        """
        Clear the premium flag and expiry if the flag is still set and the
        stored expiry is at or before `now`. The premium-linked settings are
        switched off in the same write.

        Returns True only for the caller that actually flipped it; a grant
        written in the meantime is left alone.
        """
        ...

    # ── premium codes ──────────────────────────────────────────────────────
    async def create_premium_code(
        self,
        code: str,
        duration: str,
        duration_hours: int,
        expires_at: datetime,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> PremiumCodeRecord:
        """Raises ConstraintViolation when the code string already exists."""
        ...

    async def get_premium_code(self, code: str) -> Optional[PremiumCodeRecord]: ...

    async def list_premium_codes(self) -> List[PremiumCodeRecord]: ...

    async def redeem_premium_code(
        self,
        code: str,
        user_id: int,
        at: datetime,
        stack: bool = True,
    ) -> Optional[Tuple[PremiumCodeRecord, UserRecord]]:
        """
        Atomically claim an unused code and grant its hours to the user.

        The claim is a conditional update (is_used false -> true); if it
        does not apply, or the user is missing, nothing is written and
        None is returned. The premium-linked settings are switched on in
        the same write.
        """
        ...

    # ── user settings ──────────────────────────────────────────────────────
    async def get_user_settings(self, user_id: int) -> Optional[UserSettingsRecord]: ...

    async def create_user_settings(self, user_id: int, **overrides) -> UserSettingsRecord: ...

    async def update_user_settings(
        self, user_id: int, **fields
    ) -> Optional[UserSettingsRecord]: ...
