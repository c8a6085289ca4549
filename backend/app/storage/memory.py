# backend/app/storage/memory.py
"""
In-process store backed by dicts.

Used for local development and tests. All reads and writes go through a
re-entrant lock, so check-then-write sequences such as the premium code
claim are atomic even when requests run on different threads.
"""
import dataclasses
import itertools
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from backend.app.storage.errors import ConstraintViolation
from backend.app.storage.records import (
    PREMIUM_LINKED_SETTINGS,
    PremiumCodeRecord,
    UserRecord,
    UserSettingsRecord,
)


def _copy(record):
    if record is None:
        return None
    copied = dataclasses.replace(record)
    if isinstance(copied, UserRecord):
        copied.two_factor_recovery_codes = list(record.two_factor_recovery_codes)
    return copied


def _owned(fields: dict) -> dict:
    """Detach list values from the caller before storing them."""
    return {key: list(value) if isinstance(value, list) else value for key, value in fields.items()}


class MemoryStore:
    """Dict-backed implementation of the Store protocol."""

    def __init__(self) -> None:
        self.users: Dict[int, UserRecord] = {}
        self.premium_codes: Dict[int, PremiumCodeRecord] = {}
        self.user_settings: Dict[int, UserSettingsRecord] = {}
        self._user_ids = itertools.count(1)
        self._code_ids = itertools.count(1)
        self._settings_ids = itertools.count(1)
        self._lock = threading.RLock()

    # ── users ──────────────────────────────────────────────────────────────
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return _copy(self.users.get(user_id))

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            return _copy(self._find_user(username=username))

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            return _copy(self._find_user(email=email))

    def _find_user(self, **criteria) -> Optional[UserRecord]:
        for user in self.users.values():
            if all(getattr(user, key) == value for key, value in criteria.items()):
                return user
        return None

    async def create_user(
        self,
        username: str,
        email: str,
        hashed_password: str,
        role: str = "user",
    ) -> UserRecord:
        with self._lock:
            if self._find_user(username=username):
                raise ConstraintViolation("Username already exists", {"field": "username"})
            if self._find_user(email=email):
                raise ConstraintViolation("Email already exists", {"field": "email"})
            user = UserRecord(
                id=next(self._user_ids),
                username=username,
                email=email,
                hashed_password=hashed_password,
                role=role,
            )
            self.users[user.id] = user
            return _copy(user)

    async def update_user(self, user_id: int, **fields) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(user_id)
            if user is None:
                return None
            updated = dataclasses.replace(user, **_owned(fields))
            self.users[user_id] = updated
            return _copy(updated)

    async def replace_recovery_codes(
        self, user_id: int, expected: List[str], remaining: List[str]
    ) -> bool:
        with self._lock:
            user = self.users.get(user_id)
            if user is None or user.two_factor_recovery_codes != list(expected):
                return False
            self.users[user_id] = dataclasses.replace(
                user, two_factor_recovery_codes=list(remaining)
            )
            return True

    async def expire_premium(self, user_id: int, now: datetime) -> bool:
        with self._lock:
            user = self.users.get(user_id)
            if user is None or not user.premium_lapsed(now):
                return False
            self.users[user_id] = dataclasses.replace(
                user, is_premium=False, premium_expiry=None
            )
            self._set_linked_settings(user_id, False)
            return True

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
        with self._lock:
            if self._find_code(code):
                raise ConstraintViolation("Premium code already exists", {"field": "code"})
            record = PremiumCodeRecord(
                id=next(self._code_ids),
                code=code,
                duration=duration,
                duration_hours=duration_hours,
                expires_at=expires_at,
                notes=notes,
                created_by=created_by,
            )
            self.premium_codes[record.id] = record
            return _copy(record)

    def _find_code(self, code: str) -> Optional[PremiumCodeRecord]:
        for record in self.premium_codes.values():
            if record.code == code:
                return record
        return None

    async def get_premium_code(self, code: str) -> Optional[PremiumCodeRecord]:
        with self._lock:
            return _copy(self._find_code(code))

    async def list_premium_codes(self) -> List[PremiumCodeRecord]:
        with self._lock:
            return [_copy(record) for record in self.premium_codes.values()]

    async def redeem_premium_code(
        self,
        code: str,
        user_id: int,
        at: datetime,
        stack: bool = True,
    ) -> Optional[Tuple[PremiumCodeRecord, UserRecord]]:
        with self._lock:
            record = self._find_code(code)
            user = self.users.get(user_id)
            if record is None or record.is_used or user is None:
                return None

            claimed = dataclasses.replace(record, is_used=True, used_by=user_id, used_at=at)
            granted = dataclasses.replace(
                user,
                is_premium=True,
                premium_expiry=user.extended_premium_expiry(at, record.duration_hours, stack),
            )
            self.premium_codes[claimed.id] = claimed
            self.users[user_id] = granted
            self._set_linked_settings(user_id, True)
            return _copy(claimed), _copy(granted)

    # ── user settings ──────────────────────────────────────────────────────
    def _set_linked_settings(self, user_id: int, enabled: bool) -> None:
        record = self.user_settings.get(user_id)
        if record is not None:
            self.user_settings[user_id] = dataclasses.replace(
                record, **{field: enabled for field in PREMIUM_LINKED_SETTINGS}
            )

    async def get_user_settings(self, user_id: int) -> Optional[UserSettingsRecord]:
        with self._lock:
            return _copy(self.user_settings.get(user_id))

    async def create_user_settings(self, user_id: int, **overrides) -> UserSettingsRecord:
        with self._lock:
            existing = self.user_settings.get(user_id)
            if existing is not None:
                return _copy(existing)
            record = UserSettingsRecord(id=next(self._settings_ids), user_id=user_id, **overrides)
            self.user_settings[user_id] = record
            return _copy(record)

    async def update_user_settings(
        self, user_id: int, **fields
    ) -> Optional[UserSettingsRecord]:
        with self._lock:
            record = self.user_settings.get(user_id)
            if record is None:
                return None
            updated = dataclasses.replace(record, **_owned(fields))
            self.user_settings[user_id] = updated
            return _copy(updated)


__all__ = ["MemoryStore"]
