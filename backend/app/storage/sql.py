# backend/app/storage/sql.py
"""
SQLAlchemy async implementation of the Store protocol.

One session per operation. State transitions that must happen at most
once (premium code claim, lazy premium expiry) are conditional UPDATEs
whose rowcount tells the caller whether it won.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backend.app.db import init_models
from backend.app.db.session import create_engine_for_url, create_session_factory
from backend.app.models import PremiumCode, User, UserSettings
from backend.app.security.recovery import dump_recovery_codes, load_recovery_codes
from backend.app.storage.errors import ConstraintViolation
from backend.app.storage.records import (
    PREMIUM_LINKED_SETTINGS,
    PremiumCodeRecord,
    UserRecord,
    UserSettingsRecord,
    ensure_aware,
)

logger = logging.getLogger(__name__)

_SETTINGS_COLUMNS = (
    "theme",
    "font_size",
    "motion_effects",
    "save_history",
    "proxy_method",
    "enable_notifications",
    "advanced_search_tools",
    "instant_results",
    "extended_history",
    "priority_proxy",
)


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        is_premium=bool(row.is_premium),
        premium_expiry=ensure_aware(row.premium_expiry),
        two_factor_enabled=bool(row.two_factor_enabled),
        two_factor_secret=row.two_factor_secret,
        two_factor_recovery_codes=load_recovery_codes(row.two_factor_recovery_codes),
        created_at=ensure_aware(row.created_at),
        last_login=ensure_aware(row.last_login),
    )


def _code_record(row: PremiumCode) -> PremiumCodeRecord:
    return PremiumCodeRecord(
        id=row.id,
        code=row.code,
        duration=row.duration,
        duration_hours=row.duration_hours,
        expires_at=ensure_aware(row.expires_at),
        created_at=ensure_aware(row.created_at),
        is_used=bool(row.is_used),
        used_by=row.used_by,
        used_at=ensure_aware(row.used_at),
        notes=row.notes,
        created_by=row.created_by,
    )


def _settings_record(row: UserSettings) -> UserSettingsRecord:
    return UserSettingsRecord(
        id=row.id,
        user_id=row.user_id,
        **{column: getattr(row, column) for column in _SETTINGS_COLUMNS},
    )


def _user_columns(fields: dict) -> dict:
    values = dict(fields)
    if "two_factor_recovery_codes" in values:
        values["two_factor_recovery_codes"] = dump_recovery_codes(
            values["two_factor_recovery_codes"]
        )
    return values


class SqlStore:
    """Store backed by a relational database through SQLAlchemy async."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], engine: Optional[AsyncEngine] = None):
        self._session_factory = session_factory
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: Optional[str] = None, echo: Optional[bool] = None) -> "SqlStore":
        engine = create_engine_for_url(database_url, echo=echo)
        return cls(create_session_factory(engine), engine=engine)

    async def create_tables(self) -> None:
        await init_models(self.engine)

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

    # ── users ──────────────────────────────────────────────────────────────
    async def _get_user_where(self, *criteria) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(*criteria))
            row = result.scalars().first()
            return _user_record(row) if row else None

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return await self._get_user_where(User.id == user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._get_user_where(User.username == username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._get_user_where(User.email == email)

    async def create_user(
        self,
        username: str,
        email: str,
        hashed_password: str,
        role: str = "user",
    ) -> UserRecord:
        if await self.get_user_by_username(username):
            raise ConstraintViolation("Username already exists", {"field": "username"})
        if await self.get_user_by_email(email):
            raise ConstraintViolation("Email already exists", {"field": "email"})

        async with self._session_factory() as session:
            row = User(
                username=username,
                email=email,
                hashed_password=hashed_password,
                role=role,
                is_premium=False,
                two_factor_enabled=False,
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConstraintViolation("Username or email already exists") from exc
            await session.refresh(row)
            return _user_record(row)

    async def update_user(self, user_id: int, **fields) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            row = await session.get(User, user_id)
            if row is None:
                return None
            for key, value in _user_columns(fields).items():
                setattr(row, key, value)
            await session.commit()
            await session.refresh(row)
            return _user_record(row)

    async def replace_recovery_codes(
        self, user_id: int, expected: List[str], remaining: List[str]
    ) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.two_factor_recovery_codes == dump_recovery_codes(expected),
                )
                .values(two_factor_recovery_codes=dump_recovery_codes(remaining))
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount == 1

    async def expire_premium(self, user_id: int, now: datetime) -> bool:
        async with self._session_factory() as session:
            # A grant written after the caller read the lapsed expiry no longer matches
            result = await session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.is_premium.is_(True),
                    User.premium_expiry.is_not(None),
                    User.premium_expiry <= now,
                )
                .values(is_premium=False, premium_expiry=None)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                return False
            await self._set_linked_settings(session, user_id, False)
            await session.commit()
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
        async with self._session_factory() as session:
            row = PremiumCode(
                code=code,
                duration=duration,
                duration_hours=duration_hours,
                expires_at=expires_at,
                is_used=False,
                notes=notes,
                created_by=created_by,
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConstraintViolation("Premium code already exists", {"field": "code"}) from exc
            await session.refresh(row)
            return _code_record(row)

    async def get_premium_code(self, code: str) -> Optional[PremiumCodeRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(PremiumCode).where(PremiumCode.code == code))
            row = result.scalars().first()
            return _code_record(row) if row else None

    async def list_premium_codes(self) -> List[PremiumCodeRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(PremiumCode).order_by(PremiumCode.id))
            return [_code_record(row) for row in result.scalars().all()]

    async def redeem_premium_code(
        self,
        code: str,
        user_id: int,
        at: datetime,
        stack: bool = True,
    ) -> Optional[Tuple[PremiumCodeRecord, UserRecord]]:
        async with self._session_factory() as session:
            # Claim first: only one transaction can flip is_used
            claim = await session.execute(
                update(PremiumCode)
                .where(PremiumCode.code == code, PremiumCode.is_used.is_(False))
                .values(is_used=True, used_by=user_id, used_at=at)
                .execution_options(synchronize_session=False)
            )
            if claim.rowcount != 1:
                await session.rollback()
                return None

            user = await session.get(User, user_id, with_for_update=True)
            if user is None:
                await session.rollback()
                logger.warning("Premium code claim rolled back, user %s missing", user_id)
                return None

            result = await session.execute(select(PremiumCode).where(PremiumCode.code == code))
            code_row = result.scalars().one()

            expiry = _user_record(user).extended_premium_expiry(at, code_row.duration_hours, stack)
            user.is_premium = True
            user.premium_expiry = expiry
            await self._set_linked_settings(session, user_id, True)
            await session.commit()
            await session.refresh(user)
            return _code_record(code_row), _user_record(user)

    # ── user settings ──────────────────────────────────────────────────────
    async def _set_linked_settings(self, session: AsyncSession, user_id: int, enabled: bool) -> None:
        await session.execute(
            update(UserSettings)
            .where(UserSettings.user_id == user_id)
            .values(**{field: enabled for field in PREMIUM_LINKED_SETTINGS})
            .execution_options(synchronize_session=False)
        )

    async def get_user_settings(self, user_id: int) -> Optional[UserSettingsRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserSettings).where(UserSettings.user_id == user_id)
            )
            row = result.scalars().first()
            return _settings_record(row) if row else None

    async def create_user_settings(self, user_id: int, **overrides) -> UserSettingsRecord:
        existing = await self.get_user_settings(user_id)
        if existing is not None:
            return existing

        defaults = UserSettingsRecord(id=0, user_id=user_id, **overrides)
        async with self._session_factory() as session:
            row = UserSettings(
                user_id=user_id,
                **{column: getattr(defaults, column) for column in _SETTINGS_COLUMNS},
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _settings_record(row)

    async def update_user_settings(
        self, user_id: int, **fields
    ) -> Optional[UserSettingsRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserSettings).where(UserSettings.user_id == user_id)
            )
            row = result.scalars().first()
            if row is None:
                return None
            for key, value in fields.items():
                if key not in _SETTINGS_COLUMNS:
                    raise ValueError(f"Unknown settings field: {key}")
                setattr(row, key, value)
            await session.commit()
            await session.refresh(row)
            return _settings_record(row)
