# backend/app/storage/records.py
"""
Plain records handed out by every store implementation.

Stores return copies; mutating a record never changes stored state.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class UserRecord:
    id: int
    username: str
    email: str
    hashed_password: str
    role: str = ROLE_USER
    is_premium: bool = False
    premium_expiry: Optional[datetime] = None
    two_factor_enabled: bool = False
    two_factor_secret: Optional[str] = None
    two_factor_recovery_codes: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    last_login: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def premium_active(self, now: datetime) -> bool:
        """Flag set and either no expiry (unlimited) or an expiry still ahead."""
        if not self.is_premium:
            return False
        expiry = ensure_aware(self.premium_expiry)
        return expiry is None or expiry > now

    def premium_lapsed(self, now: datetime) -> bool:
        """Flag still set although the expiry has passed."""
        expiry = ensure_aware(self.premium_expiry)
        return self.is_premium and expiry is not None and expiry <= now

    def extended_premium_expiry(
        self, now: datetime, duration_hours: int, stack: bool = True
    ) -> Optional[datetime]:
        """
        Expiry after granting `duration_hours` more premium time.

        With stacking the grant starts from the later of `now` and the
        current unexpired expiry; unlimited premium stays unlimited (None).
        Without stacking the grant always starts from `now`.
        """
        grant = timedelta(hours=duration_hours)
        if not stack:
            return now + grant
        if self.is_premium and self.premium_expiry is None:
            return None
        start = now
        if self.premium_active(now):
            start = max(now, ensure_aware(self.premium_expiry))
        return start + grant


@dataclass
class PremiumCodeRecord:
    id: int
    code: str
    duration: str
    duration_hours: int
    expires_at: datetime
    created_at: datetime = field(default_factory=utcnow)
    is_used: bool = False
    used_by: Optional[int] = None
    used_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None

    def is_expired(self, now: datetime) -> bool:
        return ensure_aware(self.expires_at) < now


# Settings only premium users may switch on
PREMIUM_SETTING_FIELDS = (
    "advanced_search_tools",
    "instant_results",
    "extended_history",
    "priority_proxy",
)

# Switched together with the premium flag
PREMIUM_LINKED_SETTINGS = ("advanced_search_tools", "instant_results")


@dataclass
class UserSettingsRecord:
    id: int
    user_id: int
    theme: str = "dark"
    font_size: str = "medium"
    motion_effects: bool = True
    save_history: bool = True
    proxy_method: str = "auto"
    enable_notifications: bool = True
    advanced_search_tools: bool = False
    instant_results: bool = False
    extended_history: bool = False
    priority_proxy: bool = False
