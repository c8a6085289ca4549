# backend/app/models/user.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from backend.app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash, never serialized
    hashed_password = Column(String(255), nullable=False)

    # "user" | "admin"
    role = Column(String(20), nullable=False, default="user")

    # Premium entitlement; expiry NULL with the flag set means unlimited
    is_premium = Column(Boolean, nullable=False, default=False)
    premium_expiry = Column(DateTime(timezone=True), nullable=True)

    # 2FA: secret is set during setup, enabled only after a verified code.
    # Recovery codes are a JSON array of unused codes.
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    two_factor_secret = Column(String(64), nullable=True)
    two_factor_recovery_codes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)
