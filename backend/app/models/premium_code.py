# backend/app/models/premium_code.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from backend.app.db.base import Base


class PremiumCode(Base):
    __tablename__ = "premium_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(32), unique=True, index=True, nullable=False)

    # Human label ("1hour", "1day", "1week", "1month") and the hours it grants
    duration = Column(String(32), nullable=False)
    duration_hours = Column(Integer, nullable=False)

    # Redemption deadline, independent of the granted duration
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Flipped exactly once, by a conditional UPDATE ... WHERE is_used = false
    is_used = Column(Boolean, nullable=False, default=False)
    used_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    used_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
