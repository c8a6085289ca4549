# backend/app/models/user_settings.py
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from backend.app.db.base import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    theme = Column(String(20), nullable=False, default="dark")
    font_size = Column(String(20), nullable=False, default="medium")
    motion_effects = Column(Boolean, nullable=False, default=True)
    save_history = Column(Boolean, nullable=False, default=True)
    proxy_method = Column(String(20), nullable=False, default="auto")
    enable_notifications = Column(Boolean, nullable=False, default=True)

    # --- Premium-only toggles ---
    advanced_search_tools = Column(Boolean, nullable=False, default=False)
    instant_results = Column(Boolean, nullable=False, default=False)
    extended_history = Column(Boolean, nullable=False, default=False)
    priority_proxy = Column(Boolean, nullable=False, default=False)
