# backend/app/db/base.py
"""
SQLAlchemy declarative base.

All ORM models inherit from Base; importing backend.app.models registers
their tables on Base.metadata.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class User(Base):
            __tablename__ = "users"
            id = Column(Integer, primary_key=True)
            ...
    """
    pass


__all__ = ["Base"]
