import logging

from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def init_models(engine: AsyncEngine, drop_existing: bool = False) -> None:
    """Create all tables registered on Base.metadata."""
    from backend.app import models  # noqa: F401  registers tables
    from backend.app.db.base import Base

    try:
        async with engine.begin() as conn:
            if drop_existing:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready")
    except Exception:
        logger.exception("Failed to create database tables")
        raise
