from backend.app.core.config import Settings
from backend.app.storage.base import Store
from backend.app.storage.errors import ConstraintViolation
from backend.app.storage.memory import MemoryStore
from backend.app.storage.sql import SqlStore


def build_store(config: Settings) -> Store:
    """Pick the store implementation named by STORAGE_BACKEND."""
    if config.STORAGE_BACKEND == "sql":
        return SqlStore.from_url(config.DATABASE_URL, echo=config.DATABASE_ECHO)
    return MemoryStore()


__all__ = ["ConstraintViolation", "MemoryStore", "SqlStore", "Store", "build_store"]
