import argparse
import asyncio
import logging

from backend.app.core.config import settings
from backend.app.core.errors import ServiceError
from backend.app.core.logging import configure_logging
from backend.app.db import init_models
from backend.app.services import auth_service
from backend.app.storage import SqlStore

logger = logging.getLogger("init_db")


async def main(reset: bool = False, bootstrap: bool = False) -> None:
    store = SqlStore.from_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    try:
        # Dropping tables is for local development only
        await init_models(store.engine, drop_existing=reset)
        logger.info("Tables ready on %s", "sqlite" if settings.is_sqlite else "database")

        if bootstrap:
            try:
                admin = await auth_service.bootstrap_admin(store, settings)
                logger.info("Admin account '%s' created", admin.username)
            except ServiceError as exc:
                logger.warning("Admin bootstrap skipped: %s", exc.message)
    finally:
        await store.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the database tables.")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    parser.add_argument(
        "--bootstrap-admin",
        action="store_true",
        help="create the admin account from BOOTSTRAP_ADMIN_* settings",
    )
    args = parser.parse_args()

    configure_logging()
    asyncio.run(main(reset=args.reset, bootstrap=args.bootstrap_admin))
