import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from backend.app.api.error_handling import register_exception_handlers
from backend.app.api.v1.router import api_router
from backend.app.core.config import settings
from backend.app.core.logging import configure_logging
from backend.app.storage import SqlStore, Store, build_store

logger = logging.getLogger(__name__)


def create_app(store: Optional[Store] = None) -> FastAPI:
    """Build the API around a store; the configured backend is used when none is given."""
    configure_logging()
    app_store = store if store is not None else build_store(settings)

    # Tables are created on startup for the SQL backend
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(app_store, SqlStore):
            await app_store.create_tables()
        logger.info("%s started with %s", settings.PROJECT_NAME, type(app_store).__name__)
        yield
        if isinstance(app_store, SqlStore):
            await app_store.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = app_store

    # Set up CORS
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["health"])
    def health():
        return {
            "status": "ok",
            "service": settings.PROJECT_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
