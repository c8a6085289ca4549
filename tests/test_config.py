import logging
import typing
from typing import Optional

import pytest
from pydantic import ValidationError

from backend.app.core import logging as app_logging
from backend.app.core.config import Settings


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_database_url_normalized(raw, expected):
    assert Settings(DATABASE_URL=raw).DATABASE_URL == expected


def test_cors_origins_parsed():
    config = Settings(CORS_ORIGINS=" http://a.test , http://b.test,, ")
    assert config.BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]
    assert Settings(CORS_ORIGINS="").BACKEND_CORS_ORIGINS == []


def test_storage_backend_checked():
    assert Settings(STORAGE_BACKEND="SQL").STORAGE_BACKEND == "sql"
    with pytest.raises(ValidationError):
        Settings(STORAGE_BACKEND="redis")


def test_cookie_lifetime_matches_token_lifetime():
    config = Settings(ACCESS_TOKEN_EXPIRE_MINUTES=60)
    assert config.session_cookie_max_age == 3600
    assert Settings(ENVIRONMENT="production").is_production


def test_configure_logging_falls_back_to_configured_level(monkeypatch):
    assert typing.get_type_hints(app_logging.configure_logging)["level"] == Optional[str]

    root = logging.getLogger()
    previous = root.level
    monkeypatch.setattr(app_logging.settings, "LOG_LEVEL", "warning")
    try:
        app_logging.configure_logging(None)
        assert root.level == logging.WARNING
        app_logging.configure_logging("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)


def test_pending_login_lifetime_is_short():
    assert Settings().TWO_FACTOR_PENDING_MINUTES == 5
    assert Settings(TWO_FACTOR_PENDING_MINUTES=2).TWO_FACTOR_PENDING_MINUTES == 2
