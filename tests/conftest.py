"""
Shared fixtures.

Environment is set before the application is imported so the cached
settings pick up a fast bcrypt work factor and a fixed signing key.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from fastapi.testclient import TestClient

from backend.app.main import create_app
from backend.app.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def app(store):
    return create_app(store=store)


@pytest.fixture
def client(app):
    """HTTP client against an app with a fresh in-memory store."""
    with TestClient(app) as c:
        yield c
