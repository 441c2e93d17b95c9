# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Routes are exercised through FastAPI's TestClient with authentication
overridden and the database context managers patched per test, so no
database or Redis is needed.
"""

import importlib
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from main import app
from web_api.auth import get_current_user


@pytest.fixture(autouse=True)
def _jwt_secret():
    """Ensure JWT_SECRET is set so tokens can be created and verified."""
    with patch.dict("os.environ", {"JWT_SECRET": "test-secret"}):
        yield


@pytest.fixture
def auth_user():
    """The authenticated caller: a student."""
    return {"user_id": 2, "role": "student"}


@pytest.fixture
def client(auth_user):
    """Create a test client with auth overridden."""

    async def override_get_current_user():
        return auth_user

    app.dependency_overrides[get_current_user] = override_get_current_user
    yield TestClient(app)
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def mock_conn():
    return AsyncMock()


def patch_db(module: str, mock_conn):
    """Patch get_connection and get_transaction in a route module to yield mock_conn."""
    patches = []
    target = importlib.import_module(module)
    for name in ("get_connection", "get_transaction"):
        if not hasattr(target, name):
            continue
        p = patch(f"{module}.{name}")
        ctx = p.start()
        ctx.return_value.__aenter__ = AsyncMock(return_value=mock_conn)
        ctx.return_value.__aexit__ = AsyncMock(return_value=False)
        patches.append(p)
    return patches


@pytest.fixture
def notifications_db(mock_conn):
    patches = patch_db("web_api.routes.notifications", mock_conn)
    yield mock_conn
    for p in patches:
        p.stop()


@pytest.fixture
def push_db(mock_conn):
    patches = patch_db("web_api.routes.push", mock_conn)
    yield mock_conn
    for p in patches:
        p.stop()
