"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

from gridiron.api.routes import api_router
from gridiron.core.auth import AuthenticatedUser, require_auth
from gridiron.core.config import get_settings
from gridiron.core.logging import setup_correlation_middleware
from gridiron.db import close_db, init_db, reset_db
from gridiron.main import generic_exception_handler, http_exception_handler


@pytest.fixture
def user_a():
    return AuthenticatedUser(user_id="user_a", claims={"sub": "user_a"})


@pytest.fixture
def user_b():
    return AuthenticatedUser(user_id="user_b", claims={"sub": "user_b"})


def override_auth(user: AuthenticatedUser):
    """Create auth override for a specific user."""

    async def _override():
        return user

    return _override


@pytest.fixture
def api_client(database_url):
    """FastAPI test client with test database.

    Initializes the global database via init_db inside the TestClient's
    own event loop so route handlers can use get_session_factory().
    """

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize DB in TestClient's event loop."""
        # Drop any engine left by an earlier loop so init_db builds one in THIS loop
        reset_db()
        await init_db(database_url)
        yield
        await close_db()

    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Gridiron Onboarding - Test Client",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(app)

    # Exception handlers (needed for debug_id testing)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    with TestClient(app) as client:
        yield client


@pytest.fixture
def as_user(api_client):
    """Switch the authenticated caller: ``as_user(user_a)``."""

    def _as(user: AuthenticatedUser) -> TestClient:
        api_client.app.dependency_overrides[require_auth] = override_auth(user)
        return api_client

    yield _as
    api_client.app.dependency_overrides.clear()


@pytest.fixture
def athlete_id(as_user, user_a) -> int:
    """Provision user_a's athlete through the API."""
    response = as_user(user_a).get("/api/athletes/me")
    assert response.status_code == 200
    return response.json()["id"]
