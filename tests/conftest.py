"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The environment is prepared before anything from ``app`` is imported, because
settings are loaded once at import time. No test needs a database: the stores
are replaced with the in-memory fakes from ``tests/fakes.py`` through
``app.dependency_overrides``.
"""

import os

from tests.constants import TEST_AUDIENCE, TEST_ISSUER, TEST_PASSWORD, TEST_SECRET

os.environ["JWT_SECRET_KEY"] = TEST_SECRET
os.environ["DB_INIT_ON_STARTUP"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"

from collections.abc import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.dependencies.services import (  # noqa: E402
    get_password_hasher,
    get_task_store,
    get_token_service,
    get_user_store,
)
from app.services.password_hasher import PasswordHasher  # noqa: E402
from app.services.token_service import TokenService  # noqa: E402
from tests.fakes import FakeTaskStore, FakeUserStore  # noqa: E402


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(
        secret_key=TEST_SECRET,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        lifetime_minutes=60,
    )


@pytest.fixture
def user_store() -> FakeUserStore:
    return FakeUserStore()


@pytest.fixture
def task_store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture
def app(
    user_store: FakeUserStore,
    task_store: FakeTaskStore,
    hasher: PasswordHasher,
    token_service: TokenService,
) -> FastAPI:
    """
    Create a new application instance wired to fresh in-memory stores.
    """
    # Import the factory function here to ensure it's fresh for each test.
    from main import create_app

    app_ = create_app()
    app_.dependency_overrides[get_user_store] = lambda: user_store
    app_.dependency_overrides[get_task_store] = lambda: task_store
    app_.dependency_overrides[get_password_hasher] = lambda: hasher
    app_.dependency_overrides[get_token_service] = lambda: token_service
    return app_


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Fixture to get a test client for making API requests.
    The TestClient handles the application's lifespan events (startup/shutdown).
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict]:
    """Register a user over HTTP and return the auth response body."""

    def _register(username: str, password: str = TEST_PASSWORD) -> dict:
        response = client.post(
            "/api/auth/register", json={"username": username, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register) -> Callable[[str], dict[str, str]]:
    """Register ``username`` and return its bearer Authorization header."""

    def _headers(username: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {register(username)['token']}"}

    return _headers
