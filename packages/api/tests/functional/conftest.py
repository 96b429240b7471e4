# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``admissions_api.main`` is a module singleton.
``_clean_overrides`` ensures dependency_overrides are cleared after every test
so persona configuration from one test never leaks into the next.
"""

import pytest
from fastapi.testclient import TestClient

from admissions_api.main import app as real_app
from admissions_api.middleware.auth import get_current_user
from admissions_api.routes._deps import get_repository
from admissions_api.schemas.auth import UserContext


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def make_client(app):
    """Factory fixture: configure persona + mock repository, return TestClient.

    Every engine built for a request shares the given repository, so state
    written by one request is visible to the next.
    """

    def _make(user: UserContext, repository) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_repository] = lambda: repository
        return TestClient(app, raise_server_exceptions=False)

    return _make
