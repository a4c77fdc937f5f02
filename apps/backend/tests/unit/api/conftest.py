"""
Name: API Test Fixtures

Responsibilities:
  - TestClient over the real FastAPI app (APP_ENV=test => in-memory repos)
  - Identities persisted in the container repositories
  - JWT Authorization headers for a given User
"""

import pytest
from app.api.main import app
from app.container import get_pin_codec, get_user_repository, get_worker_repository
from app.domain.entities import User, UserRole
from app.identity.auth_users import create_access_token
from fastapi.testclient import TestClient

from ...conftest import RUT_DIEGO, IdentityFactory


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_identities() -> IdentityFactory:
    return IdentityFactory(
        get_user_repository(), get_worker_repository(), get_pin_codec()
    )


def auth_headers(user: User) -> dict[str, str]:
    token, _ = create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def preventionist(api_identities) -> User:
    return api_identities.user(
        rut=RUT_DIEGO,
        first_name="Diego",
        last_name="Rojas",
        role=UserRole.PREVENTIONIST,
    )


@pytest.fixture
def preventionist_headers(preventionist) -> dict[str, str]:
    return auth_headers(preventionist)
