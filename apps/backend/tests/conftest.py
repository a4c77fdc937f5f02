"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test => in-memory repositories)
  - Provide in-memory repositories, PIN codec and a fixed clock
  - Provide identity factories (User / Worker with hashed PINs)

Collaborators:
  - pytest: Test framework
  - app.infrastructure.repositories.in_memory: test doubles for the ports
  - app.identity.credentials.PinCodec

Notes:
  - Fixtures are auto-discovered by pytest
  - Every test starts with a fresh container (singletons cleared)
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID, uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("PIN_SALT", "test-pin-salt")
os.environ.setdefault("JWT_SECRET", "test-secret")

from app.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None
app_config.get_settings.cache_clear()

from app.container import reset_container  # noqa: E402
from app.domain.entities import User, UserRole, UserStatus, Worker  # noqa: E402
from app.identity.credentials import PinCodec  # noqa: E402
from app.infrastructure.repositories import (  # noqa: E402
    InMemorySignatureRepository,
    InMemorySignatureRequestRepository,
    InMemoryUserRepository,
    InMemoryWorkerRepository,
)
from app.infrastructure.services import InMemoryNotificationSender  # noqa: E402

FIXED_NOW = datetime(2025, 3, 14, 15, 9, 26, tzinfo=timezone.utc)

# RUTs válidos (módulo 11) usados en los tests.
RUT_ANA = "111111111"  # 11.111.111-1
RUT_BRUNO = "222222222"  # 22.222.222-2
RUT_CARLA = "333333333"  # 33.333.333-3
RUT_DIEGO = "123456785"  # 12.345.678-5


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests against a real PostgreSQL (RUN_INTEGRATION=1)"
    )


@pytest.fixture(autouse=True)
def _fresh_container():
    """Singletons del container limpios por test (estado in-memory aislado)."""
    reset_container()
    yield
    reset_container()


# ============================================================================
# Core fixtures
# ============================================================================


@pytest.fixture
def codec() -> PinCodec:
    return PinCodec("test-pin-salt")


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def workers() -> InMemoryWorkerRepository:
    return InMemoryWorkerRepository()


@pytest.fixture
def signatures() -> InMemorySignatureRepository:
    return InMemorySignatureRepository()


@pytest.fixture
def requests_repo() -> InMemorySignatureRequestRepository:
    return InMemorySignatureRequestRepository()


@pytest.fixture
def notifier() -> InMemoryNotificationSender:
    return InMemoryNotificationSender()


# ============================================================================
# Test Data Factories
# ============================================================================


class IdentityFactory:
    """Crea Users/Workers persistidos en los repos in-memory."""

    def __init__(self, users, workers, codec: PinCodec):
        self._users = users
        self._workers = workers
        self._codec = codec

    def user(
        self,
        *,
        rut: str = RUT_ANA,
        first_name: str = "Ana",
        last_name: str = "Pérez",
        role: UserRole = UserRole.WORKER,
        pin: str | None = None,
        enabled: bool = False,
        worker_id: UUID | None = None,
        status: UserStatus = UserStatus.ACTIVE,
        password_hash: str | None = None,
    ) -> User:
        user_id = uuid4()
        return self._users.create_user(
            User(
                id=user_id,
                rut=rut,
                first_name=first_name,
                last_name=last_name,
                role=role,
                pin_hash=self._codec.hash_pin(pin, user_id) if pin else None,
                enabled=enabled,
                worker_id=worker_id,
                status=status,
                password_hash=password_hash,
                created_at=FIXED_NOW,
            )
        )

    def worker(
        self,
        *,
        rut: str = RUT_ANA,
        first_name: str = "Ana",
        last_name: str = "Pérez",
        position: str | None = "Operaria",
        pin: str | None = None,
        enabled: bool = False,
        user_id: UUID | None = None,
    ) -> Worker:
        worker_id = uuid4()
        return self._workers.create_worker(
            Worker(
                id=worker_id,
                rut=rut,
                first_name=first_name,
                last_name=last_name,
                position=position,
                pin_hash=self._codec.hash_pin(pin, worker_id) if pin else None,
                enabled=enabled,
                user_id=user_id,
                created_at=FIXED_NOW,
            )
        )

    def enrolled_worker(self, *, rut: str = RUT_ANA, pin: str = "2580", **kwargs) -> Worker:
        return self.worker(rut=rut, pin=pin, enabled=True, **kwargs)


@pytest.fixture
def identities(users, workers, codec) -> IdentityFactory:
    return IdentityFactory(users, workers, codec)
