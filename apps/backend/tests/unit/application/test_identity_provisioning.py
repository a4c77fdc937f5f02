"""
Name: Identity Provisioning Use Case Tests

Responsibilities:
  - User/Worker creation with RUT normalization and duplicate detection
  - Cross-linking with the counterpart identity of the same RUT
  - Lookups by id and by RUT, profile updates, password resets
"""

from unittest.mock import patch
from uuid import uuid4

import pytest
from app.application.usecases import (
    CreateUserInput,
    CreateUserUseCase,
    CreateWorkerInput,
    CreateWorkerUseCase,
    GetUserUseCase,
    GetWorkerUseCase,
    ResetPasswordUseCase,
    SignatureErrorCode,
    UpdateUserInput,
    UpdateUserUseCase,
    UpdateWorkerInput,
    UpdateWorkerUseCase,
)
from app.domain.entities import UserRole, UserStatus
from app.infrastructure.repositories import InMemoryWorkerRepository

from ...conftest import FIXED_NOW, RUT_ANA, RUT_BRUNO, RUT_DIEGO

pytestmark = pytest.mark.unit


def fake_hash(password: str) -> str:
    return f"hashed:{password}"


@pytest.fixture
def create_user(users, workers, clock):
    return CreateUserUseCase(
        user_repository=users,
        worker_repository=workers,
        password_hasher=fake_hash,
        clock=clock,
    )


@pytest.fixture
def create_worker(users, workers, clock):
    return CreateWorkerUseCase(
        worker_repository=workers, user_repository=users, clock=clock
    )


def user_input(**overrides) -> CreateUserInput:
    data = {
        "rut": "12.345.678-5",
        "first_name": "Diego",
        "last_name": "Rojas",
        "role": UserRole.PREVENTIONIST,
    }
    data.update(overrides)
    return CreateUserInput(**data)


def worker_input(**overrides) -> CreateWorkerInput:
    data = {
        "rut": "22.222.222-2",
        "first_name": "Bruno",
        "position": "Soldador",
    }
    data.update(overrides)
    return CreateWorkerInput(**data)


# =============================================================================
# Users
# =============================================================================


def test_create_user_normalizes_rut_and_starts_pending(create_user, users):
    result = create_user.execute(user_input())

    assert result.error is None
    user = result.user
    assert user.rut == RUT_DIEGO
    assert user.status == UserStatus.PENDING
    assert user.enabled is False
    assert user.pin_hash is None
    assert user.created_at == FIXED_NOW
    assert users.get_user_by_rut(RUT_DIEGO).id == user.id


def test_create_user_returns_temporary_password_once(create_user, users):
    result = create_user.execute(user_input())

    assert len(result.temporary_password) == 10
    stored = users.get_user(result.user.id)
    assert stored.password_hash == fake_hash(result.temporary_password)


@pytest.mark.parametrize("rut", ["12.345.678-9", "abc", ""])
def test_create_user_rejects_invalid_rut(create_user, rut):
    result = create_user.execute(user_input(rut=rut))

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_create_user_requires_first_name(create_user):
    result = create_user.execute(user_input(first_name="   "))

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_duplicate_rut_in_any_format_is_a_conflict(create_user):
    assert create_user.execute(user_input(rut="12345678-5")).error is None

    result = create_user.execute(user_input(rut="12.345.678-5"))

    assert result.error.code == SignatureErrorCode.CONFLICT


def test_create_user_links_unclaimed_worker_with_same_rut(
    create_user, identities, workers
):
    worker = identities.worker(rut=RUT_DIEGO)

    result = create_user.execute(user_input())

    assert result.linked_worker is True
    assert result.user.worker_id == worker.id
    assert workers.get_worker(worker.id).user_id == result.user.id


def test_create_user_leaves_claimed_worker_alone(create_user, identities, workers):
    owner_id = uuid4()
    worker = identities.worker(rut=RUT_DIEGO, user_id=owner_id)

    result = create_user.execute(user_input())

    assert result.linked_worker is False
    assert result.user.worker_id is None
    assert workers.get_worker(worker.id).user_id == owner_id


def test_create_user_survives_worker_link_failure(create_user, identities):
    identities.worker(rut=RUT_DIEGO)

    with patch.object(
        InMemoryWorkerRepository, "update_worker", side_effect=RuntimeError("down")
    ):
        result = create_user.execute(user_input())

    assert result.error is None
    assert result.linked_worker is False
    assert result.user.worker_id is None


def test_get_user_by_id_and_by_any_rut_format(users, identities):
    user = identities.user(rut=RUT_DIEGO)
    use_case = GetUserUseCase(user_repository=users)

    assert use_case.execute(user.id).user.id == user.id
    assert use_case.execute_by_rut("12.345.678-5").user.id == user.id
    assert use_case.execute_by_rut("12345678-5").user.id == user.id


def test_get_user_errors(users):
    use_case = GetUserUseCase(user_repository=users)

    assert use_case.execute(uuid4()).error.code == SignatureErrorCode.NOT_FOUND
    assert (
        use_case.execute_by_rut(RUT_BRUNO).error.code == SignatureErrorCode.NOT_FOUND
    )
    assert (
        use_case.execute_by_rut("not-a-rut").error.code
        == SignatureErrorCode.VALIDATION_ERROR
    )


def test_update_user_profile_fields(users, identities):
    user = identities.user()
    use_case = UpdateUserUseCase(user_repository=users)

    result = use_case.execute(
        user.id,
        UpdateUserInput(
            first_name=" Ana María ", email="ana@example.com", status=UserStatus.SUSPENDED
        ),
    )

    assert result.error is None
    stored = users.get_user(user.id)
    assert stored.first_name == "Ana María"
    assert stored.email == "ana@example.com"
    assert stored.status == UserStatus.SUSPENDED
    assert stored.rut == RUT_ANA


def test_update_user_without_fields_is_rejected(users, identities):
    user = identities.user()

    result = UpdateUserUseCase(user_repository=users).execute(
        user.id, UpdateUserInput()
    )

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_update_unknown_user_is_not_found(users):
    result = UpdateUserUseCase(user_repository=users).execute(
        uuid4(), UpdateUserInput(position="Supervisor")
    )

    assert result.error.code == SignatureErrorCode.NOT_FOUND


def test_reset_password_replaces_hash(users, identities):
    user = identities.user(password_hash=fake_hash("old-password"))
    use_case = ResetPasswordUseCase(user_repository=users, password_hasher=fake_hash)

    result = use_case.execute(user.id)

    assert result.error is None
    assert result.temporary_password
    assert users.get_user(user.id).password_hash == fake_hash(
        result.temporary_password
    )


def test_reset_password_unknown_user(users):
    use_case = ResetPasswordUseCase(user_repository=users, password_hasher=fake_hash)

    assert use_case.execute(uuid4()).error.code == SignatureErrorCode.NOT_FOUND


# =============================================================================
# Workers
# =============================================================================


def test_create_worker_normalizes_rut_and_starts_disabled(create_worker, workers):
    result = create_worker.execute(worker_input())

    assert result.error is None
    worker = result.worker
    assert worker.rut == RUT_BRUNO
    assert worker.position == "Soldador"
    assert worker.enabled is False
    assert worker.pin_hash is None
    assert workers.get_worker_by_rut(RUT_BRUNO).id == worker.id


@pytest.mark.parametrize(
    "overrides",
    [{"rut": "22.222.222-3"}, {"first_name": ""}, {"position": "  "}],
)
def test_create_worker_validation(create_worker, overrides):
    result = create_worker.execute(worker_input(**overrides))

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_duplicate_worker_rut_is_a_conflict(create_worker, identities):
    identities.worker(rut=RUT_BRUNO)

    result = create_worker.execute(worker_input())

    assert result.error.code == SignatureErrorCode.CONFLICT


def test_create_worker_links_unlinked_user(create_worker, identities, users):
    user = identities.user(rut=RUT_BRUNO)

    result = create_worker.execute(worker_input())

    assert result.linked_user is True
    assert result.worker.user_id == user.id
    assert users.get_user(user.id).worker_id == result.worker.id


def test_create_worker_keeps_existing_user_link(create_worker, identities, users):
    other_worker_id = uuid4()
    user = identities.user(rut=RUT_BRUNO, worker_id=other_worker_id)

    result = create_worker.execute(worker_input())

    assert result.linked_user is False
    assert result.worker.user_id is None
    assert users.get_user(user.id).worker_id == other_worker_id


def test_create_worker_loses_link_race_without_failing(create_worker, identities, users):
    user = identities.user(rut=RUT_BRUNO)
    claimed_by = uuid4()
    original_get = users.get_user_by_rut

    def get_then_claim(rut):
        current = original_get(rut)
        users.update_user(user.id, changes={"worker_id": claimed_by})
        return current

    with patch.object(users, "get_user_by_rut", side_effect=get_then_claim):
        result = create_worker.execute(worker_input())

    assert result.error is None
    assert result.linked_user is False
    assert users.get_user(user.id).worker_id == claimed_by


def test_get_worker_by_id_and_rut(workers, identities):
    worker = identities.worker(rut=RUT_BRUNO)
    use_case = GetWorkerUseCase(worker_repository=workers)

    assert use_case.execute(worker.id).worker.id == worker.id
    assert use_case.execute_by_rut("22.222.222-2").worker.id == worker.id
    assert use_case.execute(uuid4()).error.code == SignatureErrorCode.NOT_FOUND
    assert (
        use_case.execute_by_rut("22.222.222-3").error.code
        == SignatureErrorCode.VALIDATION_ERROR
    )


def test_update_worker_profile(workers, identities):
    worker = identities.worker(rut=RUT_BRUNO)
    use_case = UpdateWorkerUseCase(worker_repository=workers)

    result = use_case.execute(worker.id, UpdateWorkerInput(position="Capataz"))

    assert result.error is None
    assert workers.get_worker(worker.id).position == "Capataz"


def test_update_worker_rejects_blank_position(workers, identities):
    worker = identities.worker(rut=RUT_BRUNO)

    result = UpdateWorkerUseCase(worker_repository=workers).execute(
        worker.id, UpdateWorkerInput(position=" ")
    )

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR
