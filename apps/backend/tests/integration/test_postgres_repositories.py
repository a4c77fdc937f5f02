"""
Name: PostgreSQL Repository Integration Tests

Responsibilities:
  - Exercise the Postgres identity, ledger and request repositories
  - Verify conditional writes raise StaleRecordError on lost races
  - Verify JSONB snapshots (enrollment, dispute, signers) survive a round trip

Notes:
  - Requires running PostgreSQL instance (docker compose up -d db)
  - Skipped unless RUN_INTEGRATION=1
"""

import os

import pytest

# Skip BEFORE importing app.* to avoid triggering env validation during collection
if os.getenv("RUN_INTEGRATION") != "1":
    pytest.skip(
        "Set RUN_INTEGRATION=1 to run integration tests", allow_module_level=True
    )

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from app.crosscutting.exceptions import DatabaseError, StaleRecordError
from app.domain.entities import (
    DisputeInfo,
    EnrollmentSnapshot,
    RequestSigner,
    Signature,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    SignatureState,
    User,
    UserRole,
    UserStatus,
    ValidationMethod,
    Worker,
)
from app.infrastructure.repositories.postgres import (
    PostgresSignatureRepository,
    PostgresSignatureRequestRepository,
    PostgresUserRepository,
    PostgresWorkerRepository,
)

pytestmark = pytest.mark.integration

NOW = datetime(2025, 3, 14, 15, 9, 26, tzinfo=timezone.utc)


def _worker(rut: str = "111111111") -> Worker:
    return Worker(id=uuid4(), rut=rut, first_name="Ana", last_name="Pérez")


def _signature(worker_id, *, token: str | None = None, request_id=None) -> Signature:
    return Signature(
        id=uuid4(),
        token=token or uuid4().hex,
        worker_id=worker_id,
        signer_rut="111111111",
        signer_name="Ana Pérez",
        purpose=SignaturePurpose.DOCUMENT,
        reference_id="doc-1",
        reference_type="procedimiento",
        signed_date="2025-03-14",
        signed_time="15:09:26",
        timestamp=NOW,
        validation_method=ValidationMethod.PIN,
        request_id=request_id,
        metadata={"origen": "test"},
    )


class TestIdentityRepositories:
    def test_cross_link_and_enrollment_snapshot(self):
        users, workers = PostgresUserRepository(), PostgresWorkerRepository()
        user = users.create_user(
            User(
                id=uuid4(),
                rut="111111111",
                first_name="Ana",
                role=UserRole.WORKER,
                status=UserStatus.ACTIVE,
            )
        )
        worker = workers.create_worker(_worker())

        snapshot = EnrollmentSnapshot(
            token="a" * 64,
            signed_date="2025-03-14",
            signed_time="15:09:26",
            timestamp=NOW,
            validation_method=ValidationMethod.PIN,
            ip_address="10.0.0.1",
        )
        linked = users.update_user(
            user.id,
            changes={"worker_id": worker.id, "enabled": True, "enrollment": snapshot},
            expected={"worker_id": None},
        )

        assert linked.worker_id == worker.id
        assert linked.enrollment == snapshot
        assert users.get_user_by_rut("111111111").id == user.id

    def test_conditional_link_loses_race(self):
        users, workers = PostgresUserRepository(), PostgresWorkerRepository()
        user = users.create_user(User(id=uuid4(), rut="111111111", first_name="Ana"))
        first = workers.create_worker(_worker())
        second = workers.create_worker(_worker(rut="222222222"))

        users.update_user(
            user.id, changes={"worker_id": first.id}, expected={"worker_id": None}
        )

        with pytest.raises(StaleRecordError):
            users.update_user(
                user.id, changes={"worker_id": second.id}, expected={"worker_id": None}
            )

    def test_update_unknown_identity_returns_none(self):
        assert (
            PostgresWorkerRepository().update_worker(uuid4(), changes={"enabled": True})
            is None
        )

    def test_profile_fields_are_updatable(self):
        workers = PostgresWorkerRepository()
        worker = workers.create_worker(_worker())

        updated = workers.update_worker(
            worker.id,
            changes={"first_name": "Ana María", "last_name": "Soto", "position": "Capataz"},
        )

        assert updated.full_name == "Ana María Soto"
        assert updated.position == "Capataz"

    def test_duplicate_rut_is_database_error(self):
        workers = PostgresWorkerRepository()
        workers.create_worker(_worker())

        with pytest.raises(DatabaseError):
            workers.create_worker(_worker())


class TestSignatureRepository:
    def test_create_and_lookup_by_token(self):
        repo = PostgresSignatureRepository()
        created = repo.create_signature(_signature(uuid4(), token="b" * 64))

        found = repo.get_signature_by_token("b" * 64)

        assert found.id == created.id
        assert found.metadata == {"origen": "test"}
        assert found.state == SignatureState.VALID

    def test_dispute_transition_is_conditional(self):
        repo = PostgresSignatureRepository()
        sig = repo.create_signature(_signature(uuid4()))
        dispute = DisputeInfo(reason="no fui yo", reported_by="ana", reported_at=NOW)

        updated = repo.update_signature_state(
            sig.id,
            state=SignatureState.DISPUTED,
            dispute=dispute,
            expected_state=SignatureState.VALID,
        )
        assert updated.state == SignatureState.DISPUTED
        assert updated.dispute.reason == "no fui yo"
        assert [s.id for s in repo.list_signatures_by_state(SignatureState.DISPUTED)] == [
            sig.id
        ]

        with pytest.raises(StaleRecordError):
            repo.update_signature_state(
                sig.id,
                state=SignatureState.DISPUTED,
                dispute=dispute,
                expected_state=SignatureState.VALID,
            )

    def test_history_matches_worker_or_user(self):
        repo = PostgresSignatureRepository()
        worker_id, user_id = uuid4(), uuid4()
        by_worker = repo.create_signature(_signature(worker_id))
        as_user = _signature(uuid4())
        as_user.user_id = user_id
        as_user.timestamp = NOW + timedelta(minutes=1)
        repo.create_signature(as_user)
        repo.create_signature(_signature(uuid4()))

        history = repo.list_signatures_for_identities([worker_id, user_id])

        assert {s.id for s in history} == {by_worker.id, as_user.id}


class TestSignatureRequestRepository:
    def _request(self, worker_id) -> SignatureRequest:
        return SignatureRequest(
            id=uuid4(),
            request_type=SignatureRequestType.CHARLA_5MIN,
            title="Charla de 5 minutos",
            requester_id=uuid4(),
            requester_name="Diego Rojas",
            signers=[RequestSigner(worker_id=worker_id, name="Ana", rut="111111111")],
            required_count=1,
        )

    def test_replace_increments_version(self):
        repo = PostgresSignatureRequestRepository()
        worker_id = uuid4()
        created = repo.create_request(self._request(worker_id))
        assert created.version == 1

        created.signers[0].signed = True
        created.completed_count = 1
        created.state = SignatureRequestState.COMPLETED
        created.completed_at = NOW
        replaced = repo.replace_request(created, expected_version=1)

        assert replaced.version == 2
        assert replaced.signers[0].signed is True

        with pytest.raises(StaleRecordError):
            repo.replace_request(created, expected_version=1)

    def test_open_requests_for_worker_uses_unsigned_slots(self):
        repo = PostgresSignatureRequestRepository()
        worker_id = uuid4()
        open_request = repo.create_request(self._request(worker_id))
        repo.create_request(self._request(uuid4()))

        pending = repo.list_open_requests_for_worker(worker_id)

        assert [r.id for r in pending] == [open_request.id]

    def test_overdue_requests_exclude_terminal_and_undated(self):
        repo = PostgresSignatureRequestRepository()
        worker_id = uuid4()
        later = self._request(worker_id)
        later.due_at = NOW - timedelta(hours=1)
        sooner = self._request(worker_id)
        sooner.due_at = NOW - timedelta(days=1)
        cancelled = self._request(worker_id)
        cancelled.due_at = NOW - timedelta(days=2)
        cancelled.state = SignatureRequestState.CANCELLED
        future = self._request(worker_id)
        future.due_at = NOW + timedelta(days=1)
        for request in (later, sooner, cancelled, future, self._request(worker_id)):
            repo.create_request(request)

        overdue = repo.list_overdue_requests(NOW)

        assert [r.id for r in overdue] == [sooner.id, later.id]
