"""
Name: In-Memory Repository Tests

Responsibilities:
  - RUT uniqueness and lookup for identities
  - Conditional (expected) updates raise StaleRecordError
  - Ledger: token uniqueness, state-guarded updates, ordering
  - Requests: optimistic versioning and open-request lookup
  - Copies never share mutable state with callers
"""

from dataclasses import replace
from datetime import timedelta
from uuid import uuid4

import pytest
from app.application.usecases.signatures.ledger import new_signature
from app.crosscutting.exceptions import DatabaseError, StaleRecordError
from app.domain.entities import (
    DisputeInfo,
    RequestSigner,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    SignatureState,
    User,
    ValidationMethod,
)
from app.domain.value_objects import AttestationContext

from ...conftest import FIXED_NOW, RUT_ANA, RUT_BRUNO

pytestmark = pytest.mark.unit


class TestIdentityRepositories:
    def test_lookup_by_rut(self, identities, users, workers):
        user = identities.user(rut=RUT_ANA)
        worker = identities.worker(rut=RUT_BRUNO)

        assert users.get_user_by_rut(RUT_ANA).id == user.id
        assert workers.get_worker_by_rut(RUT_BRUNO).id == worker.id
        assert users.get_user_by_rut(RUT_BRUNO) is None

    def test_duplicate_rut_is_rejected(self, identities):
        identities.user(rut=RUT_ANA)

        with pytest.raises(DatabaseError):
            identities.user(rut=RUT_ANA)

    def test_update_missing_identity_returns_none(self, users):
        assert users.update_user(uuid4(), changes={"enabled": True}) is None

    def test_unknown_field_is_rejected(self, identities, users):
        user = identities.user()

        with pytest.raises(ValueError):
            users.update_user(user.id, changes={"rut": RUT_BRUNO})

    def test_expected_values_guard_the_write(self, identities, users):
        user = identities.user()
        linked = uuid4()
        users.update_user(
            user.id, changes={"worker_id": linked}, expected={"worker_id": None}
        )

        with pytest.raises(StaleRecordError):
            users.update_user(
                user.id, changes={"worker_id": uuid4()}, expected={"worker_id": None}
            )
        assert users.get_user(user.id).worker_id == linked

    def test_returned_entities_are_copies(self, identities, users):
        user = identities.user()

        fetched = users.get_user(user.id)
        fetched.first_name = "Mutada"

        assert users.get_user(user.id).first_name == "Ana"

    def test_list_users(self, users):
        users.create_user(User(id=uuid4(), rut=RUT_ANA, first_name="Ana"))
        users.create_user(User(id=uuid4(), rut=RUT_BRUNO, first_name="Bruno"))

        assert {u.rut for u in users.list_users()} == {RUT_ANA, RUT_BRUNO}


def _signature(codec, signer_id, *, at=FIXED_NOW, request_id=None):
    return new_signature(
        codec=codec,
        signer_id=signer_id,
        signer_rut=RUT_ANA,
        signer_name="Ana Pérez",
        purpose=SignaturePurpose.DOCUMENT,
        method=ValidationMethod.PIN,
        attested_at=at,
        recorded_at=at,
        context=AttestationContext(),
        request_id=request_id,
    )


class TestSignatureRepository:
    def test_duplicate_token_is_rejected(self, signatures, codec):
        signature = signatures.create_signature(_signature(codec, uuid4()))

        with pytest.raises(DatabaseError):
            signatures.create_signature(replace(signature, id=uuid4()))

    def test_state_update_requires_expected_state(self, signatures, codec):
        signature = signatures.create_signature(_signature(codec, uuid4()))
        info = DisputeInfo(reason="r", reported_by="u", reported_at=FIXED_NOW)

        with pytest.raises(StaleRecordError):
            signatures.update_signature_state(
                signature.id,
                state=SignatureState.VALID,
                dispute=info,
                expected_state=SignatureState.DISPUTED,
            )
        updated = signatures.update_signature_state(
            signature.id,
            state=SignatureState.DISPUTED,
            dispute=info,
            expected_state=SignatureState.VALID,
        )
        assert updated.state == SignatureState.DISPUTED
        assert updated.token == signature.token

    def test_update_missing_signature_returns_none(self, signatures):
        info = DisputeInfo(reason="r", reported_by="u", reported_at=FIXED_NOW)

        assert (
            signatures.update_signature_state(
                uuid4(),
                state=SignatureState.DISPUTED,
                dispute=info,
                expected_state=SignatureState.VALID,
            )
            is None
        )

    def test_lists_are_newest_first(self, signatures, codec):
        signer = uuid4()
        old = signatures.create_signature(_signature(codec, signer))
        new = signatures.create_signature(
            _signature(codec, signer, at=FIXED_NOW + timedelta(minutes=5))
        )

        listed = signatures.list_signatures_for_identities([signer])

        assert [s.id for s in listed] == [new.id, old.id]
        assert signatures.list_signatures_for_identities([]) == []

    def test_list_by_request_and_state(self, signatures, codec):
        request_id = uuid4()
        linked = signatures.create_signature(
            _signature(codec, uuid4(), request_id=request_id)
        )
        signatures.create_signature(_signature(codec, uuid4()))

        assert [s.id for s in signatures.list_signatures_by_request(request_id)] == [
            linked.id
        ]
        assert len(signatures.list_signatures_by_state(SignatureState.VALID)) == 2
        assert signatures.list_signatures_by_state(SignatureState.REVOKED) == []


def _request(*worker_ids, state=SignatureRequestState.PENDING):
    return SignatureRequest(
        id=uuid4(),
        request_type=SignatureRequestType.CAPACITACION,
        title="Capacitación",
        requester_id=uuid4(),
        requester_name="x",
        signers=[RequestSigner(worker_id=w, name="n", rut="r") for w in worker_ids],
        required_count=len(worker_ids),
        state=state,
    )


class TestSignatureRequestRepository:
    def test_create_starts_at_version_one(self, requests_repo):
        stored = requests_repo.create_request(replace(_request(uuid4()), version=7))

        assert stored.version == 1

    def test_duplicate_id_is_rejected(self, requests_repo):
        request = requests_repo.create_request(_request(uuid4()))

        with pytest.raises(DatabaseError):
            requests_repo.create_request(request)

    def test_replace_bumps_version(self, requests_repo):
        request = requests_repo.create_request(_request(uuid4()))

        saved = requests_repo.replace_request(
            replace(request, title="Nuevo"), expected_version=1
        )

        assert saved.version == 2
        assert saved.title == "Nuevo"

    def test_replace_with_stale_version(self, requests_repo):
        request = requests_repo.create_request(_request(uuid4()))
        requests_repo.replace_request(request, expected_version=1)

        with pytest.raises(StaleRecordError):
            requests_repo.replace_request(request, expected_version=1)

    def test_open_requests_for_worker(self, requests_repo):
        worker_id = uuid4()
        pending = requests_repo.create_request(_request(worker_id))
        requests_repo.create_request(
            _request(worker_id, state=SignatureRequestState.CANCELLED)
        )
        requests_repo.create_request(_request(uuid4()))
        signed = _request(worker_id, uuid4(), state=SignatureRequestState.IN_PROGRESS)
        signed.signers[0].signed = True
        requests_repo.create_request(signed)

        open_requests = requests_repo.list_open_requests_for_worker(worker_id)

        assert [r.id for r in open_requests] == [pending.id]
