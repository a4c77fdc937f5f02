"""
Name: Create Signature Use Case Tests

Responsibilities:
  - Signer resolution (Worker, or User without a Worker)
  - Enrollment / PIN checks before any write
  - Request gating (open, required signer, not yet signed)
  - Request projection update after the signature is written
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from app.application.usecases import (
    CreateSignatureInput,
    CreateSignatureUseCase,
    RecordSignerUseCase,
    SignatureErrorCode,
)
from app.domain.entities import (
    RequestSigner,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    SignatureState,
    ValidationMethod,
)
from app.domain.value_objects import AttestationContext

from ...conftest import FIXED_NOW, RUT_BRUNO, RUT_CARLA

pytestmark = pytest.mark.unit


@pytest.fixture
def record_signer(requests_repo, clock):
    return RecordSignerUseCase(requests_repo, clock=clock, backoff_seconds=0)


@pytest.fixture
def use_case(users, workers, signatures, requests_repo, codec, record_signer, clock):
    return CreateSignatureUseCase(
        worker_repository=workers,
        user_repository=users,
        signature_repository=signatures,
        request_repository=requests_repo,
        codec=codec,
        record_signer=record_signer,
        clock=clock,
    )


def _request_for(requests_repo, *workers, state=SignatureRequestState.PENDING):
    return requests_repo.create_request(
        SignatureRequest(
            id=uuid4(),
            request_type=SignatureRequestType.CHARLA_5MIN,
            title="Charla de seguridad",
            requester_id=uuid4(),
            requester_name="Supervisor",
            signers=[
                RequestSigner(worker_id=w.id, name=w.full_name, rut=w.rut)
                for w in workers
            ],
            required_count=len(workers),
            state=state,
        )
    )


def _sign(worker_id, pin="2580", **kwargs) -> CreateSignatureInput:
    return CreateSignatureInput(
        worker_id=worker_id,
        pin=pin,
        purpose=kwargs.pop("purpose", SignaturePurpose.ACTIVITY),
        **kwargs,
    )


def test_enabled_worker_signs(use_case, identities, signatures, codec):
    worker = identities.enrolled_worker()
    context = AttestationContext(ip_address="192.168.1.20", user_agent="kiosk/1.0")

    result = use_case.execute(
        _sign(
            worker.id,
            reference_id="DOC-7",
            reference_type="document",
            metadata={"page": 2},
            context=context,
        )
    )

    assert result.error is None
    signature = result.signature
    assert codec.token_checksum_ok(signature.token)
    assert signature.worker_id == worker.id
    assert signature.signer_rut == worker.rut
    assert signature.signer_name == "Ana Pérez"
    assert signature.state == SignatureState.VALID
    assert signature.validation_method == ValidationMethod.PIN
    assert signature.timestamp == FIXED_NOW
    assert signature.ip_address == "192.168.1.20"
    assert signature.metadata == {"page": 2}
    assert signatures.get_signature_by_token(signature.token).id == signature.id


def test_enrollment_purpose_is_rejected(use_case, identities):
    worker = identities.enrolled_worker()

    result = use_case.execute(_sign(worker.id, purpose=SignaturePurpose.ENROLLMENT))

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_unknown_signer_is_not_found(use_case):
    result = use_case.execute(_sign(uuid4()))

    assert result.error.code == SignatureErrorCode.NOT_FOUND


def test_worker_not_enabled_cannot_sign(use_case, identities):
    worker = identities.worker(pin="2580", enabled=False)

    result = use_case.execute(_sign(worker.id))

    assert result.error.code == SignatureErrorCode.AUTH_ERROR
    assert result.error.message == "not enrolled"


def test_wrong_pin_writes_nothing(use_case, identities, signatures):
    worker = identities.enrolled_worker()

    result = use_case.execute(_sign(worker.id, pin="1470"))

    assert result.error.code == SignatureErrorCode.AUTH_ERROR
    assert signatures.list_signatures_for_identities([worker.id]) == []


def test_user_id_resolves_to_linked_worker(use_case, identities):
    worker = identities.enrolled_worker(rut=RUT_BRUNO)
    user = identities.user(rut=RUT_BRUNO, worker_id=worker.id)

    result = use_case.execute(_sign(user.id))

    assert result.signature.worker_id == worker.id


def test_user_without_worker_signs_with_own_id(use_case, identities):
    user = identities.user(pin="2580", enabled=True)

    result = use_case.execute(_sign(user.id))

    assert result.error is None
    assert result.signature.worker_id == user.id
    assert result.signature.user_id == user.id


def test_repeated_signatures_are_not_deduplicated(use_case, identities):
    worker = identities.enrolled_worker()

    first = use_case.execute(_sign(worker.id, reference_id="DOC-1"))
    second = use_case.execute(_sign(worker.id, reference_id="DOC-1"))

    assert first.signature.id != second.signature.id
    assert first.signature.token != second.signature.token


def test_signing_a_request_updates_the_projection(
    use_case, identities, requests_repo
):
    ana = identities.enrolled_worker()
    bruno = identities.enrolled_worker(rut=RUT_BRUNO)
    request = _request_for(requests_repo, ana, bruno)

    first = use_case.execute(_sign(ana.id, request_id=request.id))
    after_first = requests_repo.get_request(request.id)
    use_case.execute(_sign(bruno.id, request_id=request.id))
    after_second = requests_repo.get_request(request.id)

    assert first.signature.request_id == request.id
    assert after_first.state == SignatureRequestState.IN_PROGRESS
    assert after_first.completed_count == 1
    assert after_first.signer_for(ana.id).signature_id == first.signature.id
    assert after_second.state == SignatureRequestState.COMPLETED
    assert after_second.completed_at == FIXED_NOW


def test_missing_request_is_not_found(use_case, identities):
    worker = identities.enrolled_worker()

    result = use_case.execute(_sign(worker.id, request_id=uuid4()))

    assert result.error.code == SignatureErrorCode.NOT_FOUND


@pytest.mark.parametrize(
    "state", [SignatureRequestState.CANCELLED, SignatureRequestState.EXPIRED]
)
def test_closed_request_is_a_conflict(use_case, identities, requests_repo, state):
    worker = identities.enrolled_worker()
    request = _request_for(requests_repo, worker, state=state)

    result = use_case.execute(_sign(worker.id, request_id=request.id))

    assert result.error.code == SignatureErrorCode.CONFLICT


def test_non_signer_cannot_sign_request(use_case, identities, requests_repo):
    ana = identities.enrolled_worker()
    carla = identities.enrolled_worker(rut=RUT_CARLA)
    request = _request_for(requests_repo, ana)

    result = use_case.execute(_sign(carla.id, request_id=request.id))

    assert result.error.code == SignatureErrorCode.AUTH_ERROR


def test_signer_cannot_sign_request_twice(use_case, identities, requests_repo):
    ana = identities.enrolled_worker()
    bruno = identities.enrolled_worker(rut=RUT_BRUNO)
    request = _request_for(requests_repo, ana, bruno)
    use_case.execute(_sign(ana.id, request_id=request.id))

    result = use_case.execute(_sign(ana.id, request_id=request.id))

    assert result.error.code == SignatureErrorCode.CONFLICT


def test_projection_failure_keeps_the_signature(
    users, workers, signatures, requests_repo, codec, clock, identities
):
    record_signer = MagicMock()
    record_signer.execute.side_effect = RuntimeError("store down")
    use_case = CreateSignatureUseCase(
        worker_repository=workers,
        user_repository=users,
        signature_repository=signatures,
        request_repository=requests_repo,
        codec=codec,
        record_signer=record_signer,
        clock=clock,
    )
    worker = identities.enrolled_worker()
    request = _request_for(requests_repo, worker)

    result = use_case.execute(_sign(worker.id, request_id=request.id))

    assert result.error is None
    assert signatures.get_signature(result.signature.id) is not None
    stored = requests_repo.get_request(request.id)
    assert stored.completed_count == 0
    assert stored.state == SignatureRequestState.PENDING
