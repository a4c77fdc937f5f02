"""
Name: Record Signer Use Case Tests

Responsibilities:
  - Idempotent signer marking and count recomputation
  - Terminal requests are left untouched
  - Optimistic-version conflicts are retried, then reported
"""

from dataclasses import replace
from uuid import uuid4

import pytest
from app.application.usecases import RecordSignerUseCase, SignatureErrorCode
from app.crosscutting.exceptions import StaleRecordError
from app.domain.entities import (
    RequestSigner,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
)

from ...conftest import FIXED_NOW

pytestmark = pytest.mark.unit


class FlakyRequestRepository:
    """Delegates to a real repo, failing the first `failures` writes as stale."""

    def __init__(self, inner, failures: int):
        self._inner = inner
        self.failures = failures
        self.writes = 0

    def get_request(self, request_id):
        return self._inner.get_request(request_id)

    def replace_request(self, request, *, expected_version):
        self.writes += 1
        if self.failures > 0:
            self.failures -= 1
            raise StaleRecordError("concurrent update")
        return self._inner.replace_request(request, expected_version=expected_version)


@pytest.fixture
def signer_ids():
    return [uuid4(), uuid4()]


@pytest.fixture
def request_(requests_repo, signer_ids):
    return requests_repo.create_request(
        SignatureRequest(
            id=uuid4(),
            request_type=SignatureRequestType.ENTREGA_EPP,
            title="Entrega de EPP",
            requester_id=uuid4(),
            requester_name="Prevención",
            signers=[
                RequestSigner(worker_id=sid, name=f"Firmante {i}", rut=f"{i}")
                for i, sid in enumerate(signer_ids)
            ],
            required_count=len(signer_ids),
        )
    )


@pytest.fixture
def record(requests_repo, clock):
    return RecordSignerUseCase(requests_repo, clock=clock, backoff_seconds=0)


def test_first_signer_moves_request_in_progress(record, request_, signer_ids):
    signature_id = uuid4()

    result = record.execute(request_.id, signer_ids[0], signature_id)

    assert result.recorded is True
    entry = result.request.signer_for(signer_ids[0])
    assert entry.signed is True
    assert entry.signature_id == signature_id
    assert entry.signed_at == FIXED_NOW
    assert result.request.completed_count == 1
    assert result.request.state == SignatureRequestState.IN_PROGRESS


def test_last_signer_completes_request(record, request_, signer_ids):
    record.execute(request_.id, signer_ids[0], uuid4())

    result = record.execute(request_.id, signer_ids[1], uuid4())

    assert result.request.state == SignatureRequestState.COMPLETED
    assert result.request.completed_at == FIXED_NOW
    assert result.request.completed_count == 2


def test_renotification_does_not_double_count(record, request_, signer_ids):
    first_signature = uuid4()
    record.execute(request_.id, signer_ids[0], first_signature)

    again = record.execute(request_.id, signer_ids[0], uuid4())

    assert again.recorded is False
    assert again.error is None
    assert again.request.completed_count == 1
    assert again.request.signer_for(signer_ids[0]).signature_id == first_signature


def test_unknown_request(record):
    result = record.execute(uuid4(), uuid4(), uuid4())

    assert result.error.code == SignatureErrorCode.NOT_FOUND


def test_signer_not_in_request(record, request_):
    result = record.execute(request_.id, uuid4(), uuid4())

    assert result.error.code == SignatureErrorCode.NOT_FOUND
    assert result.recorded is False


def test_terminal_request_is_untouched(record, request_, requests_repo, signer_ids):
    requests_repo.replace_request(
        replace(request_, state=SignatureRequestState.CANCELLED),
        expected_version=request_.version,
    )

    result = record.execute(request_.id, signer_ids[0], uuid4())

    assert result.recorded is False
    assert result.request.state == SignatureRequestState.CANCELLED
    assert result.request.completed_count == 0


def test_stale_write_is_retried(requests_repo, request_, signer_ids, clock):
    flaky = FlakyRequestRepository(requests_repo, failures=2)
    record = RecordSignerUseCase(flaky, clock=clock, max_retries=3, backoff_seconds=0)

    result = record.execute(request_.id, signer_ids[0], uuid4())

    assert result.recorded is True
    assert flaky.writes == 3
    assert requests_repo.get_request(request_.id).completed_count == 1


def test_retries_exhausted_is_a_conflict(requests_repo, request_, signer_ids, clock):
    flaky = FlakyRequestRepository(requests_repo, failures=10)
    record = RecordSignerUseCase(flaky, clock=clock, max_retries=3, backoff_seconds=0)

    result = record.execute(request_.id, signer_ids[0], uuid4())

    assert result.error.code == SignatureErrorCode.CONFLICT
    assert flaky.writes == 3
    assert requests_repo.get_request(request_.id).completed_count == 0
