"""
Name: Dispute Lifecycle Tests

Responsibilities:
  - valid -> disputed -> valid | revoked transitions
  - Illegal transitions are CONFLICT and leave the record untouched
  - Dispute metadata (reporter, resolver, timestamps) is kept
"""

from uuid import uuid4

import pytest
from app.application.usecases import (
    DisputeSignatureUseCase,
    ResolveDisputeUseCase,
    SignatureErrorCode,
)
from app.application.usecases.signatures.ledger import new_signature
from app.domain.entities import SignaturePurpose, SignatureState, ValidationMethod
from app.domain.value_objects import AttestationContext

from ...conftest import FIXED_NOW, RUT_ANA

pytestmark = pytest.mark.unit


@pytest.fixture
def dispute(signatures, clock):
    return DisputeSignatureUseCase(signatures, clock=clock)


@pytest.fixture
def resolve(signatures, clock):
    return ResolveDisputeUseCase(signatures, clock=clock)


@pytest.fixture
def signature(signatures, codec):
    return signatures.create_signature(
        new_signature(
            codec=codec,
            signer_id=uuid4(),
            signer_rut=RUT_ANA,
            signer_name="Ana Pérez",
            purpose=SignaturePurpose.DOCUMENT,
            method=ValidationMethod.PIN,
            attested_at=FIXED_NOW,
            recorded_at=FIXED_NOW,
            context=AttestationContext(),
        )
    )


def test_dispute_marks_signature_disputed(dispute, signature):
    result = dispute.execute(signature.id, "  No firmé este documento ", "user-9")

    assert result.error is None
    assert result.signature.state == SignatureState.DISPUTED
    assert result.signature.dispute.reason == "No firmé este documento"
    assert result.signature.dispute.reported_by == "user-9"
    assert result.signature.dispute.reported_at == FIXED_NOW


def test_dispute_requires_reason(dispute, signature):
    result = dispute.execute(signature.id, "   ", "user-9")

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_dispute_unknown_signature(dispute):
    result = dispute.execute(uuid4(), "motivo", "user-9")

    assert result.error.code == SignatureErrorCode.NOT_FOUND


def test_cannot_dispute_twice(dispute, signature, signatures):
    dispute.execute(signature.id, "motivo", "user-9")

    result = dispute.execute(signature.id, "otro motivo", "user-10")

    assert result.error.code == SignatureErrorCode.CONFLICT
    stored = signatures.get_signature(signature.id)
    assert stored.dispute.reason == "motivo"


@pytest.mark.parametrize(
    "new_state", [SignatureState.VALID, SignatureState.REVOKED]
)
def test_resolve_dispute(dispute, resolve, signature, new_state):
    dispute.execute(signature.id, "motivo", "user-9")

    result = resolve.execute(signature.id, "Revisado con video", "admin-1", new_state)

    assert result.error is None
    assert result.signature.state == new_state
    info = result.signature.dispute
    assert info.reason == "motivo"
    assert info.resolution == "Revisado con video"
    assert info.resolved_by == "admin-1"
    assert info.resolved_at == FIXED_NOW


def test_resolve_rejects_disputed_as_target(dispute, resolve, signature):
    dispute.execute(signature.id, "motivo", "user-9")

    result = resolve.execute(
        signature.id, "resolución", "admin-1", SignatureState.DISPUTED
    )

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_resolve_requires_resolution_text(dispute, resolve, signature):
    dispute.execute(signature.id, "motivo", "user-9")

    result = resolve.execute(signature.id, "", "admin-1", SignatureState.VALID)

    assert result.error.code == SignatureErrorCode.VALIDATION_ERROR


def test_cannot_resolve_a_valid_signature(resolve, signature):
    result = resolve.execute(signature.id, "ok", "admin-1", SignatureState.VALID)

    assert result.error.code == SignatureErrorCode.CONFLICT


def test_revoked_signature_is_final(dispute, resolve, signature):
    dispute.execute(signature.id, "motivo", "user-9")
    resolve.execute(signature.id, "fraude", "admin-1", SignatureState.REVOKED)

    again = dispute.execute(signature.id, "otro", "user-9")

    assert again.error.code == SignatureErrorCode.CONFLICT


def test_restored_signature_can_be_disputed_again(dispute, resolve, signature):
    dispute.execute(signature.id, "motivo", "user-9")
    resolve.execute(signature.id, "válida", "admin-1", SignatureState.VALID)

    again = dispute.execute(signature.id, "nuevo motivo", "user-11")

    assert again.error is None
    assert again.signature.state == SignatureState.DISPUTED
    assert again.signature.dispute.resolution is None
