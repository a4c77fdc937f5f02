"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/signatures.py
===============================================================================

Class/Module:
    Signatures Router

Responsibilities:
    - Firma interactiva por PIN.
    - Verificación pública por token (QR / auditoría externa).
    - Disputa (cualquier usuario autenticado) y resolución (resolve_disputes).
    - Listado de disputas e historial de firmas de una identidad.

Collaborators:
    - app.application.usecases (ledger)
    - app.identity.auth_users (require_user, require_permission)
    - error_mapping.raise_signature_error
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.application.usecases import (
    CreateSignatureInput,
    CreateSignatureUseCase,
    DisputeSignatureUseCase,
    GetSignerHistoryUseCase,
    ListDisputedSignaturesUseCase,
    ResolveDisputeUseCase,
    VerifySignatureUseCase,
)
from app.container import (
    get_create_signature_use_case,
    get_dispute_signature_use_case,
    get_list_disputed_signatures_use_case,
    get_resolve_dispute_use_case,
    get_signer_history_use_case,
    get_verify_signature_use_case,
)
from app.domain.entities import Signature, SignatureState, User
from app.domain.value_objects import AttestationContext
from app.identity.auth_users import require_permission, require_user
from app.identity.users import Permission
from fastapi import APIRouter, Depends, status

from ..dependencies import attestation_context, ensure_self_or_permission
from ..error_mapping import raise_signature_error
from ..schemas.signatures import (
    CreateSignatureReq,
    DisputeSignatureReq,
    ResolveDisputeReq,
    SignatureRes,
    SignaturesListRes,
    VerifySignatureRes,
)

router = APIRouter(prefix="/signatures", tags=["signatures"])


def _list_res(signatures: list[Signature]) -> SignaturesListRes:
    return SignaturesListRes(
        signatures=[SignatureRes.from_entity(s) for s in signatures],
        total=len(signatures),
    )


@router.post("", response_model=SignatureRes, status_code=status.HTTP_201_CREATED)
def create_signature(
    req: CreateSignatureReq,
    use_case: CreateSignatureUseCase = Depends(get_create_signature_use_case),
    context: AttestationContext = Depends(attestation_context),
    _actor: User = Depends(require_permission(Permission.SIGN)),
):
    result = use_case.execute(
        CreateSignatureInput(
            worker_id=req.worker_id,
            pin=req.pin,
            purpose=req.purpose,
            reference_id=req.reference_id,
            reference_type=req.reference_type,
            request_id=req.request_id,
            metadata=req.metadata,
            context=context,
        )
    )
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRes.from_entity(result.signature)


@router.get("/verify/{token}", response_model=VerifySignatureRes)
def verify_signature(
    token: str,
    use_case: VerifySignatureUseCase = Depends(get_verify_signature_use_case),
):
    result = use_case.execute(token)
    if result.error is not None:
        raise_signature_error(result.error)
    return VerifySignatureRes(
        valid=result.signature.state == SignatureState.VALID,
        signature=SignatureRes.from_entity(result.signature),
    )


@router.get("/disputes", response_model=SignaturesListRes)
def list_disputed_signatures(
    use_case: ListDisputedSignaturesUseCase = Depends(
        get_list_disputed_signatures_use_case
    ),
    _actor: User = Depends(require_permission(Permission.VIEW_REPORTS)),
):
    result = use_case.execute()
    if result.error is not None:
        raise_signature_error(result.error)
    return _list_res(result.signatures)


@router.get("/history/{identity_id}", response_model=SignaturesListRes)
def signer_history(
    identity_id: UUID,
    use_case: GetSignerHistoryUseCase = Depends(get_signer_history_use_case),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(
        actor, identity_id=identity_id, permission=Permission.VIEW_REPORTS
    )
    result = use_case.execute(identity_id)
    if result.error is not None:
        raise_signature_error(result.error)
    return _list_res(result.signatures)


@router.post("/{signature_id}/dispute", response_model=SignatureRes)
def dispute_signature(
    signature_id: UUID,
    req: DisputeSignatureReq,
    use_case: DisputeSignatureUseCase = Depends(get_dispute_signature_use_case),
    actor: User = Depends(require_user()),
):
    result = use_case.execute(signature_id, req.reason, str(actor.id))
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRes.from_entity(result.signature)


@router.put("/{signature_id}/resolve", response_model=SignatureRes)
def resolve_dispute(
    signature_id: UUID,
    req: ResolveDisputeReq,
    use_case: ResolveDisputeUseCase = Depends(get_resolve_dispute_use_case),
    actor: User = Depends(require_permission(Permission.RESOLVE_DISPUTES)),
):
    result = use_case.execute(
        signature_id, req.resolution, str(actor.id), SignatureState(req.new_state)
    )
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRes.from_entity(result.signature)
